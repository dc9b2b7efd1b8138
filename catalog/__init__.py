"""Static question catalog for the compliance interview."""
from .loader import BUNDLED_CATALOG, default_catalog, load_catalog
from .models import (
    ANSWER_VALUES,
    BAND_POINTS,
    AnswerValue,
    EvidenceTrigger,
    Question,
    QuestionCatalog,
    ScoringGuide,
)

__all__ = [
    "ANSWER_VALUES",
    "BAND_POINTS",
    "AnswerValue",
    "BUNDLED_CATALOG",
    "EvidenceTrigger",
    "Question",
    "QuestionCatalog",
    "ScoringGuide",
    "default_catalog",
    "load_catalog",
]

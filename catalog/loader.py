"""YAML-driven question catalog loading."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from .models import Question, QuestionCatalog

BUNDLED_CATALOG = Path(__file__).resolve().parent / "ohs_questions.yaml"


def _load_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Catalog file {path} must contain a mapping")
    return data


def load_catalog(path: str | Path) -> QuestionCatalog:
    """Build a :class:`QuestionCatalog` from a YAML file.

    The file holds a ``questions`` list; each entry is validated as a
    :class:`Question`, so unknown evidence triggers or duplicate numbers
    fail at load time rather than mid-interview.
    """

    source = Path(path)
    data = _load_yaml(source)
    raw_questions = data.get("questions") or []
    questions = [Question.model_validate(item) for item in raw_questions]
    return QuestionCatalog(questions, name=str(data.get("name") or source.stem))


def default_catalog(path: str | Path | None = None) -> QuestionCatalog:
    """Load ``path`` when given, otherwise the bundled OHS catalog."""

    return load_catalog(path or BUNDLED_CATALOG)


__all__ = ["BUNDLED_CATALOG", "default_catalog", "load_catalog"]

from __future__ import annotations  # Question catalog domain models

from typing import Dict, Iterator, List, Literal, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

AnswerValue = Literal["Yes", "No"]
EvidenceTrigger = Literal["yes", "no", "both", "none"]

ANSWER_VALUES: Tuple[str, ...] = ("Yes", "No")

BAND_POINTS: Dict[str, int] = {  # Five-band compliance scale
    "stretch": 5,
    "commitment": 4,
    "robust": 3,
    "warning": 2,
    "offtrack": 1,
}


class ScoringGuide(BaseModel):  # Band descriptions handed to the document reviewer
    model_config = ConfigDict(frozen=True)

    stretch: str = ""
    commitment: str = ""
    robust: str = ""
    warning: str = ""
    offtrack: str = ""

    def render(self) -> str:  # Bullet list in band order
        lines: List[str] = []
        for band, points in BAND_POINTS.items():
            text = getattr(self, band).strip()
            if text:
                lines.append(f"- {band.upper()} ({points}/5): {text}")
        return "\n".join(lines)


class Question(BaseModel):
    """Immutable catalog entry.

    ``evidence_trigger`` decides which answers open the upload sub-flow;
    an empty ``requirements`` list never requests evidence.
    """

    model_config = ConfigDict(frozen=True)

    number: int = Field(gt=0)
    text: str = Field(min_length=1)
    disqualifies_if_no: bool = False
    evidence_trigger: EvidenceTrigger = "yes"
    requirements: Tuple[str, ...] = ()
    scoring: ScoringGuide = Field(default_factory=ScoringGuide)
    consequence: str = ""

    @field_validator("text", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:  # Collapse folded YAML whitespace
        if isinstance(value, str):
            return " ".join(value.split())
        return value

    @field_validator("requirements", mode="before")
    @classmethod
    def _clean_requirements(cls, value: object) -> object:  # Drop blank requirement lines
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return value

    def requires_evidence(self, value: str) -> bool:  # Whether this answer opens the upload sub-flow
        if not self.requirements or self.evidence_trigger == "none":
            return False
        if self.evidence_trigger == "both":
            return True
        return value.lower() == self.evidence_trigger

    def disqualifies(self, value: str) -> bool:
        return self.disqualifies_if_no and value == "No"


class QuestionCatalog:  # Ordered, read-only question set
    def __init__(self, questions: Sequence[Question], *, name: str = "catalog") -> None:
        ordered = sorted(questions, key=lambda item: item.number)
        numbers = [item.number for item in ordered]
        if not ordered:
            raise ValueError("Question catalog must contain at least one question")
        if len(set(numbers)) != len(numbers):
            raise ValueError(f"Duplicate question numbers in catalog '{name}': {numbers}")
        self.name = name
        self._questions: Tuple[Question, ...] = tuple(ordered)
        self._index: Dict[int, int] = {item.number: idx for idx, item in enumerate(ordered)}

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def at(self, index: int) -> Question:  # Question at catalog position
        return self._questions[index]

    def get(self, number: int) -> Question:
        return self._questions[self.index_of(number)]

    def index_of(self, number: int) -> int:
        if number not in self._index:
            raise KeyError(f"Question {number} is not in catalog '{self.name}'")
        return self._index[number]

    def has(self, number: int) -> bool:
        return number in self._index

    def requirement(self, number: int, requirement_index: int) -> str:
        question = self.get(number)
        if requirement_index < 0 or requirement_index >= len(question.requirements):
            raise IndexError(f"Question {number} has no requirement {requirement_index}")
        return question.requirements[requirement_index]


__all__ = [
    "ANSWER_VALUES",
    "AnswerValue",
    "BAND_POINTS",
    "EvidenceTrigger",
    "Question",
    "QuestionCatalog",
    "ScoringGuide",
]

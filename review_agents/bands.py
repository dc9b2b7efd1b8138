"""Band-score parsing for reviewer and evaluator feedback."""
from __future__ import annotations

import re
from typing import Iterable, List, Optional

# Matches "Score: Robust (3/5)", "Score: [Strong (4/5)]" and "Score: (2/5)"
BAND_SCORE_RE = re.compile(
    r"Score:\s*\[?\s*(?:Stretch|Commitment|Robust|Warning|Offtrack|Fully\s+Compliant|Strong|Moderate|Weak|Not\s+Compliant)?"
    r"\s*\((\d)\s*/\s*5\)\s*\]?",
    re.IGNORECASE,
)
_BARE_SCORE_RE = re.compile(r"\((\d)\s*/\s*5\)")


def extract_band_scores(text: Optional[str]) -> List[int]:
    """Every ``Score: <band> (n/5)`` value in ``text``, in order, limited to 1..5."""

    if not text:
        return []
    return [int(m.group(1)) for m in BAND_SCORE_RE.finditer(text) if 1 <= int(m.group(1)) <= 5]


def first_band_score(text: Optional[str], *, lenient: bool = False) -> Optional[int]:
    scores = extract_band_scores(text)
    if scores:
        return scores[0]
    if lenient and text:
        # Evaluator replies sometimes drop the "Score:" label
        match = _BARE_SCORE_RE.search(text)
        if match and 1 <= int(match.group(1)) <= 5:
            return int(match.group(1))
    return None


def evidence_percentage(feedback_texts: Iterable[Optional[str]]) -> Optional[int]:
    """Average of all band scores as a 0-100 percentage; ``None`` when nothing was scored."""

    scores = [score for text in feedback_texts for score in extract_band_scores(text)]
    if not scores:
        return None
    return round(sum(scores) / (len(scores) * 5) * 100)


__all__ = ["BAND_SCORE_RE", "evidence_percentage", "extract_band_scores", "first_band_score"]

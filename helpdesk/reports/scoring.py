"""Survey answer scoring.

Every scorable answer is mapped onto a 0-100 satisfaction scale so that
yes/no questions and 3/4/5 point scales can be averaged together. Scorers
return ``None`` for answers that carry no satisfaction signal (free text,
multiple choice, out-of-range or unparseable values); ``None`` is never
folded into an average, unlike a genuine 0.
"""

import json
import math
from collections.abc import Callable, Mapping
from functools import partial
from typing import Any

from helpdesk.surveys.models import QuestionType

LEGACY_SCALE_MAX = 5

_YES_VALUES = {"ya", "yes", "true"}
_NO_VALUES = {"tidak", "no", "false"}


def normalize_to_hundred(value: float, max_points: int) -> float:
    """Map a scale choice onto 0-100.

    The lowest choice lands on 20 (one star out of five) and the highest
    on 100.
    """
    if max_points <= 1:
        return 100.0
    normalized = 20 + ((value - 1) * 80) / (max_points - 1)
    return min(max(normalized, 0.0), 100.0)


def normalize_legacy_score(score: float) -> float:
    """Re-express a stored score from the old 1-5 scale on the 0-100 scale.

    Scores outside ``(0, 5]`` are already on the 0-100 scale and pass through.
    """
    if 0 < score <= LEGACY_SCALE_MAX:
        return normalize_to_hundred(score, LEGACY_SCALE_MAX)
    return score


def score_yes_no(value: Any) -> float | None:
    if isinstance(value, bool):
        return 100.0 if value else 0.0
    if isinstance(value, str):
        cleaned = value.strip().lower()
        if cleaned in _YES_VALUES:
            return 100.0
        if cleaned in _NO_VALUES:
            return 0.0
    return None


def score_scale(value: Any, max_points: int) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        numeric = float(value)
    elif isinstance(value, str):
        try:
            numeric = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(numeric) or numeric < 1 or numeric > max_points:
        return None
    return normalize_to_hundred(numeric, max_points)


Scorer = Callable[[Any], float | None]

SCORERS: dict[QuestionType, Scorer] = {
    QuestionType.YES_NO: score_yes_no,
    QuestionType.LIKERT: partial(score_scale, max_points=5),
    QuestionType.LIKERT_QUALITY: partial(score_scale, max_points=5),
    QuestionType.LIKERT_3: partial(score_scale, max_points=3),
    QuestionType.LIKERT_3_SATISFACTION: partial(score_scale, max_points=3),
    QuestionType.LIKERT_4: partial(score_scale, max_points=4),
    QuestionType.LIKERT_4_SATISFACTION: partial(score_scale, max_points=4),
}


def score_answer(value: Any, question_type: QuestionType | str) -> float | None:
    """Score one raw answer for a question of the given type.

    Text and multiple-choice questions (and unknown tags) are never scorable;
    they only count towards answered totals.
    """
    try:
        question_type = QuestionType(question_type)
    except ValueError:
        return None
    scorer = SCORERS.get(question_type)
    if scorer is None:
        return None
    return scorer(value)


def decode_answers(raw: Any) -> dict[str, Any] | None:
    """Return the answer map of a stored response, or ``None`` if it cannot be decoded."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            return None
        return decoded if isinstance(decoded, dict) else None
    return None


def score_legacy_answers(answers: Mapping[str, Any]) -> float:
    """Average an answer map without question types (pre-template responses).

    Each value is tried as a 5-point scale, then as yes/no. Returns 0 when
    nothing is scorable.
    """
    scores = []
    for value in answers.values():
        score = score_scale(value, LEGACY_SCALE_MAX)
        if score is None:
            score = score_yes_no(value)
        if score is not None:
            scores.append(score)
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def score_raw_answers(raw: Any) -> float:
    answers = decode_answers(raw)
    if answers is None:
        return 0.0
    return score_legacy_answers(answers)


def effective_response_score(stored_score: float | None, raw_answers: Any) -> float:
    """Score a response for aggregation: stored score if set, else derived from answers, then legacy-rescued."""
    score = stored_score or 0.0
    if score <= 0:
        score = score_raw_answers(raw_answers)
    return normalize_legacy_score(score)

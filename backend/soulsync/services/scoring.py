"""
Compatibility scoring.

Responsibilities:
- Parse raw answers into typed variants (scale / choice / bool).
- Compute a deterministic, symmetric weighted score between two answer sets.
- Rank candidates and pick the most decisive unanswered questions.

Non-Responsibilities:
- No database access.
- No candidate selection or quota decisions.

Invariant:
Given identical inputs, every function here returns the same result.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from soulsync.errors import InvalidAnswer

MIN_SCORE = 0.0
MAX_SCORE = 10.0


@dataclass(frozen=True)
class QuestionItem:
    question_id: str
    category: str
    type: str                     # scale | multiple | boolean
    weight: int
    text: str = ""
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    options: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ScaleAnswer:
    value: int


@dataclass(frozen=True)
class ChoiceAnswer:
    option: str


@dataclass(frozen=True)
class BoolAnswer:
    value: bool


AnswerValue = Union[ScaleAnswer, ChoiceAnswer, BoolAnswer]
AnswerSet = Dict[str, AnswerValue]


# ---------------------------------------------------------------------------
# Answer parsing
# ---------------------------------------------------------------------------

def parse_answer(question: QuestionItem, raw: Any) -> AnswerValue:
    """Validate a raw client value against the question and return its typed variant."""
    if question.type == "scale":
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise InvalidAnswer(f"{question.question_id}: scale answer must be an integer")
        low, high = question.min_value, question.max_value
        if low is not None and raw < low or high is not None and raw > high:
            raise InvalidAnswer(f"{question.question_id}: {raw} outside [{low}, {high}]")
        return ScaleAnswer(raw)

    if question.type == "multiple":
        if not isinstance(raw, str) or raw not in question.options:
            raise InvalidAnswer(f"{question.question_id}: answer must be one of the listed options")
        return ChoiceAnswer(raw)

    if question.type == "boolean":
        if not isinstance(raw, bool):
            raise InvalidAnswer(f"{question.question_id}: boolean answer expected")
        return BoolAnswer(raw)

    raise InvalidAnswer(f"{question.question_id}: unknown question type {question.type!r}")


def answer_to_json(answer: AnswerValue) -> Dict[str, Any]:
    if isinstance(answer, ScaleAnswer):
        return {"kind": "scale", "value": answer.value}
    if isinstance(answer, ChoiceAnswer):
        return {"kind": "choice", "value": answer.option}
    return {"kind": "bool", "value": answer.value}


def answer_from_json(data: Mapping[str, Any]) -> AnswerValue:
    kind = data.get("kind")
    if kind == "scale":
        return ScaleAnswer(int(data["value"]))
    if kind == "choice":
        return ChoiceAnswer(str(data["value"]))
    if kind == "bool":
        return BoolAnswer(bool(data["value"]))
    raise ValueError(f"unknown stored answer kind: {kind!r}")


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def similarity(question: QuestionItem, a: AnswerValue, b: AnswerValue) -> float:
    """Per-question similarity in [0, 1]; symmetric in a and b."""
    if isinstance(a, ScaleAnswer) and isinstance(b, ScaleAnswer):
        low = question.min_value if question.min_value is not None else min(a.value, b.value)
        high = question.max_value if question.max_value is not None else max(a.value, b.value)
        span = high - low
        if span <= 0:
            return 1.0 if a.value == b.value else 0.0
        return max(0.0, 1.0 - abs(a.value - b.value) / span)

    if isinstance(a, ChoiceAnswer) and isinstance(b, ChoiceAnswer):
        return 1.0 if a.option == b.option else 0.0

    if isinstance(a, BoolAnswer) and isinstance(b, BoolAnswer):
        return 1.0 if a.value == b.value else 0.0

    # Variants disagree (question type changed since answering)
    return 0.0


def score(
    answers_a: Mapping[str, AnswerValue],
    answers_b: Mapping[str, AnswerValue],
    questions: Mapping[str, QuestionItem],
) -> float:
    """Weighted similarity over jointly answered questions, scaled to [MIN_SCORE, MAX_SCORE].

    Normalised by the total weight of the questions both parties answered, so
    scores stay comparable across answer sets of different sizes.
    """
    total_weight = 0
    weighted = 0.0
    for question_id in sorted(answers_a.keys() & answers_b.keys()):
        question = questions.get(question_id)
        if question is None or question.weight <= 0:
            continue
        total_weight += question.weight
        weighted += question.weight * similarity(question, answers_a[question_id], answers_b[question_id])

    if total_weight == 0:
        return MIN_SCORE
    return MIN_SCORE + (MAX_SCORE - MIN_SCORE) * (weighted / total_weight)


def rank(candidate_scores: Iterable[Tuple[str, float]]) -> List[Tuple[str, float]]:
    """Order by score descending, ties broken by ascending candidate id."""
    return sorted(candidate_scores, key=lambda item: (-item[1], item[0]))


def select_high_weight(
    questions: Sequence[QuestionItem],
    count: int,
    exclude_ids: Iterable[str] = (),
) -> List[QuestionItem]:
    """The ``count`` heaviest questions not yet answered (ties by question id)."""
    excluded = set(exclude_ids)
    pool = [q for q in questions if q.question_id not in excluded]
    pool.sort(key=lambda q: (-q.weight, q.question_id))
    return pool[:max(0, count)]

"""Question bank access, answer storage and the two-phase quiz"""
import random
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy.orm import Session

from soulsync.config import settings
from soulsync.data.question_bank import QUESTIONS
from soulsync.errors import InvalidAnswer
from soulsync.models.question import Answer, Question
from soulsync.services.scoring import (
    AnswerSet,
    QuestionItem,
    answer_from_json,
    answer_to_json,
    parse_answer,
    select_high_weight,
)
from soulsync.utils.logger import logger
from soulsync.utils.retry import storage_retry

HIGH_WEIGHT_COUNT = 4

# (category, count) drawn after the high-weight block of the compatibility phase
COMPATIBILITY_PHASE_MIX = (
    ("communication", 2),
    ("relationship", 2),
    ("compatibility", 1),
)


def to_item(row: Question) -> QuestionItem:
    return QuestionItem(
        question_id=row.question_id,
        category=row.category,
        type=row.type,
        weight=row.weight,
        text=row.text,
        min_value=row.min_value,
        max_value=row.max_value,
        options=tuple(row.options or ()),
    )


class QuestionBank:
    def __init__(self, db: Session):
        self.db = db

    @storage_retry()
    def all(self) -> List[QuestionItem]:
        rows = self.db.query(Question).order_by(Question.question_id).all()
        return [to_item(row) for row in rows]

    def by_id(self) -> Dict[str, QuestionItem]:
        return {item.question_id: item for item in self.all()}

    def seed(self, questions: Iterable[Mapping[str, Any]] = QUESTIONS) -> int:
        """Insert missing questions; existing rows are left untouched. Returns rows added."""
        existing = {qid for (qid,) in self.db.query(Question.question_id).all()}
        added = 0
        for data in questions:
            if data["question_id"] in existing:
                continue
            self.db.add(Question(**data))
            added += 1
        self.db.commit()
        logger.info(f"Seeded {added} questions", extra={"action": "seed_questions"})
        return added

    # ------------------------------------------------------------------
    # Answers
    # ------------------------------------------------------------------

    def answers_for(self, identity_id: str) -> AnswerSet:
        return self.answers_for_many([identity_id]).get(identity_id, {})

    @storage_retry()
    def answers_for_many(self, identity_ids: Sequence[str]) -> Dict[str, AnswerSet]:
        if not identity_ids:
            return {}
        result: Dict[str, AnswerSet] = {identity_id: {} for identity_id in identity_ids}
        rows = self.db.query(Answer).filter(Answer.identity_id.in_(list(identity_ids))).all()
        for row in rows:
            result[row.identity_id][row.question_id] = answer_from_json(row.value)
        return result

    @storage_retry()
    def submit_answers(self, identity_id: str, raw_answers: Mapping[str, Any]) -> AnswerSet:
        """Validate and merge a quiz phase into the stored AnswerSet; returns the merged set.

        The whole batch is rejected if any answer is invalid.
        """
        questions = self.by_id()
        parsed = {}
        for question_id, raw in raw_answers.items():
            question = questions.get(question_id)
            if question is None:
                raise InvalidAnswer(f"unknown question {question_id}")
            parsed[question_id] = parse_answer(question, raw)

        stored = {
            row.question_id: row
            for row in self.db.query(Answer).filter(
                Answer.identity_id == identity_id,
                Answer.question_id.in_(list(parsed)),
            )
        }
        for question_id, answer in parsed.items():
            if question_id in stored:
                stored[question_id].value = answer_to_json(answer)
            else:
                self.db.add(Answer(identity_id=identity_id, question_id=question_id, value=answer_to_json(answer)))
        self.db.commit()

        logger.info(
            f"Stored {len(parsed)} answers",
            extra={"identity_id": identity_id, "action": "submit_answers"},
        )
        return self.answers_for(identity_id)

    # ------------------------------------------------------------------
    # Quiz phases
    # ------------------------------------------------------------------

    def personality_quiz(self) -> List[QuestionItem]:
        return [q for q in self.all() if q.category == "personality"]

    def compatibility_quiz(
        self,
        answered_ids: Iterable[str],
        rng: Optional[random.Random] = None,
        size: Optional[int] = None,
    ) -> List[QuestionItem]:
        return build_compatibility_quiz(self.all(), answered_ids, rng=rng, size=size)


def build_compatibility_quiz(
    questions: Sequence[QuestionItem],
    answered_ids: Iterable[str],
    rng: Optional[random.Random] = None,
    size: Optional[int] = None,
) -> List[QuestionItem]:
    """Front-load the most decisive questions, then fill from the mixed categories.

    Every question appears at most once and already-answered questions are
    skipped. The category picks are random; pass a seeded ``rng`` for
    repeatable output.
    """
    rng = rng or random.Random()
    size = size if size is not None else settings.COMPATIBILITY_QUIZ_SIZE
    taken = set(answered_ids)

    selected = select_high_weight(questions, HIGH_WEIGHT_COUNT, taken)
    taken.update(q.question_id for q in selected)

    for category, count in COMPATIBILITY_PHASE_MIX:
        pool = [q for q in questions if q.category == category and q.question_id not in taken]
        picks = rng.sample(pool, min(count, len(pool)))
        selected.extend(picks)
        taken.update(q.question_id for q in picks)

    return selected[:size]

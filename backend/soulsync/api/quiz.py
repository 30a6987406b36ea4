"""Questionnaire endpoints"""
import random
from typing import List, Optional

from fastapi import APIRouter, Depends, Request

from soulsync.api.deps import get_question_bank, require_identity
from soulsync.middleware.rate_limit import get_rate_limit, limiter
from soulsync.models.identity import Identity
from soulsync.schemas.quiz import AnswerSetResponse, AnswerSubmission, QuestionResponse
from soulsync.services.questions import QuestionBank
from soulsync.services.scoring import AnswerSet, QuestionItem, answer_to_json

router = APIRouter(prefix="/quiz", tags=["quiz"])


def _question_response(item: QuestionItem) -> QuestionResponse:
    return QuestionResponse(
        question_id=item.question_id,
        text=item.text,
        category=item.category,
        type=item.type,
        weight=item.weight,
        min_value=item.min_value,
        max_value=item.max_value,
        options=list(item.options),
    )


def _answer_set_response(identity_id: str, answers: AnswerSet) -> AnswerSetResponse:
    return AnswerSetResponse(
        identity_id=identity_id,
        answers={qid: answer_to_json(value)["value"] for qid, value in sorted(answers.items())},
        answered=len(answers),
    )


@router.get("/personality", response_model=List[QuestionResponse])
def personality_quiz(
    identity: Identity = Depends(require_identity),
    bank: QuestionBank = Depends(get_question_bank),
):
    """Phase one: every personality question."""
    return [_question_response(item) for item in bank.personality_quiz()]


@router.get("/compatibility", response_model=List[QuestionResponse])
def compatibility_quiz(
    seed: Optional[int] = None,
    identity: Identity = Depends(require_identity),
    bank: QuestionBank = Depends(get_question_bank),
):
    """
    Phase two: the highest-weight unanswered questions first, then a mix of
    communication, relationship and compatibility questions

    Query parameters:
    - seed: Optional seed for a repeatable selection
    """
    rng = random.Random(seed) if seed is not None else None
    answered = bank.answers_for(identity.identity_id).keys()
    return [_question_response(item) for item in bank.compatibility_quiz(answered, rng=rng)]


@router.get("/answers", response_model=AnswerSetResponse)
def get_answers(
    identity: Identity = Depends(require_identity),
    bank: QuestionBank = Depends(get_question_bank),
) -> AnswerSetResponse:
    return _answer_set_response(identity.identity_id, bank.answers_for(identity.identity_id))


@router.put("/answers", response_model=AnswerSetResponse)
@limiter.limit(get_rate_limit("quiz"))
def submit_answers(
    request: Request,
    payload: AnswerSubmission,
    identity: Identity = Depends(require_identity),
    bank: QuestionBank = Depends(get_question_bank),
) -> AnswerSetResponse:
    """
    Store answers for either quiz phase

    Answers are merged into what is already stored; a later answer to the same
    question replaces the earlier one. One invalid answer rejects the whole
    batch with 422.
    """
    merged = bank.submit_answers(identity.identity_id, payload.answers)
    return _answer_set_response(identity.identity_id, merged)

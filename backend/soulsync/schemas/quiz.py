"""Questionnaire schemas"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class QuestionResponse(BaseModel):
    question_id: str
    text: str
    category: str
    type: str
    weight: int
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    options: List[str] = []


class AnswerSubmission(BaseModel):
    """Raw answers keyed by question_id: int for scale, option text for multiple, bool for boolean"""

    answers: Dict[str, Union[bool, int, str]] = Field(..., min_length=1)


class AnswerSetResponse(BaseModel):
    identity_id: str
    answers: Dict[str, Any]
    answered: int

"""Question bank and stored answers"""
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, UniqueConstraint

from soulsync.database import Base

CATEGORIES = ("personality", "lifestyle", "values", "communication", "relationship", "compatibility")
QUESTION_TYPES = ("scale", "multiple", "boolean")


class Question(Base):
    """Immutable reference data, seeded from soulsync.data.question_bank"""

    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(String(50), unique=True, nullable=False, index=True)
    text = Column(Text, nullable=False)
    category = Column(String(30), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    weight = Column(Integer, nullable=False, default=1)
    min_value = Column(Integer, nullable=True)
    max_value = Column(Integer, nullable=True)
    options = Column(JSON, nullable=True)


class Answer(Base):
    """One identity's answer to one question; ``value`` holds the raw typed payload"""

    __tablename__ = "answers"
    __table_args__ = (UniqueConstraint("identity_id", "question_id", name="uq_answer_identity_question"),)

    id = Column(Integer, primary_key=True, index=True)
    identity_id = Column(String(50), nullable=False, index=True)
    question_id = Column(String(50), nullable=False, index=True)
    value = Column(JSON, nullable=False)
    answered_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

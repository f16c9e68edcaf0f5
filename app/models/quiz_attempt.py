# app/models/quiz_attempt.py
import enum
from typing import Any, Dict

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from app.core.database import Base


class QuizAttemptStatus(str, enum.Enum):
    IN_PROGRESS = "InProgress"
    SUBMITTED = "Submitted"


def _decode_int_keys(raw) -> Dict[int, Any]:
    # JSON object keys are always strings; anything unparsable is dropped
    result = {}
    for key, value in (raw or {}).items():
        try:
            result[int(key)] = value
        except (TypeError, ValueError):
            continue
    return result


def _encode_int_keys(mapping: Dict[int, Any]) -> Dict[str, Any]:
    return {str(key): value for key, value in mapping.items()}


class QuizAttempt(Base):
    __tablename__ = "quiz_attempts"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    attempt_number = Column(Integer, nullable=False)  # 1, 2, ... per user + quiz
    status = Column(
        String(20),
        default=QuizAttemptStatus.IN_PROGRESS.value,
        nullable=False,
        index=True,
    )

    # Sparse maps keyed by question id:
    #   answers_json: {"12": 3, "13": [4, 5], "14": "photosynthesis"}
    #   scores_json:  {"12": 1.0, "13": 0.0, "14": 2.0}
    answers_json = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    scores_json = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)
    total_score = Column(Numeric(8, 2, asdecimal=False), default=0, nullable=False)

    # Time tracking
    started_at = Column(DateTime(timezone=True), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    time_spent_seconds = Column(Integer, default=0, nullable=False)

    # Optimistic lock counter, bumped on every write
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint(
            "user_id", "quiz_id", "attempt_number", name="uq_quiz_attempt_number"
        ),
    )
    __mapper_args__ = {"version_id_col": version}

    @property
    def answers(self) -> Dict[int, Any]:
        return _decode_int_keys(self.answers_json)

    @answers.setter
    def answers(self, value: Dict[int, Any]) -> None:
        self.answers_json = _encode_int_keys(value)

    @property
    def scores(self) -> Dict[int, float]:
        return {
            key: float(value)
            for key, value in _decode_int_keys(self.scores_json).items()
            if value is not None
        }

    @scores.setter
    def scores(self, value: Dict[int, float]) -> None:
        self.scores_json = _encode_int_keys(value)

    @property
    def is_in_progress(self) -> bool:
        return self.status == QuizAttemptStatus.IN_PROGRESS.value

    def __repr__(self):
        return (
            f"<QuizAttempt(id={self.id}, user_id={self.user_id}, "
            f"status={self.status}, total_score={self.total_score})>"
        )

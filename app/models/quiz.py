# app/models/quiz.py
import enum

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from app.core.database import Base


class QuizStatus(str, enum.Enum):
    OPEN = "Open"
    CLOSED = "Closed"
    ARCHIVED = "Archived"


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Lifecycle: Open, Closed, Archived
    status = Column(
        String(20), default=QuizStatus.OPEN.value, nullable=False, index=True
    )

    # Presentation
    shuffle_questions = Column(Boolean, default=False, nullable=False)
    shuffle_answers = Column(Boolean, default=False, nullable=False)

    # Timing
    duration = Column(Integer, nullable=True)  # Minutes, null = untimed
    available_from = Column(DateTime(timezone=True), nullable=True)
    available_until = Column(DateTime(timezone=True), nullable=True)
    max_attempts = Column(Integer, nullable=True)  # null = unlimited

    # What the student sees after submitting
    show_score_immediately = Column(Boolean, default=True, nullable=False)
    show_answers_after_submit = Column(Boolean, default=False, nullable=False)

    # Grading
    passing_score = Column(
        Numeric(8, 2, asdecimal=False), nullable=True
    )  # In points, compared against total_score
    total_possible_score = Column(
        Numeric(8, 2, asdecimal=False), nullable=True
    )  # null = sum of question points

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

    @property
    def all_questions(self):
        """Every question of the quiz, grouped or standalone, in authoring order."""
        questions = []
        for section in self.sections:
            for group in section.groups:
                questions.extend(group.questions)
            questions.extend(q for q in section.questions if q.group_id is None)
        return questions

    @property
    def max_score(self) -> float:
        if self.total_possible_score:
            return float(self.total_possible_score)
        return float(sum(q.points or 0 for q in self.all_questions))

    def __repr__(self):
        return f"<Quiz(id={self.id}, title='{self.title}', status='{self.status}')>"

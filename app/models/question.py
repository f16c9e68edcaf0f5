# app/models/question.py
import enum

from sqlalchemy import Boolean, Column, ForeignKey, Integer, JSON, Numeric, String, Text
from sqlalchemy.dialects.postgresql import JSONB

from app.core.database import Base


class QuestionType(str, enum.Enum):
    MULTIPLE_CHOICE = "MultipleChoice"
    MULTIPLE_ANSWERS = "MultipleAnswers"
    TRUE_FALSE = "TrueFalse"
    FILL_BLANK = "FillBlank"
    MATCHING = "Matching"
    ORDERING = "Ordering"


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    quiz_id = Column(Integer, ForeignKey("quizzes.id"), nullable=False, index=True)
    section_id = Column(
        Integer, ForeignKey("quiz_sections.id"), nullable=False, index=True
    )
    group_id = Column(
        Integer, ForeignKey("quiz_groups.id"), nullable=True, index=True
    )  # null = standalone question directly under the section

    type = Column(String(30), nullable=False)  # QuestionType value
    stem_text = Column(Text, nullable=False)
    points = Column(Numeric(6, 2, asdecimal=False), default=1, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    # Answer key for types that are not option based:
    #   FillBlank -> ["accepted", "answers"]
    #   Matching  -> {"<left option id>": <right option id>}
    #   Ordering  -> [option ids in correct order]
    correct_answers = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)

    @property
    def question_type(self) -> QuestionType:
        return QuestionType(self.type)

    def __repr__(self):
        return f"<Question(id={self.id}, type='{self.type}', points={self.points})>"


class AnswerOption(Base):
    __tablename__ = "answer_options"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(
        Integer, ForeignKey("questions.id"), nullable=False, index=True
    )

    text = Column(Text, nullable=True)
    is_correct = Column(Boolean, default=False, nullable=False)
    display_order = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<AnswerOption(id={self.id}, question_id={self.question_id})>"

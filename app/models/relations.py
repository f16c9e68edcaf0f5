# app/models/relations.py

from sqlalchemy.orm import relationship

# Import all relevant models
from .question import AnswerOption, Question
from .quiz import Quiz
from .quiz_attempt import QuizAttempt
from .quiz_section import QuizGroup, QuizSection
from .user import User


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # --- Quiz content tree ---

    # 1. Quiz to Sections (One-to-Many)
    Quiz.sections = relationship(
        "QuizSection",
        back_populates="quiz",
        order_by=[QuizSection.display_order, QuizSection.id],
        cascade="all, delete-orphan",
    )
    QuizSection.quiz = relationship("Quiz", back_populates="sections")

    # 2. Section to Groups (One-to-Many)
    QuizSection.groups = relationship(
        "QuizGroup",
        back_populates="section",
        order_by=[QuizGroup.display_order, QuizGroup.id],
        cascade="all, delete-orphan",
    )
    QuizGroup.section = relationship("QuizSection", back_populates="groups")

    # 3. Section to Questions (grouped and standalone alike)
    QuizSection.questions = relationship(
        "Question",
        back_populates="section",
        order_by=[Question.display_order, Question.id],
        cascade="all, delete-orphan",
    )
    Question.section = relationship("QuizSection", back_populates="questions")

    # 4. Group to Questions (fixed order)
    QuizGroup.questions = relationship(
        "Question",
        back_populates="group",
        order_by=[Question.display_order, Question.id],
    )
    Question.group = relationship("QuizGroup", back_populates="questions")

    # 5. Question to Options
    Question.options = relationship(
        "AnswerOption",
        back_populates="question",
        order_by=[AnswerOption.display_order, AnswerOption.id],
        cascade="all, delete-orphan",
    )
    AnswerOption.question = relationship("Question", back_populates="options")

    Question.quiz = relationship("Quiz")

    # --- Attempts ---

    # 6. Quiz to Attempts (One-to-Many)
    Quiz.attempts = relationship("QuizAttempt", back_populates="quiz")
    QuizAttempt.quiz = relationship("Quiz", back_populates="attempts")

    # 7. User to Attempts (One-to-Many)
    User.quiz_attempts = relationship("QuizAttempt", back_populates="user")
    QuizAttempt.user = relationship("User", back_populates="quiz_attempts")

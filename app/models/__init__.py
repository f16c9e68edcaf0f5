"""
Models package initialization
Import all models and setup relationships
"""

from .question import AnswerOption, Question, QuestionType
from .quiz import Quiz, QuizStatus
from .quiz_attempt import QuizAttempt, QuizAttemptStatus
from .quiz_section import QuizGroup, QuizSection

# Import and setup relationships
from .relations import setup_relationships
from .user import User

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "AnswerOption",
    "Question",
    "QuestionType",
    "Quiz",
    "QuizAttempt",
    "QuizAttemptStatus",
    "QuizGroup",
    "QuizSection",
    "QuizStatus",
    "User",
]

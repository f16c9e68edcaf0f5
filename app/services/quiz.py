# app/services/quiz.py
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from app.models.question import Question
from app.models.quiz import Quiz
from app.models.quiz_section import QuizGroup, QuizSection
from app.models.user import User


class QuizService:
    """Read-only lookups into quiz content and users; authoring lives elsewhere."""

    def __init__(self, db: Session):
        self.db = db

    def get_quiz(self, quiz_id: int) -> Optional[Quiz]:
        """Quiz metadata only (status, timing, visibility flags)"""
        return self.db.query(Quiz).filter(Quiz.id == quiz_id).first()

    def get_full_quiz(self, quiz_id: int) -> Optional[Quiz]:
        """Quiz with its whole section / group / question / option tree loaded"""
        return (
            self.db.query(Quiz)
            .options(
                selectinload(Quiz.sections)
                .selectinload(QuizSection.groups)
                .selectinload(QuizGroup.questions)
                .selectinload(Question.options),
                selectinload(Quiz.sections)
                .selectinload(QuizSection.questions)
                .selectinload(Question.options),
            )
            .filter(Quiz.id == quiz_id)
            .first()
        )

    def get_question(self, question_id: int) -> Optional[Question]:
        return (
            self.db.query(Question)
            .options(selectinload(Question.options))
            .filter(Question.id == question_id)
            .first()
        )

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

"""
Shared test fixtures.

The application reads its settings at import time, so the environment is
pointed at a throwaway SQLite database before anything from ``app`` is
imported.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone

_TEST_DIR = tempfile.mkdtemp(prefix="quiz-attempt-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TEST_DIR, "test.db")
os.environ["LOG_FILE"] = os.path.join(_TEST_DIR, "app.log")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["QUIZ_AUTO_SUBMIT_ENABLED"] = "false"
os.environ["DEBUG"] = "false"

import pytest  # noqa: E402

from app.core.database import Base, SessionLocal, engine  # noqa: E402
from app.models import (  # noqa: E402
    AnswerOption,
    Question,
    QuestionType,
    Quiz,
    QuizGroup,
    QuizSection,
    QuizStatus,
    User,
)
from app.services.quiz_attempt import QuizAttemptService  # noqa: E402

T0 = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class QuizFactory:
    """Builds quiz content rows; every call commits."""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def user(self, full_name="Student", status="student", **fields):
        return self._save(User(full_name=full_name, status=status, **fields))

    def quiz(self, title="Quiz", **fields):
        fields.setdefault("status", QuizStatus.OPEN.value)
        return self._save(Quiz(title=title, **fields))

    def section(self, quiz, title="Section", display_order=0):
        return self._save(
            QuizSection(quiz_id=quiz.id, title=title, display_order=display_order)
        )

    def group(self, section, name="Group", display_order=0, description=None):
        return self._save(
            QuizGroup(
                section_id=section.id,
                name=name,
                display_order=display_order,
                description=description,
            )
        )

    def question(
        self,
        section,
        question_type=QuestionType.MULTIPLE_CHOICE,
        options=(),
        points=1,
        group=None,
        display_order=0,
        correct_answers=None,
        stem_text=None,
    ):
        """``options`` is a sequence of (text, is_correct) pairs."""
        question = Question(
            quiz_id=section.quiz_id,
            section_id=section.id,
            group_id=group.id if group else None,
            type=QuestionType(question_type).value,
            stem_text=stem_text or f"{QuestionType(question_type).value} question",
            points=points,
            display_order=display_order,
            correct_answers=correct_answers,
        )
        for index, (text, is_correct) in enumerate(options):
            question.options.append(
                AnswerOption(text=text, is_correct=is_correct, display_order=index)
            )
        return self._save(question)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def factory(db):
    return QuizFactory(db)


@pytest.fixture
def service(db, clock):
    return QuizAttemptService(db, clock=clock)


@pytest.fixture
def student(factory):
    return factory.user(full_name="Lina Student", email="lina@example.com")


@pytest.fixture
def sample_quiz(factory):
    """
    Timed quiz (30 min, 5 points, pass at 3) with one question of each
    commonly used type in a single section.
    """
    quiz = factory.quiz(
        title="Geography basics",
        duration=30,
        passing_score=3,
        show_score_immediately=True,
        show_answers_after_submit=False,
    )
    section = factory.section(quiz, title="Part A")
    questions = {
        "single": factory.question(
            section,
            QuestionType.MULTIPLE_CHOICE,
            options=[("Paris", True), ("Lyon", False), ("Nice", False)],
            display_order=1,
        ),
        "multi": factory.question(
            section,
            QuestionType.MULTIPLE_ANSWERS,
            options=[("Rhine", True), ("Danube", True), ("Thames", False)],
            points=2,
            display_order=2,
        ),
        "blank": factory.question(
            section,
            QuestionType.FILL_BLANK,
            correct_answers=["Mont Blanc"],
            display_order=3,
        ),
        "true_false": factory.question(
            section,
            QuestionType.TRUE_FALSE,
            options=[("True", True), ("False", False)],
            display_order=4,
        ),
    }
    return quiz, questions

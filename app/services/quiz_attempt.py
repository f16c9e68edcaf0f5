# app/services/quiz_attempt.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.result import ErrorKind, ServiceResult
from app.models.question import QuestionType
from app.models.quiz import Quiz, QuizStatus
from app.models.quiz_attempt import QuizAttempt
from app.schemas.quiz_attempt import (
    ActiveAttemptResponse,
    QuizAttemptListResponse,
    QuizAttemptResult,
    QuizAttemptSummary,
    QuizAttemptWithQuestions,
)
from app.services.attempt_store import QuizAttemptStore
from app.services.quiz import QuizService
from app.services.quiz_review import build_question_reviews
from app.services.scoring import (
    ScoringStrategy,
    UnscoreableQuestionError,
    calculate_score,
)
from app.services.shuffle import build_presentation
from app.utils.answer_normalizer import normalize_answer

logger = logging.getLogger(__name__)

EXPIRED_MESSAGE = "Time has expired. Attempt has been auto-submitted."


def make_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure datetime is timezone-aware (UTC)"""
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def get_utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime"""
    return datetime.now(timezone.utc)


class QuizAttemptService:
    """
    Quiz attempt state machine: start, answer, resume, submit, auto-submit.

    An attempt is InProgress from creation until it is submitted, either by
    the student or because its quiz's time limit ran out; Submitted is final.
    Expected failures are returned as ``ServiceResult.fail``; storage errors
    surface as ``DBException``.
    """

    def __init__(
        self,
        db: Session,
        clock: Optional[Callable[[], datetime]] = None,
        strategies: Optional[Mapping[QuestionType, ScoringStrategy]] = None,
    ):
        self.db = db
        self.store = QuizAttemptStore(db)
        self.quizzes = QuizService(db)
        self.clock = clock or get_utc_now
        self.strategies = strategies

    def _now(self) -> datetime:
        return make_aware(self.clock())

    # ------------------------------------------------------------ helpers

    @staticmethod
    def deadline_for(attempt: QuizAttempt, quiz: Optional[Quiz]) -> Optional[datetime]:
        """StartedAt + Duration, or None for an untimed quiz"""
        if quiz is None or not quiz.duration:
            return None
        return make_aware(attempt.started_at) + timedelta(minutes=quiz.duration)

    def _expire_if_due(
        self, attempt: QuizAttempt, quiz: Optional[Quiz], now: datetime
    ) -> bool:
        """
        Submit ``attempt`` at its deadline if the deadline has passed.

        Returns True when the attempt is expired, whether this call or a
        concurrent one (the sweeper, another request) did the submitting.
        """
        deadline = self.deadline_for(attempt, quiz)
        if deadline is None or now < deadline:
            return False

        attempt_id = attempt.id
        if self.store.mark_submitted(attempt_id, deadline, quiz.duration * 60):
            logger.info(
                f"Auto-submitted expired attempt {attempt_id} "
                f"(quiz {quiz.id}, deadline {deadline.isoformat()})"
            )
        return True

    def _attempt_view(
        self, attempt: QuizAttempt, quiz: Quiz, sections
    ) -> QuizAttemptWithQuestions:
        return QuizAttemptWithQuestions(
            attempt_id=attempt.id,
            quiz_id=quiz.id,
            quiz_title=quiz.title,
            user_id=attempt.user_id,
            attempt_number=attempt.attempt_number,
            status=attempt.status,
            started_at=make_aware(attempt.started_at),
            duration_minutes=quiz.duration,
            ends_at=self.deadline_for(attempt, quiz),
            sections=sections,
        )

    def _build_result(self, attempt: QuizAttempt, quiz: Quiz) -> QuizAttemptResult:
        result = QuizAttemptResult(
            attempt_id=attempt.id,
            quiz_id=quiz.id,
            status=attempt.status,
            submitted_at=make_aware(attempt.submitted_at),
            time_spent_seconds=attempt.time_spent_seconds,
        )

        if quiz.show_score_immediately:
            total_score = float(attempt.total_score or 0)
            max_score = quiz.max_score
            result.total_score = total_score
            result.max_score = max_score
            result.percentage = (
                round(total_score / max_score * 100, 2) if max_score > 0 else 0.0
            )
            result.is_passed = (
                total_score >= float(quiz.passing_score)
                if quiz.passing_score is not None
                else False
            )
            result.scores_by_question = attempt.scores

        if quiz.show_answers_after_submit:
            result.correct_answers = build_question_reviews(
                quiz, attempt, include_scores=quiz.show_score_immediately
            )

        return result

    # --------------------------------------------------------- operations

    def start_quiz_attempt(self, quiz_id: int, user_id: int) -> ServiceResult:
        """Create a new attempt and return it with its shuffled questions"""
        now = self._now()

        quiz = self.quizzes.get_quiz(quiz_id)
        if not quiz:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "Quiz not found")

        if quiz.status != QuizStatus.OPEN.value:
            return ServiceResult.fail(
                ErrorKind.FORBIDDEN, f"Quiz is {quiz.status.lower()}"
            )

        if quiz.available_from and now < make_aware(quiz.available_from):
            return ServiceResult.fail(ErrorKind.FORBIDDEN, "Quiz is not open yet")

        if quiz.available_until and now > make_aware(quiz.available_until):
            return ServiceResult.fail(
                ErrorKind.FORBIDDEN, "Quiz is no longer available"
            )

        if not self.quizzes.get_user(user_id):
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "User not found")

        if settings.quiz_single_active_attempt:
            active = self.store.get_active_for_user(user_id)
            if active and not self._expire_if_due(active, active.quiz, now):
                title = active.quiz.title if active.quiz else "Unknown"
                return ServiceResult.fail(
                    ErrorKind.CONFLICT,
                    f"You have an unfinished attempt on quiz '{title}'. "
                    "Submit it before starting a new one.",
                )

        if quiz.max_attempts:
            used = self.store.count_submitted(user_id, quiz_id)
            if used >= quiz.max_attempts:
                return ServiceResult.fail(
                    ErrorKind.FORBIDDEN,
                    f"Maximum attempts ({quiz.max_attempts}) reached",
                )

        attempt = self.store.create(quiz_id, user_id, now)
        full_quiz = self.quizzes.get_full_quiz(quiz_id)
        sections = build_presentation(full_quiz, attempt.id)

        logger.info(
            f"User {user_id} started attempt {attempt.id} "
            f"(#{attempt.attempt_number}) on quiz {quiz_id}"
        )
        return ServiceResult.ok(
            self._attempt_view(attempt, full_quiz, sections),
            "Quiz attempt started",
            status_code=201,
        )

    def update_answer_and_score(
        self,
        attempt_id: int,
        question_id: int,
        raw_answer: Any,
        user_id: Optional[int] = None,
    ) -> ServiceResult:
        """
        Record an answer and score it immediately.

        The question's previous answer and score are replaced, not added to,
        so changing a correct answer to a wrong one takes the points away.
        """
        attempt = self.store.get_for_user(attempt_id, user_id)
        if not attempt:
            if user_id is not None:
                logger.warning(
                    f"User {user_id} tried to answer on attempt {attempt_id} "
                    "that doesn't exist or isn't theirs"
                )
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "Attempt not found")

        if not attempt.is_in_progress:
            return ServiceResult.fail(
                ErrorKind.INVALID_STATE, "Attempt is not in progress"
            )

        question = self.quizzes.get_question(question_id)
        if not question or question.quiz_id != attempt.quiz_id:
            return ServiceResult.fail(
                ErrorKind.NOT_FOUND, "Question not found in this quiz"
            )

        quiz = self.quizzes.get_quiz(attempt.quiz_id)
        if self._expire_if_due(attempt, quiz, self._now()):
            return ServiceResult.fail(ErrorKind.EXPIRED, EXPIRED_MESSAGE)

        answer = normalize_answer(raw_answer, question.type)
        try:
            score = calculate_score(question, answer, self.strategies)
        except UnscoreableQuestionError as e:
            logger.error(
                f"❌ Cannot score question {question.id} on attempt {attempt_id}: {e}. "
                "The scoring strategy registry is missing this question type."
            )
            return ServiceResult.fail(ErrorKind.UNSCOREABLE, str(e))

        updated = self.store.apply_answer(attempt_id, question.id, answer, score)
        if updated is None:
            return ServiceResult.fail(
                ErrorKind.INVALID_STATE, "Attempt is not in progress"
            )

        return ServiceResult.ok(score, "Answer and score updated successfully")

    def resume_quiz_attempt(
        self, attempt_id: int, user_id: Optional[int] = None
    ) -> ServiceResult:
        """Rebuild the attempt's question order and overlay saved progress"""
        attempt = self.store.get_for_user(attempt_id, user_id)
        if not attempt:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "Attempt not found")

        if not attempt.is_in_progress:
            return ServiceResult.fail(
                ErrorKind.INVALID_STATE, "Attempt is not in progress"
            )

        quiz = self.quizzes.get_full_quiz(attempt.quiz_id)
        if not quiz:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "Quiz not found")

        if self._expire_if_due(attempt, quiz, self._now()):
            return ServiceResult.fail(ErrorKind.EXPIRED, EXPIRED_MESSAGE)

        sections = build_presentation(quiz, attempt.id, attempt.answers, attempt.scores)
        return ServiceResult.ok(
            self._attempt_view(attempt, quiz, sections), "Attempt resumed successfully"
        )

    def submit_quiz_attempt(
        self, attempt_id: int, user_id: Optional[int] = None
    ) -> ServiceResult:
        """Finish an attempt and return the result the quiz allows the student to see"""
        attempt = self.store.get_for_user(attempt_id, user_id)
        if not attempt:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "Attempt not found")

        if not attempt.is_in_progress:
            return ServiceResult.fail(
                ErrorKind.INVALID_STATE, "Attempt has already been submitted"
            )

        quiz = self.quizzes.get_full_quiz(attempt.quiz_id)
        if not quiz:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "Quiz not found")

        now = self._now()
        deadline = self.deadline_for(attempt, quiz)
        if deadline is not None and now >= deadline:
            # Late submit: recorded as if the sweeper had caught it on time
            submitted_at, time_spent = deadline, quiz.duration * 60
        else:
            submitted_at = now
            time_spent = int((now - make_aware(attempt.started_at)).total_seconds())

        if not self.store.mark_submitted(attempt.id, submitted_at, time_spent):
            return ServiceResult.fail(
                ErrorKind.INVALID_STATE, "Attempt has already been submitted"
            )

        self.db.refresh(attempt)
        logger.info(
            f"Attempt {attempt.id} submitted by user {attempt.user_id} "
            f"(score {attempt.total_score}, {time_spent}s)"
        )
        return ServiceResult.ok(
            self._build_result(attempt, quiz), "Quiz submitted successfully"
        )

    def check_and_auto_submit_expired_attempts(self) -> int:
        """
        Submit every in-progress attempt whose quiz time limit has run out.

        The recorded submission time is the deadline itself and the time
        spent is the full duration. Attempts already submitted are left
        alone, so running this repeatedly is safe. Returns how many attempts
        this run submitted.
        """
        now = self._now()
        submitted = 0

        for batch in self.store.iter_in_progress_batches(
            settings.quiz_auto_submit_batch_size
        ):
            for attempt in batch:
                attempt_id = attempt.id
                try:
                    quiz = attempt.quiz
                    deadline = self.deadline_for(attempt, quiz)
                    if deadline is None or now < deadline:
                        continue
                    if self.store.mark_submitted(attempt_id, deadline, quiz.duration * 60):
                        submitted += 1
                except Exception as e:
                    self.db.rollback()
                    logger.error(
                        f"Failed to auto-submit attempt {attempt_id}: {e}", exc_info=True
                    )

        if submitted:
            logger.info(f"Auto-submitted {submitted} expired attempts")
        return submitted

    def check_active_attempt(self, quiz_id: int, user_id: int) -> ServiceResult:
        """The user's live attempt on ``quiz_id``, expiring it first if overdue"""
        attempt = self.store.get_active_for_user_and_quiz(user_id, quiz_id)
        return self._active_attempt_result(attempt)

    def get_any_active_attempt(self, user_id: int) -> ServiceResult:
        """The user's live attempt on any quiz, expiring it first if overdue"""
        attempt = self.store.get_active_for_user(user_id)
        return self._active_attempt_result(attempt)

    def _active_attempt_result(self, attempt: Optional[QuizAttempt]) -> ServiceResult:
        if not attempt:
            return ServiceResult.ok(
                ActiveAttemptResponse(has_active_attempt=False), "No active attempt found"
            )

        quiz = attempt.quiz
        now = self._now()
        if self._expire_if_due(attempt, quiz, now):
            return ServiceResult.ok(
                ActiveAttemptResponse(has_active_attempt=False),
                "Previous attempt was auto-submitted due to timeout",
            )

        deadline = self.deadline_for(attempt, quiz)
        return ServiceResult.ok(
            ActiveAttemptResponse(
                has_active_attempt=True,
                attempt_id=attempt.id,
                quiz_id=attempt.quiz_id,
                quiz_title=quiz.title if quiz else None,
                started_at=make_aware(attempt.started_at),
                ends_at=deadline,
                time_remaining_seconds=(
                    int((deadline - now).total_seconds()) if deadline else None
                ),
            ),
            "Active attempt found",
        )

    def get_user_attempts(self, quiz_id: int, user_id: int) -> ServiceResult:
        """Attempt history of one user on one quiz, newest first"""
        quiz = self.quizzes.get_quiz(quiz_id)
        if not quiz:
            return ServiceResult.fail(ErrorKind.NOT_FOUND, "Quiz not found")

        attempts = []
        for attempt in self.store.list_by_user_and_quiz(user_id, quiz_id):
            summary = QuizAttemptSummary.model_validate(attempt)
            if not quiz.show_score_immediately:
                summary.total_score = None
            attempts.append(summary)

        return ServiceResult.ok(
            QuizAttemptListResponse(attempts=attempts, total=len(attempts))
        )

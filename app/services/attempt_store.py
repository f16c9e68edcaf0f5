# app/services/attempt_store.py
import logging
from datetime import datetime
from typing import Any, Iterator, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import settings
from app.core.decorator import DBException, db_exception
from app.models.quiz_attempt import QuizAttempt, QuizAttemptStatus

logger = logging.getLogger(__name__)

IN_PROGRESS = QuizAttemptStatus.IN_PROGRESS.value
SUBMITTED = QuizAttemptStatus.SUBMITTED.value


class QuizAttemptStore:
    """
    Persistence for quiz attempts.

    Attempt rows are the only state shared between request handlers and the
    auto-submit sweeper, so every write that must not interleave goes through
    a single transaction here: ``apply_answer`` for answers and
    ``mark_submitted`` for the InProgress -> Submitted transition.
    """

    def __init__(self, db: Session, max_retries: Optional[int] = None):
        self.db = db
        self.max_retries = max_retries or settings.quiz_answer_update_retries

    # ---------------------------------------------------------------- reads

    def get(self, attempt_id: int) -> Optional[QuizAttempt]:
        return self.db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()

    def get_for_user(
        self, attempt_id: int, user_id: Optional[int] = None
    ) -> Optional[QuizAttempt]:
        """Attempt by id, restricted to its owner when ``user_id`` is given"""
        query = self.db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id)
        if user_id is not None:
            query = query.filter(QuizAttempt.user_id == user_id)
        return query.first()

    def list_by_user_and_quiz(self, user_id: int, quiz_id: int) -> List[QuizAttempt]:
        return (
            self.db.query(QuizAttempt)
            .filter(QuizAttempt.user_id == user_id, QuizAttempt.quiz_id == quiz_id)
            .order_by(QuizAttempt.attempt_number.desc())
            .all()
        )

    def count_submitted(self, user_id: int, quiz_id: int) -> int:
        return (
            self.db.query(QuizAttempt)
            .filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.status == SUBMITTED,
            )
            .count()
        )

    def next_attempt_number(self, user_id: int, quiz_id: int) -> int:
        current = (
            self.db.query(func.max(QuizAttempt.attempt_number))
            .filter(QuizAttempt.user_id == user_id, QuizAttempt.quiz_id == quiz_id)
            .scalar()
        )
        return (current or 0) + 1

    def get_active_for_user(self, user_id: int) -> Optional[QuizAttempt]:
        """Any in-progress attempt of the user, on any quiz"""
        return (
            self.db.query(QuizAttempt)
            .options(selectinload(QuizAttempt.quiz))
            .filter(QuizAttempt.user_id == user_id, QuizAttempt.status == IN_PROGRESS)
            .order_by(QuizAttempt.started_at.desc())
            .first()
        )

    def get_active_for_user_and_quiz(
        self, user_id: int, quiz_id: int
    ) -> Optional[QuizAttempt]:
        return (
            self.db.query(QuizAttempt)
            .filter(
                QuizAttempt.user_id == user_id,
                QuizAttempt.quiz_id == quiz_id,
                QuizAttempt.status == IN_PROGRESS,
            )
            .order_by(QuizAttempt.started_at.desc())
            .first()
        )

    def iter_in_progress_batches(self, batch_size: int) -> Iterator[List[QuizAttempt]]:
        """
        Yield in-progress attempts (with their quiz loaded) in id order.

        Paging is by last seen id rather than offset, since attempts drop
        out of the filter as soon as they are submitted.
        """
        last_id = 0
        while True:
            batch = (
                self.db.query(QuizAttempt)
                .options(selectinload(QuizAttempt.quiz))
                .filter(QuizAttempt.status == IN_PROGRESS, QuizAttempt.id > last_id)
                .order_by(QuizAttempt.id)
                .limit(batch_size)
                .all()
            )
            if not batch:
                return
            last_id = batch[-1].id
            yield batch

    # --------------------------------------------------------------- writes

    @db_exception
    def create(self, quiz_id: int, user_id: int, started_at: datetime) -> QuizAttempt:
        attempt = QuizAttempt(
            quiz_id=quiz_id,
            user_id=user_id,
            attempt_number=self.next_attempt_number(user_id, quiz_id),
            status=IN_PROGRESS,
            answers_json={},
            scores_json={},
            total_score=0,
            started_at=started_at,
            submitted_at=None,
            time_spent_seconds=0,
        )
        self.db.add(attempt)
        self.db.commit()
        self.db.refresh(attempt)
        return attempt

    @db_exception
    def apply_answer(
        self, attempt_id: int, question_id: int, answer: Any, score: float
    ) -> Optional[QuizAttempt]:
        """
        Overwrite one question's answer and score and recompute the total.

        Runs as one transaction on a freshly read, row-locked attempt. A
        concurrent writer that slipped in between read and write is detected
        through the version column and the whole step is retried. Returns
        None when the attempt is missing or no longer in progress.
        """
        for retry in range(1, self.max_retries + 1):
            try:
                attempt = (
                    self.db.query(QuizAttempt)
                    .filter(QuizAttempt.id == attempt_id)
                    .with_for_update()
                    .populate_existing()
                    .first()
                )
                if attempt is None or not attempt.is_in_progress:
                    self.db.rollback()
                    return None

                answers = attempt.answers
                answers[question_id] = answer
                attempt.answers = answers

                scores = attempt.scores
                scores[question_id] = score
                attempt.scores = scores

                attempt.total_score = sum(scores.values())

                self.db.commit()
                self.db.refresh(attempt)
                return attempt
            except StaleDataError:
                self.db.rollback()
                logger.warning(
                    f"Concurrent update on attempt {attempt_id} "
                    f"(try {retry}/{self.max_retries}), retrying"
                )

        raise DBException(
            f"Attempt {attempt_id} is being updated concurrently, please retry", 409
        )

    @db_exception
    def mark_submitted(
        self, attempt_id: int, submitted_at: datetime, time_spent_seconds: int
    ) -> bool:
        """
        Move an attempt from InProgress to Submitted.

        Conditional on the row still being InProgress, so of several racing
        submitters (user, resume-on-expiry, sweeper) exactly one wins; the
        others get False and change nothing.
        """
        updated = (
            self.db.query(QuizAttempt)
            .filter(QuizAttempt.id == attempt_id, QuizAttempt.status == IN_PROGRESS)
            .update(
                {
                    QuizAttempt.status: SUBMITTED,
                    QuizAttempt.submitted_at: submitted_at,
                    QuizAttempt.time_spent_seconds: max(int(time_spent_seconds), 0),
                    QuizAttempt.version: QuizAttempt.version + 1,
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return updated == 1

import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.database import SessionLocal
from app.services.quiz_attempt import QuizAttemptService

logger = logging.getLogger(__name__)

AUTO_SUBMIT_JOB_ID = "quiz_auto_submit"


def auto_submit_expired_attempts() -> int:
    """
    Scheduled task to submit quiz attempts whose time limit has passed.
    Runs every ``quiz_auto_submit_interval_seconds`` on its own session.
    A failing run is logged and the next tick tries again.
    """
    db = SessionLocal()
    try:
        submitted = QuizAttemptService(db).check_and_auto_submit_expired_attempts()
        if submitted:
            logger.info(
                f"[{datetime.now(timezone.utc)}] Auto-submit sweep completed. "
                f"Submitted {submitted} expired attempts."
            )
        return submitted
    except Exception as e:
        logger.exception(f"Error during auto-submit sweep: {e}")
        return 0
    finally:
        db.close()


def start_scheduler(scheduler: Optional[BaseScheduler] = None) -> BaseScheduler:
    """
    Initialize and start the APScheduler for the auto-submit sweep.
    """
    scheduler = scheduler or AsyncIOScheduler()

    # Never overlap with itself; missed ticks collapse into one run
    scheduler.add_job(
        auto_submit_expired_attempts,
        trigger=IntervalTrigger(seconds=settings.quiz_auto_submit_interval_seconds),
        id=AUTO_SUBMIT_JOB_ID,
        name="Auto-submit expired quiz attempts",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    logger.info(
        "Quiz auto-submit scheduler started. Sweep every "
        f"{settings.quiz_auto_submit_interval_seconds}s."
    )

    return scheduler


def shutdown_scheduler(scheduler: Optional[BaseScheduler]):
    """
    Gracefully shutdown the scheduler, letting a running sweep finish.
    """
    if scheduler:
        scheduler.shutdown(wait=True)
        logger.info("Quiz auto-submit scheduler shut down.")

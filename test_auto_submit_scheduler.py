"""
Tests for the background auto-submit job
"""

import logging
from datetime import timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from app.core import schedular
from app.core.config import settings
from app.models.quiz_attempt import QuizAttempt, QuizAttemptStatus


def test_scheduler_registers_single_instance_interval_job():
    scheduler = schedular.start_scheduler(BackgroundScheduler())
    try:
        job = scheduler.get_job(schedular.AUTO_SUBMIT_JOB_ID)

        assert job is not None
        assert job.func is schedular.auto_submit_expired_attempts
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.trigger.interval == timedelta(
            seconds=settings.quiz_auto_submit_interval_seconds
        )
    finally:
        schedular.shutdown_scheduler(scheduler)

    assert scheduler.running is False


def test_starting_twice_keeps_one_job():
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        schedular.auto_submit_expired_attempts,
        "interval",
        seconds=5,
        id=schedular.AUTO_SUBMIT_JOB_ID,
    )
    schedular.start_scheduler(scheduler)
    try:
        assert len(scheduler.get_jobs()) == 1
    finally:
        schedular.shutdown_scheduler(scheduler)


def test_shutdown_without_scheduler_is_a_no_op(caplog):
    with caplog.at_level(logging.ERROR):
        schedular.shutdown_scheduler(None)
    assert caplog.records == []


def test_job_submits_expired_attempts(db, service, sample_quiz, student):
    quiz, _ = sample_quiz
    # The fixture clock sits well in the past, so the attempt is long overdue
    attempt_id = service.start_quiz_attempt(quiz.id, student.id).data.attempt_id

    assert schedular.auto_submit_expired_attempts() == 1
    assert schedular.auto_submit_expired_attempts() == 0

    db.expire_all()
    attempt = db.get(QuizAttempt, attempt_id)
    assert attempt.status == QuizAttemptStatus.SUBMITTED.value
    assert attempt.time_spent_seconds == 30 * 60


def test_job_logs_and_swallows_errors(db, monkeypatch, caplog):
    class BrokenService:
        def __init__(self, db):
            pass

        def check_and_auto_submit_expired_attempts(self):
            raise RuntimeError("database is gone")

    monkeypatch.setattr(schedular, "QuizAttemptService", BrokenService)

    with caplog.at_level(logging.ERROR, logger="app.core.schedular"):
        assert schedular.auto_submit_expired_attempts() == 0

    assert "database is gone" in caplog.text

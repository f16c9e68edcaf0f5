"""
Application initialization module
Handles startup checks that must pass before attempts are served
"""

import logging

from sqlalchemy.orm import Session

from app.models.question import Question, QuestionType
from app.services.scoring import validate_strategy_registry

logger = logging.getLogger(__name__)


def check_scoring_registry(db: Session) -> None:
    """
    Make sure every question type can be scored.

    A type without a strategy is logged, together with how many stored
    questions use it, so the gap shows up at startup instead of as
    failed answer updates later.
    """
    missing = validate_strategy_registry()
    if not missing:
        logger.info(f"✅ Scoring strategies registered for {len(QuestionType)} question types")
        return

    for question_type in missing:
        affected = (
            db.query(Question).filter(Question.type == question_type.value).count()
        )
        logger.error(
            f"❌ No scoring strategy for {question_type.value}: "
            f"{affected} stored questions cannot be scored"
        )


def initialize_application(db: Session) -> None:
    """
    Run all application initialization tasks.

    Args:
        db: Database session
    """
    logger.info("🚀 Starting application initialization...")

    check_scoring_registry(db)

    logger.info("✅ Application initialization completed!")

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_current_admin_user
from app.models.user import User
from app.schemas.quiz_attempt import AutoSubmitResponse
from app.services.quiz_attempt import QuizAttemptService

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={404: {"description": "Not found"}},
)


@router.post(
    "/quiz-attempts/auto-submit",
    response_model=AutoSubmitResponse,
    description="Run the expired-attempt sweep now instead of waiting for the scheduler",
)
def run_auto_submit(
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin_user),
):
    submitted = QuizAttemptService(db).check_and_auto_submit_expired_attempts()
    return AutoSubmitResponse(submitted=submitted)

from typing import Any

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.models.user import User
from app.schemas.quiz_attempt import (
    ActiveAttemptResponse,
    QuizAttemptListResponse,
    QuizAttemptResult,
    QuizAttemptWithQuestions,
    UpdateAnswerRequest,
    UpdateAnswerResponse,
)
from app.services.quiz_attempt import QuizAttemptService

router = APIRouter(tags=["quiz-attempts"])


def get_attempt_service(db: Session = Depends(get_db)) -> QuizAttemptService:
    return QuizAttemptService(db)


@router.post(
    "/quizzes/{quiz_id}/attempts/start",
    response_model=QuizAttemptWithQuestions,
    status_code=status.HTTP_201_CREATED,
)
def start_attempt(
    quiz_id: int = Path(..., ge=1),
    service: QuizAttemptService = Depends(get_attempt_service),
    current_user: User = Depends(get_current_user),
):
    """Start a new attempt; questions come back in this attempt's order."""
    return service.start_quiz_attempt(quiz_id, current_user.id).unwrap()


@router.get("/quizzes/{quiz_id}/attempts", response_model=QuizAttemptListResponse)
def list_my_attempts(
    quiz_id: int = Path(..., ge=1),
    service: QuizAttemptService = Depends(get_attempt_service),
    current_user: User = Depends(get_current_user),
):
    """Attempt history of the current user on this quiz, newest first."""
    return service.get_user_attempts(quiz_id, current_user.id).unwrap()


@router.get(
    "/quizzes/{quiz_id}/attempts/active", response_model=ActiveAttemptResponse
)
def get_active_attempt_for_quiz(
    quiz_id: int = Path(..., ge=1),
    service: QuizAttemptService = Depends(get_attempt_service),
    current_user: User = Depends(get_current_user),
):
    return service.check_active_attempt(quiz_id, current_user.id).unwrap()


@router.get("/quiz-attempts/active", response_model=ActiveAttemptResponse)
def get_any_active_attempt(
    service: QuizAttemptService = Depends(get_attempt_service),
    current_user: User = Depends(get_current_user),
):
    """Whether the current user has an unfinished attempt on any quiz."""
    return service.get_any_active_attempt(current_user.id).unwrap()


@router.post(
    "/quiz-attempts/{attempt_id}/answers", response_model=UpdateAnswerResponse
)
def update_answer(
    request: UpdateAnswerRequest,
    attempt_id: int = Path(..., ge=1),
    service: QuizAttemptService = Depends(get_attempt_service),
    current_user: User = Depends(get_current_user),
) -> Any:
    """Save (or replace) the answer to one question and score it."""
    score = service.update_answer_and_score(
        attempt_id, request.question_id, request.user_answer, current_user.id
    ).unwrap()

    return UpdateAnswerResponse(
        attempt_id=attempt_id, question_id=request.question_id, score=score
    )


@router.get(
    "/quiz-attempts/{attempt_id}/resume", response_model=QuizAttemptWithQuestions
)
def resume_attempt(
    attempt_id: int = Path(..., ge=1),
    service: QuizAttemptService = Depends(get_attempt_service),
    current_user: User = Depends(get_current_user),
):
    """Same question order as at start, with saved answers filled in."""
    return service.resume_quiz_attempt(attempt_id, current_user.id).unwrap()


@router.post(
    "/quiz-attempts/{attempt_id}/submit",
    response_model=QuizAttemptResult,
    response_model_exclude_none=True,
)
def submit_attempt(
    attempt_id: int = Path(..., ge=1),
    service: QuizAttemptService = Depends(get_attempt_service),
    current_user: User = Depends(get_current_user),
):
    """
    Submit the attempt. Score fields are only present when the quiz shows
    scores immediately, the answer key only when it shows answers.
    """
    return service.submit_quiz_attempt(attempt_id, current_user.id).unwrap()

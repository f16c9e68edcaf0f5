# app/schemas/quiz_attempt.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# ==================== Presentation Schemas ====================


class AnswerOptionForAttempt(BaseModel):
    """Answer option as shown while taking a quiz - WITHOUT correctness flag"""

    option_id: int
    text: Optional[str] = None


class QuestionForAttempt(BaseModel):
    question_id: int
    text: str
    type: str
    points: float
    display_order: int = 0
    options: List[AnswerOptionForAttempt] = []

    # Overlaid from the attempt's sparse maps
    is_answered: bool = False
    user_answer: Optional[Any] = None
    current_score: Optional[float] = None


class QuizGroupForAttempt(BaseModel):
    group_id: int
    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    questions: List[QuestionForAttempt] = []


class QuizItem(BaseModel):
    """One slot of a section: either a fixed-order group or a standalone question"""

    item_type: Literal["Group", "Question"]
    item_index: int
    group: Optional[QuizGroupForAttempt] = None
    question: Optional[QuestionForAttempt] = None


class AttemptSection(BaseModel):
    section_id: int
    title: str
    description: Optional[str] = None
    items: List[QuizItem] = []


class QuizAttemptWithQuestions(BaseModel):
    attempt_id: int
    quiz_id: int
    quiz_title: str
    user_id: int
    attempt_number: int
    status: str
    started_at: datetime
    duration_minutes: Optional[int] = None
    ends_at: Optional[datetime] = None
    sections: List[AttemptSection] = []


# ==================== Answer Schemas ====================


class UpdateAnswerRequest(BaseModel):
    question_id: int = Field(..., ge=1)
    user_answer: Optional[Any] = Field(
        None,
        description="Option id, list of option ids, text, or {left_id: right_id} map",
    )


class UpdateAnswerResponse(BaseModel):
    attempt_id: int
    question_id: int
    score: float


# ==================== Result Schemas ====================


class AnswerOptionReview(BaseModel):
    option_id: int
    text: Optional[str] = None
    is_correct: bool
    is_selected: bool


class QuestionReview(BaseModel):
    question_id: int
    text: str
    type: str
    points: float
    score: Optional[float] = None
    is_correct: Optional[bool] = None
    user_answer: Optional[Any] = None
    correct_answer: Optional[Any] = None
    options: List[AnswerOptionReview] = []


class QuizAttemptResult(BaseModel):
    """
    Result returned on submit. Score fields are only populated when the quiz
    shows scores immediately, correct_answers only when it shows answers
    after submit; unpopulated fields are dropped from the response body.
    """

    attempt_id: int
    quiz_id: int
    status: str
    submitted_at: datetime
    time_spent_seconds: int

    total_score: Optional[float] = None
    max_score: Optional[float] = None
    percentage: Optional[float] = None
    is_passed: Optional[bool] = None
    scores_by_question: Optional[Dict[int, float]] = None

    correct_answers: Optional[List[QuestionReview]] = None


# ==================== Attempt State Schemas ====================


class ActiveAttemptResponse(BaseModel):
    has_active_attempt: bool
    attempt_id: Optional[int] = None
    quiz_id: Optional[int] = None
    quiz_title: Optional[str] = None
    started_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    time_remaining_seconds: Optional[int] = None


class QuizAttemptSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    quiz_id: int
    attempt_number: int
    status: str
    started_at: datetime
    submitted_at: Optional[datetime] = None
    time_spent_seconds: int = 0
    total_score: Optional[float] = None


class QuizAttemptListResponse(BaseModel):
    attempts: List[QuizAttemptSummary]
    total: int


class AutoSubmitResponse(BaseModel):
    submitted: int

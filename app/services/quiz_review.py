# app/services/quiz_review.py
from typing import Any, List

from app.models.question import Question, QuestionType
from app.models.quiz import Quiz
from app.models.quiz_attempt import QuizAttempt
from app.schemas.quiz_attempt import AnswerOptionReview, QuestionReview
from app.services.scoring import (
    accepted_fill_blank_answers,
    correct_matching,
    correct_ordering,
)
from app.utils.answer_normalizer import to_int_list


def correct_answer_for(question: Question) -> Any:
    """The answer key of a question, in the same shape a student would submit."""
    question_type = question.type
    if question_type in (QuestionType.MULTIPLE_CHOICE.value, QuestionType.TRUE_FALSE.value):
        correct = [option.id for option in question.options if option.is_correct]
        return correct[0] if len(correct) == 1 else correct
    if question_type == QuestionType.MULTIPLE_ANSWERS.value:
        return sorted(option.id for option in question.options if option.is_correct)
    if question_type == QuestionType.FILL_BLANK.value:
        return accepted_fill_blank_answers(question)
    if question_type == QuestionType.MATCHING.value:
        return correct_matching(question)
    if question_type == QuestionType.ORDERING.value:
        return correct_ordering(question)
    return question.correct_answers


def _selected_option_ids(question: Question, answer: Any) -> set:
    if question.type == QuestionType.FILL_BLANK.value or isinstance(answer, dict):
        return set()
    return set(to_int_list(answer) or [])


def build_question_reviews(
    quiz: Quiz, attempt: QuizAttempt, include_scores: bool = True
) -> List[QuestionReview]:
    """
    Per-question review after submit: answer key and the student's answer.

    Per-question score and is_correct are filled only with ``include_scores``.
    """
    answers = attempt.answers
    scores = attempt.scores

    reviews = []
    for question in quiz.all_questions:
        points = float(question.points or 0)
        score = scores.get(question.id, 0.0) if include_scores else None
        user_answer = answers.get(question.id)
        selected = _selected_option_ids(question, user_answer)

        reviews.append(
            QuestionReview(
                question_id=question.id,
                text=question.stem_text,
                type=question.type,
                points=points,
                score=score,
                is_correct=(
                    question.id in scores and score >= points
                    if include_scores
                    else None
                ),
                user_answer=user_answer,
                correct_answer=correct_answer_for(question),
                options=[
                    AnswerOptionReview(
                        option_id=option.id,
                        text=option.text,
                        is_correct=option.is_correct,
                        is_selected=option.id in selected,
                    )
                    for option in question.options
                ],
            )
        )
    return reviews

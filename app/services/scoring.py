# app/services/scoring.py
"""
Scoring strategies, one pure function per question type.

Every strategy receives the question and an already normalized answer and
returns the points earned, between 0 and ``question.points``. Strategies are
total: a missing or malformed answer scores 0 instead of raising.

Multiple-answer, matching and ordering questions are all-or-nothing: full
points for an exact match, 0 otherwise. There is no partial credit.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from app.models.question import Question, QuestionType
from app.utils.answer_normalizer import to_int, to_int_list, to_int_map

logger = logging.getLogger(__name__)

ScoringStrategy = Callable[[Question, Any], float]

_WHITESPACE = re.compile(r"\s+")


class UnscoreableQuestionError(Exception):
    """No scoring strategy is registered for a question's type."""

    def __init__(self, question_type: Any):
        self.question_type = question_type
        super().__init__(f"No scoring strategy registered for question type '{question_type}'")


def _max_points(question: Question) -> float:
    return max(float(question.points or 0), 0.0)


def _correct_option_ids(question: Question) -> set:
    return {option.id for option in question.options if option.is_correct}


def normalize_fill_blank_text(value: str) -> str:
    """Fill-blank comparison key: trimmed, inner whitespace collapsed, casefolded."""
    return _WHITESPACE.sub(" ", value.strip()).casefold()


def accepted_fill_blank_answers(question: Question) -> List[str]:
    accepted = question.correct_answers
    if isinstance(accepted, str):
        accepted = [accepted]
    if not accepted:
        accepted = [
            option.text for option in question.options if option.is_correct and option.text
        ]
    return [str(answer) for answer in accepted if answer is not None]


def correct_ordering(question: Question) -> List[int]:
    if question.correct_answers:
        return to_int_list(question.correct_answers) or []
    return [option.id for option in question.options]


def correct_matching(question: Question) -> Dict[int, int]:
    return to_int_map(question.correct_answers) or {}


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def score_single_choice(question: Question, answer: Any) -> float:
    option_id = to_int(answer)
    if option_id is None:
        return 0.0
    return _max_points(question) if option_id in _correct_option_ids(question) else 0.0


def score_multiple_answers(question: Question, answer: Any) -> float:
    if not isinstance(answer, (list, tuple, set)):
        return 0.0
    selected = {to_int(item) for item in answer}
    if not selected or None in selected:
        return 0.0
    correct = _correct_option_ids(question)
    return _max_points(question) if correct and selected == correct else 0.0


def score_fill_blank(question: Question, answer: Any) -> float:
    if not isinstance(answer, str) or not answer.strip():
        return 0.0
    submitted = normalize_fill_blank_text(answer)
    for accepted in accepted_fill_blank_answers(question):
        if normalize_fill_blank_text(accepted) == submitted:
            return _max_points(question)
    return 0.0


def score_matching(question: Question, answer: Any) -> float:
    if not isinstance(answer, dict) or not answer:
        return 0.0
    expected = correct_matching(question)
    return _max_points(question) if expected and answer == expected else 0.0


def score_ordering(question: Question, answer: Any) -> float:
    if not isinstance(answer, (list, tuple)) or not answer:
        return 0.0
    expected = correct_ordering(question)
    return _max_points(question) if expected and list(answer) == expected else 0.0


SCORING_STRATEGIES: Dict[QuestionType, ScoringStrategy] = {
    QuestionType.MULTIPLE_CHOICE: score_single_choice,
    QuestionType.TRUE_FALSE: score_single_choice,
    QuestionType.MULTIPLE_ANSWERS: score_multiple_answers,
    QuestionType.FILL_BLANK: score_fill_blank,
    QuestionType.MATCHING: score_matching,
    QuestionType.ORDERING: score_ordering,
}


def get_scoring_strategy(
    question_type: Union[QuestionType, str],
    strategies: Optional[Mapping[QuestionType, ScoringStrategy]] = None,
) -> ScoringStrategy:
    registry = SCORING_STRATEGIES if strategies is None else strategies
    try:
        return registry[QuestionType(question_type)]
    except (KeyError, ValueError):
        raise UnscoreableQuestionError(question_type)


def calculate_score(
    question: Question,
    normalized_answer: Any,
    strategies: Optional[Mapping[QuestionType, ScoringStrategy]] = None,
) -> float:
    """Points earned for one question; raises UnscoreableQuestionError."""
    strategy = get_scoring_strategy(question.type, strategies)
    if normalized_answer is None:
        return 0.0
    score = float(strategy(question, normalized_answer))
    return min(max(score, 0.0), _max_points(question))


def validate_strategy_registry(
    strategies: Optional[Mapping[QuestionType, ScoringStrategy]] = None,
) -> List[QuestionType]:
    """Log and return every question type that has no registered strategy."""
    registry = SCORING_STRATEGIES if strategies is None else strategies
    missing = [question_type for question_type in QuestionType if question_type not in registry]
    for question_type in missing:
        logger.error(
            f"❌ No scoring strategy registered for question type '{question_type.value}'. "
            "Answers to such questions will fail with a server error."
        )
    return missing

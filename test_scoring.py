"""
Tests for the per-type scoring strategies
"""

import logging

import pytest

from app.models.question import AnswerOption, Question, QuestionType
from app.services.scoring import (
    SCORING_STRATEGIES,
    UnscoreableQuestionError,
    calculate_score,
    normalize_fill_blank_text,
    validate_strategy_registry,
)


def make_question(question_type, points=2, options=(), correct_answers=None):
    """Unsaved question; ``options`` are (id, is_correct) pairs."""
    question = Question(
        id=1,
        type=QuestionType(question_type).value,
        stem_text="?",
        points=points,
        correct_answers=correct_answers,
    )
    question.options = [
        AnswerOption(id=option_id, text=f"option {option_id}", is_correct=is_correct)
        for option_id, is_correct in options
    ]
    return question


@pytest.fixture
def single_choice():
    return make_question(
        QuestionType.MULTIPLE_CHOICE, points=3, options=[(10, False), (11, True)]
    )


@pytest.fixture
def multi_answer():
    return make_question(
        QuestionType.MULTIPLE_ANSWERS,
        points=4,
        options=[(20, True), (21, True), (22, False)],
    )


def test_single_choice(single_choice):
    assert calculate_score(single_choice, 11) == 3.0
    assert calculate_score(single_choice, 10) == 0.0
    assert calculate_score(single_choice, 999) == 0.0


def test_true_false_scores_like_single_choice():
    question = make_question(QuestionType.TRUE_FALSE, points=1, options=[(1, True), (2, False)])
    assert calculate_score(question, 1) == 1.0
    assert calculate_score(question, 2) == 0.0


def test_multiple_answers_is_all_or_nothing(multi_answer):
    assert calculate_score(multi_answer, [21, 20]) == 4.0
    # One of two correct options: no partial credit
    assert calculate_score(multi_answer, [20]) == 0.0
    # Both correct plus a wrong one
    assert calculate_score(multi_answer, [20, 21, 22]) == 0.0
    assert calculate_score(multi_answer, []) == 0.0


def test_multiple_answers_ignores_duplicate_selections(multi_answer):
    assert calculate_score(multi_answer, [20, 21, 21]) == 4.0


def test_fill_blank_ignores_case_and_extra_whitespace():
    question = make_question(
        QuestionType.FILL_BLANK, points=2, correct_answers=["Mont Blanc", "Monte Bianco"]
    )
    assert calculate_score(question, "mont blanc") == 2.0
    assert calculate_score(question, "  MONT   Blanc ") == 2.0
    assert calculate_score(question, "Monte Bianco") == 2.0
    assert calculate_score(question, "Montblanc") == 0.0
    assert calculate_score(question, "   ") == 0.0


def test_fill_blank_falls_back_to_correct_options():
    question = make_question(QuestionType.FILL_BLANK, points=1, options=[(5, True)])
    question.options[0].text = "Seine"
    assert calculate_score(question, "seine") == 1.0


def test_normalize_fill_blank_text():
    assert normalize_fill_blank_text("  New\tYork  City ") == "new york city"


def test_matching_requires_every_pair():
    question = make_question(
        QuestionType.MATCHING, points=3, correct_answers={"1": 4, "2": 5}
    )
    assert calculate_score(question, {1: 4, 2: 5}) == 3.0
    assert calculate_score(question, {1: 4, 2: 6}) == 0.0
    assert calculate_score(question, {1: 4}) == 0.0


def test_ordering_uses_answer_key_or_option_order():
    keyed = make_question(QuestionType.ORDERING, points=2, correct_answers=[3, 1, 2])
    assert calculate_score(keyed, [3, 1, 2]) == 2.0
    assert calculate_score(keyed, [1, 2, 3]) == 0.0

    by_options = make_question(
        QuestionType.ORDERING, points=2, options=[(7, False), (8, False), (9, False)]
    )
    assert calculate_score(by_options, [7, 8, 9]) == 2.0
    assert calculate_score(by_options, [9, 8, 7]) == 0.0


def test_missing_or_malformed_answers_score_zero(single_choice, multi_answer):
    assert calculate_score(single_choice, None) == 0.0
    assert calculate_score(single_choice, "garbage") == 0.0
    assert calculate_score(multi_answer, "garbage") == 0.0
    assert calculate_score(multi_answer, {"x": 1}) == 0.0


def test_score_is_clamped_to_question_points(single_choice):
    strategies = dict(SCORING_STRATEGIES)
    strategies[QuestionType.MULTIPLE_CHOICE] = lambda question, answer: 100.0
    assert calculate_score(single_choice, 11, strategies) == 3.0

    strategies[QuestionType.MULTIPLE_CHOICE] = lambda question, answer: -5.0
    assert calculate_score(single_choice, 11, strategies) == 0.0


def test_missing_strategy_is_unscoreable(single_choice):
    strategies = {
        key: value
        for key, value in SCORING_STRATEGIES.items()
        if key != QuestionType.MULTIPLE_CHOICE
    }
    with pytest.raises(UnscoreableQuestionError):
        calculate_score(single_choice, 11, strategies)

    # Even a blank answer cannot be scored without a strategy
    with pytest.raises(UnscoreableQuestionError):
        calculate_score(single_choice, None, strategies)


def test_unknown_question_type_is_unscoreable():
    question = make_question(QuestionType.MULTIPLE_CHOICE)
    question.type = "Essay"
    with pytest.raises(UnscoreableQuestionError):
        calculate_score(question, "text")


def test_registry_covers_every_question_type():
    assert validate_strategy_registry() == []


def test_registry_validation_reports_gaps(caplog):
    strategies = {QuestionType.MULTIPLE_CHOICE: SCORING_STRATEGIES[QuestionType.MULTIPLE_CHOICE]}
    with caplog.at_level(logging.ERROR, logger="app.services.scoring"):
        missing = validate_strategy_registry(strategies)

    assert QuestionType.ORDERING in missing
    assert len(missing) == len(QuestionType) - 1
    assert "Ordering" in caplog.text

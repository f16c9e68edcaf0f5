"""
Tests for per-attempt question and option ordering
"""

import pytest

from app.models.question import QuestionType
from app.services.shuffle import build_presentation, seeded_shuffle


def question_ids(sections):
    """Flatten a presentation into question ids in display order."""
    ids = []
    for section in sections:
        for item in section.items:
            if item.item_type == "Group":
                ids.extend(question.question_id for question in item.group.questions)
            else:
                ids.append(item.question.question_id)
    return ids


def option_ids(sections):
    return {
        item.question.question_id: [option.option_id for option in item.question.options]
        for section in sections
        for item in section.items
        if item.item_type == "Question"
    }


@pytest.fixture
def shuffled_quiz(factory):
    """One section: a group of three in slot 2, eight standalone questions around it."""
    quiz = factory.quiz(title="Mixed", shuffle_questions=True, shuffle_answers=True)
    section = factory.section(quiz)
    group = factory.group(section, name="Passage", display_order=2)

    standalone = []
    for order in (0, 1, 3, 4, 5, 6, 7, 8):
        standalone.append(
            factory.question(
                section,
                QuestionType.MULTIPLE_CHOICE,
                options=[(f"{order}-{n}", n == 0) for n in range(5)],
                display_order=order,
            )
        )
    grouped = [
        factory.question(section, QuestionType.MULTIPLE_CHOICE, group=group, display_order=n)
        for n in range(3)
    ]
    true_false = factory.question(
        section,
        QuestionType.TRUE_FALSE,
        options=[("True", True), ("False", False)],
        display_order=9,
    )
    factory.db.refresh(quiz)
    return quiz, group, standalone, grouped, true_false


def test_seeded_shuffle_is_reproducible():
    items = list(range(20))
    assert seeded_shuffle(items, "7:section:1") == seeded_shuffle(items, "7:section:1")
    assert seeded_shuffle(items, "7:section:1") != seeded_shuffle(items, "8:section:1")
    assert items == list(range(20))


def test_same_attempt_gets_same_order(shuffled_quiz):
    quiz = shuffled_quiz[0]

    first = build_presentation(quiz, attempt_id=41)
    second = build_presentation(quiz, attempt_id=41)

    assert question_ids(first) == question_ids(second)
    assert option_ids(first) == option_ids(second)


def test_different_attempts_get_different_orders(shuffled_quiz):
    quiz = shuffled_quiz[0]
    orders = {tuple(question_ids(build_presentation(quiz, attempt_id=n))) for n in range(1, 6)}
    assert len(orders) > 1


def test_every_question_is_presented_once(shuffled_quiz):
    quiz, _, standalone, grouped, true_false = shuffled_quiz
    ids = question_ids(build_presentation(quiz, attempt_id=3))
    expected = [q.id for q in standalone] + [q.id for q in grouped] + [true_false.id]
    assert sorted(ids) == sorted(expected)


def test_group_keeps_its_slot_and_inner_order(shuffled_quiz):
    quiz, group, _, grouped, _ = shuffled_quiz
    for attempt_id in range(1, 8):
        items = build_presentation(quiz, attempt_id=attempt_id)[0].items
        assert items[2].item_type == "Group"
        assert items[2].group.group_id == group.id
        assert [q.question_id for q in items[2].group.questions] == [q.id for q in grouped]
        assert [item.item_index for item in items] == list(range(len(items)))


def test_true_false_options_are_never_shuffled(shuffled_quiz):
    quiz, _, _, _, true_false = shuffled_quiz
    expected = [option.id for option in true_false.options]
    for attempt_id in range(1, 8):
        assert option_ids(build_presentation(quiz, attempt_id))[true_false.id] == expected


def test_no_shuffle_keeps_authored_order(factory):
    quiz = factory.quiz(shuffle_questions=False, shuffle_answers=False)
    section = factory.section(quiz)
    questions = [
        factory.question(section, options=[("a", True), ("b", False), ("c", False)], display_order=n)
        for n in range(4)
    ]
    factory.db.refresh(quiz)

    sections = build_presentation(quiz, attempt_id=99)

    assert question_ids(sections) == [q.id for q in questions]
    for question in questions:
        assert option_ids(sections)[question.id] == [o.id for o in question.options]


def test_progress_is_overlaid(factory):
    quiz = factory.quiz()
    section = factory.section(quiz)
    answered = factory.question(section, options=[("a", True), ("b", False)], display_order=0)
    untouched = factory.question(section, options=[("a", True), ("b", False)], display_order=1)
    factory.db.refresh(quiz)

    sections = build_presentation(
        quiz, attempt_id=1, answers={answered.id: 5}, scores={answered.id: 0.0}
    )
    by_id = {item.question.question_id: item.question for item in sections[0].items}

    assert by_id[answered.id].is_answered is True
    assert by_id[answered.id].user_answer == 5
    assert by_id[answered.id].current_score == 0.0
    assert by_id[untouched.id].is_answered is False
    assert by_id[untouched.id].user_answer is None

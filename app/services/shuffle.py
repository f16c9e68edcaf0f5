# app/services/shuffle.py
"""
Per-attempt presentation order.

The order is derived, never stored: the attempt id seeds every permutation,
so rebuilding the presentation for the same attempt against the same quiz
always yields the same sequence of questions and options. Resume relies on it.
"""

import random
from typing import Any, Dict, List, Optional, Sequence

from app.models.question import AnswerOption, Question, QuestionType
from app.models.quiz import Quiz
from app.models.quiz_section import QuizSection
from app.schemas.quiz_attempt import (
    AnswerOptionForAttempt,
    AttemptSection,
    QuestionForAttempt,
    QuizGroupForAttempt,
    QuizItem,
)

# Option order carries meaning for these types ("True" before "False"; a
# fill-blank's options are its accepted answers and are not shown as choices)
FIXED_OPTION_ORDER_TYPES = {QuestionType.TRUE_FALSE.value, QuestionType.FILL_BLANK.value}


def section_seed(attempt_id: int, section_id: int) -> str:
    return f"{attempt_id}:section:{section_id}"


def question_seed(attempt_id: int, question_id: int) -> str:
    return f"{attempt_id}:question:{question_id}"


def seeded_shuffle(items: Sequence[Any], seed: str) -> List[Any]:
    """Return a shuffled copy of ``items``; equal seeds give equal permutations."""
    shuffled = list(items)
    random.Random(seed).shuffle(shuffled)
    return shuffled


def should_shuffle_options(question: Question) -> bool:
    return question.type not in FIXED_OPTION_ORDER_TYPES


def order_options(
    question: Question, attempt_id: int, shuffle_answers: bool
) -> List[AnswerOption]:
    options = list(question.options)
    if shuffle_answers and should_shuffle_options(question):
        options = seeded_shuffle(options, question_seed(attempt_id, question.id))
    return options


def order_section_items(
    section: QuizSection, attempt_id: int, shuffle_questions: bool
) -> List[Any]:
    """
    Groups and standalone questions of a section in presentation order.

    Standalone questions are permuted among the slots they already occupy;
    groups keep their slot and their questions keep their authored order.
    """
    items = [(group.display_order, 0, group.id, group) for group in section.groups]
    items.extend(
        (question.display_order, 1, question.id, question)
        for question in section.questions
        if question.group_id is None
    )
    ordered = [entry[3] for entry in sorted(items, key=lambda entry: entry[:3])]

    if not shuffle_questions:
        return ordered

    slots = [index for index, item in enumerate(ordered) if isinstance(item, Question)]
    permuted = seeded_shuffle(
        [ordered[index] for index in slots], section_seed(attempt_id, section.id)
    )
    for slot, question in zip(slots, permuted):
        ordered[slot] = question
    return ordered


def _question_dto(
    question: Question,
    attempt_id: int,
    shuffle_answers: bool,
    answers: Dict[int, Any],
    scores: Dict[int, float],
) -> QuestionForAttempt:
    is_answered = question.id in answers
    return QuestionForAttempt(
        question_id=question.id,
        text=question.stem_text,
        type=question.type,
        points=float(question.points or 0),
        display_order=question.display_order,
        options=[
            AnswerOptionForAttempt(option_id=option.id, text=option.text)
            for option in order_options(question, attempt_id, shuffle_answers)
        ],
        is_answered=is_answered,
        user_answer=answers.get(question.id) if is_answered else None,
        current_score=scores.get(question.id) if is_answered else None,
    )


def build_presentation(
    quiz: Quiz,
    attempt_id: int,
    answers: Optional[Dict[int, Any]] = None,
    scores: Optional[Dict[int, float]] = None,
) -> List[AttemptSection]:
    """Build the shuffled section tree for one attempt, overlaying progress."""
    answers = answers or {}
    scores = scores or {}
    shuffle_answers = bool(quiz.shuffle_answers)

    sections = []
    for section in quiz.sections:
        items = []
        for index, item in enumerate(
            order_section_items(section, attempt_id, bool(quiz.shuffle_questions))
        ):
            if isinstance(item, Question):
                items.append(
                    QuizItem(
                        item_type="Question",
                        item_index=index,
                        question=_question_dto(
                            item, attempt_id, shuffle_answers, answers, scores
                        ),
                    )
                )
            else:
                items.append(
                    QuizItem(
                        item_type="Group",
                        item_index=index,
                        group=QuizGroupForAttempt(
                            group_id=item.id,
                            name=item.name,
                            title=item.title,
                            description=item.description,
                            questions=[
                                _question_dto(
                                    question, attempt_id, shuffle_answers, answers, scores
                                )
                                for question in item.questions
                            ],
                        ),
                    )
                )

        sections.append(
            AttemptSection(
                section_id=section.id,
                title=section.title,
                description=section.description,
                items=items,
            )
        )

    return sections

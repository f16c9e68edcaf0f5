"""
Answer normalization.

Clients send answers as loosely typed JSON: an option id may arrive as "3",
a multi-select as ["3", 4], a matching map with string keys. Before scoring,
every answer is coerced into the canonical shape for its question type:

    MultipleChoice / TrueFalse -> int
    MultipleAnswers / Ordering -> List[int]
    FillBlank                  -> str
    Matching                   -> Dict[int, int]

Coercion is lenient: a value that cannot be coerced is returned unchanged,
and the scoring strategies treat such values as wrong answers.
"""

from typing import Any, Dict, List, Optional

from app.models.question import QuestionType


def to_int(value: Any) -> Optional[int]:
    """Coerce a single option id; returns None when ``value`` is not an id."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def to_int_list(value: Any) -> Optional[List[int]]:
    if isinstance(value, str):
        if "," in value:
            value = value.split(",")
        else:
            single = to_int(value)
            return [single] if single is not None else None
    if isinstance(value, (list, tuple)):
        result = []
        for item in value:
            coerced = to_int(item)
            if coerced is not None:
                result.append(coerced)
        return result
    single = to_int(value)
    return [single] if single is not None else None


def to_int_map(value: Any) -> Optional[Dict[int, int]]:
    if not isinstance(value, dict):
        return None
    result = {}
    for key, target in value.items():
        left, right = to_int(key), to_int(target)
        if left is not None and right is not None:
            result[left] = right
    return result


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def normalize_answer(raw: Any, question_type: Any) -> Any:
    """Coerce ``raw`` into the canonical answer shape for ``question_type``."""
    try:
        question_type = QuestionType(question_type)
    except ValueError:
        return raw

    if question_type == QuestionType.FILL_BLANK:
        return to_text(raw)

    if raw is None:
        return None

    if question_type in (QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_FALSE):
        coerced = to_int(raw)
    elif question_type in (QuestionType.MULTIPLE_ANSWERS, QuestionType.ORDERING):
        coerced = to_int_list(raw)
    elif question_type == QuestionType.MATCHING:
        coerced = to_int_map(raw)
    else:
        coerced = None

    return raw if coerced is None else coerced

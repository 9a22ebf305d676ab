"""
Answer comparison and score arithmetic for exam submissions.

Each question type has its own comparator:

- multiple_choice / descriptive: exact string match
- true_false: boolean match, tolerant of case and of JSON booleans
- checkbox: set equality of the selected options
- rating: numeric equality, or inclusive range when the key is "lo-hi"

Unknown types fall back to exact string match.
"""
import json
import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from examdesk.models.exam import Question, QuestionType

Comparator = Callable[[Any, str], bool]

_TRUE_VALUES = {"true", "1", "yes", "t"}
_FALSE_VALUES = {"false", "0", "no", "f"}
_RANGE_RE = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*-\s*(-?\d+(?:\.\d+)?)\s*$")


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def exact_match(submitted: Any, correct: str) -> bool:
    return _as_text(submitted) == correct


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    text = _as_text(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return None


def boolean_match(submitted: Any, correct: str) -> bool:
    expected = _as_bool(correct)
    given = _as_bool(submitted)
    if expected is None or given is None:
        return exact_match(submitted, correct)
    return expected == given


def _as_option_set(value: Any) -> Set[str]:
    if isinstance(value, (list, tuple, set)):
        items: Iterable[Any] = value
    else:
        text = _as_text(value).strip()
        items = None
        if text.startswith("["):
            try:
                parsed = json.loads(text)
                if isinstance(parsed, list):
                    items = parsed
            except ValueError:
                pass
        if items is None:
            items = text.split(",") if text else []
    return {_as_text(item).strip() for item in items if _as_text(item).strip()}


def set_match(submitted: Any, correct: str) -> bool:
    return _as_option_set(submitted) == _as_option_set(correct)


def _as_number(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    try:
        number = Decimal(_as_text(value).strip())
    except ArithmeticError:
        return None
    # NaN and Infinity parse but cannot be compared
    return number if number.is_finite() else None


def rating_match(submitted: Any, correct: str) -> bool:
    given = _as_number(submitted)
    if given is None:
        return False
    bounds = _RANGE_RE.match(correct)
    if bounds:
        low, high = sorted((Decimal(bounds.group(1)), Decimal(bounds.group(2))))
        return low <= given <= high
    expected = _as_number(correct)
    return expected is not None and given == expected


COMPARATORS: Dict[QuestionType, Comparator] = {
    QuestionType.MULTIPLE_CHOICE: exact_match,
    QuestionType.DESCRIPTIVE: exact_match,
    QuestionType.TRUE_FALSE: boolean_match,
    QuestionType.CHECKBOX: set_match,
    QuestionType.RATING: rating_match,
}


def is_correct(question: Question, submitted: Any) -> bool:
    if submitted is None:
        return False
    comparator = COMPARATORS.get(question.type, exact_match)
    return comparator(submitted, question.correct_answer)


def normalize_answers(answers: Optional[Dict[Any, Any]]) -> Dict[str, Any]:
    """JSON object keys are strings; accept int keys from direct callers too."""
    return {str(key): value for key, value in (answers or {}).items()}


def round_percentage(value: Decimal) -> float:
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def score_answers(questions: List[Question], answers: Dict[str, Any]) -> Tuple[int, int, float]:
    """
    Return (earned, total, percentage). Missing answers earn nothing; answers
    for questions outside the list are ignored.
    """
    total = 0
    earned = 0
    for question in questions:
        total += question.score
        if is_correct(question, answers.get(str(question.id))):
            earned += question.score

    if total <= 0:
        return earned, total, 0.0
    return earned, total, round_percentage(Decimal(earned) * 100 / Decimal(total))


def has_passed(percentage: float, passing_score: int) -> bool:
    return percentage >= passing_score

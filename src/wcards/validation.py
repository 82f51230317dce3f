"""Grading of free-text answers against a card's accepted translations."""

from typing import List, Sequence

from .models import ValidationResult, ValidationStatus
from .text_utils import normalize_string

ANSWER_SEPARATOR = ","


def parse_answers(user_input: str) -> List[str]:
    """Split comma-separated guesses into normalized, non-empty tokens.

    Repeated guesses are kept; each one is graded on its own.
    """
    tokens = (token.strip() for token in user_input.split(ANSWER_SEPARATOR))
    return [normalize_string(token) for token in tokens if token]


def validate_translations(
    user_input: str, valid_translations: Sequence[str]
) -> ValidationResult:
    """Grade a user's answer against the accepted translations of a card.

    Matching ignores case, surrounding whitespace and accents. Correct
    guesses are reported in their normalized form, missed translations
    in their original spelling. The status is ``all`` when every guess
    matched, ``partial`` when only some did and ``none`` otherwise; any
    correct guess makes the answer valid.
    """
    user_answers = parse_answers(user_input)
    valid_normalized = [normalize_string(t) for t in valid_translations]
    valid_keys = set(valid_normalized)
    answered_keys = set(user_answers)

    correct_answers = [answer for answer in user_answers if answer in valid_keys]
    missed_answers = [
        original
        for original, key in zip(valid_translations, valid_normalized)
        if key not in answered_keys
    ]

    if not correct_answers:
        status = ValidationStatus.NONE
    elif len(correct_answers) == len(user_answers):
        status = ValidationStatus.ALL
    else:
        status = ValidationStatus.PARTIAL

    return ValidationResult(
        is_valid=len(correct_answers) > 0,
        correct_count=len(correct_answers),
        total_provided=len(user_answers),
        total_available=len(valid_translations),
        user_answers=user_answers,
        correct_answers=correct_answers,
        missed_answers=missed_answers,
        status=status,
    )

"""String helpers shared by the validator and the card store."""

import random
import unicodedata
from typing import List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


def normalize_string(text: str) -> str:
    """Return the comparison key for a word or phrase.

    The key is trimmed, lower-cased and stripped of accent marks, so
    "  Adiós " and "ADIOS" share the key "adios".
    """
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def compare_strings(first: str, second: str) -> bool:
    return normalize_string(first) == normalize_string(second)


def validate_length(
    value: str, max_length: int, field_name: str
) -> Tuple[bool, Optional[str]]:
    """Check that a trimmed value is present and no longer than max_length."""
    trimmed = value.strip()
    if not trimmed:
        return False, f"{field_name} is required"
    if len(trimmed) > max_length:
        return False, f"{field_name} must be {max_length} characters or less"
    return True, None


def shuffle_list(items: Sequence[T]) -> List[T]:
    """Fisher-Yates shuffle returning a new list."""
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = random.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled

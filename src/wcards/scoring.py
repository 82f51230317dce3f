from typing import Sequence

from .config import settings
from .models import TestResult, TestScore


def calculate_percentage(correct: int, total: int) -> int:
    if total == 0:
        return 0
    # round half up, not banker's rounding
    return int(correct * 100 / total + 0.5)


def calculate_score(
    results: Sequence[TestResult], pass_threshold: int = settings.PASS_THRESHOLD
) -> TestScore:
    """Reduce the answers of a test session to its final score.

    The pass mark is an absolute number of correct answers for the
    fixed-length test, not a ratio of whatever was answered.
    """
    total = len(results)
    correct = sum(1 for result in results if result.is_correct)
    return TestScore(
        total=total,
        correct=correct,
        incorrect=total - correct,
        percentage=calculate_percentage(correct, total),
        passed=correct >= pass_threshold,
    )

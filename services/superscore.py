"""
Superscore Aggregation

Combines the best Reading & Writing and the best Math section scores across
several sittings, as many colleges accept in place of a single-sitting total.
"""
from typing import Sequence

from services.exceptions import InsufficientDataError
from services.models import Attempt, SuperscoreResult


def superscore(attempts: Sequence[Attempt]) -> SuperscoreResult:
    """
    Compute the superscore for a set of attempts.

    The two section maxima are chosen independently and need not come from the
    same sitting, so the improvement over the best single sitting is never negative.
    When several attempts share a maximum, the earliest one is reported.

    Raises:
        InsufficientDataError: If no attempts are given
    """
    if not attempts:
        raise InsufficientDataError("Superscore needs at least one attempt")

    best_rw_attempt = max(attempts, key=lambda a: a.rw)
    best_math_attempt = max(attempts, key=lambda a: a.math)
    best_single = max(attempts, key=lambda a: a.rw + a.math)

    super_total = best_rw_attempt.rw + best_math_attempt.math
    best_single_total = best_single.rw + best_single.math

    return SuperscoreResult(
        best_rw=best_rw_attempt.rw,
        best_math=best_math_attempt.math,
        super_total=super_total,
        best_single_sitting_total=best_single_total,
        improvement=super_total - best_single_total,
        best_rw_attempt_id=best_rw_attempt.id,
        best_math_attempt_id=best_math_attempt.id,
        best_single_sitting_attempt_id=best_single.id,
    )

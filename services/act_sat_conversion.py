"""
ACT to SAT Score Conversion Module

This module provides functions to convert between ACT and SAT scores
based on the official College Board / ACT concordance table (2018 revision),
bundled as data/act_sat_concordance.csv.
"""
from typing import Optional, Sequence

from services.exceptions import InsufficientDataError
from services.models import ConcordanceEntry
from services.reference_data import load_concordance_table


def act_to_sat(act_score, table: Optional[Sequence[ConcordanceEntry]] = None) -> Optional[int]:
    """
    Convert an ACT Composite score to an equivalent SAT Total score.

    Args:
        act_score (int): ACT Composite score
        table (Sequence[ConcordanceEntry]): Concordance table, bundled table if omitted

    Returns:
        int: Equivalent SAT Total score
        None: If the score has no entry in the table (below 11, above 36, or not a whole number)
    """
    if act_score is None:
        return None

    # Convert to float first to handle potential string inputs
    try:
        act_value = float(act_score)
    except (ValueError, TypeError):
        return None
    if not act_value.is_integer():
        return None

    table = table if table is not None else load_concordance_table()
    for entry in table:
        if entry.act == int(act_value):
            return entry.sat
    return None


def sat_to_act(sat_score: int, table: Optional[Sequence[ConcordanceEntry]] = None) -> int:
    """
    Convert an SAT Total score to the ACT Composite score with the nearest
    concordant SAT value.

    Args:
        sat_score (int): SAT Total score
        table (Sequence[ConcordanceEntry]): Concordance table, bundled table if omitted

    Returns:
        int: ACT Composite score. Ties go to the entry met first in table
        order, i.e. the higher ACT score for the descending bundled table.
    """
    table = table if table is not None else load_concordance_table()
    if not table:
        raise InsufficientDataError("Cannot convert SAT to ACT with an empty concordance table")

    closest = table[0]
    min_diff = abs(closest.sat - sat_score)
    for entry in table:
        diff = abs(entry.sat - sat_score)
        if diff < min_diff:
            closest = entry
            min_diff = diff
    return closest.act

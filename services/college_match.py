"""
College Match Module

Labels institutions as safety, target or reach by comparing a total SAT score
with the middle-50% range of their admitted students.
"""
from typing import Dict, List, Optional, Sequence

from services.exceptions import InsufficientDataError
from services.models import InstitutionRange, Tier
from services.reference_data import load_college_ranges

# Presentation order for grouped results
TIER_ORDER = [Tier.TARGET, Tier.SAFETY, Tier.REACH]

TIER_DESCRIPTIONS: Dict[Tier, str] = {
    Tier.TARGET: "Your score is within their middle 50%",
    Tier.SAFETY: "Your score is above their 75th percentile",
    Tier.REACH: "Your score is below their 25th percentile",
}


def classify_institution(total: int, institution: InstitutionRange) -> Tier:
    if total >= institution.sat_high:
        return Tier.SAFETY
    if total >= institution.sat_low:
        return Tier.TARGET
    return Tier.REACH


def classify(total: int, institutions: Optional[Sequence[InstitutionRange]] = None) -> Dict[str, Tier]:
    """
    Classify every institution against a total score.

    Args:
        total (int): SAT total score
        institutions (Sequence[InstitutionRange]): Ranges to compare, bundled table if omitted

    Returns:
        Dict[str, Tier]: Institution name to tier, in input order

    Raises:
        InsufficientDataError: If the institution list is empty
    """
    institutions = institutions if institutions is not None else load_college_ranges()
    if not institutions:
        raise InsufficientDataError("Cannot classify against an empty institution list")
    return {inst.name: classify_institution(total, inst) for inst in institutions}


def group_by_tier(
    total: int,
    institutions: Optional[Sequence[InstitutionRange]] = None,
) -> Dict[Tier, List[InstitutionRange]]:
    """Bucket institutions per tier, keeping input order inside each bucket."""
    institutions = institutions if institutions is not None else load_college_ranges()
    if not institutions:
        raise InsufficientDataError("Cannot classify against an empty institution list")
    grouped: Dict[Tier, List[InstitutionRange]] = {tier: [] for tier in TIER_ORDER}
    for inst in institutions:
        grouped[classify_institution(total, inst)].append(inst)
    return grouped

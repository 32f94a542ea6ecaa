"""
Alternate Scale Scoring

PSAT/NMSQT (160-760 per section, 320-1520 total) with the National Merit
Selection Index, and the ACT composite computed without the science section.
"""
import logging
from typing import Optional, Sequence

import numpy as np

from services.models import (
    Difficulty,
    NMSQTCutoff,
    NMSQTResult,
    PSAT_SECTION_SCALE,
    PSATScore,
    ScoringCurve,
    SectionType,
)
from services.reference_data import load_nmsqt_cutoffs
from services.sat_scoring import round_half_up, score_section

logger = logging.getLogger(__name__)

SELECTION_INDEX_MIN = 48
SELECTION_INDEX_MAX = 228
DEFAULT_NMSQT_STATE = "National Average"
DEFAULT_NMSQT_CUTOFF = 212

ACT_SUBJECT_MIN = 1
ACT_SUBJECT_MAX = 36


# ===================================================================================
# PSAT / NMSQT
# ===================================================================================

def selection_index(rw_scaled: int, math_scaled: int) -> int:
    """National Merit Selection Index; Reading & Writing counts twice."""
    ceiling = PSAT_SECTION_SCALE.ceiling
    index = round_half_up(rw_scaled / ceiling * 38 * 2 + math_scaled / ceiling * 38 + SELECTION_INDEX_MIN)
    return int(np.clip(index, SELECTION_INDEX_MIN, SELECTION_INDEX_MAX))


def score_psat(
    rw_m1: int,
    rw_m2: int,
    math_m1: int,
    math_m2: int,
    curve: Optional[ScoringCurve] = None,
) -> PSATScore:
    """Score a PSAT/NMSQT sitting. No routing adjustment is applied on the PSAT scale."""
    rw = score_section(
        rw_m1, rw_m2, Difficulty.UNKNOWN, SectionType.READING_WRITING.module_max,
        curve=curve, scale=PSAT_SECTION_SCALE,
    )
    math_score = score_section(
        math_m1, math_m2, Difficulty.UNKNOWN, SectionType.MATH.module_max,
        curve=curve, scale=PSAT_SECTION_SCALE,
    )
    return PSATScore(
        rw=rw,
        math=math_score,
        total=rw.scaled + math_score.scaled,
        selection_index=selection_index(rw.scaled, math_score.scaled),
    )


def find_nmsqt_cutoff(state: str, cutoffs: Optional[Sequence[NMSQTCutoff]] = None) -> NMSQTCutoff:
    """Cutoff row for a state, falling back to the national average."""
    cutoffs = cutoffs if cutoffs is not None else load_nmsqt_cutoffs()
    state_clean = (state or "").strip().lower()
    for row in cutoffs:
        if row.state.lower() == state_clean:
            return row
    for row in cutoffs:
        if row.state == DEFAULT_NMSQT_STATE:
            logger.warning(f"No NMSQT cutoff for '{state}', using {DEFAULT_NMSQT_STATE}.")
            return row
    logger.warning(f"No NMSQT cutoff for '{state}' and no national row, using {DEFAULT_NMSQT_CUTOFF}.")
    return NMSQTCutoff(state=DEFAULT_NMSQT_STATE, cutoff=DEFAULT_NMSQT_CUTOFF)


def check_nmsqt(
    index: int,
    state: str = DEFAULT_NMSQT_STATE,
    cutoffs: Optional[Sequence[NMSQTCutoff]] = None,
) -> NMSQTResult:
    cutoff = find_nmsqt_cutoff(state, cutoffs)
    qualifies = index >= cutoff.cutoff
    return NMSQTResult(
        state=cutoff.state,
        cutoff=cutoff.cutoff,
        selection_index=index,
        qualifies=qualifies,
        points_needed=0 if qualifies else cutoff.cutoff - index,
    )


# ===================================================================================
# ACT without science
# ===================================================================================

def clamp_act_subject(score: int) -> int:
    return int(np.clip(score, ACT_SUBJECT_MIN, ACT_SUBJECT_MAX))


def act_no_science_composite(english: int, math: int, reading: int) -> int:
    """Rounded average of English, Math and Reading, each clamped to 1-36 first."""
    subjects = [clamp_act_subject(s) for s in (english, math, reading)]
    return round_half_up(sum(subjects) / 3)

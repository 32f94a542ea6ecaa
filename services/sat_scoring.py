"""
Digital SAT Scoring Module

Estimates scaled section scores from raw module counts. The digital SAT routes a
test-taker to an easier or harder second module depending on first-module
performance; this module approximates that adaptive curve with a linear
mapping adjusted by the routed difficulty.
"""
import math
from typing import Optional

import numpy as np

from config.settings import settings
from services.models import (
    CompositeScore,
    Difficulty,
    SAT_SECTION_SCALE,
    SATState,
    ScaleBounds,
    ScoringCurve,
    SectionScore,
    SectionType,
    TOTAL_MAX,
)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def default_curve() -> ScoringCurve:
    """Curve built from the configured heuristics."""
    return ScoringCurve(
        easy_threshold=settings.EASY_PENALTY_THRESHOLD,
        easy_multiplier=settings.EASY_PENALTY_MULTIPLIER,
        hard_multiplier=settings.HARD_BONUS_MULTIPLIER,
    )


def estimate_percentile(scaled: int, midpoint: int = 500, slope: float = 0.015) -> int:
    """Logistic approximation of the percentile for a scaled section score."""
    percentile = round_half_up(100 / (1 + math.exp(-slope * (scaled - midpoint))))
    return int(np.clip(percentile, 1, 99))


def score_section(
    m1: int,
    m2: int,
    difficulty: Difficulty,
    module_max: int,
    curve: Optional[ScoringCurve] = None,
    scale: ScaleBounds = SAT_SECTION_SCALE,
) -> SectionScore:
    """
    Convert two module raw scores into a scaled section score.

    Args:
        m1 (int): Correct answers in the first module
        m2 (int): Correct answers in the second (adaptive) module
        difficulty (Difficulty): Track of the second module
        module_max (int): Questions per module
        curve (ScoringCurve): Heuristic constants, configured defaults if omitted
        scale (ScaleBounds): Reported scale, [200, 800] for the SAT

    Returns:
        SectionScore: Scaled score in 10-point steps with range and percentile

    Raw counts are not re-validated; callers clamp them to [0, module_max].
    """
    curve = curve or default_curve()
    raw_total = m1 + m2
    total_max = module_max * 2

    multiplier = scale.span / total_max
    if difficulty == Difficulty.EASY and m1 > module_max * curve.easy_threshold:
        # Strong first module but routed easy: the second module caps the curve
        multiplier *= curve.easy_multiplier
    elif difficulty == Difficulty.HARD:
        multiplier *= curve.hard_multiplier

    scaled = round_half_up(scale.floor + raw_total * multiplier)
    scaled = int(np.clip(scaled, scale.floor, scale.ceiling))
    scaled = round_half_up(scaled / 10) * 10

    score_range = (
        max(scale.floor, scaled - curve.range_below),
        min(scale.ceiling, scaled + curve.range_above),
    )
    percentile = estimate_percentile(scaled, midpoint=scale.midpoint, slope=curve.percentile_slope)

    return SectionScore(raw=raw_total, scaled=scaled, range=score_range, percentile=percentile)


def score_sat_section(
    m1: int,
    m2: int,
    difficulty: Difficulty,
    section: SectionType,
    curve: Optional[ScoringCurve] = None,
) -> SectionScore:
    return score_section(m1, m2, difficulty, section.module_max, curve=curve)


def compose(rw: SectionScore, math_score: SectionScore) -> CompositeScore:
    """Combine the two section scores; sections are treated as independent."""
    total_range = (
        rw.range[0] + math_score.range[0],
        min(TOTAL_MAX, rw.range[1] + math_score.range[1]),
    )
    return CompositeScore(
        rw=rw,
        math=math_score,
        total=rw.scaled + math_score.scaled,
        total_range=total_range,
    )


def get_full_score(state: SATState, curve: Optional[ScoringCurve] = None) -> CompositeScore:
    rw = score_sat_section(state.rw_m1, state.rw_m2, state.rw_difficulty, SectionType.READING_WRITING, curve)
    math_score = score_sat_section(state.math_m1, state.math_m2, state.math_difficulty, SectionType.MATH, curve)
    return compose(rw, math_score)

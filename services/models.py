"""
Score Estimator Models

Value objects shared by the scoring services. Every model is frozen: results are
recomputed from fresh inputs, never mutated in place.
"""
from enum import Enum
from typing import Optional, Tuple, List

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

SECTION_MIN = 200
SECTION_MAX = 800
TOTAL_MIN = 400
TOTAL_MAX = 1600


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =====================================================
# Enumerations
# =====================================================

class Difficulty(str, Enum):
    """Second-module difficulty track the test-taker was routed into."""
    EASY = "easy"
    HARD = "hard"
    UNKNOWN = "unknown"


class SectionType(str, Enum):
    READING_WRITING = "rw"
    MATH = "math"

    @property
    def module_max(self) -> int:
        # Questions per module on the digital SAT (PSAT reuses these)
        return 27 if self is SectionType.READING_WRITING else 22


class Tier(str, Enum):
    SAFETY = "safety"
    TARGET = "target"
    REACH = "reach"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


# =====================================================
# Scoring
# =====================================================

class ScaleBounds(_Frozen):
    """Reported score scale for one section."""
    floor: int
    ceiling: int

    @property
    def span(self) -> int:
        return self.ceiling - self.floor

    @property
    def midpoint(self) -> int:
        return self.floor + self.span // 2


SAT_SECTION_SCALE = ScaleBounds(floor=SECTION_MIN, ceiling=SECTION_MAX)
PSAT_SECTION_SCALE = ScaleBounds(floor=160, ceiling=760)


class ScoringCurve(_Frozen):
    """
    Heuristic constants of the raw-to-scaled curve.

    The EASY-track penalty and HARD-track bonus are estimates, not published
    psychometric values, so they are kept here rather than inside the algorithm.
    """
    easy_threshold: float = 0.7
    easy_multiplier: float = 0.85
    hard_multiplier: float = 1.05
    range_below: int = 40
    range_above: int = 30
    percentile_slope: float = 0.015


class SectionScore(_Frozen):
    raw: int
    scaled: int
    range: Tuple[int, int]
    percentile: int


class CompositeScore(_Frozen):
    rw: SectionScore
    math: SectionScore
    total: int
    total_range: Tuple[int, int]


class SATState(_Frozen):
    """Raw inputs for one full SAT estimate."""
    rw_m1: int = 0
    rw_m2: int = 0
    math_m1: int = 0
    math_m2: int = 0
    rw_difficulty: Difficulty = Difficulty.UNKNOWN
    math_difficulty: Difficulty = Difficulty.UNKNOWN


# =====================================================
# Concordance / PSAT / ACT
# =====================================================

class ConcordanceEntry(_Frozen):
    act: int = Field(..., ge=11, le=36)
    sat: int = Field(..., ge=760, le=1590)


class PSATScore(_Frozen):
    rw: SectionScore
    math: SectionScore
    total: int
    selection_index: int


class NMSQTCutoff(_Frozen):
    state: str
    cutoff: int


class NMSQTResult(_Frozen):
    state: str
    cutoff: int
    selection_index: int
    qualifies: bool
    points_needed: int


# =====================================================
# Superscore
# =====================================================

def normalize_section_score(value: int) -> int:
    """Clamp a section score to [200, 800] and snap it to a 10-point step."""
    snapped = int(np.floor(value / 10 + 0.5)) * 10
    return int(np.clip(snapped, SECTION_MIN, SECTION_MAX))


class Attempt(_Frozen):
    id: str
    label: str = ""
    rw: int = 500
    math: int = 500

    @field_validator("rw", "math")
    @classmethod
    def _snap_section(cls, value: int) -> int:
        return normalize_section_score(value)


class SuperscoreResult(_Frozen):
    best_rw: int
    best_math: int
    super_total: int
    best_single_sitting_total: int
    improvement: int
    best_rw_attempt_id: str
    best_math_attempt_id: str
    best_single_sitting_attempt_id: str


# =====================================================
# College match
# =====================================================

class InstitutionRange(_Frozen):
    """Middle-50% SAT range (25th to 75th percentile) of admitted students."""
    name: str
    sat_low: int
    sat_high: int


class GoalCollege(_Frozen):
    name: str
    average: int


# =====================================================
# History & goals
# =====================================================

class ScoreEntry(_Frozen):
    id: str
    date: str
    total: int
    rw: int
    math: int
    label: Optional[str] = None


class ScoreTrend(_Frozen):
    direction: TrendDirection
    delta: int


class GoalData(_Frozen):
    target_score: int
    target_college: str = ""


class GoalProgress(_Frozen):
    target_score: int
    target_college: str
    current_total: int
    gap: int
    progress: float
    suggestions: List[str]

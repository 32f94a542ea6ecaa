import pytest
from services.models import (
    Difficulty,
    SATState,
    ScoringCurve,
    SectionScore,
    SectionType,
)
from services.sat_scoring import (
    compose,
    default_curve,
    estimate_percentile,
    get_full_score,
    round_half_up,
    score_section,
    score_sat_section,
)

RW_MAX = SectionType.READING_WRITING.module_max
MATH_MAX = SectionType.MATH.module_max

# --- Tests for Helper Functions ---

def test_round_half_up():
    assert round_half_up(64.5) == 65
    assert round_half_up(62.2) == 62
    assert round_half_up(0.5) == 1
    assert round_half_up(-0.5) == 0

def test_estimate_percentile_bounds():
    assert estimate_percentile(500) == 50
    assert estimate_percentile(200) == 1
    assert estimate_percentile(800) == 99
    assert estimate_percentile(620) == 86

def test_default_curve_uses_settings(monkeypatch):
    from config.settings import settings
    monkeypatch.setattr(settings, "EASY_PENALTY_MULTIPLIER", 0.9)
    assert default_curve().easy_multiplier == 0.9
    assert default_curve().hard_multiplier == settings.HARD_BONUS_MULTIPLIER

# --- Section scoring ---

def test_reading_writing_reference_case():
    # 38 of 54 raw -> 200 + 38 * 600/54 = 622.2 -> 620
    score = score_section(20, 18, Difficulty.UNKNOWN, RW_MAX)
    assert score.raw == 38
    assert score.scaled == 620
    assert score.range == (580, 650)
    assert score.percentile == 86

def test_math_section():
    score = score_sat_section(15, 12, Difficulty.UNKNOWN, SectionType.MATH)
    assert score.raw == 27
    assert score.scaled == 570

def test_zero_and_perfect_scores():
    zero = score_section(0, 0, Difficulty.UNKNOWN, RW_MAX)
    assert zero.scaled == 200
    assert zero.range == (200, 230)
    assert zero.percentile == 1

    perfect = score_section(RW_MAX, RW_MAX, Difficulty.UNKNOWN, RW_MAX)
    assert perfect.scaled == 800
    assert perfect.range == (760, 800)
    assert perfect.percentile == 99

def test_hard_module_bonus_is_capped_at_800():
    score = score_section(MATH_MAX, MATH_MAX, Difficulty.HARD, MATH_MAX)
    assert score.scaled == 800

def test_hard_module_bonus():
    # 38 * 600/54 * 1.05 = 443.3 -> 643 -> 640
    assert score_section(20, 18, Difficulty.HARD, RW_MAX).scaled == 640

def test_easy_module_penalty_applies_above_threshold():
    # m1 = 20 > 0.7 * 27: 38 * 600/54 * 0.85 = 358.9 -> 559 -> 560
    assert score_section(20, 18, Difficulty.EASY, RW_MAX).scaled == 560

def test_easy_module_without_strong_first_module_is_unadjusted():
    easy = score_section(18, 18, Difficulty.EASY, RW_MAX)
    unknown = score_section(18, 18, Difficulty.UNKNOWN, RW_MAX)
    assert easy == unknown
    assert easy.scaled == 600

def test_custom_curve():
    curve = ScoringCurve(easy_threshold=0.5, easy_multiplier=1.0)
    assert score_section(20, 18, Difficulty.EASY, RW_MAX, curve=curve).scaled == 620

def test_rounds_half_up_to_ten():
    # 200 + 89 * 5 = 645, which must report as 650
    assert score_section(45, 44, Difficulty.UNKNOWN, 60).scaled == 650

@pytest.mark.parametrize("difficulty", list(Difficulty))
@pytest.mark.parametrize("module_max", [RW_MAX, MATH_MAX])
def test_section_score_invariants(difficulty, module_max):
    for m1 in range(module_max + 1):
        for m2 in range(module_max + 1):
            score = score_section(m1, m2, difficulty, module_max)
            assert 200 <= score.scaled <= 800
            assert score.scaled % 10 == 0
            assert score.range[0] <= score.scaled <= score.range[1]
            assert 200 <= score.range[0] and score.range[1] <= 800
            assert 1 <= score.percentile <= 99

@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_monotonic_in_second_module(difficulty):
    for m1 in range(RW_MAX + 1):
        scaled = [score_section(m1, m2, difficulty, RW_MAX).scaled for m2 in range(RW_MAX + 1)]
        assert scaled == sorted(scaled)

@pytest.mark.parametrize("difficulty", [Difficulty.UNKNOWN, Difficulty.HARD])
def test_monotonic_in_raw_total(difficulty):
    previous = 0
    for raw_total in range(2 * MATH_MAX + 1):
        m1 = min(raw_total, MATH_MAX)
        scaled = score_section(m1, raw_total - m1, difficulty, MATH_MAX).scaled
        assert scaled >= previous
        previous = scaled

def test_scoring_is_deterministic():
    first = score_section(17, 21, Difficulty.HARD, RW_MAX)
    second = score_section(17, 21, Difficulty.HARD, RW_MAX)
    assert first == second

# --- Composite ---

def _section(scaled, low, high):
    return SectionScore(raw=0, scaled=scaled, range=(low, high), percentile=50)

def test_compose_sums_sections():
    composite = compose(_section(650, 610, 680), _section(600, 560, 630))
    assert composite.total == 1250
    assert composite.total_range == (1170, 1310)

def test_compose_clamps_upper_range():
    composite = compose(_section(800, 760, 800), _section(790, 750, 800))
    assert composite.total == 1590
    assert composite.total_range == (1510, 1600)

def test_get_full_score():
    state = SATState(rw_m1=20, rw_m2=18, math_m1=15, math_m2=12)
    composite = get_full_score(state)
    assert composite.rw.scaled == 620
    assert composite.math.scaled == 570
    assert composite.total == 1190
    assert composite.total_range == (1110, 1250)

def test_get_full_score_difficulty_per_section():
    state = SATState(
        rw_m1=20, rw_m2=18, math_m1=15, math_m2=12,
        rw_difficulty=Difficulty.HARD, math_difficulty=Difficulty.UNKNOWN,
    )
    composite = get_full_score(state)
    assert composite.rw.scaled == 640
    assert composite.math.scaled == 570

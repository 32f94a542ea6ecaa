import pytest
from services.act_sat_conversion import act_to_sat, sat_to_act
from services.exceptions import InsufficientDataError
from services.models import ConcordanceEntry

def test_act_to_sat_known_scores():
    assert act_to_sat(36) == 1590
    assert act_to_sat(28) == 1350
    assert act_to_sat(11) == 760

@pytest.mark.parametrize("act", [None, 10, 1, 37, 28.5, "abc"])
def test_act_to_sat_not_found(act):
    assert act_to_sat(act) is None

def test_act_to_sat_accepts_numeric_strings():
    assert act_to_sat("28") == 1350
    assert act_to_sat(28.0) == 1350

def test_sat_to_act_exact_entries():
    assert sat_to_act(1350) == 28
    assert sat_to_act(760) == 11

def test_sat_to_act_nearest_neighbour():
    assert sat_to_act(1600) == 36
    assert sat_to_act(400) == 11
    assert sat_to_act(1340) == 28
    assert sat_to_act(1000) == 17

def test_sat_to_act_ties_go_to_higher_act():
    # 1365 is 15 away from both 1380 (ACT 29) and 1350 (ACT 28)
    assert sat_to_act(1365) == 29
    # 1030 is 20 away from both 1050 (ACT 18) and 1010 (ACT 17)
    assert sat_to_act(1030) == 18

def test_round_trip_stays_within_one_point():
    for act in range(11, 37):
        assert abs(sat_to_act(act_to_sat(act)) - act) <= 1
    assert sat_to_act(act_to_sat(28)) == 28

def test_custom_table():
    table = [ConcordanceEntry(act=11, sat=760), ConcordanceEntry(act=12, sat=810)]
    assert act_to_sat(12, table) == 810
    assert act_to_sat(36, table) is None
    # Ties go to the first entry in the given order
    assert sat_to_act(785, table) == 11

def test_sat_to_act_empty_table():
    with pytest.raises(InsufficientDataError):
        sat_to_act(1200, [])

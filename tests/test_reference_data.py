import pytest
from config.settings import settings
from services import reference_data
from services.exceptions import ReferenceDataError
from services.reference_data import (
    load_college_ranges,
    load_concordance_table,
    load_goal_colleges,
    load_nmsqt_cutoffs,
)

@pytest.fixture
def fresh_cache():
    loaders = [load_concordance_table, load_college_ranges, load_nmsqt_cutoffs, load_goal_colleges]
    for loader in loaders:
        loader.cache_clear()
    yield
    for loader in loaders:
        loader.cache_clear()

def test_bundled_tables(fresh_cache):
    concordance = load_concordance_table()
    assert len(concordance) == 26
    assert concordance[0].act == 36 and concordance[0].sat == 1590
    assert concordance[-1].act == 11 and concordance[-1].sat == 760

    assert len(load_college_ranges()) == 30
    assert len(load_nmsqt_cutoffs()) == 26
    assert len(load_goal_colleges()) == 20

def test_tables_are_loaded_once(fresh_cache):
    assert load_concordance_table() is load_concordance_table()

def test_concordance_is_sorted_descending(fresh_cache, tmp_path, monkeypatch):
    path = tmp_path / "concordance.csv"
    path.write_text("act,sat\n11,760\n13,850\n12,810\n")
    monkeypatch.setattr(settings, "CONCORDANCE_DATA_PATH", str(path))
    assert [e.act for e in load_concordance_table()] == [13, 12, 11]

def test_non_monotonic_concordance_rejected(fresh_cache, tmp_path, monkeypatch):
    path = tmp_path / "concordance.csv"
    path.write_text("act,sat\n12,760\n11,810\n")
    monkeypatch.setattr(settings, "CONCORDANCE_DATA_PATH", str(path))
    with pytest.raises(ReferenceDataError):
        load_concordance_table()

def test_missing_file(fresh_cache, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "NMSQT_CUTOFFS_DATA_PATH", str(tmp_path / "missing.csv"))
    with pytest.raises(ReferenceDataError):
        load_nmsqt_cutoffs()

def test_missing_column(fresh_cache, tmp_path, monkeypatch):
    path = tmp_path / "colleges.csv"
    path.write_text("name,sat25\nMIT,1520\n")
    monkeypatch.setattr(settings, "COLLEGE_RANGES_DATA_PATH", str(path))
    with pytest.raises(ReferenceDataError):
        load_college_ranges()

def test_inverted_college_range(fresh_cache, tmp_path, monkeypatch):
    path = tmp_path / "colleges.csv"
    path.write_text("name,sat25,sat75\nBackwards U,1500,1400\n")
    monkeypatch.setattr(settings, "COLLEGE_RANGES_DATA_PATH", str(path))
    with pytest.raises(ReferenceDataError):
        load_college_ranges()

def test_empty_cells_rejected(fresh_cache, tmp_path, monkeypatch):
    path = tmp_path / "goals.csv"
    path.write_text("name,avg\nMIT,\n")
    monkeypatch.setattr(settings, "GOAL_COLLEGES_DATA_PATH", str(path))
    with pytest.raises(ReferenceDataError):
        reference_data.load_goal_colleges()

def test_non_numeric_cell_rejected(fresh_cache, tmp_path, monkeypatch):
    path = tmp_path / "colleges.csv"
    path.write_text("name,sat25,sat75\nMIT,abc,1570\n")
    monkeypatch.setattr(settings, "COLLEGE_RANGES_DATA_PATH", str(path))
    with pytest.raises(ReferenceDataError):
        load_college_ranges()

def test_out_of_range_act_rejected(fresh_cache, tmp_path, monkeypatch):
    path = tmp_path / "concordance.csv"
    path.write_text("act,sat\n37,1600\n36,1590\n")
    monkeypatch.setattr(settings, "CONCORDANCE_DATA_PATH", str(path))
    with pytest.raises(ReferenceDataError):
        load_concordance_table()

def test_non_numeric_cutoff_rejected(fresh_cache, tmp_path, monkeypatch):
    path = tmp_path / "cutoffs.csv"
    path.write_text("state,cutoff\nNational Average,high\n")
    monkeypatch.setattr(settings, "NMSQT_CUTOFFS_DATA_PATH", str(path))
    with pytest.raises(ReferenceDataError):
        load_nmsqt_cutoffs()

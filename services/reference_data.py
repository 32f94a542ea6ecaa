"""
Reference Data Loaders

Loads the static tables bundled under data/ (ACT/SAT concordance, college SAT
ranges, NMSQT cutoffs, goal colleges). Each table is read once per process with
pandas, checked, and handed out as an immutable tuple of models.
"""
import logging
import os
from functools import lru_cache
from typing import List, Tuple

import pandas as pd
from pydantic import ValidationError

from config.settings import settings
from services.exceptions import ReferenceDataError
from services.models import ConcordanceEntry, GoalCollege, InstitutionRange, NMSQTCutoff

logger = logging.getLogger(__name__)


def _read_table(path: str, required_columns: List[str]) -> pd.DataFrame:
    """Read a CSV table and verify it has the expected columns and no gaps."""
    if not os.path.exists(path):
        logger.error(f"Reference table not found: {path}")
        raise ReferenceDataError(f"Reference table not found: {path}")
    df = pd.read_csv(path)
    missing = [col for col in required_columns if col not in df.columns]
    if missing:
        raise ReferenceDataError(f"{path} is missing columns: {missing}")
    if df.empty:
        raise ReferenceDataError(f"{path} has no rows")
    df = df[required_columns].copy()
    if df.isnull().values.any():
        raise ReferenceDataError(f"{path} contains empty cells")
    return df


@lru_cache(maxsize=None)
def load_concordance_table() -> Tuple[ConcordanceEntry, ...]:
    """Concordance entries ordered from the highest ACT score down."""
    path = settings.CONCORDANCE_DATA_PATH
    df = _read_table(path, ["act", "sat"])
    try:
        df["act"] = pd.to_numeric(df["act"], errors="raise").astype(int)
        df["sat"] = pd.to_numeric(df["sat"], errors="raise").astype(int)
    except ValueError as e:
        raise ReferenceDataError(f"{path} has a non-numeric score: {e}") from e
    df = df.sort_values(by="act", ascending=False).reset_index(drop=True)

    # Both columns must rise together, otherwise nearest-neighbour lookups break
    if not (df["sat"].is_monotonic_decreasing and df["act"].is_unique and df["sat"].is_unique):
        raise ReferenceDataError("Concordance table must be strictly monotonic in both columns")

    try:
        table = tuple(ConcordanceEntry(act=int(row.act), sat=int(row.sat)) for row in df.itertuples(index=False))
    except ValidationError as e:
        raise ReferenceDataError(f"{path} has an out-of-range entry: {e}") from e
    logger.info(f"Loaded {len(table)} concordance entries.")
    return table


@lru_cache(maxsize=None)
def load_college_ranges() -> Tuple[InstitutionRange, ...]:
    path = settings.COLLEGE_RANGES_DATA_PATH
    df = _read_table(path, ["name", "sat25", "sat75"])
    df["name"] = df["name"].astype(str).str.strip()
    try:
        df["sat25"] = pd.to_numeric(df["sat25"], errors="raise").astype(int)
        df["sat75"] = pd.to_numeric(df["sat75"], errors="raise").astype(int)
    except ValueError as e:
        raise ReferenceDataError(f"{path} has a non-numeric score: {e}") from e
    if (df["sat25"] > df["sat75"]).any():
        bad = df.loc[df["sat25"] > df["sat75"], "name"].tolist()
        raise ReferenceDataError(f"Inverted SAT ranges for: {bad}")

    try:
        table = tuple(
            InstitutionRange(name=row.name, sat_low=int(row.sat25), sat_high=int(row.sat75))
            for row in df.itertuples(index=False)
        )
    except ValidationError as e:
        raise ReferenceDataError(f"{path} has an invalid row: {e}") from e
    logger.info(f"Loaded {len(table)} college SAT ranges.")
    return table


@lru_cache(maxsize=None)
def load_nmsqt_cutoffs() -> Tuple[NMSQTCutoff, ...]:
    path = settings.NMSQT_CUTOFFS_DATA_PATH
    df = _read_table(path, ["state", "cutoff"])
    df["state"] = df["state"].astype(str).str.strip()
    try:
        df["cutoff"] = pd.to_numeric(df["cutoff"], errors="raise").astype(int)
        table = tuple(NMSQTCutoff(state=row.state, cutoff=int(row.cutoff)) for row in df.itertuples(index=False))
    except (ValueError, ValidationError) as e:
        raise ReferenceDataError(f"{path} has an invalid cutoff: {e}") from e
    logger.info(f"Loaded {len(table)} NMSQT cutoffs.")
    return table


@lru_cache(maxsize=None)
def load_goal_colleges() -> Tuple[GoalCollege, ...]:
    path = settings.GOAL_COLLEGES_DATA_PATH
    df = _read_table(path, ["name", "avg"])
    df["name"] = df["name"].astype(str).str.strip()
    try:
        df["avg"] = pd.to_numeric(df["avg"], errors="raise").astype(int)
        table = tuple(GoalCollege(name=row.name, average=int(row.avg)) for row in df.itertuples(index=False))
    except (ValueError, ValidationError) as e:
        raise ReferenceDataError(f"{path} has an invalid average: {e}") from e
    logger.info(f"Loaded {len(table)} goal colleges.")
    return table


def preload_reference_data() -> None:
    """Warm every table cache; raises ReferenceDataError on the first bad table."""
    load_concordance_table()
    load_college_ranges()
    load_nmsqt_cutoffs()
    load_goal_colleges()

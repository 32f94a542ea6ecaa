"""
Score History & Goal Tracking

Persists saved score estimates and a target score through an injected
key-value storage capability. The scoring modules never touch storage; this
module is used by the calling layer only.

Key Features:
- Score history with trend between the last two saved scores
- Target score, optionally taken from a college's average admitted score
- Progress towards the target and study suggestions sized to the gap
- Shareable one-line score summary
"""
import json
import logging
import os
import tempfile
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Union

import numpy as np
from pydantic import TypeAdapter, ValidationError
from thefuzz import process as fuzz_process

from config.settings import settings
from services.models import (
    GoalCollege,
    GoalData,
    GoalProgress,
    ScoreEntry,
    ScoreTrend,
    TOTAL_MAX,
    TOTAL_MIN,
    TrendDirection,
)
from services.reference_data import load_goal_colleges

logger = logging.getLogger(__name__)

HISTORY_STORAGE_KEY = "sat_score_history"
GOAL_STORAGE_KEY = "sat_score_goal"
MAX_LABEL_LENGTH = 40
COLLEGE_MATCH_CUTOFF = 85

_ENTRY_LIST = TypeAdapter(List[ScoreEntry])


# ===================================================================================
# Storage
# ===================================================================================

class ScoreStorage(Protocol):
    """String key-value store holding JSON documents."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """All keys live in one JSON object on disk; the file is rewritten on every change."""

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = str(path)

    def _read_all(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Score store {self.path} is not valid JSON ({e}); starting empty.")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Score store {self.path} does not hold an object; starting empty.")
            return {}
        return data

    def _write_all(self, data: Dict[str, str]) -> None:
        # Write a sibling temp file, then swap it in atomically
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".score_store.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


# ===================================================================================
# History
# ===================================================================================

def format_entry_date(when: Union[date, datetime]) -> str:
    """Format like 'Oct 19, 2026'."""
    return f"{when:%b} {when.day}, {when.year}"


class ScoreHistory:
    def __init__(self, storage: ScoreStorage, key: str = HISTORY_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def entries(self) -> List[ScoreEntry]:
        raw = self.storage.get(self.key)
        if not raw:
            return []
        try:
            return _ENTRY_LIST.validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable score history: {e}")
            return []

    def _save(self, entries: List[ScoreEntry]) -> None:
        self.storage.set(self.key, _ENTRY_LIST.dump_json(entries).decode("utf-8"))

    def add_entry(
        self,
        total: int,
        rw: int,
        math: int,
        label: Optional[str] = None,
        when: Optional[Union[date, datetime]] = None,
    ) -> ScoreEntry:
        label = (label or "").strip()[:MAX_LABEL_LENGTH].strip()
        entry = ScoreEntry(
            id=uuid.uuid4().hex,
            date=format_entry_date(when or datetime.now()),
            total=total,
            rw=rw,
            math=math,
            label=label or None,
        )
        entries = self.entries()
        entries.append(entry)
        self._save(entries)
        logger.debug(f"Saved score {total} to history ({len(entries)} entries).")
        return entry

    def remove_entry(self, entry_id: str) -> bool:
        """Remove one entry; returns False when no entry has that id."""
        entries = self.entries()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            return False
        self._save(remaining)
        return True

    def clear(self) -> None:
        self._save([])

    def trend(self) -> Optional[ScoreTrend]:
        """Change between the two most recent entries, None with fewer than two."""
        entries = self.entries()
        if len(entries) < 2:
            return None
        delta = entries[-1].total - entries[-2].total
        if delta > 0:
            direction = TrendDirection.UP
        elif delta < 0:
            direction = TrendDirection.DOWN
        else:
            direction = TrendDirection.FLAT
        return ScoreTrend(direction=direction, delta=delta)


# ===================================================================================
# Goals
# ===================================================================================

def find_goal_college(name: str, colleges: Optional[List[GoalCollege]] = None) -> Optional[GoalCollege]:
    """Exact (case-insensitive) college lookup with a fuzzy fallback."""
    colleges = list(colleges) if colleges is not None else list(load_goal_colleges())
    name_clean = (name or "").lower().strip()
    if not name_clean or not colleges:
        return None

    for college in colleges:
        if college.name.lower() == name_clean:
            return college

    by_name = {c.name: c for c in colleges}
    best_match = fuzz_process.extractOne(name, list(by_name.keys()), score_cutoff=COLLEGE_MATCH_CUTOFF)
    if best_match:
        logger.info(f"Fuzzy college match: {best_match[0]} (Score: {best_match[1]}) for '{name}'")
        return by_name[best_match[0]]
    return None


def clamp_total(score: int) -> int:
    return int(np.clip(score, TOTAL_MIN, TOTAL_MAX))


def goal_progress_percent(current_total: int, target_score: int) -> float:
    """Share of the way from the 400 floor to the target, clipped to 0-100."""
    if target_score <= TOTAL_MIN:
        return 100.0
    progress = (current_total - TOTAL_MIN) / (target_score - TOTAL_MIN) * 100
    return float(np.clip(progress, 0.0, 100.0))


def study_suggestions(gap: int) -> List[str]:
    if gap <= 0:
        return []
    suggestions = []
    if gap <= 50:
        suggestions.append("Focus on eliminating careless errors. Review missed questions carefully.")
    if 50 < gap <= 150:
        suggestions.append("Target your weaker section (R&W or Math) for the biggest gains.")
    if gap > 150:
        suggestions.append("Create a structured study plan covering both sections systematically.")
    if gap > 100:
        suggestions.append("Consider focusing on high-frequency question types first for quick wins.")
    return suggestions


class ScoreGoalTracker:
    def __init__(self, storage: ScoreStorage, key: str = GOAL_STORAGE_KEY):
        self.storage = storage
        self.key = key

    def get_goal(self) -> Optional[GoalData]:
        raw = self.storage.get(self.key)
        if not raw:
            return None
        try:
            return GoalData.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable score goal: {e}")
            return None

    def set_goal(self, target_score: int, target_college: str = "") -> GoalData:
        goal = GoalData(target_score=clamp_total(target_score), target_college=(target_college or "").strip())
        self.storage.set(self.key, goal.model_dump_json())
        return goal

    def set_goal_for_college(self, college_name: str) -> Optional[GoalData]:
        """Use a college's average admitted score as the target; None if the college is unknown."""
        college = find_goal_college(college_name)
        if college is None:
            return None
        return self.set_goal(college.average, college.name)

    def clear_goal(self) -> None:
        self.storage.remove(self.key)

    def progress(self, current_total: int) -> Optional[GoalProgress]:
        goal = self.get_goal()
        if goal is None:
            return None
        gap = goal.target_score - current_total
        return GoalProgress(
            target_score=goal.target_score,
            target_college=goal.target_college,
            current_total=current_total,
            gap=gap,
            progress=goal_progress_percent(current_total, goal.target_score),
            suggestions=study_suggestions(gap),
        )


# ===================================================================================
# Sharing
# ===================================================================================

def format_share_text(total: int, rw: int, math: int, percentile: int, site_name: Optional[str] = None) -> str:
    site_name = site_name or settings.SHARE_SITE_NAME
    return (
        f"My estimated Digital SAT score: {total}/{TOTAL_MAX} (R&W: {rw}, Math: {math}), "
        f"~{percentile}th percentile. Calculated at {site_name}"
    )

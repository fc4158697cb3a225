"""
Activity Log Store

Query interface over logged activity and a simple in-memory
implementation. Persistence is an external concern: the analytics
engine only ever sees ActivityWindow snapshots built from these
queries.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from threading import Lock
from typing import List, Optional

from models.activity import (
    ActivityWindow,
    ExerciseEntry,
    FastingSession,
    FoodEntry,
    WaterEntry,
)


logger = logging.getLogger(__name__)


class ActivityQuery(ABC):
    """
    Read interface the analytics engine consumes.

    Every query returns a time-ordered list for [start, end). An empty
    list is valid. start > end is treated as an empty window.
    """

    @abstractmethod
    def get_food_entries(self, start: datetime, end: datetime) -> List[FoodEntry]:
        pass

    @abstractmethod
    def get_exercise_entries(self, start: datetime, end: datetime) -> List[ExerciseEntry]:
        pass

    @abstractmethod
    def get_water_entries(self, start: datetime, end: datetime) -> List[WaterEntry]:
        pass

    @abstractmethod
    def get_fasting_sessions(self, start: datetime, end: datetime) -> List[FastingSession]:
        pass

    def window(self, start: datetime, end: datetime) -> ActivityWindow:
        """Materialize an immutable snapshot of [start, end)."""
        if start > end:
            logger.debug(f"Inverted window {start} > {end}, using empty window")
            return ActivityWindow(start=start, end=end)
        return ActivityWindow.build(
            start,
            end,
            foods=self.get_food_entries(start, end),
            exercises=self.get_exercise_entries(start, end),
            water=self.get_water_entries(start, end),
            fasting_sessions=self.get_fasting_sessions(start, end),
        )


class ActivityLogStore(ActivityQuery):
    """
    Simple in-memory activity store.

    In production, this would be backed by a database.
    """

    def __init__(self):
        self._foods: List[FoodEntry] = []
        self._exercises: List[ExerciseEntry] = []
        self._water: List[WaterEntry] = []
        self._fasting: List[FastingSession] = []
        self._lock = Lock()

    def add_food(self, entry: FoodEntry):
        """Add a food entry."""
        with self._lock:
            self._foods.append(entry)

    def add_exercise(self, entry: ExerciseEntry):
        """Add an exercise entry."""
        with self._lock:
            self._exercises.append(entry)

    def add_water(self, entry: WaterEntry):
        """Add a water entry."""
        with self._lock:
            self._water.append(entry)

    def add_fasting_session(self, session: FastingSession):
        """Add or replace a fasting session (matched by session_id)."""
        with self._lock:
            self._fasting = [s for s in self._fasting if s.session_id != session.session_id]
            self._fasting.append(session)

    def active_fasting_session(self) -> Optional[FastingSession]:
        """The most recently started session that has not ended."""
        with self._lock:
            open_sessions = [s for s in self._fasting if not s.is_completed]
        if not open_sessions:
            return None
        return max(open_sessions, key=lambda s: s.start_time)

    def get_food_entries(self, start: datetime, end: datetime) -> List[FoodEntry]:
        with self._lock:
            items = list(self._foods)
        return _select(items, start, end, lambda f: f.timestamp)

    def get_exercise_entries(self, start: datetime, end: datetime) -> List[ExerciseEntry]:
        with self._lock:
            items = list(self._exercises)
        return _select(items, start, end, lambda e: e.timestamp)

    def get_water_entries(self, start: datetime, end: datetime) -> List[WaterEntry]:
        with self._lock:
            items = list(self._water)
        return _select(items, start, end, lambda w: w.timestamp)

    def get_fasting_sessions(self, start: datetime, end: datetime) -> List[FastingSession]:
        with self._lock:
            items = list(self._fasting)
        return _select(items, start, end, lambda s: s.start_time)

    def window(self, start: datetime, end: datetime) -> ActivityWindow:
        """Snapshot all four logs under a single lock acquisition."""
        if start > end:
            logger.debug(f"Inverted window {start} > {end}, using empty window")
            return ActivityWindow(start=start, end=end)
        with self._lock:
            foods = list(self._foods)
            exercises = list(self._exercises)
            water = list(self._water)
            fasting = list(self._fasting)
        return ActivityWindow.build(start, end, foods, exercises, water, fasting)

    def clear(self):
        """Clear all logged activity."""
        with self._lock:
            self._foods = []
            self._exercises = []
            self._water = []
            self._fasting = []


def _select(items, start, end, key):
    """Items with start <= key(item) < end, in key order."""
    return sorted((i for i in items if start <= key(i) < end), key=key)

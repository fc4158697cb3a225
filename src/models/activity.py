"""
Activity Data Models

Defines the logged activity records the analytics and progression
engines read: food entries, exercise sessions, water intake and
fasting sessions, plus the read-only ActivityWindow projection.

Records come from an external activity store. Upstream data is not
trusted: negative quantities are clamped to zero when read through the
`safe_*` accessors so a single bad record never aborts a computation.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple


SECONDS_PER_HOUR = 3600.0

# Elapsed fasting hours at which ketosis is considered reached
KETOSIS_THRESHOLD_HOURS = 18.0


def _non_negative(value: Optional[float]) -> float:
    """Clamp a possibly malformed quantity to zero."""
    if value is None:
        return 0.0
    return max(0.0, float(value))


class ExerciseType(Enum):
    """Exercise categories."""
    CARDIO = "cardio"
    STRENGTH = "strength"
    FLEXIBILITY = "flexibility"
    SPORTS = "sports"
    OTHER = "other"


class ActivityKind(Enum):
    """Kinds of logged activity that drive progression."""
    FOOD = "food"
    EXERCISE = "exercise"
    WATER = "water"
    FASTING = "fasting"
    STEPS = "steps"


@dataclass(frozen=True)
class FoodEntry:
    """A single logged food item."""
    name: str
    calories: float
    timestamp: datetime
    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0
    entry_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def safe_calories(self) -> float:
        return _non_negative(self.calories)

    @property
    def safe_macros(self) -> Tuple[float, float, float]:
        """(protein, carbs, fat) grams with negatives clamped."""
        return (
            _non_negative(self.protein_g),
            _non_negative(self.carbs_g),
            _non_negative(self.fat_g),
        )

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "name": self.name,
            "calories": self.calories,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class ExerciseEntry:
    """A logged exercise session. Duration is in minutes."""
    name: str
    duration_minutes: float
    timestamp: datetime
    calories_burned: float = 0.0
    exercise_type: ExerciseType = ExerciseType.OTHER
    steps: int = 0
    notes: Optional[str] = None
    entry_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def safe_duration(self) -> float:
        return _non_negative(self.duration_minutes)

    @property
    def safe_calories_burned(self) -> float:
        return _non_negative(self.calories_burned)

    @property
    def safe_steps(self) -> int:
        return int(_non_negative(self.steps))

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "name": self.name,
            "duration_minutes": self.duration_minutes,
            "calories_burned": self.calories_burned,
            "exercise_type": self.exercise_type.value,
            "steps": self.steps,
            "notes": self.notes,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class WaterEntry:
    """A logged water intake, in millilitres."""
    amount_ml: float
    timestamp: datetime
    entry_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def safe_amount(self) -> float:
        return _non_negative(self.amount_ml)

    def to_dict(self) -> dict:
        return {
            "entry_id": self.entry_id,
            "amount_ml": self.amount_ml,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class FastingPhase:
    """A metabolic phase of a fast, by elapsed hours."""
    name: str
    start_hour: int
    end_hour: int
    primary_fuel: str
    fat_burning: str


FASTING_PHASES: List[FastingPhase] = [
    FastingPhase("Post-Meal", 0, 4, "Glucose from food", "Minimal"),
    FastingPhase("Glycogen Depletion", 4, 8, "Liver glycogen", "Low"),
    FastingPhase("Early Fat Burning", 8, 12, "Glycogen + Fat", "Moderate"),
    FastingPhase("Ketosis Begins", 12, 16, "Fat + Ketones", "High"),
    FastingPhase("Full Ketosis", 16, 24, "Fat + Ketones", "Maximum"),
    FastingPhase("Deep Ketosis", 24, 48, "Fat + Ketones", "Maximum"),
    FastingPhase("Extended Fast", 48, 72, "Fat + Ketones", "Maximum"),
]


def fasting_phase_for(hours: float) -> FastingPhase:
    """Return the phase a fast is in after `hours` elapsed."""
    hours = _non_negative(hours)
    for phase in FASTING_PHASES:
        if phase.start_hour <= hours < phase.end_hour:
            return phase
    return FASTING_PHASES[-1]


@dataclass(frozen=True)
class FastingSession:
    """
    A fasting session.

    An open session has no `end_time`. Elapsed time is always computed
    at query time from an explicit `as_of`, never from a ticking clock.
    """
    start_time: datetime
    target_hours: float
    end_time: Optional[datetime] = None
    session_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def is_completed(self) -> bool:
        """True once the session has been ended."""
        return self.end_time is not None

    def elapsed_hours(self, as_of: Optional[datetime] = None) -> float:
        """Elapsed hours; open sessions are measured up to `as_of`."""
        end = self.end_time or as_of
        if end is None:
            return 0.0
        return _non_negative((end - self.start_time).total_seconds() / SECONDS_PER_HOUR)

    def remaining_hours(self, as_of: Optional[datetime] = None) -> float:
        return max(0.0, _non_negative(self.target_hours) - self.elapsed_hours(as_of))

    def progress(self, as_of: Optional[datetime] = None) -> float:
        """Completion ratio 0..1 against the target."""
        target = _non_negative(self.target_hours)
        if target == 0:
            return 0.0
        return min(1.0, self.elapsed_hours(as_of) / target)

    def met_target(self, default_target_hours: float = 16.0) -> bool:
        """Ended session whose elapsed time reached its target."""
        if not self.is_completed:
            return False
        target = self.target_hours if self.target_hours > 0 else default_target_hours
        return self.elapsed_hours() >= target

    @property
    def reached_ketosis(self) -> bool:
        return self.is_completed and self.elapsed_hours() >= KETOSIS_THRESHOLD_HOURS

    def to_dict(self, as_of: Optional[datetime] = None) -> dict:
        return {
            "session_id": self.session_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "target_hours": self.target_hours,
            "elapsed_hours": round(self.elapsed_hours(as_of), 2),
            "is_completed": self.is_completed,
        }


def _in_range(timestamp: datetime, start: datetime, end: datetime) -> bool:
    return start <= timestamp < end


@dataclass(frozen=True)
class ActivityWindow:
    """
    Immutable view over the activity logged in [start, end).

    A window with start > end is invalid and behaves as empty:
    every collection is empty and `days` is an empty list.
    """
    start: datetime
    end: datetime
    foods: Tuple[FoodEntry, ...] = ()
    exercises: Tuple[ExerciseEntry, ...] = ()
    water: Tuple[WaterEntry, ...] = ()
    fasting_sessions: Tuple[FastingSession, ...] = ()

    @classmethod
    def build(
        cls,
        start: datetime,
        end: datetime,
        foods: Sequence[FoodEntry] = (),
        exercises: Sequence[ExerciseEntry] = (),
        water: Sequence[WaterEntry] = (),
        fasting_sessions: Sequence[FastingSession] = (),
    ) -> "ActivityWindow":
        """Create a window keeping only records that fall in range, time-ordered."""
        if start > end:
            return cls(start=start, end=end)
        return cls(
            start=start,
            end=end,
            foods=tuple(sorted(
                (f for f in foods if _in_range(f.timestamp, start, end)),
                key=lambda f: f.timestamp,
            )),
            exercises=tuple(sorted(
                (e for e in exercises if _in_range(e.timestamp, start, end)),
                key=lambda e: e.timestamp,
            )),
            water=tuple(sorted(
                (w for w in water if _in_range(w.timestamp, start, end)),
                key=lambda w: w.timestamp,
            )),
            fasting_sessions=tuple(sorted(
                (s for s in fasting_sessions if _in_range(s.start_time, start, end)),
                key=lambda s: s.start_time,
            )),
        )

    @classmethod
    def for_days(cls, end_day: date, days: int, **records) -> "ActivityWindow":
        """Window covering the `days` calendar days ending with `end_day`."""
        end = datetime.combine(end_day + timedelta(days=1), datetime.min.time())
        start = end - timedelta(days=max(0, days))
        return cls.build(start, end, **records)

    @property
    def is_valid(self) -> bool:
        return self.start <= self.end

    @property
    def is_empty(self) -> bool:
        return not (self.foods or self.exercises or self.water or self.fasting_sessions)

    @property
    def days(self) -> List[date]:
        """Calendar dates covered by the window."""
        if not self.is_valid or self.start == self.end:
            return []
        first = self.start.date()
        last = (self.end - timedelta(microseconds=1)).date()
        return [first + timedelta(days=i) for i in range((last - first).days + 1)]

    def malformed_record_count(self) -> int:
        """Records carrying a negative quantity (read as zero)."""
        count = sum(
            1 for f in self.foods
            if f.calories < 0 or min(f.protein_g, f.carbs_g, f.fat_g) < 0
        )
        count += sum(
            1 for e in self.exercises
            if e.duration_minutes < 0 or e.calories_burned < 0 or e.steps < 0
        )
        count += sum(1 for w in self.water if w.amount_ml < 0)
        return count

    def calories_by_day(self) -> Dict[date, float]:
        totals: Dict[date, float] = {}
        for food in self.foods:
            day = food.timestamp.date()
            totals[day] = totals.get(day, 0.0) + food.safe_calories
        return totals

    def macros_by_day(self) -> Dict[date, Tuple[float, float, float]]:
        totals: Dict[date, Tuple[float, float, float]] = {}
        for food in self.foods:
            day = food.timestamp.date()
            p, c, f = totals.get(day, (0.0, 0.0, 0.0))
            fp, fc, ff = food.safe_macros
            totals[day] = (p + fp, c + fc, f + ff)
        return totals

    def water_by_day(self) -> Dict[date, float]:
        totals: Dict[date, float] = {}
        for entry in self.water:
            day = entry.timestamp.date()
            totals[day] = totals.get(day, 0.0) + entry.safe_amount
        return totals

    def exercise_minutes_by_day(self) -> Dict[date, float]:
        totals: Dict[date, float] = {}
        for entry in self.exercises:
            day = entry.timestamp.date()
            totals[day] = totals.get(day, 0.0) + entry.safe_duration
        return totals


@dataclass(frozen=True)
class ActivityEvent:
    """
    A single logged activity handed to the progression engine.

    `magnitude` is the event's natural quantity: calories for food,
    minutes for exercise, millilitres for water, elapsed hours for a
    completed fast, step count for steps.
    """
    kind: ActivityKind
    timestamp: datetime
    magnitude: float = 0.0
    calories_burned: float = 0.0

    @classmethod
    def from_food(cls, entry: FoodEntry) -> "ActivityEvent":
        return cls(ActivityKind.FOOD, entry.timestamp, entry.safe_calories)

    @classmethod
    def from_exercise(cls, entry: ExerciseEntry) -> "ActivityEvent":
        return cls(
            ActivityKind.EXERCISE,
            entry.timestamp,
            entry.safe_duration,
            calories_burned=entry.safe_calories_burned,
        )

    @classmethod
    def from_water(cls, entry: WaterEntry) -> "ActivityEvent":
        return cls(ActivityKind.WATER, entry.timestamp, entry.safe_amount)

    @classmethod
    def from_fasting(cls, session: FastingSession) -> "ActivityEvent":
        """Event for an ended fast, timestamped at its end."""
        timestamp = session.end_time or session.start_time
        return cls(
            ActivityKind.FASTING,
            timestamp,
            session.elapsed_hours(),
        )

    @classmethod
    def steps(cls, count: int, timestamp: datetime) -> "ActivityEvent":
        return cls(ActivityKind.STEPS, timestamp, _non_negative(count))

    @property
    def day(self) -> date:
        return self.timestamp.date()

    @property
    def safe_magnitude(self) -> float:
        return _non_negative(self.magnitude)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "timestamp": self.timestamp.isoformat(),
            "magnitude": self.magnitude,
            "calories_burned": self.calories_burned,
        }

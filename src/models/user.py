"""
User Profile Models

Defines the user's physical profile, daily targets and fasting plan.
The profile is read-only input to score weighting: calorie and macro
targets drive the nutrition score, the water goal drives hydration,
the fasting plan sets the default fasting target.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from enum import Enum


class Sex(Enum):
    """Biological sex used by the BMR equation."""
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(Enum):
    """Activity level for calorie and water target calculation."""
    SEDENTARY = "sedentary"          # Little or no exercise
    LIGHTLY_ACTIVE = "lightly_active"  # Light exercise 1-3 days/week
    MODERATELY_ACTIVE = "moderately_active"  # Moderate exercise 3-5 days/week
    VERY_ACTIVE = "very_active"        # Hard exercise 6-7 days/week
    EXTRA_ACTIVE = "extra_active"      # Very hard exercise, physical job


TDEE_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
    ActivityLevel.EXTRA_ACTIVE: 1.9,
}

WATER_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.0,
    ActivityLevel.LIGHTLY_ACTIVE: 1.1,
    ActivityLevel.MODERATELY_ACTIVE: 1.2,
    ActivityLevel.VERY_ACTIVE: 1.4,
    ActivityLevel.EXTRA_ACTIVE: 1.6,
}


@dataclass(frozen=True)
class FastingPlan:
    """A fasting/eating hour split such as 16:8."""
    name: str
    fasting_hours: float
    eating_hours: float

    @property
    def total_hours(self) -> float:
        return self.fasting_hours + self.eating_hours

    @classmethod
    def for_activity_level(cls, level: ActivityLevel) -> "FastingPlan":
        """Recommended plan: less active users fast longer."""
        plans = {
            ActivityLevel.SEDENTARY: cls("18:6", 18, 6),
            ActivityLevel.LIGHTLY_ACTIVE: cls("16:8", 16, 8),
            ActivityLevel.MODERATELY_ACTIVE: cls("16:8", 16, 8),
            ActivityLevel.VERY_ACTIVE: cls("14:10", 14, 10),
            ActivityLevel.EXTRA_ACTIVE: cls("12:12", 12, 12),
        }
        return plans[level]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "fasting_hours": self.fasting_hours,
            "eating_hours": self.eating_hours,
        }


ALL_FASTING_PLANS: List[FastingPlan] = [
    FastingPlan("12:12", 12, 12),
    FastingPlan("14:10", 14, 10),
    FastingPlan("16:8", 16, 8),
    FastingPlan("18:6", 18, 6),
    FastingPlan("20:4", 20, 4),
]


@dataclass
class DailyTargets:
    """
    Daily targets for a user.
    Macro targets are grams; None means "derive from the default split".
    """
    calories: float = 2000
    protein_g: Optional[float] = None
    carbs_g: Optional[float] = None
    fat_g: Optional[float] = None
    water_ml: float = 2000
    weekly_exercise_minutes: float = 150
    weekly_exercise_sessions: int = 5

    # Default calorie split when gram targets are missing
    DEFAULT_PROTEIN_SHARE = 0.30
    DEFAULT_CARBS_SHARE = 0.40
    DEFAULT_FAT_SHARE = 0.30

    def macro_shares(self) -> Tuple[float, float, float]:
        """
        Target calorie shares (protein, carbs, fat), summing to 1.

        Uses gram targets when all three are set and positive,
        otherwise the default 30/40/30 split.
        """
        grams = (self.protein_g, self.carbs_g, self.fat_g)
        if all(g is not None and g > 0 for g in grams):
            p_cal = self.protein_g * 4
            c_cal = self.carbs_g * 4
            f_cal = self.fat_g * 9
            total = p_cal + c_cal + f_cal
            return (p_cal / total, c_cal / total, f_cal / total)
        return (self.DEFAULT_PROTEIN_SHARE, self.DEFAULT_CARBS_SHARE, self.DEFAULT_FAT_SHARE)

    @classmethod
    def from_calories(cls, calories: float, **kwargs) -> "DailyTargets":
        """Targets with gram macros from the default split."""
        return cls(
            calories=calories,
            protein_g=round(calories * cls.DEFAULT_PROTEIN_SHARE / 4, 1),
            carbs_g=round(calories * cls.DEFAULT_CARBS_SHARE / 4, 1),
            fat_g=round(calories * cls.DEFAULT_FAT_SHARE / 9, 1),
            **kwargs,
        )

    def to_dict(self) -> dict:
        return {
            "calories": self.calories,
            "protein_g": self.protein_g,
            "carbs_g": self.carbs_g,
            "fat_g": self.fat_g,
            "water_ml": self.water_ml,
            "weekly_exercise_minutes": self.weekly_exercise_minutes,
            "weekly_exercise_sessions": self.weekly_exercise_sessions,
        }


@dataclass
class UserProfile:
    """
    User profile consumed by the analytics and progression engines.

    - daily_targets: calorie/macro/water/exercise targets
    - fasting_plan: default target for sessions without one
    - gamification_enabled: XP awards are ignored when False
    """
    user_id: str
    name: str

    daily_targets: DailyTargets = field(default_factory=DailyTargets)
    fasting_plan: FastingPlan = field(default_factory=lambda: FastingPlan("16:8", 16, 8))

    # Physical attributes (for calorie and water calculation)
    age: Optional[int] = None
    weight_kg: Optional[float] = None
    height_cm: Optional[float] = None
    sex: Sex = Sex.OTHER
    activity_level: ActivityLevel = ActivityLevel.MODERATELY_ACTIVE

    gamification_enabled: bool = True

    def calculate_bmr(self) -> Optional[float]:
        """
        Calculate Basal Metabolic Rate using Mifflin-St Jeor equation.
        Returns None if required attributes are missing.
        """
        if not all([self.age, self.weight_kg, self.height_cm]):
            return None

        # Male: +5, Female: -161, unspecified: average of both (-78)
        offsets = {Sex.MALE: 5, Sex.FEMALE: -161, Sex.OTHER: -78}
        return 10 * self.weight_kg + 6.25 * self.height_cm - 5 * self.age + offsets[self.sex]

    def calculate_tdee(self) -> Optional[float]:
        """
        Calculate Total Daily Energy Expenditure.
        TDEE = BMR * Activity Multiplier
        """
        bmr = self.calculate_bmr()
        if bmr is None:
            return None
        return bmr * TDEE_MULTIPLIERS[self.activity_level]

    def calculate_water_goal(self) -> float:
        """
        Daily water goal in ml: 35 ml per kg adjusted for activity,
        rounded to the nearest 250 ml. Falls back to 2000 ml.
        """
        if not self.weight_kg:
            return 2000.0
        amount = self.weight_kg * 35 * WATER_MULTIPLIERS[self.activity_level]
        return round(amount / 250) * 250.0

    @property
    def water_goal_ml(self) -> float:
        """Configured goal, or the calculated one when unset."""
        if self.daily_targets.water_ml and self.daily_targets.water_ml > 0:
            return float(self.daily_targets.water_ml)
        return self.calculate_water_goal()

    @property
    def fasting_target_hours(self) -> float:
        return float(self.fasting_plan.fasting_hours)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "user_id": self.user_id,
            "name": self.name,
            "daily_targets": self.daily_targets.to_dict(),
            "fasting_plan": self.fasting_plan.to_dict(),
            "age": self.age,
            "weight_kg": self.weight_kg,
            "height_cm": self.height_cm,
            "sex": self.sex.value,
            "activity_level": self.activity_level.value,
            "gamification_enabled": self.gamification_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProfile":
        """Create UserProfile from dictionary."""
        activity_level = ActivityLevel(data.get("activity_level", "moderately_active"))
        targets = data.get("daily_targets") or {}
        plan = data.get("fasting_plan")

        return cls(
            user_id=data["user_id"],
            name=data["name"],
            daily_targets=DailyTargets(**targets),
            fasting_plan=FastingPlan(**plan) if plan else FastingPlan.for_activity_level(activity_level),
            age=data.get("age"),
            weight_kg=data.get("weight_kg"),
            height_cm=data.get("height_cm"),
            sex=Sex(data.get("sex", "other")),
            activity_level=activity_level,
            gamification_enabled=data.get("gamification_enabled", True),
        )

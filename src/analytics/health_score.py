"""
Health Score Calculator

Turns a window of logged activity into four sub-scores (nutrition,
activity, hydration, fasting) and a weighted overall score.

DESIGN: pure and deterministic. Identical (window, profile) inputs
always give an identical HealthScore. Empty or invalid windows score
zero; malformed records are clamped, never raised.
"""

import logging
from typing import Dict, Optional, Tuple

from models.activity import ActivityWindow, KETOSIS_THRESHOLD_HOURS
from models.analytics_models import HealthScore
from models.user import UserProfile


logger = logging.getLogger(__name__)


def clamp_score(value: float) -> float:
    """Clamp to [0, 100]; NaN becomes 0."""
    if value != value:
        return 0.0
    return min(100.0, max(0.0, value))


class HealthScoreCalculator:
    """
    Window-based health score.

    Weights (sum to 1): nutrition 40%, activity 30%, hydration 15%,
    fasting 15%.
    """

    SCORE_WEIGHTS = {
        "nutrition": 0.40,
        "activity": 0.30,
        "hydration": 0.15,
        "fasting": 0.15,
    }

    # Nutrition
    CALORIE_TOLERANCE = 0.10       # +/-10% of the daily target
    NEUTRAL_MACRO_BALANCE = 0.5    # calories logged without macro grams

    # Activity
    DURATION_WEIGHT = 0.7
    SESSION_WEIGHT = 0.3

    # Fasting
    TARGET_MET_CREDIT = 0.85
    KETOSIS_BONUS = 0.15

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        weights = weights or self.SCORE_WEIGHTS
        total = sum(weights.values())
        if set(weights) != set(self.SCORE_WEIGHTS) or total <= 0:
            raise ValueError(f"Score weights must cover {sorted(self.SCORE_WEIGHTS)}")
        self.weights = {k: v / total for k, v in weights.items()}

    def compute(self, window: ActivityWindow, profile: UserProfile) -> HealthScore:
        """
        Compute the health score for a window.

        Args:
            window: Activity snapshot for [start, end)
            profile: User targets

        Returns:
            HealthScore with every field within 0-100
        """
        as_of = window.start.date() if window.is_valid else None
        if not window.days:
            return HealthScore(as_of=as_of)

        malformed = window.malformed_record_count()
        if malformed:
            logger.debug(f"Clamped {malformed} malformed records in window starting {as_of}")

        components = {
            "nutrition": self.nutrition_score(window, profile),
            "activity": self.activity_score(window, profile),
            "hydration": self.hydration_score(window, profile),
            "fasting": self.fasting_score(window, profile),
        }

        overall = sum(components[k] * self.weights[k] for k in components)

        return HealthScore(
            overall=round(clamp_score(overall), 2),
            nutrition=round(components["nutrition"], 2),
            activity=round(components["activity"], 2),
            hydration=round(components["hydration"], 2),
            fasting=round(components["fasting"], 2),
            as_of=as_of,
        )

    # Sub-scores

    def nutrition_score(self, window: ActivityWindow, profile: UserProfile) -> float:
        """
        Share of window days with calories inside the tolerance band,
        each qualifying day weighted by its macro balance.
        """
        days = window.days
        if not days or not window.foods:
            return 0.0

        target = profile.daily_targets.calories
        if target <= 0:
            logger.debug(f"Non-positive calorie target {target}, nutrition score is 0")
            return 0.0

        calories = window.calories_by_day()
        macros = window.macros_by_day()
        target_shares = profile.daily_targets.macro_shares()

        total = 0.0
        for day in days:
            day_calories = calories.get(day, 0.0)
            if day_calories <= 0:
                continue
            if abs(day_calories - target) / target > self.CALORIE_TOLERANCE:
                continue
            total += self.macro_balance(macros.get(day, (0.0, 0.0, 0.0)), target_shares)

        return clamp_score(total / len(days) * 100)

    def macro_balance(
        self,
        grams: Tuple[float, float, float],
        target_shares: Tuple[float, float, float],
    ) -> float:
        """
        0..1 closeness of the day's protein/carbs/fat calorie shares
        to the target shares.
        """
        protein, carbs, fat = grams
        macro_calories = (protein * 4, carbs * 4, fat * 9)
        total = sum(macro_calories)
        if total <= 0:
            return self.NEUTRAL_MACRO_BALANCE

        deviations = [
            abs(actual / total - target) * 100
            for actual, target in zip(macro_calories, target_shares)
        ]
        avg_deviation = sum(deviations) / len(deviations)
        return max(0.0, 1 - avg_deviation * 2 / 100)

    def activity_score(self, window: ActivityWindow, profile: UserProfile) -> float:
        """Exercise minutes and session count against pro-rated weekly targets."""
        days = window.days
        if not days or not window.exercises:
            return 0.0

        targets = profile.daily_targets
        period = len(days) / 7
        target_minutes = targets.weekly_exercise_minutes * period
        target_sessions = targets.weekly_exercise_sessions * period

        minutes = sum(e.safe_duration for e in window.exercises)
        sessions = sum(1 for e in window.exercises if e.safe_duration > 0)

        duration_ratio = min(1.0, minutes / target_minutes) if target_minutes > 0 else 1.0
        session_ratio = min(1.0, sessions / target_sessions) if target_sessions > 0 else 1.0

        return clamp_score(
            (self.DURATION_WEIGHT * duration_ratio + self.SESSION_WEIGHT * session_ratio) * 100
        )

    def hydration_score(self, window: ActivityWindow, profile: UserProfile) -> float:
        """Mean daily ratio of water intake to the goal."""
        days = window.days
        if not days or not window.water:
            return 0.0

        goal = profile.water_goal_ml
        if goal <= 0:
            return 0.0

        water = window.water_by_day()
        ratios = [min(1.0, water.get(day, 0.0) / goal) for day in days]
        return clamp_score(sum(ratios) / len(days) * 100)

    def fasting_score(self, window: ActivityWindow, profile: UserProfile) -> float:
        """
        Ratio of ended sessions that met their target, with a bonus for
        sessions past the ketosis threshold. Open sessions are ignored.
        """
        attempted = [s for s in window.fasting_sessions if s.is_completed]
        if not attempted:
            return 0.0

        default_target = profile.fasting_target_hours
        credit = 0.0
        for session in attempted:
            if not session.met_target(default_target):
                continue
            credit += self.TARGET_MET_CREDIT
            if session.elapsed_hours() >= KETOSIS_THRESHOLD_HOURS:
                credit += self.KETOSIS_BONUS

        return clamp_score(credit / len(attempted) * 100)


_default_calculator = HealthScoreCalculator()


def compute_health_score(window: ActivityWindow, profile: UserProfile) -> HealthScore:
    """Compute a health score with the default weights."""
    return _default_calculator.compute(window, profile)

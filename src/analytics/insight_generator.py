"""
Insight Generator

Rule-based scanner over the current health score, metric trends and
raw activity. Every rule is evaluated independently and yields at most
one SmartInsight per pass.

DESIGN: confidence is a fixed heuristic per rule, never learned and
never random. Output order is explicit:
    confidence desc, |impact| desc, category priority
    (warning > achievement > optimization > correlation > prediction),
    then rule order.
"""

import statistics
import uuid
from datetime import timedelta
from typing import Callable, List, Optional, Sequence

from models.activity import ActivityWindow
from models.analytics_models import (
    CATEGORY_PRIORITY,
    HealthScore,
    InsightCategory,
    SmartInsight,
    SUB_SCORE_NAMES,
    TrendData,
    TrendDirection,
)
from models.gamification import Streak
from analytics.health_score import HealthScoreCalculator


def pearson(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    """Pearson correlation coefficient. Returns None if not enough data."""
    if len(xs) < 3 or len(xs) != len(ys):
        return None
    x_mean = statistics.fmean(xs)
    y_mean = statistics.fmean(ys)
    num = sum((x - x_mean) * (y - y_mean) for x, y in zip(xs, ys))
    den_x = sum((x - x_mean) ** 2 for x in xs) ** 0.5
    den_y = sum((y - y_mean) ** 2 for y in ys) ** 0.5
    if den_x == 0 or den_y == 0:
        return None
    return round(num / (den_x * den_y), 2)


class InsightGenerator:
    """
    Deterministic smart-insight rules.

    RULES (each yields zero or one insight):
    - streak_warning: a streak broke inside the lookback window
    - fasting_consistency: fasting completion rate is very high or low
    - score_achievement: a sub-score crossed the achievement threshold
    - laggard_optimization: one sub-score clearly lags the others
    - meal_timing: meals cluster early in the morning or late at night
    - hydration_activity_correlation: hydration and activity improve together
    - trend_prediction: strongest forecast with a meaningful delta
    """

    RULE_ORDER = [
        "streak_warning",
        "fasting_consistency",
        "score_achievement",
        "laggard_optimization",
        "meal_timing",
        "hydration_activity_correlation",
        "trend_prediction",
    ]

    # Fixed confidences
    CONFIDENCE_WARNING = 90.0
    CONFIDENCE_ACHIEVEMENT = 85.0
    CONFIDENCE_OPTIMIZATION = 75.0
    CONFIDENCE_CORRELATION = 60.0
    CONFIDENCE_PREDICTION_MIN = 50.0
    CONFIDENCE_PREDICTION_MAX = 80.0

    # Thresholds
    ACHIEVEMENT_THRESHOLD = 80.0
    LAGGARD_FLOOR = 50.0
    HEALTHY_FLOOR = 60.0
    MIN_PREDICTION_DELTA = 3.0
    MIN_FASTS_FOR_CONSISTENCY = 6
    FAST_SUCCESS_RATIO = 0.9
    FAST_CHAMPION_RATE = 80        # strictly above
    FAST_NEEDS_WORK_RATE = 50      # strictly below
    MIN_MEALS_FOR_TIMING = 20

    RECOMMENDATIONS = {
        "nutrition": "Plan tomorrow's meals around your calorie target and add a protein source to each meal",
        "activity": "Schedule three 20-minute walks this week to build toward 150 active minutes",
        "hydration": "Keep a water bottle nearby and drink a glass with every meal",
        "fasting": "Try a shorter fasting window (12-14 hours) to build consistency",
    }

    def generate(
        self,
        scores: HealthScore,
        trends: Sequence[TrendData],
        window: ActivityWindow,
        previous: Optional[HealthScore] = None,
        streaks: Sequence[Streak] = (),
    ) -> List[SmartInsight]:
        """
        Run every rule and return the sorted insights.

        Args:
            scores: Current health score
            trends: Trends from the trend analyzer
            window: Raw activity the score was computed from
            previous: Score of the previous period, for threshold crossings
            streaks: Current streak snapshot, for broken-streak warnings
        """
        rules: List[Callable[[], Optional[SmartInsight]]] = [
            lambda: self.streak_warning(window, streaks),
            lambda: self.fasting_consistency(window),
            lambda: self.score_achievement(scores, previous),
            lambda: self.laggard_optimization(scores),
            lambda: self.meal_timing(window),
            lambda: self.hydration_activity_correlation(trends, window),
            lambda: self.trend_prediction(trends),
        ]

        insights = [insight for insight in (rule() for rule in rules) if insight is not None]
        return self.sort_insights(insights)

    def sort_insights(self, insights: Sequence[SmartInsight]) -> List[SmartInsight]:
        return sorted(
            insights,
            key=lambda i: (
                -i.confidence,
                -abs(i.impact),
                CATEGORY_PRIORITY[i.category],
                self.RULE_ORDER.index(i.rule),
            ),
        )

    # Rules

    def streak_warning(
        self,
        window: ActivityWindow,
        streaks: Sequence[Streak],
    ) -> Optional[SmartInsight]:
        """A previously active streak dropped to zero within the lookback."""
        lookback_start = window.start.date() - timedelta(days=1)
        broken = [
            s for s in streaks
            if s.best > 0
            and s.current == 0
            and s.last_qualifying_day is not None
            and s.last_qualifying_day >= lookback_start
        ]
        if not broken:
            return None

        streak = max(broken, key=lambda s: s.best)
        return self._insight(
            rule="streak_warning",
            title=f"{streak.streak_type.title} Streak Broken",
            description=(
                f"Your {streak.streak_type.title.lower()} streak ended "
                f"(best: {streak.best} days)"
            ),
            category=InsightCategory.WARNING,
            confidence=self.CONFIDENCE_WARNING,
            impact=-min(100.0, 10.0 + streak.best * 2),
            actionable=True,
            recommendation="Log one small activity today to start a new streak",
        )

    def fasting_consistency(self, window: ActivityWindow) -> Optional[SmartInsight]:
        """Completion rate over a meaningful number of ended fasts."""
        ended = [s for s in window.fasting_sessions if s.is_completed and s.target_hours > 0]
        if len(ended) < self.MIN_FASTS_FOR_CONSISTENCY:
            return None

        successful = [
            s for s in ended
            if s.elapsed_hours() >= s.target_hours * self.FAST_SUCCESS_RATIO
        ]
        success_rate = len(successful) / len(ended) * 100

        if success_rate > self.FAST_CHAMPION_RATE:
            return self._insight(
                rule="fasting_consistency",
                title="Fasting Champion",
                description=f"You complete {int(success_rate)}% of your fasting goals",
                category=InsightCategory.ACHIEVEMENT,
                confidence=95.0,
                impact=30.0,
            )
        elif success_rate < self.FAST_NEEDS_WORK_RATE:
            return self._insight(
                rule="fasting_consistency",
                title="Fasting Optimization Needed",
                description=f"Your fasting completion rate is {int(success_rate)}%",
                category=InsightCategory.WARNING,
                confidence=85.0,
                impact=-20.0,
                actionable=True,
                recommendation=self.RECOMMENDATIONS["fasting"],
            )
        return None

    def score_achievement(
        self,
        scores: HealthScore,
        previous: Optional[HealthScore],
    ) -> Optional[SmartInsight]:
        """A sub-score moved from below the threshold to at or above it."""
        if previous is None:
            return None

        crossed = [
            name for name in SUB_SCORE_NAMES
            if previous.metric(name) < self.ACHIEVEMENT_THRESHOLD <= scores.metric(name)
        ]
        if not crossed:
            return None

        names = ", ".join(name.title() for name in crossed)
        return self._insight(
            rule="score_achievement",
            title="New Personal Best",
            description=f"{names} reached {int(self.ACHIEVEMENT_THRESHOLD)}+ this period",
            category=InsightCategory.ACHIEVEMENT,
            confidence=self.CONFIDENCE_ACHIEVEMENT,
            impact=min(100.0, 20.0 * len(crossed)),
        )

    def laggard_optimization(self, scores: HealthScore) -> Optional[SmartInsight]:
        """One sub-score is the clear laggard while the rest are healthy."""
        sub_scores = scores.sub_scores()
        name, value = min(sub_scores.items(), key=lambda kv: kv[1])
        others = [v for k, v in sub_scores.items() if k != name]

        if value >= self.LAGGARD_FLOOR:
            return None
        if any(v == value for v in others):
            return None
        if any(v < self.HEALTHY_FLOOR for v in others):
            return None

        weight = HealthScoreCalculator.SCORE_WEIGHTS[name]
        return self._insight(
            rule="laggard_optimization",
            title=f"Focus on {name.title()}",
            description=(
                f"Your {name} score ({value:.0f}) is holding back an otherwise "
                f"healthy routine"
            ),
            category=InsightCategory.OPTIMIZATION,
            confidence=self.CONFIDENCE_OPTIMIZATION,
            impact=round((100 - value) * weight, 1),
            actionable=True,
            recommendation=self.RECOMMENDATIONS[name],
        )

    def meal_timing(self, window: ActivityWindow) -> Optional[SmartInsight]:
        """Meals consistently early or late in the day."""
        if len(window.foods) < self.MIN_MEALS_FOR_TIMING:
            return None

        average_hour = statistics.fmean(f.timestamp.hour for f in window.foods)
        if average_hour < 10:
            return self._insight(
                rule="meal_timing",
                title="Early Bird Eater",
                description="You tend to eat most meals before 10 AM",
                category=InsightCategory.CORRELATION,
                confidence=70.0,
                impact=15.0,
                actionable=True,
                recommendation="Your eating pattern supports intermittent fasting - consider a 16:8 schedule",
            )
        elif average_hour > 20:
            return self._insight(
                rule="meal_timing",
                title="Late Night Eating Pattern",
                description="Most of your meals happen after 8 PM",
                category=InsightCategory.WARNING,
                confidence=75.0,
                impact=-10.0,
                actionable=True,
                recommendation="Try eating your last meal 3 hours before bedtime for better sleep",
            )
        return None

    def hydration_activity_correlation(
        self,
        trends: Sequence[TrendData],
        window: ActivityWindow,
    ) -> Optional[SmartInsight]:
        """Hydration and activity both trend upward over the same history."""
        by_metric = {t.metric: t for t in trends}
        hydration = by_metric.get("hydration")
        activity = by_metric.get("activity")
        if hydration is None or activity is None:
            return None
        if hydration.direction != TrendDirection.IMPROVING:
            return None
        if activity.direction != TrendDirection.IMPROVING:
            return None

        description = "Your hydration and activity scores are improving together"
        days = window.days
        water = window.water_by_day()
        minutes = window.exercise_minutes_by_day()
        r = pearson(
            [water.get(d, 0.0) for d in days],
            [minutes.get(d, 0.0) for d in days],
        )
        if r is not None:
            description += f" (daily correlation r={r:.2f})"

        return self._insight(
            rule="hydration_activity_correlation",
            title="Hydration Boosts Exercise",
            description=description,
            category=InsightCategory.CORRELATION,
            confidence=self.CONFIDENCE_CORRELATION,
            impact=round(min(50.0, max(5.0, (hydration.velocity + activity.velocity) / 2)), 1),
            actionable=True,
            recommendation="Try drinking 500ml of water 30 minutes before your planned workout",
        )

    def trend_prediction(self, trends: Sequence[TrendData]) -> Optional[SmartInsight]:
        """Highest-confidence forecast whose delta clears the minimum."""
        candidates = []
        for index, trend in enumerate(trends):
            delta = trend.predicted_delta
            if delta is None or abs(delta) < self.MIN_PREDICTION_DELTA:
                continue
            candidates.append((self.prediction_confidence(trend), abs(delta), -index, trend))

        if not candidates:
            return None

        confidence, _, _, trend = max(candidates, key=lambda c: c[:3])
        delta = trend.predicted_delta
        direction = "rise" if delta > 0 else "drop"
        return self._insight(
            rule="trend_prediction",
            title=f"{trend.metric.title()} Forecast",
            description=(
                f"Your {trend.metric} score is on track to {direction} to "
                f"{trend.prediction:.0f} next week"
            ),
            category=InsightCategory.PREDICTION,
            confidence=confidence,
            impact=round(max(-100.0, min(100.0, delta)), 1),
        )

    def prediction_confidence(self, trend: TrendData) -> float:
        """50-80, scaled by the number of buckets behind the forecast."""
        volume = min(1.0, max(0, trend.bucket_count - 2) / 6)
        span = self.CONFIDENCE_PREDICTION_MAX - self.CONFIDENCE_PREDICTION_MIN
        return self.CONFIDENCE_PREDICTION_MIN + span * volume

    def _insight(self, **kwargs) -> SmartInsight:
        return SmartInsight(insight_id=str(uuid.uuid4()), **kwargs)


_default_generator = InsightGenerator()


def generate_insights(
    scores: HealthScore,
    trends: Sequence[TrendData],
    window: ActivityWindow,
    previous: Optional[HealthScore] = None,
    streaks: Sequence[Streak] = (),
) -> List[SmartInsight]:
    """Generate insights with the default rule set."""
    return _default_generator.generate(scores, trends, window, previous, streaks)

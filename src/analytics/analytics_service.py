"""
Analytics Service

Facade over the activity store, the user profile and the three pure
analytics components (health score, trends, insights).

DESIGN: snapshot-then-compute. Every call materializes an immutable
ActivityWindow from the store first and only then runs the pure
computations on it. ActivityLogStore copies its four logs under one
lock, so a window never mixes records from before and after a write.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence

from models.activity import ActivityWindow
from models.analytics_models import AnalyticsReport, HealthScore, SmartInsight, TrendData
from models.gamification import Streak
from models.user import UserProfile
from analytics.activity_store import ActivityQuery
from analytics.health_score import HealthScoreCalculator
from analytics.trend_analyzer import TrendAnalyzer
from analytics.insight_generator import InsightGenerator


logger = logging.getLogger(__name__)


def day_start(day: date) -> datetime:
    """Local midnight at the start of a calendar day."""
    return datetime.combine(day, time.min)


class AnalyticsService:
    """
    Deterministic analytics for one user.

    Usage:
        service = AnalyticsService(store, profile)
        score = service.score_for_days(date.today(), days=7)
        report = service.get_report(datetime.now())
    """

    REPORT_DAYS = 7
    TREND_WEEKS = 8
    MAX_RECOMMENDATIONS = 3

    def __init__(
        self,
        store: ActivityQuery,
        profile: UserProfile,
        calculator: Optional[HealthScoreCalculator] = None,
        analyzer: Optional[TrendAnalyzer] = None,
        generator: Optional[InsightGenerator] = None,
    ):
        """
        Initialize Analytics Service.

        Args:
            store: Activity query interface
            profile: User profile with daily targets
            calculator: Health score calculator (default weights if omitted)
            analyzer: Trend analyzer (weekly buckets if omitted)
            generator: Insight generator (default rules if omitted)
        """
        self.store = store
        self.profile = profile
        self.calculator = calculator or HealthScoreCalculator()
        self.analyzer = analyzer or TrendAnalyzer()
        self.generator = generator or InsightGenerator()

    # Windows

    def window(self, start: datetime, end: datetime) -> ActivityWindow:
        return self.store.window(start, end)

    def window_for_days(self, end_day: date, days: int) -> ActivityWindow:
        """Window covering `days` calendar days ending with `end_day`."""
        end = day_start(end_day + timedelta(days=1))
        start = end - timedelta(days=max(0, days))
        return self.window(start, end)

    # Health score

    def compute_health_score(self, start: datetime, end: datetime) -> HealthScore:
        """Health score for [start, end). Inverted ranges score zero."""
        return self.calculator.compute(self.window(start, end), self.profile)

    def score_for_days(self, end_day: date, days: int = REPORT_DAYS) -> HealthScore:
        return self.calculator.compute(self.window_for_days(end_day, days), self.profile)

    def daily_score_history(self, end_day: date, days: int) -> List[HealthScore]:
        """
        One health score per calendar day, oldest first.

        A single window is materialized for the whole range and sliced
        per day, so the history is one consistent snapshot.
        """
        if days <= 0:
            return []

        full = self.window_for_days(end_day, days)
        history = []
        for offset in range(days):
            day = end_day - timedelta(days=days - 1 - offset)
            daily = ActivityWindow.build(
                day_start(day),
                day_start(day + timedelta(days=1)),
                foods=full.foods,
                exercises=full.exercises,
                water=full.water,
                fasting_sessions=full.fasting_sessions,
            )
            history.append(self.calculator.compute(daily, self.profile))
        return history

    # Trends

    def compute_trends(self, end_day: date, weeks: int = TREND_WEEKS) -> List[TrendData]:
        """Weekly trends over the last `weeks` weeks of daily scores."""
        days = max(0, weeks) * self.analyzer.bucket_size
        return self.analyzer.compute_trends(self.daily_score_history(end_day, days))

    # Insights

    def generate_insights(
        self,
        now: datetime,
        streaks: Sequence[Streak] = (),
        days: int = REPORT_DAYS,
    ) -> List[SmartInsight]:
        """
        Insights for the period ending today.

        The score of the period immediately before is passed as the
        previous computation for threshold-crossing rules.
        """
        today = now.date()
        window = self.window_for_days(today, days)
        current = self.calculator.compute(window, self.profile)
        previous = self.score_for_days(today - timedelta(days=days), days)
        trends = self.compute_trends(today)

        insights = self.generator.generate(current, trends, window, previous, streaks)
        logger.debug(f"Generated {len(insights)} insights for {self.profile.user_id}")
        return insights

    def get_report(
        self,
        now: datetime,
        streaks: Sequence[Streak] = (),
    ) -> AnalyticsReport:
        """Weekly report: score, insights, trends, predictions and top recommendations."""
        today = now.date()
        window = self.window_for_days(today, self.REPORT_DAYS)
        score = self.calculator.compute(window, self.profile)
        previous = self.score_for_days(today - timedelta(days=self.REPORT_DAYS))
        trends = self.compute_trends(today)
        insights = self.generator.generate(score, trends, window, previous, streaks)

        predictions = [
            f"{t.metric.title()}: {t.values[-1]:.0f} -> {t.prediction:.0f} next week ({t.direction.value})"
            for t in trends
            if t.prediction is not None
        ]
        recommendations = [
            i.recommendation for i in insights
            if i.actionable and i.recommendation
        ][:self.MAX_RECOMMENDATIONS]

        return AnalyticsReport(
            computed_at=now,
            health_score=score,
            insights=insights,
            trends=trends,
            predictions=predictions,
            recommendations=recommendations,
        )

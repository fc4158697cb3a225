"""
Unit Tests for the Insight Generator

Each rule in isolation, then the combined ordering.
"""

import os
import sys
from datetime import date, datetime, timedelta

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.activity import ActivityWindow, ExerciseEntry, FastingSession, FoodEntry, WaterEntry
from models.analytics_models import (
    HealthScore,
    InsightCategory,
    SmartInsight,
    TrendData,
    TrendDirection,
)
from models.gamification import Streak, StreakType
from analytics.insight_generator import InsightGenerator, generate_insights, pearson


START = datetime(2026, 10, 5)
END = START + timedelta(days=7)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def generator():
    return InsightGenerator()


@pytest.fixture
def empty_window():
    return ActivityWindow.build(START, END)


@pytest.fixture
def healthy_score():
    return HealthScore(overall=75, nutrition=75, activity=75, hydration=75, fasting=75)


def improving(metric, values=(50, 60, 70)):
    values = list(values)
    return TrendData(
        metric=metric,
        values=values,
        direction=TrendDirection.IMPROVING,
        velocity=values[-1] - values[-2],
        prediction=min(100, values[-1] + (values[-1] - values[-2])),
    )


def flat(metric):
    return TrendData(metric=metric, values=[60, 60], direction=TrendDirection.STABLE,
                     velocity=0, prediction=60)


# =============================================================================
# RULES
# =============================================================================

class TestOptimizationRule:

    def test_clear_laggard(self, generator, empty_window):
        score = HealthScore(overall=65, nutrition=80, activity=70, hydration=30, fasting=65)
        insights = generator.generate(score, [], empty_window)
        assert len(insights) == 1
        insight = insights[0]
        assert insight.category == InsightCategory.OPTIMIZATION
        assert insight.confidence == 75
        assert insight.actionable
        assert "hydration" in insight.description
        assert insight.recommendation == InsightGenerator.RECOMMENDATIONS["hydration"]
        assert insight.impact == pytest.approx(10.5)

    def test_tied_minimum_is_not_a_clear_laggard(self, generator):
        score = HealthScore(nutrition=80, activity=70, hydration=30, fasting=30)
        assert generator.laggard_optimization(score) is None

    def test_other_scores_must_be_healthy(self, generator):
        score = HealthScore(nutrition=80, activity=70, hydration=30, fasting=55)
        assert generator.laggard_optimization(score) is None

    def test_laggard_above_floor(self, generator):
        score = HealthScore(nutrition=80, activity=70, hydration=50, fasting=65)
        assert generator.laggard_optimization(score) is None


class TestWarningRule:

    def test_recently_broken_streak(self, generator, empty_window, healthy_score):
        streak = Streak(StreakType.EXERCISE, current=0, best=6, is_active=False,
                        last_qualifying_day=START.date() - timedelta(days=1))
        insights = generator.generate(healthy_score, [], empty_window, streaks=[streak])
        assert len(insights) == 1
        warning = insights[0]
        assert warning.category == InsightCategory.WARNING
        assert warning.confidence == 90
        assert warning.impact == -22
        assert "Exercise" in warning.title

    def test_old_break_is_ignored(self, generator, empty_window):
        streak = Streak(StreakType.EXERCISE, current=0, best=6,
                        last_qualifying_day=START.date() - timedelta(days=10))
        assert generator.streak_warning(empty_window, [streak]) is None

    def test_active_streak_is_ignored(self, generator, empty_window):
        streak = Streak(StreakType.HYDRATION, current=3, best=6, is_active=True,
                        last_qualifying_day=START.date() + timedelta(days=2))
        assert generator.streak_warning(empty_window, [streak]) is None

    def test_longest_broken_streak_wins(self, generator, empty_window):
        streaks = [
            Streak(StreakType.HYDRATION, best=3, last_qualifying_day=START.date()),
            Streak(StreakType.DAILY_LOGGING, best=12, last_qualifying_day=START.date()),
        ]
        warning = generator.streak_warning(empty_window, streaks)
        assert "Daily Logging" in warning.title


class TestAchievementRule:

    def test_crossing_80(self, generator, empty_window):
        previous = HealthScore(nutrition=75, activity=85, hydration=60, fasting=60)
        current = HealthScore(nutrition=82, activity=90, hydration=60, fasting=60)
        insights = generator.generate(current, [], empty_window, previous=previous)
        achievements = [i for i in insights if i.category == InsightCategory.ACHIEVEMENT]
        assert len(achievements) == 1
        assert "Nutrition" in achievements[0].description
        assert "Activity" not in achievements[0].description
        assert achievements[0].impact > 0

    def test_no_previous_score(self, generator, healthy_score):
        assert generator.score_achievement(healthy_score, None) is None

    def test_already_above(self, generator):
        score = HealthScore(nutrition=90, activity=90, hydration=90, fasting=90)
        assert generator.score_achievement(score, score) is None


class TestCorrelationRule:

    def test_hydration_and_activity_improving(self, generator, empty_window, healthy_score):
        trends = [improving("hydration"), improving("activity")]
        insight = generator.hydration_activity_correlation(trends, empty_window)
        assert insight.category == InsightCategory.CORRELATION
        assert insight.confidence == 60
        assert insight.impact > 0

    def test_only_one_improving(self, generator, empty_window):
        trends = [improving("hydration"), flat("activity")]
        assert generator.hydration_activity_correlation(trends, empty_window) is None

    def test_description_includes_daily_correlation(self, generator):
        water, exercises = [], []
        for i in range(7):
            day = START + timedelta(days=i, hours=10)
            water.append(WaterEntry(1000 + 200 * i, day))
            exercises.append(ExerciseEntry("Run", 10 + 5 * i, day))
        window = ActivityWindow.build(START, END, exercises=exercises, water=water)
        trends = [improving("hydration"), improving("activity")]
        insight = generator.hydration_activity_correlation(trends, window)
        assert "r=1.00" in insight.description


class TestPredictionRule:

    def test_prediction_surfaces(self, generator, empty_window):
        trends = [improving("overall", (50, 55, 60))]
        insight = generator.trend_prediction(trends)
        assert insight.category == InsightCategory.PREDICTION
        assert 50 <= insight.confidence <= 80
        assert insight.impact == pytest.approx(5)
        assert "65" in insight.description

    def test_small_delta_is_ignored(self, generator):
        trend = TrendData("overall", [60, 61], TrendDirection.STABLE, 1, 62)
        assert generator.trend_prediction([trend]) is None

    def test_no_prediction(self, generator):
        trend = TrendData("overall", [60], TrendDirection.STABLE, 0, None)
        assert generator.trend_prediction([trend]) is None

    def test_confidence_scales_with_buckets(self, generator):
        short = TrendData("overall", [50, 60], TrendDirection.IMPROVING, 10, 70)
        long = TrendData("overall", [10, 20, 30, 40, 50, 60, 70, 80], TrendDirection.IMPROVING, 10, 90)
        assert generator.prediction_confidence(short) == 50
        assert generator.prediction_confidence(long) == 80

    def test_highest_confidence_wins(self, generator):
        short = TrendData("fasting", [50, 60], TrendDirection.IMPROVING, 10, 70)
        long = TrendData("overall", [40, 45, 50, 55, 60], TrendDirection.IMPROVING, 5, 65)
        insight = generator.trend_prediction([short, long])
        assert "Overall" in insight.title


class TestFastingConsistencyRule:

    def _fasts(self, hours):
        sessions = []
        for i, elapsed in enumerate(hours):
            begin = START + timedelta(days=i, hours=20)
            sessions.append(FastingSession(begin, 16, end_time=begin + timedelta(hours=elapsed)))
        return sessions

    def test_champion(self, generator):
        window = ActivityWindow.build(START, END, fasting_sessions=self._fasts([16] * 6))
        insight = generator.fasting_consistency(window)
        assert insight.category == InsightCategory.ACHIEVEMENT
        assert insight.confidence == 95

    def test_needs_optimization(self, generator):
        window = ActivityWindow.build(START, END, fasting_sessions=self._fasts([8] * 5 + [16]))
        insight = generator.fasting_consistency(window)
        assert insight.category == InsightCategory.WARNING
        assert insight.impact < 0

    def test_champion_needs_more_than_80_percent(self, generator):
        def window_with(successes):
            sessions = []
            for i in range(10):
                begin = START + timedelta(hours=16 * i)
                elapsed = 16 if i < successes else 8
                sessions.append(FastingSession(begin, 16, end_time=begin + timedelta(hours=elapsed)))
            return ActivityWindow.build(START, END, fasting_sessions=sessions)

        assert generator.fasting_consistency(window_with(8)) is None
        insight = generator.fasting_consistency(window_with(9))
        assert insight.category == InsightCategory.ACHIEVEMENT
        assert "90%" in insight.description

    def test_too_few_fasts(self, generator):
        window = ActivityWindow.build(START, END, fasting_sessions=self._fasts([16] * 5))
        assert generator.fasting_consistency(window) is None


class TestMealTimingRule:

    def _meals(self, hour, count=21):
        return [
            FoodEntry("Meal", 500, START + timedelta(days=i % 7, hours=hour, minutes=i))
            for i in range(count)
        ]

    def test_late_eating(self, generator):
        window = ActivityWindow.build(START, END, foods=self._meals(21))
        insight = generator.meal_timing(window)
        assert insight.category == InsightCategory.WARNING
        assert insight.confidence == 75

    def test_early_eating(self, generator):
        window = ActivityWindow.build(START, END, foods=self._meals(7))
        assert generator.meal_timing(window).category == InsightCategory.CORRELATION

    def test_not_enough_meals(self, generator):
        window = ActivityWindow.build(START, END, foods=self._meals(21, count=10))
        assert generator.meal_timing(window) is None


# =============================================================================
# ORDERING
# =============================================================================

class TestOrdering:

    def test_full_ordering(self, generator, empty_window):
        previous = HealthScore(nutrition=70, activity=70, hydration=70, fasting=70)
        current = HealthScore(nutrition=85, activity=70, hydration=30, fasting=65)
        streak = Streak(StreakType.EXERCISE, best=4, last_qualifying_day=START.date())
        trends = [
            improving("hydration"),
            improving("activity"),
            improving("overall", (50, 55, 60)),
        ]

        insights = generator.generate(current, trends, empty_window, previous, [streak])
        categories = [i.category for i in insights]
        assert categories == [
            InsightCategory.WARNING,
            InsightCategory.ACHIEVEMENT,
            InsightCategory.OPTIMIZATION,
            InsightCategory.CORRELATION,
            InsightCategory.PREDICTION,
        ]
        confidences = [i.confidence for i in insights]
        assert confidences == sorted(confidences, reverse=True)

    def test_ties_broken_by_impact_then_category(self, generator):
        def insight(rule, category, impact):
            return SmartInsight("id", rule, "t", "d", category, confidence=70, impact=impact)

        ordered = generator.sort_insights([
            insight("trend_prediction", InsightCategory.PREDICTION, 10),
            insight("streak_warning", InsightCategory.WARNING, -10),
            insight("meal_timing", InsightCategory.CORRELATION, 30),
        ])
        assert [i.rule for i in ordered] == ["meal_timing", "streak_warning", "trend_prediction"]

    def test_no_insights_for_quiet_week(self, generator, empty_window, healthy_score):
        assert generator.generate(healthy_score, [], empty_window) == []

    def test_ids_regenerated(self, empty_window):
        score = HealthScore(nutrition=80, activity=70, hydration=30, fasting=65)
        first = generate_insights(score, [], empty_window)
        second = generate_insights(score, [], empty_window)
        assert first[0].insight_id != second[0].insight_id
        assert first[0].title == second[0].title


class TestPearson:

    def test_perfect_correlation(self):
        assert pearson([1, 2, 3], [2, 4, 6]) == 1.0

    def test_constant_series(self):
        assert pearson([1, 1, 1], [1, 2, 3]) is None

    def test_too_short(self):
        assert pearson([1, 2], [1, 2]) is None

"""
Unit Tests for the Health Score Calculator

Verifies sub-score formulas, boundedness on adversarial input and
the empty / inverted window edge cases.
"""

import os
import sys
from datetime import date, datetime, timedelta

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.activity import ActivityWindow, ExerciseEntry, FastingSession, FoodEntry, WaterEntry
from models.user import DailyTargets, UserProfile
from analytics.health_score import HealthScoreCalculator, clamp_score, compute_health_score


START = datetime(2026, 10, 5)
END = START + timedelta(days=7)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def calculator():
    return HealthScoreCalculator()


@pytest.fixture
def profile():
    """2000 kcal, 30/40/30 macros, 2L water, 16:8 fasting."""
    return UserProfile(
        user_id="user-001",
        name="Test User",
        daily_targets=DailyTargets.from_calories(2000, water_ml=2000),
    )


def perfect_week():
    """Calorie target with target macros, 30 min exercise, water goal, every day."""
    foods, exercises, water = [], [], []
    for i in range(7):
        day = START + timedelta(days=i)
        foods.append(FoodEntry("Balanced day", 2000, day.replace(hour=12),
                               protein_g=150, carbs_g=200, fat_g=66.7))
        exercises.append(ExerciseEntry("Run", 30, day.replace(hour=7), calories_burned=300))
        water.append(WaterEntry(2000, day.replace(hour=9)))
    fast = FastingSession(
        start_time=START.replace(hour=20),
        target_hours=16,
        end_time=START.replace(hour=20) + timedelta(hours=16),
    )
    return ActivityWindow.build(START, END, foods, exercises, water, [fast])


# =============================================================================
# EDGE CASES
# =============================================================================

class TestEmptyAndInvalidWindows:

    def test_empty_window_scores_zero(self, calculator, profile):
        score = calculator.compute(ActivityWindow.build(START, END), profile)
        assert score.to_dict()["overall"] == 0
        assert score.sub_scores() == {
            "nutrition": 0, "activity": 0, "hydration": 0, "fasting": 0,
        }

    def test_inverted_window_scores_zero(self, calculator, profile):
        window = perfect_week()
        inverted = ActivityWindow.build(END, START, window.foods, window.exercises, window.water)
        score = calculator.compute(inverted, profile)
        assert score.overall == 0
        assert score.nutrition == 0
        assert score.as_of is None

    def test_zero_length_window(self, calculator, profile):
        score = calculator.compute(ActivityWindow.build(START, START), profile)
        assert score.overall == 0


# =============================================================================
# SCENARIO: PERFECT WEEK
# =============================================================================

class TestPerfectWeek:

    def test_sub_scores(self, calculator, profile):
        score = calculator.compute(perfect_week(), profile)
        assert score.nutrition == pytest.approx(100, abs=0.5)
        assert score.activity == 100
        assert score.hydration == 100
        # One fast that met its 16h target but not the 18h ketosis mark
        assert score.fasting == pytest.approx(85)

    def test_overall_is_weighted_average(self, calculator, profile):
        score = calculator.compute(perfect_week(), profile)
        expected = (
            0.40 * score.nutrition
            + 0.30 * score.activity
            + 0.15 * score.hydration
            + 0.15 * score.fasting
        )
        assert score.overall == pytest.approx(expected, abs=0.01)

    def test_deterministic(self, calculator, profile):
        window = perfect_week()
        assert calculator.compute(window, profile) == calculator.compute(window, profile)
        assert compute_health_score(window, profile) == calculator.compute(window, profile)

    def test_as_of_is_window_start(self, calculator, profile):
        assert calculator.compute(perfect_week(), profile).as_of == date(2026, 10, 5)


# =============================================================================
# SUB-SCORES
# =============================================================================

class TestNutrition:

    def test_outside_tolerance_does_not_qualify(self, calculator, profile):
        foods = [FoodEntry("Feast", 2500, START.replace(hour=12), protein_g=180, carbs_g=250, fat_g=85)]
        window = ActivityWindow.build(START, START + timedelta(days=1), foods)
        assert calculator.nutrition_score(window, profile) == 0

    def test_within_tolerance_qualifies(self, calculator, profile):
        foods = [FoodEntry("Close", 2150, START.replace(hour=12), protein_g=161, carbs_g=215, fat_g=71.7)]
        window = ActivityWindow.build(START, START + timedelta(days=1), foods)
        assert calculator.nutrition_score(window, profile) > 95

    def test_missing_macros_are_neutral(self, calculator, profile):
        foods = [FoodEntry("Unknown", 2000, START.replace(hour=12))]
        window = ActivityWindow.build(START, START + timedelta(days=1), foods)
        assert calculator.nutrition_score(window, profile) == pytest.approx(50)

    def test_unbalanced_macros_lower_score(self, calculator, profile):
        # All fat: shares (0, 0, 1) vs target shares from 2000 kcal -> balance ~0.067
        foods = [FoodEntry("Butter", 2000, START.replace(hour=12), fat_g=222)]
        window = ActivityWindow.build(START, START + timedelta(days=1), foods)
        assert calculator.nutrition_score(window, profile) == pytest.approx(6.68, abs=0.01)

    def test_days_without_food_count_as_zero(self, calculator, profile):
        foods = [FoodEntry("Balanced", 2000, START.replace(hour=12),
                           protein_g=150, carbs_g=200, fat_g=66.7)]
        window = ActivityWindow.build(START, START + timedelta(days=2), foods)
        assert calculator.nutrition_score(window, profile) == pytest.approx(50, abs=0.5)

    def test_macro_balance_perfect_split(self, calculator):
        shares = (0.3, 0.4, 0.3)
        assert calculator.macro_balance((75, 100, 100 / 3), shares) == pytest.approx(1.0)


class TestActivity:

    def test_prorated_targets(self, calculator, profile):
        # One day: target 150/7 min and 5/7 sessions
        exercises = [ExerciseEntry("Walk", 30, START.replace(hour=8))]
        window = ActivityWindow.build(START, START + timedelta(days=1), exercises=exercises)
        assert calculator.activity_score(window, profile) == 100

    def test_half_duration(self, calculator, profile):
        exercises = [ExerciseEntry("Walk", 15, START + timedelta(days=i, hours=8)) for i in range(5)]
        window = ActivityWindow.build(START, END, exercises=exercises)
        # 75 of 150 minutes, 5 of 5 sessions
        assert calculator.activity_score(window, profile) == pytest.approx(0.7 * 50 + 30)

    def test_negative_duration_is_clamped(self, calculator, profile):
        exercises = [
            ExerciseEntry("Bad record", -500, START.replace(hour=8)),
            ExerciseEntry("Run", 30, START.replace(hour=9)),
        ]
        window = ActivityWindow.build(START, START + timedelta(days=1), exercises=exercises)
        score = calculator.activity_score(window, profile)
        assert 0 <= score <= 100
        assert score == 100


class TestHydration:

    def test_average_of_daily_ratios(self, calculator, profile):
        water = [
            WaterEntry(2000, START.replace(hour=10)),
            WaterEntry(1000, START.replace(hour=10) + timedelta(days=1)),
        ]
        window = ActivityWindow.build(START, START + timedelta(days=2), water=water)
        assert calculator.hydration_score(window, profile) == pytest.approx(75)

    def test_excess_water_caps_at_goal(self, calculator, profile):
        water = [WaterEntry(10000, START.replace(hour=10))]
        window = ActivityWindow.build(START, START + timedelta(days=1), water=water)
        assert calculator.hydration_score(window, profile) == 100


class TestFasting:

    def test_open_sessions_are_ignored(self, calculator, profile):
        fasts = [FastingSession(START.replace(hour=20), 16)]
        window = ActivityWindow.build(START, END, fasting_sessions=fasts)
        assert calculator.fasting_score(window, profile) == 0

    def test_ketosis_bonus(self, calculator, profile):
        begin = START.replace(hour=18)
        fasts = [FastingSession(begin, 16, end_time=begin + timedelta(hours=20))]
        window = ActivityWindow.build(START, END, fasting_sessions=fasts)
        assert calculator.fasting_score(window, profile) == pytest.approx(100)

    def test_ratio_of_successful_sessions(self, calculator, profile):
        first = START.replace(hour=20)
        second = first + timedelta(days=2)
        fasts = [
            FastingSession(first, 16, end_time=first + timedelta(hours=16)),
            FastingSession(second, 16, end_time=second + timedelta(hours=10)),
        ]
        window = ActivityWindow.build(START, END, fasting_sessions=fasts)
        assert calculator.fasting_score(window, profile) == pytest.approx(42.5)


# =============================================================================
# BOUNDEDNESS
# =============================================================================

class TestBoundedness:

    def test_adversarial_values_stay_in_range(self, calculator, profile):
        foods = [FoodEntry("Absurd", 1_000_000, START.replace(hour=12),
                           protein_g=-50, carbs_g=1e9, fat_g=-1)]
        exercises = [ExerciseEntry("Ultra", 1e7, START.replace(hour=8), calories_burned=-100)]
        water = [WaterEntry(-3000, START.replace(hour=9)), WaterEntry(1e9, START.replace(hour=10))]
        begin = START.replace(hour=1)
        fasts = [FastingSession(begin, -5, end_time=begin + timedelta(hours=30))]
        window = ActivityWindow.build(START, END, foods, exercises, water, fasts)

        assert window.malformed_record_count() == 3

        score = calculator.compute(window, profile)
        for value in [score.overall, *score.sub_scores().values()]:
            assert 0 <= value <= 100

    def test_clamp_score(self):
        assert clamp_score(150) == 100
        assert clamp_score(-3) == 0
        assert clamp_score(float("nan")) == 0

    def test_custom_weights_are_normalized(self, profile):
        calculator = HealthScoreCalculator(
            {"nutrition": 1, "activity": 1, "hydration": 1, "fasting": 1}
        )
        assert calculator.weights["nutrition"] == pytest.approx(0.25)

    def test_invalid_weights_rejected(self):
        with pytest.raises(ValueError):
            HealthScoreCalculator({"nutrition": 1})

"""
Tests for profile calculations and fasting session helpers.
"""

import os
import sys
from datetime import datetime, timedelta

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.activity import ActivityEvent, ActivityKind, FastingSession, fasting_phase_for
from models.user import ActivityLevel, DailyTargets, FastingPlan, Sex, UserProfile


@pytest.fixture
def profile():
    return UserProfile(
        user_id="user-001",
        name="Test User",
        age=30,
        weight_kg=80,
        height_cm=180,
        sex=Sex.MALE,
    )


class TestProfileCalculations:

    def test_bmr(self, profile):
        # 10*80 + 6.25*180 - 5*30 + 5
        assert profile.calculate_bmr() == pytest.approx(1780)

    def test_tdee(self, profile):
        assert profile.calculate_tdee() == pytest.approx(1780 * 1.55)

    def test_missing_attributes(self):
        profile = UserProfile(user_id="u", name="No Data")
        assert profile.calculate_bmr() is None
        assert profile.calculate_tdee() is None
        assert profile.calculate_water_goal() == 2000

    def test_water_goal_rounded_to_250(self):
        profile = UserProfile(
            user_id="u", name="Runner", weight_kg=70,
            daily_targets=DailyTargets(water_ml=0),
        )
        # 70 * 35 * 1.2 = 2940 -> 3000
        assert profile.water_goal_ml == 3000

    def test_configured_water_goal_wins(self, profile):
        assert profile.water_goal_ml == 2000

    def test_macro_shares(self):
        assert DailyTargets().macro_shares() == (0.30, 0.40, 0.30)
        shares = DailyTargets(protein_g=100, carbs_g=100, fat_g=0).macro_shares()
        assert shares == (0.30, 0.40, 0.30)
        custom = DailyTargets(protein_g=100, carbs_g=100, fat_g=400 / 9).macro_shares()
        assert custom == pytest.approx((1 / 3, 1 / 3, 1 / 3))

    def test_fasting_plan_by_activity(self):
        assert FastingPlan.for_activity_level(ActivityLevel.SEDENTARY).name == "18:6"
        assert FastingPlan.for_activity_level(ActivityLevel.EXTRA_ACTIVE).fasting_hours == 12

    def test_from_dict_defaults_plan(self):
        profile = UserProfile.from_dict({
            "user_id": "u",
            "name": "Walker",
            "activity_level": "very_active",
            "daily_targets": {"calories": 2400},
        })
        assert profile.fasting_plan.name == "14:10"
        assert profile.daily_targets.calories == 2400
        assert profile.fasting_target_hours == 14


class TestFastingSession:

    START = datetime(2026, 10, 1, 20, 0)

    def test_open_session_measured_at_query_time(self):
        session = FastingSession(self.START, 16)
        as_of = self.START + timedelta(hours=4)
        assert session.elapsed_hours() == 0
        assert session.elapsed_hours(as_of) == pytest.approx(4)
        assert session.remaining_hours(as_of) == pytest.approx(12)
        assert session.progress(as_of) == pytest.approx(0.25)
        assert not session.met_target()

    def test_ended_session(self):
        session = FastingSession(self.START, 16, end_time=self.START + timedelta(hours=19))
        assert session.met_target()
        assert session.reached_ketosis
        assert session.progress() == 1.0

    def test_fasting_event(self):
        end = self.START + timedelta(hours=17)
        event = ActivityEvent.from_fasting(FastingSession(self.START, 16, end_time=end))
        assert event.kind == ActivityKind.FASTING
        assert event.timestamp == end
        assert event.magnitude == pytest.approx(17)
        assert set(event.to_dict()) == {"kind", "timestamp", "magnitude", "calories_burned"}

    def test_end_before_start_is_clamped(self):
        session = FastingSession(self.START, 16, end_time=self.START - timedelta(hours=1))
        assert session.elapsed_hours() == 0

    def test_phases(self):
        assert fasting_phase_for(2).name == "Post-Meal"
        assert fasting_phase_for(17).name == "Full Ketosis"
        assert fasting_phase_for(200).name == "Extended Fast"
        assert fasting_phase_for(-3).name == "Post-Meal"

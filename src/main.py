"""
FastAPI Application for Fitter

Provides REST API endpoints for:
- Activity logging (food, exercise, water, fasting)
- Analytics (health score, trends, insights, weekly report)
- Gamification (XP, levels, streaks, badges, challenges, rewards)
"""

# Load environment variables FIRST (before other imports that may need them)
from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from dataclasses import dataclass
from typing import Optional, List
from datetime import datetime
import logging
import os
import sys

# Add src to path
sys.path.insert(0, os.path.dirname(__file__))

from models.activity import (
    ActivityEvent,
    ExerciseEntry,
    ExerciseType,
    FastingSession,
    FoodEntry,
    WaterEntry,
    fasting_phase_for,
)
from models.gamification import LeaderboardEntry
from models.user import DailyTargets, FastingPlan, UserProfile
from analytics.activity_store import ActivityLogStore
from analytics.analytics_service import AnalyticsService
from gamification.errors import ProgressionError
from gamification.leaderboard import build_leaderboard
from gamification.progression import ProgressionEngine
from gamification.reward_store import RewardStore
from monitoring.events import EventBus
from monitoring.monitoring_service import MonitoringService


logger = logging.getLogger(__name__)


# =============================================================================
# SETTINGS
# =============================================================================

@dataclass
class AppSettings:
    """Runtime settings read from the environment (.env supported)."""
    log_level: str = "INFO"
    log_dir: str = "logs"
    starting_xp: int = 50
    daily_calories: float = 2000
    water_goal_ml: float = 2000
    fasting_hours: float = 16

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            log_level=os.getenv("FITTER_LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("FITTER_LOG_DIR", "logs"),
            starting_xp=int(os.getenv("FITTER_STARTING_XP", "50")),
            daily_calories=float(os.getenv("FITTER_DAILY_CALORIES", "2000")),
            water_goal_ml=float(os.getenv("FITTER_WATER_GOAL_ML", "2000")),
            fasting_hours=float(os.getenv("FITTER_FASTING_HOURS", "16")),
        )


settings = AppSettings.from_env()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


# =============================================================================
# APP SETUP
# =============================================================================

app = FastAPI(
    title="Fitter API",
    description="Health analytics and progression for intermittent fasting and fitness tracking",
    version="1.0.0",
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# GLOBAL STATE (In-memory for demo - use DB in production)
# =============================================================================

# Other users on the leaderboard (would come from a backend)
leaderboard_entries: List[LeaderboardEntry] = [
    LeaderboardEntry(user_id="user-ava", username="Ava", score=2400),
    LeaderboardEntry(user_id="user-noah", username="Noah", score=1250),
    LeaderboardEntry(user_id="user-mia", username="Mia", score=600),
]


def build_demo_user(app_settings: AppSettings) -> UserProfile:
    fasting_hours = app_settings.fasting_hours
    eating_hours = max(0.0, 24 - fasting_hours)
    return UserProfile(
        user_id="demo-user",
        name="Demo User",
        daily_targets=DailyTargets.from_calories(
            app_settings.daily_calories,
            water_ml=app_settings.water_goal_ml,
        ),
        fasting_plan=FastingPlan(
            f"{fasting_hours:g}:{eating_hours:g}", fasting_hours, eating_hours
        ),
    )


def reset_state(app_settings: Optional[AppSettings] = None):
    """(Re)build every service. Called at import time and by tests."""
    global settings, demo_user, event_bus, monitoring_service
    global activity_store, analytics_service, progression_engine, reward_store

    settings = app_settings or AppSettings.from_env()
    demo_user = build_demo_user(settings)

    event_bus = EventBus()
    monitoring_service = MonitoringService(log_dir=settings.log_dir)
    monitoring_service.attach(event_bus)

    activity_store = ActivityLogStore()
    analytics_service = AnalyticsService(activity_store, demo_user)
    progression_engine = ProgressionEngine(
        demo_user,
        bus=event_bus,
        starting_xp=settings.starting_xp,
    )
    progression_engine.start_weekly_challenges(datetime.now())
    reward_store = RewardStore(progression_engine)


reset_state(settings)


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class FoodLogRequest(BaseModel):
    name: str
    calories: float
    protein_g: float = 0
    carbs_g: float = 0
    fat_g: float = 0
    timestamp: Optional[datetime] = None


class ExerciseLogRequest(BaseModel):
    name: str
    duration_minutes: float
    calories_burned: float = 0
    exercise_type: ExerciseType = ExerciseType.OTHER
    steps: int = 0
    notes: Optional[str] = None
    timestamp: Optional[datetime] = None


class WaterLogRequest(BaseModel):
    amount_ml: float
    timestamp: Optional[datetime] = None


class FastingStartRequest(BaseModel):
    target_hours: Optional[float] = None
    start_time: Optional[datetime] = None


class FastingEndRequest(BaseModel):
    end_time: Optional[datetime] = None


class AwardXPRequest(BaseModel):
    amount: int = Field(..., ge=0)
    reason: str


def _progression_summary(events) -> dict:
    """Short result of a record_activity transaction for the UI."""
    return {
        "events": [e.to_dict() for e in events],
        "total_xp": progression_engine.total_xp,
        "level": progression_engine.level.to_dict(),
    }


# =============================================================================
# ROUTES: HEALTH
# =============================================================================

@app.get("/health")
async def health_check():
    """
    Health check endpoint for container orchestration.
    """
    return {
        "status": "healthy",
        "version": "1.0.0",
        "environment": os.getenv("ENVIRONMENT", "development"),
        "services": {
            "analytics": "ok",
            "progression": "ok",
            "monitoring": "ok",
        },
        "timestamp": datetime.now().isoformat(),
    }


# =============================================================================
# ROUTES: ACTIVITY LOGGING
# =============================================================================

@app.post("/api/food/log")
async def log_food(request: FoodLogRequest):
    """Log a food entry."""
    entry = FoodEntry(
        name=request.name,
        calories=request.calories,
        timestamp=request.timestamp or datetime.now(),
        protein_g=request.protein_g,
        carbs_g=request.carbs_g,
        fat_g=request.fat_g,
    )
    activity_store.add_food(entry)
    events = progression_engine.record_activity(ActivityEvent.from_food(entry), datetime.now())
    return {"entry": entry.to_dict(), **_progression_summary(events)}


@app.post("/api/exercise/log")
async def log_exercise(request: ExerciseLogRequest):
    """Log an exercise session. Steps, if any, count toward step challenges."""
    now = datetime.now()
    entry = ExerciseEntry(
        name=request.name,
        duration_minutes=request.duration_minutes,
        timestamp=request.timestamp or now,
        calories_burned=request.calories_burned,
        exercise_type=request.exercise_type,
        steps=request.steps,
        notes=request.notes,
    )
    activity_store.add_exercise(entry)
    events = progression_engine.record_activity(ActivityEvent.from_exercise(entry), now)
    if entry.safe_steps > 0:
        events += progression_engine.record_activity(
            ActivityEvent.steps(entry.safe_steps, entry.timestamp), now
        )
    return {"entry": entry.to_dict(), **_progression_summary(events)}


@app.post("/api/water/log")
async def log_water(request: WaterLogRequest):
    """Log water intake."""
    entry = WaterEntry(amount_ml=request.amount_ml, timestamp=request.timestamp or datetime.now())
    activity_store.add_water(entry)
    events = progression_engine.record_activity(ActivityEvent.from_water(entry), datetime.now())
    return {"entry": entry.to_dict(), **_progression_summary(events)}


# =============================================================================
# ROUTES: FASTING
# =============================================================================

@app.post("/api/fasting/start")
async def start_fast(request: FastingStartRequest):
    """Start a fasting session."""
    if activity_store.active_fasting_session() is not None:
        raise HTTPException(status_code=400, detail="A fast is already in progress")

    session = FastingSession(
        start_time=request.start_time or datetime.now(),
        target_hours=request.target_hours or demo_user.fasting_target_hours,
    )
    activity_store.add_fasting_session(session)
    return session.to_dict(datetime.now())


@app.post("/api/fasting/end")
async def end_fast(request: FastingEndRequest):
    """End the active fasting session."""
    session = activity_store.active_fasting_session()
    if session is None:
        raise HTTPException(status_code=400, detail="No fast in progress")

    now = datetime.now()
    end_time = request.end_time or now
    if end_time < session.start_time:
        raise HTTPException(status_code=400, detail="end_time is before the fast started")

    ended = FastingSession(
        start_time=session.start_time,
        target_hours=session.target_hours,
        end_time=end_time,
        session_id=session.session_id,
    )
    activity_store.add_fasting_session(ended)
    events = progression_engine.record_activity(ActivityEvent.from_fasting(ended), now)
    return {
        "session": ended.to_dict(),
        "met_target": ended.met_target(demo_user.fasting_target_hours),
        **_progression_summary(events),
    }


@app.get("/api/fasting/status")
async def fasting_status():
    """Elapsed time, progress and metabolic phase of the active fast."""
    session = activity_store.active_fasting_session()
    if session is None:
        return {"is_fasting": False}

    now = datetime.now()
    elapsed = session.elapsed_hours(now)
    phase = fasting_phase_for(elapsed)
    return {
        "is_fasting": True,
        "session": session.to_dict(now),
        "progress": round(session.progress(now) * 100, 1),
        "remaining_hours": round(session.remaining_hours(now), 2),
        "phase": {
            "name": phase.name,
            "primary_fuel": phase.primary_fuel,
            "fat_burning": phase.fat_burning,
        },
    }


# =============================================================================
# ROUTES: ANALYTICS
# =============================================================================

@app.get("/api/analytics/score")
async def get_health_score(days: int = 7):
    """Get the health score for the last `days` days."""
    if days < 1:
        raise HTTPException(status_code=400, detail="days must be at least 1")
    score = analytics_service.score_for_days(datetime.now().date(), days)
    return score.to_dict()


@app.get("/api/analytics/trends")
async def get_trends(weeks: int = 8):
    """Get weekly metric trends."""
    if weeks < 1:
        raise HTTPException(status_code=400, detail="weeks must be at least 1")
    trends = analytics_service.compute_trends(datetime.now().date(), weeks)
    return [t.to_dict() for t in trends]


@app.get("/api/analytics/insights")
async def get_insights():
    """Get smart insights, most confident first."""
    now = datetime.now()
    progression_engine.refresh(now)
    insights = analytics_service.generate_insights(
        now,
        streaks=progression_engine.streaks,
    )
    return [i.to_dict() for i in insights]


@app.get("/api/analytics/report")
async def get_report():
    """Get the weekly analytics report."""
    now = datetime.now()
    progression_engine.refresh(now)
    report = analytics_service.get_report(now, streaks=progression_engine.streaks)
    return report.to_dict()


# =============================================================================
# ROUTES: GAMIFICATION
# =============================================================================

@app.get("/api/gamification/status")
async def gamification_status():
    """Level, XP, points and progress to the next level."""
    now = datetime.now()
    progression_engine.refresh(now)
    return progression_engine.snapshot(now)


@app.post("/api/gamification/xp")
async def award_xp(request: AwardXPRequest):
    """Award XP manually (bonus XP from the UI)."""
    gained = progression_engine.award_xp(request.amount, request.reason, datetime.now())
    return {
        "awarded": gained,
        "total_xp": progression_engine.total_xp,
        "level": progression_engine.level.to_dict(),
    }


@app.post("/api/gamification/refresh")
async def refresh_progression():
    """Close out missed days and expired challenges."""
    events = progression_engine.refresh(datetime.now())
    return {"events": [e.to_dict() for e in events]}


@app.get("/api/gamification/streaks")
async def get_streaks():
    progression_engine.refresh(datetime.now())
    return [s.to_dict() for s in progression_engine.streaks]


@app.get("/api/gamification/badges")
async def get_badges(unlocked: Optional[bool] = None):
    progression_engine.refresh(datetime.now())
    return [b.to_dict() for b in reward_store.badges(unlocked=unlocked)]


@app.get("/api/gamification/challenges")
async def get_challenges():
    progression_engine.refresh(datetime.now())
    return [c.to_dict() for c in progression_engine.challenges]


@app.get("/api/gamification/rewards")
async def get_rewards(unlocked: Optional[bool] = None, purchased: Optional[bool] = None):
    """Rewards, optionally filtered; grouped view under `by_category`."""
    return {
        "available_points": progression_engine.available_points,
        "rewards": [
            r.to_dict() for r in reward_store.rewards(unlocked=unlocked, purchased=purchased)
        ],
        "by_category": {
            category: [r.reward_id for r in rewards]
            for category, rewards in reward_store.rewards_by_category().items()
        },
    }


@app.post("/api/gamification/rewards/{reward_id}/purchase")
async def purchase_reward(reward_id: str):
    """Purchase a reward with points."""
    try:
        result = reward_store.purchase(reward_id)
    except ProgressionError as e:
        monitoring_service.log_api_error(f"/api/gamification/rewards/{reward_id}/purchase", str(e), 404)
        raise HTTPException(status_code=404, detail=str(e))
    return result.to_dict()


@app.get("/api/gamification/achievements")
async def get_achievements():
    return {"recent_achievements": progression_engine.recent_achievements}


@app.get("/api/gamification/leaderboard")
async def get_leaderboard(limit: int = 10):
    entries = build_leaderboard(
        demo_user.user_id,
        demo_user.name,
        progression_engine.total_xp,
        leaderboard_entries,
        limit=limit,
    )
    return [e.to_dict() for e in entries]


# =============================================================================
# RUN
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

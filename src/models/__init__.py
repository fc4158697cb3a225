# Models Package
from .activity import (
    ActivityKind,
    ActivityEvent,
    ActivityWindow,
    ExerciseEntry,
    ExerciseType,
    FastingSession,
    FoodEntry,
    WaterEntry,
)
from .user import UserProfile, DailyTargets, FastingPlan, ActivityLevel, Sex
from .analytics_models import (
    HealthScore,
    TrendData,
    TrendDirection,
    SmartInsight,
    InsightCategory,
    AnalyticsReport,
)
from .gamification import (
    UserLevel,
    Streak,
    StreakType,
    Badge,
    BadgeCategory,
    BadgeRarity,
    Challenge,
    ChallengeType,
    Reward,
    RewardType,
    XPAward,
    LeaderboardEntry,
)

__all__ = [
    # Activity
    "ActivityKind", "ActivityEvent", "ActivityWindow", "ExerciseEntry",
    "ExerciseType", "FastingSession", "FoodEntry", "WaterEntry",
    # Profile
    "UserProfile", "DailyTargets", "FastingPlan", "ActivityLevel", "Sex",
    # Analytics
    "HealthScore", "TrendData", "TrendDirection", "SmartInsight",
    "InsightCategory", "AnalyticsReport",
    # Gamification
    "UserLevel", "Streak", "StreakType", "Badge", "BadgeCategory",
    "BadgeRarity", "Challenge", "ChallengeType", "Reward", "RewardType",
    "XPAward", "LeaderboardEntry",
]

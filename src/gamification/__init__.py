# Gamification Package - XP, levels, streaks, badges, challenges, rewards
from .levels import xp_required_for, level_for_xp, build_user_level, next_level_progress
from .catalog import default_badges, default_rewards, weekly_challenges
from .errors import (
    FailureReason,
    ProgressionResult,
    ProgressionError,
    UnknownRewardError,
    UnknownChallengeError,
)
from .progression import ProgressionEngine
from .reward_store import RewardStore
from .leaderboard import build_leaderboard

__all__ = [
    "xp_required_for",
    "level_for_xp",
    "build_user_level",
    "next_level_progress",
    "default_badges",
    "default_rewards",
    "weekly_challenges",
    "FailureReason",
    "ProgressionResult",
    "ProgressionError",
    "UnknownRewardError",
    "UnknownChallengeError",
    "ProgressionEngine",
    "RewardStore",
    "build_leaderboard",
]

"""
Gamification Data Models

Progression state owned by the progression engine: levels, streaks,
badges, challenges, rewards and the XP ledger.

Streaks, badges, challenges and rewards are mutable, but only the
engine mutates them. Everything handed out by its read accessors is
a copy.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Set


@dataclass(frozen=True)
class UserLevel:
    """
    Level derived from total XP.

    xp_progress / xp_required describe the position inside the
    current level's band.
    """
    level: int
    title: str
    xp_progress: int
    xp_required: int
    benefits: List[str] = field(default_factory=list)

    MAX_LEVEL = 100

    @property
    def progress_percentage(self) -> float:
        if self.is_max_level or self.xp_required <= 0:
            return 100.0
        return min(100.0, max(0.0, self.xp_progress / self.xp_required * 100))

    @property
    def is_max_level(self) -> bool:
        return self.level >= self.MAX_LEVEL

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "title": self.title,
            "xp_progress": self.xp_progress,
            "xp_required": self.xp_required,
            "progress_percentage": round(self.progress_percentage, 1),
            "benefits": list(self.benefits),
            "is_max_level": self.is_max_level,
        }


class StreakType(Enum):
    """Independent streak categories."""
    DAILY_LOGGING = "daily_logging"
    EXERCISE = "exercise"
    FASTING = "fasting"
    HYDRATION = "hydration"
    CONSISTENCY = "consistency"

    @property
    def title(self) -> str:
        titles = {
            StreakType.DAILY_LOGGING: "Daily Logging",
            StreakType.EXERCISE: "Exercise",
            StreakType.FASTING: "Fasting",
            StreakType.HYDRATION: "Hydration",
            StreakType.CONSISTENCY: "Overall Consistency",
        }
        return titles[self]


@dataclass
class Streak:
    """
    Consecutive-day counter for one category.

    Invariant: best >= current. `best` never decreases.
    """
    streak_type: StreakType
    current: int = 0
    best: int = 0
    is_active: bool = False
    last_qualifying_day: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "type": self.streak_type.value,
            "title": self.streak_type.title,
            "current": self.current,
            "best": self.best,
            "is_active": self.is_active,
            "last_qualifying_day": (
                self.last_qualifying_day.isoformat() if self.last_qualifying_day else None
            ),
        }


class BadgeCategory(Enum):
    NUTRITION = "nutrition"
    EXERCISE = "exercise"
    HYDRATION = "hydration"
    FASTING = "fasting"
    CONSISTENCY = "consistency"
    ACHIEVEMENT = "achievement"


class BadgeRarity(Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"

    @property
    def xp_reward(self) -> int:
        rewards = {
            BadgeRarity.COMMON: 50,
            BadgeRarity.RARE: 100,
            BadgeRarity.EPIC: 200,
            BadgeRarity.LEGENDARY: 500,
        }
        return rewards[self]


@dataclass
class Badge:
    """
    Badge with a progress rule.

    `rule` names a counter in the engine and `goal` the value at which
    progress reaches 100. Unlocking is one-way.
    """
    badge_id: str
    name: str
    description: str
    category: BadgeCategory
    rarity: BadgeRarity
    icon_name: str
    requirement: str
    rule: str
    goal: float
    progress: float = 0.0
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "badge_id": self.badge_id,
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "rarity": self.rarity.value,
            "icon_name": self.icon_name,
            "requirement": self.requirement,
            "progress": round(self.progress, 1),
            "is_unlocked": self.is_unlocked,
            "unlocked_at": self.unlocked_at.isoformat() if self.unlocked_at else None,
        }


class ChallengeType(Enum):
    STEPS = "steps"
    EXERCISE = "exercise"
    FASTING = "fasting"
    HYDRATION = "hydration"
    CALORIES = "calories"
    CONSISTENCY = "consistency"

    @property
    def unit(self) -> str:
        units = {
            ChallengeType.STEPS: "steps",
            ChallengeType.EXERCISE: "minutes",
            ChallengeType.FASTING: "hours",
            ChallengeType.HYDRATION: "L",
            ChallengeType.CALORIES: "kcal",
            ChallengeType.CONSISTENCY: "days",
        }
        return units[self]


@dataclass
class Challenge:
    """
    Time-boxed challenge.

    Lifecycle: active with progress 0 -> progress grows with qualifying
    activity -> completed once progress >= target (XP awarded once),
    or expired (inactive) when `expires_at` passes first.
    """
    challenge_id: str
    name: str
    description: str
    challenge_type: ChallengeType
    target: float
    xp_reward: int
    starts_at: datetime
    expires_at: datetime
    progress: float = 0.0
    is_active: bool = True
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    counted_days: Set[date] = field(default_factory=set)

    @property
    def progress_percentage(self) -> float:
        if self.target <= 0:
            return 100.0
        return min(100.0, max(0.0, self.progress / self.target * 100))

    def time_remaining(self, now: datetime) -> float:
        """Seconds until expiry, never negative."""
        return max(0.0, (self.expires_at - now).total_seconds())

    def to_dict(self) -> dict:
        return {
            "challenge_id": self.challenge_id,
            "name": self.name,
            "description": self.description,
            "type": self.challenge_type.value,
            "unit": self.challenge_type.unit,
            "target": self.target,
            "progress": round(self.progress, 2),
            "progress_percentage": round(self.progress_percentage, 1),
            "xp_reward": self.xp_reward,
            "starts_at": self.starts_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
            "is_active": self.is_active,
            "is_completed": self.is_completed,
        }


class RewardType(Enum):
    THEME = "theme"
    AVATAR = "avatar"
    TITLE = "title"
    FEATURE = "feature"
    COSMETIC = "cosmetic"

    @property
    def category(self) -> str:
        categories = {
            RewardType.THEME: "App Themes",
            RewardType.AVATAR: "Profile Avatars",
            RewardType.TITLE: "User Titles",
            RewardType.FEATURE: "Premium Features",
            RewardType.COSMETIC: "Cosmetics",
        }
        return categories[self]


@dataclass
class Reward:
    """
    Purchasable reward, gated by level.
    available -> purchased is one-way.
    """
    reward_id: str
    name: str
    description: str
    reward_type: RewardType
    cost: int
    required_level: int = 1
    is_unlocked: bool = False
    is_purchased: bool = False

    def to_dict(self) -> dict:
        return {
            "reward_id": self.reward_id,
            "name": self.name,
            "description": self.description,
            "type": self.reward_type.value,
            "category": self.reward_type.category,
            "cost": self.cost,
            "required_level": self.required_level,
            "is_unlocked": self.is_unlocked,
            "is_purchased": self.is_purchased,
        }


@dataclass(frozen=True)
class XPAward:
    """One entry of the XP ledger."""
    amount: int
    reason: str
    awarded_at: datetime


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    username: str
    score: int
    rank: int = 0

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "username": self.username,
            "score": self.score,
            "rank": self.rank,
        }

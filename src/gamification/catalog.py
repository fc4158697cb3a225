"""
Default badge, reward and challenge catalogs.

Every function returns fresh objects so each engine owns its own
mutable copies.
"""

from datetime import datetime, time, timedelta
from typing import List

from models.gamification import (
    Badge,
    BadgeCategory,
    BadgeRarity,
    Challenge,
    ChallengeType,
    Reward,
    RewardType,
)


# Counter names a badge rule may reference
BADGE_COUNTERS = (
    "meals",
    "food_days",
    "workouts",
    "water_entries",
    "water_total_ml",
    "completed_fasts",
    "longest_fast_hours",
    "challenges_completed",
    "level",
    "best_streak_daily_logging",
    "best_streak_exercise",
    "best_streak_fasting",
    "best_streak_hydration",
    "best_streak_consistency",
)


def _slug(name: str) -> str:
    return name.lower().replace(" ", "_").replace("-", "_")


# (name, description, category, rarity, icon, requirement, rule, goal)
_BADGES = [
    # Nutrition
    ("First Meal", "Log your first meal", BadgeCategory.NUTRITION, BadgeRarity.COMMON,
     "fork.knife", "Log 1 meal", "meals", 1),
    ("Calorie Counter", "Log 50 meals", BadgeCategory.NUTRITION, BadgeRarity.RARE,
     "chart.bar.fill", "Log 50 meals", "meals", 50),
    ("Nutrition Guru", "Log 365 days of meals", BadgeCategory.NUTRITION, BadgeRarity.LEGENDARY,
     "brain.head.profile", "Log meals for 365 days", "food_days", 365),
    # Exercise
    ("First Workout", "Complete your first exercise", BadgeCategory.EXERCISE, BadgeRarity.COMMON,
     "figure.run", "Complete 1 exercise", "workouts", 1),
    ("Consistency King", "Exercise 5 days in a row", BadgeCategory.EXERCISE, BadgeRarity.RARE,
     "calendar.badge.checkmark", "Exercise 5 consecutive days", "best_streak_exercise", 5),
    ("Iron Will", "Exercise 30 days in a row", BadgeCategory.EXERCISE, BadgeRarity.EPIC,
     "flame.fill", "Exercise 30 consecutive days", "best_streak_exercise", 30),
    ("Fitness Legend", "Complete 1000 workouts", BadgeCategory.EXERCISE, BadgeRarity.LEGENDARY,
     "crown.fill", "Complete 1000 workouts", "workouts", 1000),
    # Hydration
    ("First Drop", "Log your first water intake", BadgeCategory.HYDRATION, BadgeRarity.COMMON,
     "drop.fill", "Log first water", "water_entries", 1),
    ("Hydration Hero", "Meet daily water goal for 7 days", BadgeCategory.HYDRATION, BadgeRarity.RARE,
     "drop.circle.fill", "Meet water goal 7 days", "best_streak_hydration", 7),
    ("Ocean Master", "Drink 1000L of water total", BadgeCategory.HYDRATION, BadgeRarity.EPIC,
     "water.waves", "Drink 1000L total", "water_total_ml", 1_000_000),
    # Fasting
    ("Fasting Novice", "Complete your first fast", BadgeCategory.FASTING, BadgeRarity.COMMON,
     "clock.badge", "Complete 1 fast", "completed_fasts", 1),
    ("Intermittent Expert", "Complete 50 fasts", BadgeCategory.FASTING, BadgeRarity.RARE,
     "clock.circle.fill", "Complete 50 fasts", "completed_fasts", 50),
    ("Fasting Master", "Complete a 24-hour fast", BadgeCategory.FASTING, BadgeRarity.EPIC,
     "moon.stars.fill", "Complete 24-hour fast", "longest_fast_hours", 24),
    ("Zen Master", "Complete 365 fasts", BadgeCategory.FASTING, BadgeRarity.LEGENDARY,
     "brain.head.profile", "Complete 365 fasts", "completed_fasts", 365),
    # Consistency
    ("Dedicated", "Use app for 7 consecutive days", BadgeCategory.CONSISTENCY, BadgeRarity.COMMON,
     "checkmark.circle.fill", "Use app 7 consecutive days", "best_streak_daily_logging", 7),
    ("Committed", "Use app for 30 consecutive days", BadgeCategory.CONSISTENCY, BadgeRarity.RARE,
     "star.circle.fill", "Use app 30 consecutive days", "best_streak_daily_logging", 30),
    ("Unstoppable", "Use app for 100 consecutive days", BadgeCategory.CONSISTENCY, BadgeRarity.EPIC,
     "bolt.circle.fill", "Use app 100 consecutive days", "best_streak_daily_logging", 100),
    ("Lifestyle", "Use app for 365 consecutive days", BadgeCategory.CONSISTENCY, BadgeRarity.LEGENDARY,
     "infinity.circle.fill", "Use app 365 consecutive days", "best_streak_daily_logging", 365),
    # Achievement
    ("Goal Crusher", "Complete your first challenge", BadgeCategory.ACHIEVEMENT, BadgeRarity.COMMON,
     "trophy.fill", "Complete 1 challenge", "challenges_completed", 1),
    ("Overachiever", "Complete 10 challenges", BadgeCategory.ACHIEVEMENT, BadgeRarity.RARE,
     "rosette", "Complete 10 challenges", "challenges_completed", 10),
    ("Champion", "Reach level 50", BadgeCategory.ACHIEVEMENT, BadgeRarity.EPIC,
     "medal.fill", "Reach level 50", "level", 50),
]


# (name, description, type, cost, required level)
_REWARDS = [
    ("Dark Ocean", "Deep blue ocean theme", RewardType.THEME, 100, 5),
    ("Forest Green", "Natural forest theme", RewardType.THEME, 150, 10),
    ("Sunset Orange", "Warm sunset theme", RewardType.THEME, 200, 15),
    ("Royal Purple", "Elegant purple theme", RewardType.THEME, 300, 25),
    ("Fitness Warrior", "Strong warrior avatar", RewardType.AVATAR, 75, 5),
    ("Zen Master", "Peaceful meditation avatar", RewardType.AVATAR, 100, 10),
    ("Health Guru", "Wise health expert avatar", RewardType.AVATAR, 150, 20),
    ("Health Enthusiast", "Show your passion for health", RewardType.TITLE, 50, 3),
    ("Wellness Champion", "Champion of wellness", RewardType.TITLE, 200, 30),
    ("Fitness Legend", "Legendary fitness status", RewardType.TITLE, 500, 50),
    ("Advanced Analytics", "Unlock premium analytics", RewardType.FEATURE, 300, 15),
    ("Personal AI Coach", "24/7 AI health coaching", RewardType.FEATURE, 500, 25),
    ("Social Challenges", "Create challenges with friends", RewardType.FEATURE, 250, 20),
]


# (name, description, type, target, xp reward)
_WEEKLY_CHALLENGES = [
    ("Exercise Marathon", "Exercise 150 minutes this week", ChallengeType.EXERCISE, 150, 200),
    ("Hydration Hero", "Drink 14L of water this week", ChallengeType.HYDRATION, 14, 150),
    ("Fasting Warrior", "Fast for 48 hours in total this week", ChallengeType.FASTING, 48, 250),
    ("Consistency King", "Log something every day for 7 days", ChallengeType.CONSISTENCY, 7, 300),
    ("Step Master", "Walk 70,000 steps this week", ChallengeType.STEPS, 70_000, 200),
]


def default_badges() -> List[Badge]:
    return [
        Badge(
            badge_id=_slug(name),
            name=name,
            description=description,
            category=category,
            rarity=rarity,
            icon_name=icon,
            requirement=requirement,
            rule=rule,
            goal=goal,
        )
        for name, description, category, rarity, icon, requirement, rule, goal in _BADGES
    ]


def default_rewards() -> List[Reward]:
    return [
        Reward(
            reward_id=_slug(name),
            name=name,
            description=description,
            reward_type=reward_type,
            cost=cost,
            required_level=required_level,
        )
        for name, description, reward_type, cost, required_level in _REWARDS
    ]


def weekly_challenges(now: datetime, days: int = 7) -> List[Challenge]:
    """Challenges starting at local midnight of `now` and running `days` days."""
    starts_at = datetime.combine(now.date(), time.min)
    expires_at = starts_at + timedelta(days=days)
    return [
        Challenge(
            challenge_id=f"{_slug(name)}_{starts_at.date().isoformat()}",
            name=name,
            description=description,
            challenge_type=challenge_type,
            target=target,
            xp_reward=xp_reward,
            starts_at=starts_at,
            expires_at=expires_at,
        )
        for name, description, challenge_type, target, xp_reward in _WEEKLY_CHALLENGES
    ]

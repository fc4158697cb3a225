"""
Level Curve

Level is a pure function of total XP. Level 1 starts at 0 XP and
level N (N >= 2) at 100 * N^2 XP, so every band is wider than the one
before it.
"""

from typing import List

from models.gamification import UserLevel


MAX_LEVEL = UserLevel.MAX_LEVEL
XP_BASE = 100

# (minimum level, title), highest first
LEVEL_TITLES = [
    (100, "Wellness Guru"),
    (91, "Grandmaster"),
    (71, "Legend"),
    (51, "Champion"),
    (36, "Master"),
    (26, "Expert"),
    (16, "Enthusiast"),
    (11, "Amateur"),
    (6, "Novice"),
    (1, "Beginner"),
]

# (minimum level, benefit), lowest first
LEVEL_BENEFITS = [
    (5, "Custom app themes"),
    (10, "Advanced analytics"),
    (15, "Premium challenges"),
    (20, "Social features"),
    (25, "Personal trainer AI"),
    (30, "Nutrition coach AI"),
    (50, "Exclusive badges"),
    (75, "VIP support"),
    (100, "Guru status + all perks"),
]


def xp_required_for(level: int) -> int:
    """Total XP at which `level` starts."""
    if level <= 1:
        return 0
    return XP_BASE * level * level


def level_for_xp(total_xp: int) -> int:
    """Highest level whose floor is at or below `total_xp`."""
    level = 1
    while level < MAX_LEVEL and total_xp >= xp_required_for(level + 1):
        level += 1
    return level


def level_title(level: int) -> str:
    for minimum, title in LEVEL_TITLES:
        if level >= minimum:
            return title
    return LEVEL_TITLES[-1][1]


def level_benefits(level: int) -> List[str]:
    return [benefit for minimum, benefit in LEVEL_BENEFITS if level >= minimum]


def next_level_progress(total_xp: int) -> float:
    """
    Position inside the current band as 0-100.

    Reaches 100 only at max level; on any other band boundary the
    level has already advanced and progress restarts at 0.
    """
    level = level_for_xp(total_xp)
    if level >= MAX_LEVEL:
        return 100.0
    floor = xp_required_for(level)
    ceiling = xp_required_for(level + 1)
    progress = (total_xp - floor) / (ceiling - floor) * 100
    return min(100.0, max(0.0, progress))


def build_user_level(total_xp: int) -> UserLevel:
    level = level_for_xp(total_xp)
    floor = xp_required_for(level)
    if level >= MAX_LEVEL:
        band = 0
    else:
        band = xp_required_for(level + 1) - floor
    return UserLevel(
        level=level,
        title=level_title(level),
        xp_progress=max(0, total_xp - floor),
        xp_required=band,
        benefits=level_benefits(level),
    )

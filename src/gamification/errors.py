"""
Progression failures.

Expected failures (not enough points, already purchased, ...) are
returned as a ProgressionResult. Only contract violations, such as an id
outside the known catalog, are raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FailureReason(Enum):
    INSUFFICIENT_POINTS = "insufficient_points"
    ALREADY_PURCHASED = "already_purchased"
    REWARD_LOCKED = "reward_locked"
    ALREADY_COMPLETED = "already_completed"
    CHALLENGE_EXPIRED = "challenge_expired"


@dataclass(frozen=True)
class ProgressionResult:
    success: bool
    reason: Optional[FailureReason] = None
    available_points: int = 0

    def __bool__(self) -> bool:
        return self.success

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "reason": self.reason.value if self.reason else None,
            "available_points": self.available_points,
        }


class ProgressionError(Exception):
    """Base class for progression contract violations."""
    pass


class UnknownRewardError(ProgressionError):
    def __init__(self, reward_id: str):
        super().__init__(f"Reward not in catalog: {reward_id}")
        self.reward_id = reward_id


class UnknownChallengeError(ProgressionError):
    def __init__(self, challenge_id: str):
        super().__init__(f"Challenge not in catalog: {challenge_id}")
        self.challenge_id = challenge_id

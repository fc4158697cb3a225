"""
Progression Engine

Owns one user's mutable progression state (XP, points, streaks,
badges, challenges, rewards) and is the only thing allowed to mutate
it.

ORDERING: every logged activity is applied as one transaction, in a
fixed order:
    1. XP award (with level-up bonus and reward unlocks)
    2. Streak update
    3. Badge re-evaluation
    4. Challenge progress

All mutations hold a per-engine re-entrant lock. Events collected
during a transaction are dispatched to the event bus after the lock
is released, in mutation order.
"""

import copy
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from threading import RLock
from typing import Dict, Iterable, List, Optional

from models.activity import ActivityEvent, ActivityKind
from models.gamification import (
    Badge,
    Challenge,
    ChallengeType,
    Reward,
    Streak,
    StreakType,
    UserLevel,
    XPAward,
)
from models.user import UserProfile
from monitoring.events import EventBus, EventType, ProgressionEvent
from gamification import levels
from gamification.catalog import BADGE_COUNTERS, default_badges, default_rewards, weekly_challenges
from gamification.errors import (
    FailureReason,
    ProgressionResult,
    UnknownChallengeError,
    UnknownRewardError,
)


logger = logging.getLogger(__name__)


@dataclass
class DayLog:
    """What was logged on one calendar day, for streak predicates."""
    food: bool = False
    exercise: bool = False
    water_ml: float = 0.0
    fasting: bool = False


class ProgressionEngine:
    """
    XP, levels, streaks, badges, challenges and rewards for one user.

    Usage:
        engine = ProgressionEngine(profile, bus=bus)
        engine.record_activity(ActivityEvent.from_food(entry))
        engine.refresh(datetime.now())
    """

    XP_PER_ACTIVITY = {
        ActivityKind.FOOD: 10,
        ActivityKind.EXERCISE: 25,
        ActivityKind.WATER: 5,
        ActivityKind.FASTING: 50,
        ActivityKind.STEPS: 0,
    }

    LEVEL_UP_BONUS = 10            # x new level
    MAX_RECENT_ACHIEVEMENTS = 10
    DAILY_XP_PER_LEVEL = 20

    # Consistency streak: at least this many of food / exercise /
    # water >= 80% of goal / fasting on the same day
    CONSISTENCY_MIN_CATEGORIES = 3
    CONSISTENCY_WATER_RATIO = 0.8

    def __init__(
        self,
        profile: UserProfile,
        bus: Optional[EventBus] = None,
        starting_xp: int = 0,
        badges: Optional[List[Badge]] = None,
        rewards: Optional[List[Reward]] = None,
        challenges: Optional[List[Challenge]] = None,
        level_up_bonus: int = LEVEL_UP_BONUS,
    ):
        """
        Initialize Progression Engine.

        Args:
            profile: User profile (water goal, gamification switch)
            bus: Event sink; events are dropped when omitted
            starting_xp: Initial XP grant, also credited as points
            badges: Badge catalog (default catalog if omitted)
            rewards: Reward catalog (default catalog if omitted)
            challenges: Initially active challenges
            level_up_bonus: Bonus XP per level gained, times the new level
        """
        self.profile = profile
        self.bus = bus
        self.level_up_bonus = level_up_bonus

        self._lock = RLock()
        self._total_xp = max(0, starting_xp)
        self._points = max(0, starting_xp)
        self._xp_history: List[XPAward] = []
        self._recent_achievements: List[str] = []

        self._streaks: Dict[StreakType, Streak] = {t: Streak(streak_type=t) for t in StreakType}
        self._badges: List[Badge] = badges if badges is not None else default_badges()
        for badge in self._badges:
            if badge.rule not in BADGE_COUNTERS:
                raise ValueError(f"Unknown badge rule '{badge.rule}' on badge {badge.badge_id}")
        self._rewards: Dict[str, Reward] = {
            r.reward_id: r for r in (rewards if rewards is not None else default_rewards())
        }
        self._challenges: Dict[str, Challenge] = {c.challenge_id: c for c in (challenges or [])}

        self._days: Dict[date, DayLog] = {}
        self._counters: Dict[str, float] = {
            "meals": 0,
            "workouts": 0,
            "water_entries": 0,
            "water_total_ml": 0.0,
            "completed_fasts": 0,
            "longest_fast_hours": 0.0,
            "challenges_completed": 0,
        }
        self._food_days = set()

        # Starting XP may already clear some reward gates; no events yet.
        self._unlock_rewards(datetime.now(), [])

    # =========================================================================
    # MUTATORS
    # =========================================================================

    def award_xp(self, amount: int, reason: str, now: Optional[datetime] = None) -> int:
        """
        Award XP (and the same amount of points).

        Returns:
            XP actually credited, including level-up bonuses
        """
        now = now or datetime.now()
        events: List[ProgressionEvent] = []
        with self._lock:
            gained = self._award_xp(amount, reason, now, events)
            self._evaluate_badges(now, events)
        self._dispatch(events)
        return gained

    def record_activity(
        self,
        event: ActivityEvent,
        now: Optional[datetime] = None,
    ) -> List[ProgressionEvent]:
        """
        Apply one logged activity.

        Args:
            event: The logged activity
            now: Current time for challenge expiry (defaults to the event time)

        Returns:
            Events emitted by this transaction, in order
        """
        now = now or event.timestamp
        events: List[ProgressionEvent] = [self._event(
            EventType.ACTIVITY_RECORDED,
            f"{event.kind.value} recorded",
            event.timestamp,
            event.to_dict(),
        )]

        with self._lock:
            self._update_counters(event)

            # 1. XP
            xp = self.XP_PER_ACTIVITY.get(event.kind, 0)
            self._award_xp(xp, f"logging {event.kind.value}", event.timestamp, events)

            # 2. Streaks
            self._update_streaks(event, events)

            # 3. Badges
            self._evaluate_badges(now, events)

            # 4. Challenges
            self._expire_challenges(now, events)
            if self._advance_challenges(event, events):
                self._evaluate_badges(now, events)

        self._dispatch(events)
        return events

    def refresh(self, now: Optional[datetime] = None) -> List[ProgressionEvent]:
        """
        Close out missed days and expired challenges.

        A streak whose last qualifying day is before yesterday resets
        to 0 and becomes inactive.
        """
        now = now or datetime.now()
        today = now.date()
        events: List[ProgressionEvent] = []

        with self._lock:
            for streak in self._streaks.values():
                last = streak.last_qualifying_day
                if last is None or last >= today - timedelta(days=1):
                    continue
                if streak.current > 0 or streak.is_active:
                    self._break_streak(streak, now, events)

            self._expire_challenges(now, events)
            self._evaluate_badges(now, events)

        self._dispatch(events)
        return events

    def purchase_reward(self, reward: Reward, now: Optional[datetime] = None) -> bool:
        """True if the reward was purchased. Never partially deducts points."""
        return self.try_purchase(reward.reward_id, now).success

    def try_purchase(self, reward_id: str, now: Optional[datetime] = None) -> ProgressionResult:
        """
        Purchase a reward by id.

        Raises:
            UnknownRewardError: reward_id is not in this engine's catalog
        """
        now = now or datetime.now()
        events: List[ProgressionEvent] = []

        with self._lock:
            reward = self._rewards.get(reward_id)
            if reward is None:
                raise UnknownRewardError(reward_id)

            reason = None
            if reward.is_purchased:
                reason = FailureReason.ALREADY_PURCHASED
            elif not reward.is_unlocked:
                reason = FailureReason.REWARD_LOCKED
            elif self._points < reward.cost:
                reason = FailureReason.INSUFFICIENT_POINTS

            if reason is not None:
                logger.info(f"Purchase of {reward_id} refused: {reason.value}")
                return ProgressionResult(False, reason, self._points)

            self._points -= reward.cost
            reward.is_purchased = True
            points = self._points
            logger.info(f"Purchased {reward_id} for {reward.cost} points")
            self._add_achievement(f"Reward Purchased: {reward.name}")
            events.append(self._event(
                EventType.REWARD_PURCHASED,
                f"Purchased {reward.name}",
                now,
                {"reward_id": reward_id, "cost": reward.cost, "available_points": points},
            ))

        self._dispatch(events)
        return ProgressionResult(True, None, points)

    def add_challenge(self, challenge: Challenge):
        with self._lock:
            self._challenges[challenge.challenge_id] = challenge

    def start_weekly_challenges(self, now: Optional[datetime] = None) -> List[Challenge]:
        """Add the weekly challenge set starting today. Existing ids are kept."""
        now = now or datetime.now()
        with self._lock:
            for challenge in weekly_challenges(now):
                self._challenges.setdefault(challenge.challenge_id, challenge)
        return self.challenges

    def contribute_to_challenge(
        self,
        challenge_id: str,
        amount: float,
        now: Optional[datetime] = None,
    ) -> ProgressionResult:
        """
        Add progress from an external source (e.g. a step counter sync).

        Raises:
            UnknownChallengeError: challenge_id is not known
        """
        now = now or datetime.now()
        events: List[ProgressionEvent] = []

        with self._lock:
            challenge = self._challenges.get(challenge_id)
            if challenge is None:
                raise UnknownChallengeError(challenge_id)

            self._expire_challenges(now, events)
            if challenge.is_completed:
                result = ProgressionResult(False, FailureReason.ALREADY_COMPLETED, self._points)
            elif not challenge.is_active or now < challenge.starts_at:
                result = ProgressionResult(False, FailureReason.CHALLENGE_EXPIRED, self._points)
            else:
                challenge.progress += max(0.0, amount)
                if self._complete_if_done(challenge, now, events):
                    self._evaluate_badges(now, events)
                result = ProgressionResult(True, None, self._points)

        self._dispatch(events)
        return result

    # =========================================================================
    # READ ACCESSORS
    # =========================================================================

    @property
    def total_xp(self) -> int:
        with self._lock:
            return self._total_xp

    @property
    def available_points(self) -> int:
        with self._lock:
            return self._points

    @property
    def level(self) -> UserLevel:
        with self._lock:
            return levels.build_user_level(self._total_xp)

    def get_next_level_progress(self) -> float:
        """0-100 position inside the current level band."""
        with self._lock:
            return levels.next_level_progress(self._total_xp)

    @property
    def streaks(self) -> List[Streak]:
        with self._lock:
            return [copy.copy(s) for s in self._streaks.values()]

    def get_streak(self, streak_type: StreakType) -> Streak:
        with self._lock:
            return copy.copy(self._streaks[streak_type])

    @property
    def badges(self) -> List[Badge]:
        with self._lock:
            return [copy.copy(b) for b in self._badges]

    @property
    def challenges(self) -> List[Challenge]:
        with self._lock:
            return [copy.deepcopy(c) for c in self._challenges.values()]

    def get_challenge(self, challenge_id: str) -> Challenge:
        with self._lock:
            challenge = self._challenges.get(challenge_id)
            if challenge is None:
                raise UnknownChallengeError(challenge_id)
            return copy.deepcopy(challenge)

    @property
    def rewards(self) -> List[Reward]:
        with self._lock:
            return [copy.copy(r) for r in self._rewards.values()]

    def get_reward(self, reward_id: str) -> Reward:
        with self._lock:
            reward = self._rewards.get(reward_id)
            if reward is None:
                raise UnknownRewardError(reward_id)
            return copy.copy(reward)

    @property
    def recent_achievements(self) -> List[str]:
        """Newest first."""
        with self._lock:
            return list(self._recent_achievements)

    @property
    def xp_history(self) -> List[XPAward]:
        with self._lock:
            return list(self._xp_history)

    def today_xp(self, now: Optional[datetime] = None) -> int:
        today = (now or datetime.now()).date()
        with self._lock:
            return sum(a.amount for a in self._xp_history if a.awarded_at.date() == today)

    def daily_xp_goal(self) -> int:
        return self.DAILY_XP_PER_LEVEL * self.level.level

    def snapshot(self, now: Optional[datetime] = None) -> dict:
        """Progression summary for dashboards."""
        now = now or datetime.now()
        with self._lock:
            return {
                "user_id": self.profile.user_id,
                "total_xp": self._total_xp,
                "available_points": self._points,
                "level": self.level.to_dict(),
                "next_level_progress": round(self.get_next_level_progress(), 1),
                "today_xp": self.today_xp(now),
                "daily_xp_goal": self.daily_xp_goal(),
                "badges_unlocked": sum(1 for b in self._badges if b.is_unlocked),
                "active_challenges": sum(1 for c in self._challenges.values() if c.is_active),
            }

    # =========================================================================
    # XP
    # =========================================================================

    def _award_xp(
        self,
        amount: int,
        reason: str,
        now: datetime,
        events: List[ProgressionEvent],
    ) -> int:
        if amount <= 0 or not self.profile.gamification_enabled:
            return 0

        old_level = levels.level_for_xp(self._total_xp)
        self._credit(amount, reason, now)
        events.append(self._event(
            EventType.XP_AWARDED,
            f"+{amount} XP for {reason}",
            now,
            {"amount": amount, "reason": reason, "total_xp": self._total_xp},
        ))
        logger.info(f"Awarded {amount} XP to {self.profile.user_id} for {reason}")

        gained = amount
        reached = old_level
        while True:
            new_level = levels.level_for_xp(self._total_xp)
            if new_level <= reached:
                break

            bonus = 0
            for lvl in range(reached + 1, new_level + 1):
                bonus += self.level_up_bonus * lvl
                title = levels.level_title(lvl)
                logger.info(f"{self.profile.user_id} reached level {lvl}")
                self._add_achievement(f"Level Up! You're now {title} (Level {lvl})")
                events.append(self._event(
                    EventType.LEVEL_UP,
                    f"Reached level {lvl}",
                    now,
                    {"level": lvl, "title": title},
                ))
            reached = new_level

            if bonus > 0:
                self._credit(bonus, f"reaching level {new_level}", now)
                gained += bonus
                events.append(self._event(
                    EventType.XP_AWARDED,
                    f"+{bonus} XP level-up bonus",
                    now,
                    {"amount": bonus, "reason": "level_up_bonus", "total_xp": self._total_xp},
                ))

        if reached > old_level:
            self._unlock_rewards(now, events)
        return gained

    def _credit(self, amount: int, reason: str, now: datetime):
        self._total_xp += amount
        self._points += amount
        self._xp_history.append(XPAward(amount=amount, reason=reason, awarded_at=now))

    def _unlock_rewards(self, now: datetime, events: List[ProgressionEvent]):
        level = levels.level_for_xp(self._total_xp)
        for reward in self._rewards.values():
            if reward.is_unlocked or level < reward.required_level:
                continue
            reward.is_unlocked = True
            events.append(self._event(
                EventType.REWARD_UNLOCKED,
                f"Unlocked {reward.name}",
                now,
                {"reward_id": reward.reward_id, "required_level": reward.required_level},
            ))

    # =========================================================================
    # STREAKS
    # =========================================================================

    def _update_counters(self, event: ActivityEvent):
        day = self._days.setdefault(event.day, DayLog())
        counters = self._counters

        if event.kind == ActivityKind.FOOD:
            day.food = True
            counters["meals"] += 1
            self._food_days.add(event.day)
        elif event.kind == ActivityKind.EXERCISE:
            day.exercise = True
            counters["workouts"] += 1
        elif event.kind == ActivityKind.WATER:
            day.water_ml += event.safe_magnitude
            counters["water_entries"] += 1
            counters["water_total_ml"] += event.safe_magnitude
        elif event.kind == ActivityKind.FASTING:
            day.fasting = True
            counters["completed_fasts"] += 1
            counters["longest_fast_hours"] = max(
                counters["longest_fast_hours"], event.safe_magnitude
            )

    def _qualifies(self, streak_type: StreakType, day: DayLog) -> bool:
        goal = self.profile.water_goal_ml
        if streak_type == StreakType.DAILY_LOGGING:
            return day.food or day.exercise or day.water_ml > 0
        elif streak_type == StreakType.EXERCISE:
            return day.exercise
        elif streak_type == StreakType.FASTING:
            return day.fasting
        elif streak_type == StreakType.HYDRATION:
            return goal > 0 and day.water_ml >= goal
        elif streak_type == StreakType.CONSISTENCY:
            hits = [
                day.food,
                day.exercise,
                goal > 0 and day.water_ml >= goal * self.CONSISTENCY_WATER_RATIO,
                day.fasting,
            ]
            return sum(hits) >= self.CONSISTENCY_MIN_CATEGORIES
        return False

    def _update_streaks(self, event: ActivityEvent, events: List[ProgressionEvent]):
        day = self._days[event.day]
        for streak in self._streaks.values():
            if self._qualifies(streak.streak_type, day):
                self._advance_streak(streak, event.day, event.timestamp, events)

    def _advance_streak(
        self,
        streak: Streak,
        day: date,
        now: datetime,
        events: List[ProgressionEvent],
    ):
        last = streak.last_qualifying_day
        if last is not None and day <= last:
            return

        if last is not None and day == last + timedelta(days=1):
            streak.current += 1
        else:
            if streak.current > 0:
                self._break_streak(streak, now, events)
            streak.current = 1

        streak.best = max(streak.best, streak.current)
        streak.is_active = True
        streak.last_qualifying_day = day

    def _break_streak(self, streak: Streak, now: datetime, events: List[ProgressionEvent]):
        events.append(self._event(
            EventType.STREAK_BROKEN,
            f"{streak.streak_type.title} streak ended at {streak.current} days",
            now,
            {"streak_type": streak.streak_type.value, "ended_at": streak.current, "best": streak.best},
        ))
        streak.current = 0
        streak.is_active = False

    # =========================================================================
    # BADGES
    # =========================================================================

    def _badge_counters(self) -> Dict[str, float]:
        counters = dict(self._counters)
        counters["food_days"] = len(self._food_days)
        counters["level"] = levels.level_for_xp(self._total_xp)
        for streak in self._streaks.values():
            counters[f"best_streak_{streak.streak_type.value}"] = streak.best
        return counters

    def _evaluate_badges(self, now: datetime, events: List[ProgressionEvent]):
        """
        Recompute every locked badge from source counters.

        Unlocking awards XP, which can raise the level and unlock
        further badges, so evaluation repeats until nothing changes.
        """
        unlocked_any = True
        while unlocked_any:
            unlocked_any = False
            counters = self._badge_counters()
            for badge in self._badges:
                if badge.is_unlocked:
                    badge.progress = 100.0
                    continue

                value = counters.get(badge.rule, 0)
                if badge.goal <= 0:
                    badge.progress = 100.0
                else:
                    badge.progress = min(100.0, max(0.0, value / badge.goal * 100))

                if badge.progress >= 100:
                    self._unlock_badge(badge, now, events)
                    unlocked_any = True

    def _unlock_badge(self, badge: Badge, now: datetime, events: List[ProgressionEvent]):
        badge.is_unlocked = True
        badge.unlocked_at = now
        logger.info(f"{self.profile.user_id} unlocked badge {badge.badge_id}")
        self._add_achievement(f"Badge Unlocked: {badge.name}")
        events.append(self._event(
            EventType.BADGE_UNLOCKED,
            f"Unlocked {badge.name}",
            now,
            {"badge_id": badge.badge_id, "rarity": badge.rarity.value},
        ))
        self._award_xp(badge.rarity.xp_reward, f"unlocking {badge.name}", now, events)

    # =========================================================================
    # CHALLENGES
    # =========================================================================

    def _contribution(self, challenge: Challenge, event: ActivityEvent) -> float:
        challenge_type = challenge.challenge_type
        kind = event.kind

        if challenge_type == ChallengeType.STEPS and kind == ActivityKind.STEPS:
            return event.safe_magnitude
        elif challenge_type == ChallengeType.EXERCISE and kind == ActivityKind.EXERCISE:
            return event.safe_magnitude
        elif challenge_type == ChallengeType.FASTING and kind == ActivityKind.FASTING:
            return event.safe_magnitude
        elif challenge_type == ChallengeType.HYDRATION and kind == ActivityKind.WATER:
            return event.safe_magnitude / 1000
        elif challenge_type == ChallengeType.CALORIES and kind == ActivityKind.EXERCISE:
            return max(0.0, event.calories_burned)
        elif challenge_type == ChallengeType.CONSISTENCY and kind != ActivityKind.STEPS:
            if event.day in challenge.counted_days:
                return 0.0
            challenge.counted_days.add(event.day)
            return 1.0
        return 0.0

    def _advance_challenges(self, event: ActivityEvent, events: List[ProgressionEvent]) -> bool:
        """Returns True if any challenge completed."""
        completed = False
        for challenge in self._challenges.values():
            if not challenge.is_active or challenge.is_completed:
                continue
            if not challenge.starts_at <= event.timestamp <= challenge.expires_at:
                continue

            amount = self._contribution(challenge, event)
            if amount <= 0:
                continue
            challenge.progress += amount
            completed = self._complete_if_done(challenge, event.timestamp, events) or completed
        return completed

    def _complete_if_done(
        self,
        challenge: Challenge,
        now: datetime,
        events: List[ProgressionEvent],
    ) -> bool:
        if challenge.is_completed or challenge.progress < challenge.target:
            return False

        challenge.is_completed = True
        challenge.completed_at = now
        self._counters["challenges_completed"] += 1
        logger.info(f"{self.profile.user_id} completed challenge {challenge.challenge_id}")
        self._add_achievement(f"Challenge Complete: {challenge.name}")
        events.append(self._event(
            EventType.CHALLENGE_COMPLETED,
            f"Completed {challenge.name}",
            now,
            {"challenge_id": challenge.challenge_id, "xp_reward": challenge.xp_reward},
        ))
        self._award_xp(challenge.xp_reward, f"completing {challenge.name}", now, events)
        return True

    def _expire_challenges(self, now: datetime, events: List[ProgressionEvent]):
        for challenge in self._challenges.values():
            if not challenge.is_active or challenge.is_completed:
                continue
            if now <= challenge.expires_at:
                continue
            challenge.is_active = False
            events.append(self._event(
                EventType.CHALLENGE_EXPIRED,
                f"{challenge.name} expired",
                now,
                {"challenge_id": challenge.challenge_id, "progress": challenge.progress},
            ))

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _add_achievement(self, text: str):
        self._recent_achievements.insert(0, text)
        del self._recent_achievements[self.MAX_RECENT_ACHIEVEMENTS:]

    def _event(
        self,
        event_type: EventType,
        message: str,
        occurred_at: datetime,
        metadata: Optional[dict] = None,
    ) -> ProgressionEvent:
        return ProgressionEvent(
            event_type=event_type,
            user_id=self.profile.user_id,
            message=message,
            occurred_at=occurred_at,
            metadata=metadata or {},
        )

    def _dispatch(self, events: Iterable[ProgressionEvent]):
        if self.bus is not None:
            self.bus.emit_all(list(events))

"""
Reward Store

Read-side queries over the badge and reward collections held by a
ProgressionEngine. The only write is purchase, which is delegated to
the engine so its atomicity rules apply.
"""

from collections import OrderedDict
from typing import Dict, List, Optional

from models.gamification import Badge, BadgeCategory, Reward, RewardType
from gamification.errors import ProgressionResult
from gamification.progression import ProgressionEngine


class RewardStore:
    """
    Badge and reward filtering.

    Usage:
        store = RewardStore(engine)
        store.rewards(unlocked=True, purchased=False)
        store.purchase("dark_ocean")
    """

    def __init__(self, engine: ProgressionEngine):
        self.engine = engine

    # Badges

    def badges(
        self,
        unlocked: Optional[bool] = None,
        category: Optional[BadgeCategory] = None,
    ) -> List[Badge]:
        return [
            b for b in self.engine.badges
            if (unlocked is None or b.is_unlocked == unlocked)
            and (category is None or b.category == category)
        ]

    def badges_by_category(self) -> Dict[str, List[Badge]]:
        grouped: Dict[str, List[Badge]] = OrderedDict()
        for badge in self.engine.badges:
            grouped.setdefault(badge.category.value, []).append(badge)
        return grouped

    def unlocked_badge_count(self) -> int:
        return len(self.badges(unlocked=True))

    # Rewards

    def rewards(
        self,
        unlocked: Optional[bool] = None,
        purchased: Optional[bool] = None,
        reward_type: Optional[RewardType] = None,
    ) -> List[Reward]:
        return [
            r for r in self.engine.rewards
            if (unlocked is None or r.is_unlocked == unlocked)
            and (purchased is None or r.is_purchased == purchased)
            and (reward_type is None or r.reward_type == reward_type)
        ]

    def available_rewards(self) -> List[Reward]:
        """Unlocked and not yet purchased."""
        return self.rewards(unlocked=True, purchased=False)

    def affordable_rewards(self) -> List[Reward]:
        """Available rewards the current point balance covers."""
        points = self.engine.available_points
        return [r for r in self.available_rewards() if r.cost <= points]

    def rewards_by_category(self) -> Dict[str, List[Reward]]:
        """Rewards grouped by display category ("App Themes", ...)."""
        grouped: Dict[str, List[Reward]] = OrderedDict()
        for reward in self.engine.rewards:
            grouped.setdefault(reward.reward_type.category, []).append(reward)
        return grouped

    def get(self, reward_id: str) -> Reward:
        return self.engine.get_reward(reward_id)

    def purchase(self, reward_id: str) -> ProgressionResult:
        return self.engine.try_purchase(reward_id)

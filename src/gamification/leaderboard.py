"""Leaderboard ranking by total XP."""

from typing import List, Sequence

from models.gamification import LeaderboardEntry


def build_leaderboard(
    user_id: str,
    username: str,
    total_xp: int,
    others: Sequence[LeaderboardEntry] = (),
    limit: int = 10,
) -> List[LeaderboardEntry]:
    """
    Rank the user's XP against externally supplied entries.

    Equal scores share a rank (1, 2, 2, 4). Any entry in `others` with
    the user's id is replaced by the live value.
    """
    entries = [e for e in others if e.user_id != user_id]
    entries.append(LeaderboardEntry(user_id=user_id, username=username, score=total_xp))
    entries.sort(key=lambda e: (-e.score, e.username))

    ranked = []
    for position, entry in enumerate(entries, start=1):
        if ranked and ranked[-1].score == entry.score:
            rank = ranked[-1].rank
        else:
            rank = position
        ranked.append(LeaderboardEntry(entry.user_id, entry.username, entry.score, rank))

    return ranked[:limit]

"""
In-memory scoreboard for the Discord Trivia Bot.
"""
import itertools
import logging
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional

logger = logging.getLogger(__name__)

NO_SCORES_MESSAGE = "No scores yet! Start playing by typing `!trivia`."


class LeaderboardEntry(NamedTuple):
    rank: int
    user_id: int
    username: str
    score: int


@dataclass
class _PlayerScore:
    username: str
    score: int
    achieved_order: int


class Scoreboard:
    """
    Per-user tally of correct answers for the lifetime of the process.

    Players with equal scores are ranked by who reached that score first.
    """

    def __init__(self):
        self._players: Dict[int, _PlayerScore] = {}
        self._sequence = itertools.count()

    def __len__(self) -> int:
        return len(self._players)

    @property
    def is_empty(self) -> bool:
        return not self._players

    def award(self, user_id: int, username: str) -> int:
        """
        Add one point for a user.

        Args:
            user_id: Discord user identifier
            username: Display name, refreshed on every award

        Returns:
            The user's new score
        """
        player = self._players.get(user_id)
        if player is None:
            player = _PlayerScore(username=username, score=0, achieved_order=0)
            self._players[user_id] = player

        player.username = username
        player.score += 1
        player.achieved_order = next(self._sequence)

        logger.info(f"Awarded point to {username} ({user_id}), score is now {player.score}")
        return player.score

    def get_score(self, user_id: int) -> int:
        player = self._players.get(user_id)
        return player.score if player else 0

    def render(self) -> List[LeaderboardEntry]:
        """
        Get all entries ordered by score descending.

        Returns:
            Ranked entries, or an empty list when nobody has scored
        """
        ordered = sorted(
            self._players.items(),
            key=lambda item: (-item[1].score, item[1].achieved_order)
        )
        return [
            LeaderboardEntry(rank=index, user_id=user_id, username=player.username, score=player.score)
            for index, (user_id, player) in enumerate(ordered, start=1)
        ]

    def format_leaderboard(self, limit: Optional[int] = None) -> str:
        """Render the leaderboard as a chat message."""
        entries = self.render()
        if not entries:
            return NO_SCORES_MESSAGE

        if limit is not None:
            entries = entries[:limit]

        lines = ["**Leaderboard**", ""]
        lines.extend(f"{entry.rank}. <@{entry.user_id}> - {entry.score} point(s)" for entry in entries)
        return "\n".join(lines)

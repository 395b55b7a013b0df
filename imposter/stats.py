"""Per-player round outcomes and the store that accumulates them.

Stats are best-effort analytics: recording happens in a background task
that the round transition never awaits, and a failing store only costs the
counters, never the in-memory game.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable

from .models import User
from .schemas import GameResult, Player, StatsDelta, StatsResponse

logger = logging.getLogger(__name__)


def round_deltas(result: GameResult, players: Iterable[Player]) -> Dict[str, StatsDelta]:
    """Counter increments for every player still in the room at the end."""
    deltas: Dict[str, StatsDelta] = {}
    imposter_id = result.imposter.user_id
    caught = result.voted_out is not None and result.voted_out.user_id == imposter_id
    for player in players:
        is_imposter = player.user_id == imposter_id
        won = result.imposter_won if is_imposter else not result.imposter_won
        deltas[player.user_id] = StatsDelta(
            played=1,
            won=int(won),
            was_imposter=int(is_imposter),
            caught_as_imposter=int(is_imposter and caught),
        )
    return deltas


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round(part / whole * 100)


class TortoiseStatsStore:
    """Stats counters kept on the ``User`` row."""

    async def apply_round_outcome(self, user_id: str, delta: StatsDelta) -> None:
        user = await User.filter(id=user_id).first()
        if user is None:
            logger.warning("Stats update skipped: user %s not found", user_id)
            return
        user.games_played += delta.played
        user.games_won += delta.won
        user.times_imposter += delta.was_imposter
        user.times_caught_imposter += delta.caught_as_imposter
        await user.save()

    async def read_stats(self, user_id: str) -> StatsResponse:
        user = await User.filter(id=user_id).first()
        if user is None:
            return StatsResponse(user_id=user_id)
        return StatsResponse(
            user_id=user_id,
            games_played=user.games_played,
            games_won=user.games_won,
            win_rate=_percent(user.games_won, user.games_played),
            times_imposter=user.times_imposter,
            times_caught_imposter=user.times_caught_imposter,
            imposter_success_rate=_percent(
                user.times_imposter - user.times_caught_imposter, user.times_imposter
            ),
        )


async def _apply_all(store, deltas: Dict[str, StatsDelta]) -> None:
    for user_id, delta in deltas.items():
        try:
            await store.apply_round_outcome(user_id, delta)
        except Exception:
            logger.exception("Failed to record stats for user %s", user_id)


def record_round_stats(store, result: GameResult, players: Iterable[Player]) -> asyncio.Task:
    """Schedule the stats update for a finished round without awaiting it."""
    deltas = round_deltas(result, players)
    return asyncio.create_task(_apply_all(store, deltas))


__all__ = ["round_deltas", "TortoiseStatsStore", "record_round_stats"]

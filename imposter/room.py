from __future__ import annotations

import asyncio
import random
import time
from collections import Counter
from datetime import datetime, timezone
from math import ceil
from typing import Dict, List, Optional, Set

from pydantic import ValidationError

from .constants import MIN_PLAYERS, VOTING_WINDOW_SEC
from .errors import SettingsError
from .schemas import (
    GameResult,
    Player,
    RoomSettings,
    RoomState,
    RoundSummary,
    SettingsUpdate,
    UserIdentity,
)
from .words import has_words, pick_word

# NOTE: ``Room`` is transport-agnostic. It never touches websockets; the
# session layer in ``game_logic`` reads its return values and broadcasts.


class Round:
    """Secret and vote state of a single round. Replaced wholesale on reset."""

    def __init__(self) -> None:
        self.word: Optional[str] = None
        self.imposter: Optional[UserIdentity] = None
        self.time_remaining: int = 0
        self.skip_votes: Set[str] = set()
        # voter user_id -> target user_id, insertion ordered, last write wins
        self.votes: Dict[str, str] = {}
        self.start_time: Optional[float] = None


class Room:
    """Encapsulates runtime state and timers for one game room."""

    def __init__(self, room_id: str, name: str, admin: Player):
        self.room_id = room_id
        self.name = name
        self.admin_id = admin.user_id
        # user_id -> Player; dict order is join order
        self.players: Dict[str, Player] = {}
        self.game_state = "waiting"
        self.settings = RoomSettings()
        self.round = Round()
        self.history: List[dict] = []

        # Per-room scheduled tasks, owned here so every exit path can cancel them
        self.round_task: Optional[asyncio.Task] = None
        self.reset_task: Optional[asyncio.Task] = None

        self.add_player(admin)

    # ---------------------------------------------------------------------
    # Player management
    # ---------------------------------------------------------------------

    def has_player(self, user_id: str) -> bool:
        return user_id in self.players

    def is_admin(self, user_id: str) -> bool:
        return bool(self.players) and user_id == self.admin_id

    def add_player(self, player: Player) -> bool:
        """Add *player*; False when the room is full or already contains them."""
        if len(self.players) >= self.settings.max_players:
            return False
        if player.user_id in self.players:
            return False

        # First player of an empty room always becomes admin
        player.is_admin = not self.players
        if player.is_admin:
            self.admin_id = player.user_id
        self.players[player.user_id] = player
        return True

    def remove_player(self, user_id: str) -> bool:
        """Remove *user_id* if present and return True if the room is now empty."""
        if self.players.pop(user_id, None) is None:
            return not self.players

        self.round.skip_votes.discard(user_id)
        # Transfer admin to the earliest joined remaining player
        if user_id == self.admin_id and self.players:
            successor = next(iter(self.players.values()))
            successor.is_admin = True
            self.admin_id = successor.user_id
        return not self.players

    # ---------------------------------------------------------------------
    # Settings
    # ---------------------------------------------------------------------

    def update_settings(self, changes: dict) -> RoomSettings:
        """Validate and apply a partial settings update.

        Raises
        ------
        SettingsError
            If the room is not waiting, a key is unknown, a value is out of
            range, or the theme/difficulty pair is not in the word catalog.
            Nothing is applied in that case.
        """
        if self.game_state != "waiting":
            raise SettingsError("Settings can only be changed before the game starts")
        if not isinstance(changes, dict):
            raise SettingsError("Settings must be an object")
        try:
            update = SettingsUpdate.model_validate(changes)
        except ValidationError as exc:
            err = exc.errors()[0]
            field = ".".join(str(part) for part in err["loc"]) or "settings"
            raise SettingsError(f"Invalid setting '{field}': {err['msg']}") from exc

        merged = self.settings.model_copy(update=update.model_dump(exclude_none=True))
        if not has_words(merged.theme, merged.difficulty):
            raise SettingsError(f"Unknown theme/difficulty: {merged.theme}/{merged.difficulty}")
        self.settings = merged
        return merged

    # ---------------------------------------------------------------------
    # Round transitions
    # ---------------------------------------------------------------------

    @property
    def skip_needed(self) -> int:
        return ceil(len(self.players) / 2)

    def start_game(self) -> bool:
        """waiting -> playing. False (and no change) if preconditions fail."""
        if self.game_state != "waiting" or len(self.players) < MIN_PLAYERS:
            return False

        rnd = Round()
        imposter = random.choice(list(self.players.values()))
        rnd.imposter = UserIdentity(user_id=imposter.user_id, username=imposter.username)
        rnd.word = pick_word(self.settings.theme, self.settings.difficulty)
        rnd.time_remaining = self.settings.round_time
        rnd.start_time = time.time()

        self.round = rnd
        self.game_state = "playing"
        return True

    def tick(self) -> bool:
        """Advance the round clock by one second; True when discussion just ended."""
        if self.game_state != "playing":
            return False
        self.round.time_remaining -= 1
        if self.round.time_remaining <= 0:
            self.end_round()
            return True
        return False

    def end_round(self) -> None:
        """playing -> voting."""
        self.game_state = "voting"
        self.round.time_remaining = VOTING_WINDOW_SEC
        self._cancel_task("round_task")

    def add_skip_vote(self, user_id: str) -> bool:
        """Register a skip vote; True if it completed the quorum."""
        if self.game_state != "playing" or user_id not in self.players:
            return False
        self.round.skip_votes.add(user_id)
        return self.check_skip_quorum()

    def check_skip_quorum(self) -> bool:
        if self.game_state != "playing" or not self.players:
            return False
        if len(self.round.skip_votes) >= self.skip_needed:
            self.end_round()
            return True
        return False

    def add_vote(self, voter_id: str, target_id: str) -> Optional[GameResult]:
        """Record *voter_id*'s choice; returns the result once everyone voted.

        The target is not checked here. A target that is not a current
        player can never be voted out.
        """
        if self.game_state != "voting" or voter_id not in self.players:
            return None
        self.round.votes[voter_id] = target_id
        return self.settle_votes()

    def settle_votes(self) -> Optional[GameResult]:
        """End the game if every current player has a recorded vote."""
        if self.game_state != "voting" or not self.players:
            return None
        if all(pid in self.round.votes for pid in self.players):
            return self.end_game()
        return None

    def end_game(self) -> GameResult:
        """voting -> ended. Tallies votes and appends the round to history.

        Raises
        ------
        RuntimeError
            If no round has been started.
        """
        imposter = self.round.imposter
        if imposter is None or self.round.word is None:
            raise RuntimeError(f"Room {self.room_id} has no round to end")
        self.game_state = "ended"

        # Ties go to the target that first received a vote: only a strictly
        # greater count replaces the current leader.
        tally = Counter(self.round.votes.values())
        leader_id: Optional[str] = None
        max_votes = 0
        for target_id, count in tally.items():
            if count > max_votes:
                max_votes = count
                leader_id = target_id

        voted_out: Optional[UserIdentity] = None
        target = self.players.get(leader_id) if leader_id else None
        if target is not None:
            voted_out = UserIdentity(user_id=target.user_id, username=target.username)

        imposter_won = voted_out is None or voted_out.user_id != imposter.user_id

        result = GameResult(
            word=self.round.word,
            imposter=imposter,
            voted_out=voted_out,
            imposter_won=imposter_won,
            votes=dict(tally),
        )
        self.history.append({
            "result": result.model_dump(),
            "players": [p.model_dump() for p in self.players.values()],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        })
        return result

    def reset_game(self) -> bool:
        """ended -> waiting, keeping players and settings."""
        if self.game_state != "ended":
            return False
        self._cancel_task("reset_task")
        self.game_state = "waiting"
        self.round = Round()
        return True

    # ---------------------------------------------------------------------
    # Timers
    # ---------------------------------------------------------------------

    def _cancel_task(self, attr: str) -> None:
        task: Optional[asyncio.Task] = getattr(self, attr)
        setattr(self, attr, None)
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        # A timer that triggers the transition itself must finish its broadcast
        if task is not current:
            task.cancel()

    def cancel_timers(self) -> None:
        self._cancel_task("round_task")
        self._cancel_task("reset_task")

    # ---------------------------------------------------------------------
    # Views
    # ---------------------------------------------------------------------

    def player_list(self) -> List[Player]:
        return [p.model_copy() for p in self.players.values()]

    def public_state(self) -> RoomState:
        return RoomState(
            room_id=self.room_id,
            name=self.name,
            players=self.player_list(),
            game_state=self.game_state,
            settings=self.settings.model_copy(),
            round=RoundSummary(
                time_remaining=self.round.time_remaining,
                skip_votes=len(self.round.skip_votes),
                skip_needed=self.skip_needed,
            ),
        )


__all__ = ["Room", "Round"]

"""Pydantic data schemas used across the backend service.

This module centralises all models so that other packages can import
from a single location instead of sprinkling the definitions across
multiple files.
"""
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_MAX_PLAYERS,
    DEFAULT_ROUND_TIME_SEC,
    DEFAULT_THEME,
    MAX_PLAYERS_LIMIT,
    MAX_ROUND_TIME_SEC,
    MIN_PLAYERS,
    MIN_ROUND_TIME_SEC,
)

GameStateName = Literal["waiting", "playing", "voting", "ended"]

# -----------------------------
# Runtime & Rooms
# -----------------------------


class UserIdentity(BaseModel):
    """Authenticated user bound to a connection. Immutable once established."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str


class Player(BaseModel):
    """Represents a user inside a room at runtime."""

    user_id: str
    username: str
    is_admin: bool = False


class RoomSettings(BaseModel):
    """Room configuration selected by the admin while waiting."""

    max_players: int = DEFAULT_MAX_PLAYERS
    round_time: int = DEFAULT_ROUND_TIME_SEC  # seconds
    theme: str = DEFAULT_THEME
    difficulty: str = DEFAULT_DIFFICULTY


class SettingsUpdate(BaseModel):
    """Partial settings sent by the admin; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    max_players: Optional[int] = Field(
        default=None, alias="maxPlayers", ge=MIN_PLAYERS, le=MAX_PLAYERS_LIMIT, strict=True
    )
    round_time: Optional[int] = Field(
        default=None, alias="roundTime", ge=MIN_ROUND_TIME_SEC, le=MAX_ROUND_TIME_SEC, strict=True
    )
    theme: Optional[str] = None
    difficulty: Optional[str] = None


class RoundSummary(BaseModel):
    time_remaining: int = 0
    skip_votes: int = 0
    skip_needed: int = 0


class RoomState(BaseModel):
    """Public room view. Never carries the secret word or the imposter."""

    room_id: str
    name: str
    players: List[Player]
    game_state: GameStateName
    settings: RoomSettings
    round: RoundSummary


class ChatMessage(BaseModel):
    sender: str
    text: str
    timestamp: str
    kind: Literal["system", "user"] = "user"


class GameStarted(BaseModel):
    """Private per-player notice sent when a round begins."""

    word: Optional[str] = None
    is_imposter: bool
    time_limit: int


class GameResult(BaseModel):
    word: str
    imposter: UserIdentity
    voted_out: Optional[UserIdentity] = None
    imposter_won: bool
    votes: Dict[str, int] = {}  # target user_id -> number of votes


class StatsDelta(BaseModel):
    played: int = 1
    won: int = 0
    was_imposter: int = 0
    caught_as_imposter: int = 0


# -----------------------------
# REST request / response models
# -----------------------------


class RegisterRequest(BaseModel):
    username: str
    password: str


class LoginRequest(BaseModel):
    username: str
    password: str


class AuthResponse(BaseModel):
    token: str
    user: UserIdentity


class StatsResponse(BaseModel):
    user_id: str
    games_played: int = 0
    games_won: int = 0
    win_rate: int = 0
    times_imposter: int = 0
    times_caught_imposter: int = 0
    imposter_success_rate: int = 0


__all__ = [
    # runtime
    "GameStateName",
    "UserIdentity",
    "Player",
    "RoomSettings",
    "SettingsUpdate",
    "RoundSummary",
    "RoomState",
    "ChatMessage",
    "GameStarted",
    "GameResult",
    "StatsDelta",
    # auth / stats
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "StatsResponse",
]

"""Websocket command handling for Imposter rooms.

Every function here runs on the single asyncio event loop, so room
mutations never interleave mid-command. Handlers validate, call into
``imposter.room.Room`` for the transition, then broadcast the outcome to
the room's connections. Rejected commands raise ``CommandError`` before
anything is mutated.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Tuple

from .auth_utils import decode_access_token
from .constants import MAX_MESSAGE_LENGTH, MAX_ROOM_NAME_LENGTH, MIN_PLAYERS, TICK_INTERVAL_SEC
from .errors import CommandError, InvalidToken
from .room import Room
from .schemas import ChatMessage, GameResult, GameStarted, Player, UserIdentity
from .state import Connection, GameState
from .stats import record_round_stats

logger = logging.getLogger(__name__)

SYSTEM_SENDER = "System"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_user(conn: Connection) -> UserIdentity:
    if conn.user is None:
        raise CommandError("Not authenticated")
    return conn.user


def _get_room(state: GameState, data: dict) -> Room:
    room_id = data.get("room_id")
    if not isinstance(room_id, str) or not room_id.strip():
        raise CommandError("room_id is required")
    room = state.registry.get(room_id)
    if room is None:
        raise CommandError("Room not found")
    return room


def _member_room(state: GameState, conn: Connection, data: dict) -> Tuple[UserIdentity, Room]:
    """Resolve the room a command targets and check the caller plays in it."""
    user = _require_user(conn)
    room = _get_room(state, data)
    if conn.room_id != room.room_id or not room.has_player(user.user_id):
        raise CommandError("You are not in this room")
    return user, room


def _require_admin(room: Room, user: UserIdentity) -> None:
    if not room.is_admin(user.user_id):
        raise CommandError("Only the room admin can do that")


async def send_room_update(state: GameState, room: Room) -> None:
    await state.broadcast(room.room_id, "room_update", room.public_state().model_dump())


async def send_system_notice(state: GameState, room: Room, text: str) -> None:
    msg = ChatMessage(sender=SYSTEM_SENDER, text=text, timestamp=_timestamp(), kind="system")
    await state.broadcast(room.room_id, "chat_message", msg.model_dump())

# ---------------------------------------------------------------------------
# Round flow
# ---------------------------------------------------------------------------

async def _send_game_started(state: GameState, room: Room) -> None:
    """Private notice per player: the imposter gets no word."""
    imposter = room.round.imposter
    for conn in state.members(room.room_id):
        if conn.user is None:
            continue
        is_imposter = imposter is not None and conn.user.user_id == imposter.user_id
        payload = GameStarted(
            word=None if is_imposter else room.round.word,
            is_imposter=is_imposter,
            time_limit=room.settings.round_time,
        )
        try:
            await conn.send("game_started", payload.model_dump())
        except Exception:
            logger.warning("Failed to send game_started to connection %s", conn.id)


async def _announce_voting(state: GameState, room: Room) -> None:
    players = [p.model_dump() for p in room.player_list()]
    await state.broadcast(room.room_id, "voting_phase", {"players": players})
    await send_room_update(state, room)


async def _run_round_timer(state: GameState, room: Room) -> None:
    """Tick the room clock once per second until discussion ends."""
    try:
        while True:
            await asyncio.sleep(TICK_INTERVAL_SEC)
            if state.registry.get(room.room_id) is not room or room.game_state != "playing":
                return
            if room.tick():
                logger.info("Discussion time over in room %s", room.room_id)
                await _announce_voting(state, room)
                return
    except Exception:
        logger.exception("Round timer failed for room %s", room.room_id)


async def _reset_after_delay(state: GameState, room: Room) -> None:
    try:
        await asyncio.sleep(state.reset_delay)
        if state.registry.get(room.room_id) is not room:
            return
        if room.reset_game():
            await send_room_update(state, room)
    except Exception:
        logger.exception("Reset failed for room %s", room.room_id)


async def _finish_game(state: GameState, room: Room, result: GameResult) -> None:
    state.track(record_round_stats(state.stats_store, result, room.player_list()))
    logger.info(
        "Game ended in room %s: imposter %s, voted out %s, imposter won: %s",
        room.room_id,
        result.imposter.username,
        result.voted_out.username if result.voted_out else None,
        result.imposter_won,
    )
    await state.broadcast(room.room_id, "game_ended", result.model_dump())
    await send_room_update(state, room)
    # Scheduled only after members have seen the ended state
    room.reset_task = asyncio.create_task(_reset_after_delay(state, room))


async def _remove_from_room(state: GameState, conn: Connection, room: Room, notice: str) -> None:
    """Drop the connection's player from *room* and settle what that changes."""
    user = _require_user(conn)
    conn.room_id = None
    if room.remove_player(user.user_id):
        state.registry.remove(room.room_id)
        return

    # A departure can complete the skip quorum or the vote
    if room.game_state == "playing" and room.check_skip_quorum():
        await _announce_voting(state, room)
    else:
        result = room.settle_votes()
        if result is not None:
            await _finish_game(state, room, result)
        else:
            await send_room_update(state, room)
    await send_system_notice(state, room, notice)

# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------

async def handle_authenticate(state: GameState, conn: Connection, data: dict) -> None:
    try:
        identity = decode_access_token(data.get("token"), state.token_secret)
    except InvalidToken as exc:
        # Keep the identity of a connection that is seated in a room
        if conn.room_id is None:
            conn.user = None
        await conn.send("auth_error", {"message": str(exc)})
        return

    if conn.room_id is not None and conn.user is not None and conn.user.user_id != identity.user_id:
        await conn.send("auth_error", {"message": "Leave your room before switching accounts"})
        return
    conn.user = identity
    await conn.send("authenticated", identity.model_dump())


async def handle_create_room(state: GameState, conn: Connection, data: dict) -> None:
    user = _require_user(conn)
    if conn.room_id is not None:
        raise CommandError("Leave your current room first")
    name = data.get("name")
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        name = f"{user.username}'s room"

    room = state.registry.create(
        name[:MAX_ROOM_NAME_LENGTH], Player(user_id=user.user_id, username=user.username)
    )
    conn.room_id = room.room_id
    await conn.send("room_created", {"room_id": room.room_id})
    await send_room_update(state, room)


async def handle_join_room(state: GameState, conn: Connection, data: dict) -> None:
    user = _require_user(conn)
    room = _get_room(state, data)
    if conn.room_id == room.room_id:
        raise CommandError("You are already in this room")
    if conn.room_id is not None:
        raise CommandError("Leave your current room first")
    if room.game_state != "waiting":
        raise CommandError("Game already in progress")
    if not room.add_player(Player(user_id=user.user_id, username=user.username)):
        raise CommandError("Room is full or you are already in it")

    conn.room_id = room.room_id
    logger.info("%s joined room %s", user.username, room.room_id)
    await conn.send("room_joined", {"room_id": room.room_id})
    await send_room_update(state, room)
    await send_system_notice(state, room, f"{user.username} joined the room")


async def handle_leave_room(state: GameState, conn: Connection, data: dict) -> None:
    user, room = _member_room(state, conn, data)
    logger.info("%s left room %s", user.username, room.room_id)
    await _remove_from_room(state, conn, room, f"{user.username} left the room")
    await conn.send("room_left", {"room_id": room.room_id})


async def handle_update_settings(state: GameState, conn: Connection, data: dict) -> None:
    user, room = _member_room(state, conn, data)
    _require_admin(room, user)
    room.update_settings(data.get("settings"))
    await send_room_update(state, room)


async def handle_start_game(state: GameState, conn: Connection, data: dict) -> None:
    user, room = _member_room(state, conn, data)
    _require_admin(room, user)
    if not room.start_game():
        raise CommandError(
            f"Game cannot be started (at least {MIN_PLAYERS} players required and no round running)"
        )

    room.round_task = asyncio.create_task(_run_round_timer(state, room))
    logger.info("Game started in room %s", room.room_id)
    logger.debug("Room %s imposter: %s", room.room_id, room.round.imposter)
    await _send_game_started(state, room)
    await send_room_update(state, room)


async def handle_skip_vote(state: GameState, conn: Connection, data: dict) -> None:
    user, room = _member_room(state, conn, data)
    if room.game_state != "playing":
        raise CommandError("Skipping is only possible during the discussion")
    if room.add_skip_vote(user.user_id):
        logger.info("Skip quorum reached in room %s", room.room_id)
        await _announce_voting(state, room)
    else:
        await send_room_update(state, room)


async def handle_vote(state: GameState, conn: Connection, data: dict) -> None:
    user, room = _member_room(state, conn, data)
    if room.game_state != "voting":
        raise CommandError("Voting is not open")
    target_id = data.get("target_id")
    if not isinstance(target_id, str) or not room.has_player(target_id):
        raise CommandError("Unknown vote target")

    result = room.add_vote(user.user_id, target_id)
    if result is None:
        await send_room_update(state, room)
    else:
        await _finish_game(state, room, result)


async def handle_send_message(state: GameState, conn: Connection, data: dict) -> None:
    user, room = _member_room(state, conn, data)
    text = data.get("text")
    text = text.strip() if isinstance(text, str) else ""
    if not text:
        raise CommandError("Message cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise CommandError(f"Message is too long (max {MAX_MESSAGE_LENGTH} characters)")
    msg = ChatMessage(sender=user.username, text=text, timestamp=_timestamp(), kind="user")
    await state.broadcast(room.room_id, "chat_message", msg.model_dump())


async def handle_disconnect(state: GameState, conn: Connection) -> None:
    state.disconnect(conn)
    if conn.user is None or conn.room_id is None:
        return
    room = state.registry.get(conn.room_id)
    if room is None:
        conn.room_id = None
        return
    logger.info("%s disconnected from room %s", conn.user.username, room.room_id)
    await _remove_from_room(state, conn, room, f"{conn.user.username} lost connection")

# ---------------------------------------------------------------------------
# Primary dispatcher used by websocket endpoint
# ---------------------------------------------------------------------------

async def handle_ws_message(state: GameState, conn: Connection, data: dict) -> None:
    msg_type = data.get("type")
    if msg_type == "authenticate":
        await handle_authenticate(state, conn, data)
    elif msg_type == "create_room":
        await handle_create_room(state, conn, data)
    elif msg_type == "join_room":
        await handle_join_room(state, conn, data)
    elif msg_type == "leave_room":
        await handle_leave_room(state, conn, data)
    elif msg_type == "update_settings":
        await handle_update_settings(state, conn, data)
    elif msg_type == "start_game":
        await handle_start_game(state, conn, data)
    elif msg_type == "skip_vote":
        await handle_skip_vote(state, conn, data)
    elif msg_type == "vote":
        await handle_vote(state, conn, data)
    elif msg_type == "send_message":
        await handle_send_message(state, conn, data)
    else:
        raise CommandError(f"Unknown message type: {msg_type!r}")


async def process_message(state: GameState, conn: Connection, data: dict) -> None:
    """Run one command; failures are reported to the sender and never escape."""
    try:
        await handle_ws_message(state, conn, data)
    except CommandError as exc:
        await conn.send("error", {"message": exc.message})
    except Exception:
        logger.exception("Unhandled error processing %r from connection %s", data.get("type"), conn.id)
        await conn.send("error", {"message": "Internal server error"})

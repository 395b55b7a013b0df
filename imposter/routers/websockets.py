from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from ..game_logic import handle_authenticate, handle_disconnect, process_message
from ..state import GameState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["ws"])


@router.websocket("/ws")
async def websocket_endpoint(ws: WebSocket, token: Optional[str] = Query(default=None)):
    await ws.accept()
    state: GameState = ws.app.state.game
    conn = state.connect(ws)
    try:
        if token:
            await handle_authenticate(state, conn, {"token": token})
        while True:
            try:
                data = await ws.receive_json()
            except ValueError:
                await conn.send("error", {"message": "Malformed message"})
                continue
            if not isinstance(data, dict):
                await conn.send("error", {"message": "Malformed message"})
                continue
            await process_message(state, conn, data)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WebSocket error on connection %s", conn.id)
    finally:
        await handle_disconnect(state, conn)

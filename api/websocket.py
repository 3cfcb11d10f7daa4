"""WebSocket connection management with table engine integration."""

import asyncio
import json
import logging
from typing import Any, Callable

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from api.routes.table import (
    RejectionRecorder,
    _load_table,
    _new_table,
    _save_table,
    _tables,
    table_state_response,
)
from api.session import extract_session_id
from table.game import GameEvent, TableGame

logger = logging.getLogger(__name__)

router = APIRouter()


class ConnectionManager:
    """Manage WebSocket connections and their tables' event queues."""

    def __init__(self) -> None:
        self._connections: dict[str, WebSocket] = {}
        self._event_queues: dict[str, asyncio.Queue] = {}
        # session id -> (watched table, its subscribed handler)
        self._watchers: dict[str, tuple[TableGame, Callable[[GameEvent], None]]] = {}

    async def connect(self, websocket: WebSocket, session_id: str) -> None:
        """Accept and register a new connection."""
        await websocket.accept()
        self._connections[session_id] = websocket
        self._event_queues[session_id] = asyncio.Queue()

    def disconnect(self, session_id: str) -> None:
        """Remove a connection; the table stays cached for reconnection."""
        self._unwatch(session_id)
        self._connections.pop(session_id, None)
        self._event_queues.pop(session_id, None)

    async def get_or_create_table(self, session_id: str) -> TableGame:
        """Get the session's table, loading or creating it as needed."""
        table = _tables.get(session_id)
        if table is None:
            table = await _load_table(session_id)
        if table is None:
            table = _new_table()
            await _save_table(session_id, table)
        _tables[session_id] = table
        self._watch(session_id, table)
        return table

    async def reset_table(self, session_id: str, player_names: list[str]) -> TableGame:
        """Replace the session's table with a freshly seated one."""
        table = _new_table(player_names)
        _tables[session_id] = table
        await _save_table(session_id, table)
        self._watch(session_id, table)
        return table

    def _watch(self, session_id: str, table: TableGame) -> None:
        """Forward the table's events to the session, replacing any older table."""
        watched = self._watchers.get(session_id)
        if watched is not None and watched[0] is table:
            return
        self._unwatch(session_id)

        def handler(event: GameEvent) -> None:
            self._queue_event(session_id, event)

        table.subscribe(handler)
        self._watchers[session_id] = (table, handler)

    def _unwatch(self, session_id: str) -> None:
        watched = self._watchers.pop(session_id, None)
        if watched is not None:
            table, handler = watched
            table.events.unsubscribe(handler)

    def _queue_event(self, session_id: str, event: GameEvent) -> None:
        """Queue an event for async delivery."""
        queue = self._event_queues.get(session_id)
        if queue is not None:
            queue.put_nowait(event)

    async def get_event(self, session_id: str) -> GameEvent | None:
        """Get the next event from the queue."""
        queue = self._event_queues.get(session_id)
        if queue is None:
            return None
        try:
            return await asyncio.wait_for(queue.get(), timeout=0.1)
        except asyncio.TimeoutError:
            return None

    async def send_message(self, session_id: str, message: dict[str, Any]) -> None:
        """Send a message to a specific session."""
        websocket = self._connections.get(session_id)
        if websocket is not None:
            await websocket.send_json(message)

    @property
    def active_connections(self) -> int:
        """Return number of active connections."""
        return len(self._connections)


# Global connection manager
manager = ConnectionManager()


def _state_message(table: TableGame) -> dict[str, Any]:
    return {
        "type": "state_update",
        "state": table_state_response(table).model_dump(),
    }


def _event_to_message(event: GameEvent, table: TableGame) -> dict[str, Any]:
    """Convert a table event to a WebSocket message."""
    return {
        "type": "event",
        "event_type": event.event_type.name,
        "data": event.data,
        "state": table_state_response(table).model_dump(),
    }


async def _handle_message(
    session_id: str,
    table: TableGame,
    message: dict[str, Any],
) -> TableGame:
    """Apply one client message to the table, returning the active table."""
    msg_type = message.get("type")

    if msg_type == "get_state":
        await manager.send_message(session_id, _state_message(table))

    elif msg_type == "bet":
        seat = message.get("seat")
        amount = message.get("amount")
        if not isinstance(seat, int) or not isinstance(amount, int):
            await manager.send_message(session_id, {
                "type": "error",
                "message": "Bet needs an integer seat and amount",
            })
        else:
            with RejectionRecorder(table) as rejection:
                accepted = table.place_bet(seat, amount)
            if not accepted:
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": rejection.message or "Bet rejected",
                })

    elif msg_type == "action":
        seat = message.get("seat")
        action = message.get("action")
        actions = {"hit": table.hit, "stand": table.stand}
        action_fn = actions.get(action)
        if action_fn is None:
            await manager.send_message(session_id, {
                "type": "error",
                "message": f"Unknown action: {action}",
            })
        elif not isinstance(seat, int):
            await manager.send_message(session_id, {
                "type": "error",
                "message": "Action needs an integer seat",
            })
        else:
            with RejectionRecorder(table) as rejection:
                accepted = action_fn(seat)
            if not accepted:
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": rejection.message or f"Cannot {action} now",
                })

    elif msg_type == "new_round":
        if not table.new_round():
            await manager.send_message(session_id, {
                "type": "error",
                "message": "Round is not complete",
            })

    elif msg_type == "reset_table":
        names = message.get("player_names") or []
        table = await manager.reset_table(session_id, names)
        await manager.send_message(session_id, _state_message(table))
        return table

    else:
        await manager.send_message(session_id, {
            "type": "error",
            "message": f"Unknown message type: {msg_type}",
        })
        return table

    await _save_table(session_id, table)
    return table


@router.websocket("/table/{session_id}")
async def table_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time table updates.

    Messages from client:
    - {"type": "bet", "seat": 1, "amount": 100}
    - {"type": "action", "seat": 1, "action": "hit"|"stand"}
    - {"type": "new_round"}
    - {"type": "reset_table", "player_names": ["Ann", "Bob"]}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "state_update", "state": {...}}
    - {"type": "event", "event_type": "...", "data": {...}, "state": {...}}
    - {"type": "error", "message": "..."}
    """
    if extract_session_id(session_id) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, session_id)
    table = await manager.get_or_create_table(session_id)

    await manager.send_message(session_id, _state_message(table))

    async def process_events():
        """Forward queued table events to the client."""
        while True:
            event = await manager.get_event(session_id)
            if event is not None:
                await manager.send_message(session_id, _event_to_message(event, table))

    event_task = asyncio.create_task(process_events())

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": "Messages must be JSON",
                })
                continue
            if not isinstance(message, dict):
                await manager.send_message(session_id, {
                    "type": "error",
                    "message": "Messages must be JSON objects",
                })
                continue
            table = await _handle_message(session_id, table, message)

    except WebSocketDisconnect:
        logger.info("WebSocket for session %s disconnected", session_id)
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        manager.disconnect(session_id)

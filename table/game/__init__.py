"""Table engine and state management."""

from table.game.events import GameEvent, EventType
from table.game.state import TableState
from table.game.engine import TableGame

__all__ = [
    "GameEvent",
    "EventType",
    "TableState",
    "TableGame",
]

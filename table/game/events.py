"""Table events and the emitter that fans them out to listeners."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Everything that can happen at the table."""

    # Table flow
    GAME_STARTED = auto()
    GAME_ENDED = auto()
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()
    TURN_CHANGED = auto()

    # Money
    BET_PLACED = auto()
    BET_RESOLVED = auto()

    # Deck
    CARD_DEALT = auto()
    DECK_SHUFFLED = auto()

    # Seat actions
    PLAYER_HIT = auto()
    PLAYER_STAND = auto()

    # House
    DEALER_REVEALS = auto()
    DEALER_HITS = auto()
    DEALER_STANDS = auto()
    DEALER_BUSTS = auto()
    DEALER_BLACKJACK = auto()

    # Seat outcomes
    PLAYER_BLACKJACK = auto()
    PLAYER_BUSTS = auto()
    PLAYER_WINS = auto()
    PLAYER_LOSES = auto()
    PUSH = auto()

    # Rejected requests
    INVALID_ACTION = auto()
    INSUFFICIENT_FUNDS = auto()


REJECTIONS = frozenset({EventType.INVALID_ACTION, EventType.INSUFFICIENT_FUNDS})


@dataclass(frozen=True)
class GameEvent:
    """
    Something that happened at the table.

    The payload is kept JSON friendly (strings, ints, floats, lists) so the
    websocket layer can forward it untouched.
    """

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def seat(self) -> int | None:
        """Seat the event concerns, if any."""
        return self.data.get("seat")

    @property
    def is_rejection(self) -> bool:
        return self.event_type in REJECTIONS

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


EventHandler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Dispatches table events to subscribers and keeps a log of them.

    Handlers registered for a specific type run before catch-all handlers
    (registered with ``event_type=None``).
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType | None, list[EventHandler]] = {}
        self._log: list[GameEvent] = []

    def subscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """
        Register a handler.

        Args:
            handler: Called with each matching event
            event_type: Only deliver this type, or every event if None
        """
        self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(
        self,
        handler: EventHandler,
        event_type: EventType | None = None,
    ) -> None:
        """Remove a handler; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        """Log the event, record it and call its handlers."""
        self._log.append(event)

        if event.is_rejection:
            logger.warning("%s", event)
        else:
            logger.debug("%s", event)

        # Copies so handlers may unsubscribe while being called
        targeted = list(self._handlers.get(event.event_type, []))
        catch_all = list(self._handlers.get(None, []))
        for handler in targeted + catch_all:
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Build an event from keyword data, emit it and return it."""
        event = GameEvent(event_type=event_type, data=data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        """Every event emitted since the last clear, oldest first."""
        return list(self._log)

    def of_type(self, event_type: EventType) -> list[GameEvent]:
        """Logged events of one type, oldest first."""
        return [e for e in self._log if e.event_type == event_type]

    def clear_history(self) -> None:
        self._log.clear()

"""Table API endpoints."""

import logging
import time
from decimal import Decimal
from typing import Annotated, Any

from fastapi import APIRouter, HTTPException, Header

from api.schemas import (
    ActionRequest,
    BetRequest,
    CardData,
    CardResponse,
    ControlsResponse,
    DealerResponse,
    HandData,
    HandResponse,
    NewTableRequest,
    NewTableResponse,
    PlayerDataModel,
    RulesData,
    SeatResponse,
    TableStateData,
    TableStateResponse,
)
from api.session import (
    create_session,
    delete_session,
    extract_session_id,
    get_session,
    update_session,
)
from config import config
from table.cards import Card, Deck, Rank, Suit
from table.game import GameEvent, TableGame
from table.game.events import REJECTIONS
from table.hand import Hand
from table.player import PlayerData
from table.rules import TableRules

logger = logging.getLogger(__name__)

router = APIRouter()

# In-memory table cache (backed by session store)
_tables: dict[str, TableGame] = {}

# Session data keys
SESSION_KEY_TABLE = "table"
SESSION_KEY_CREATED_AT = "created_at"
SESSION_KEY_LAST_ACTIVITY = "last_activity"


def _serialize_card(card: Card) -> CardData:
    """Serialize a card."""
    return CardData(rank=card.rank.value, suit=card.suit.value)


def _deserialize_card(data: CardData) -> Card:
    """Deserialize a card."""
    return Card(Rank(data.rank), Suit(data.suit))


def _serialize_hand(hand: Hand) -> HandData:
    """Serialize a hand."""
    return HandData(
        cards=[_serialize_card(c) for c in hand.cards],
        bet=hand.bet,
        is_standing=hand.is_standing,
    )


def _deserialize_hand(data: HandData) -> Hand:
    """Deserialize a hand."""
    return Hand(
        cards=[_deserialize_card(c) for c in data.cards],
        bet=data.bet,
        is_standing=data.is_standing,
    )


def _serialize_table(table: TableGame) -> dict[str, Any]:
    """Serialize table state for session storage."""
    rules = table.rules
    data = TableStateData(
        state=table._machine_state,
        players=[
            PlayerDataModel(
                seat=p.seat,
                name=p.name,
                balance=str(p.balance),
                current_bet=p.current_bet,
                has_bet=p.has_bet,
                last_result=str(p.last_result) if p.last_result is not None else None,
                hand=_serialize_hand(p.hand),
            )
            for p in table.players
        ],
        dealer_hand=_serialize_hand(table.dealer_hand),
        deck_cards=[_serialize_card(c) for c in table.deck.cards],
        deck_position=table.deck.position,
        turn_order=table._turn_order,
        turn_position=table._turn_position,
        hole_card_hidden=table._hole_card_hidden,
        rules=RulesData(
            seats=rules.seats,
            starting_balance=rules.starting_balance,
            min_bet=rules.min_bet,
            max_bet=rules.max_bet,
            blackjack_payout=rules.blackjack_payout,
            dealer_stands_on=rules.dealer_stands_on,
            dealer_hits_soft_17=rules.dealer_hits_soft_17,
        ),
    )
    return data.model_dump()


def _deserialize_table(raw: dict[str, Any]) -> TableGame:
    """Restore a table from session data."""
    data = TableStateData.model_validate(raw)

    rules = TableRules(**data.rules.model_dump())
    deck = Deck.restore(
        cards=[_deserialize_card(c) for c in data.deck_cards],
        position=data.deck_position,
    )
    table = TableGame(rules=rules, deck=deck)

    # Restore state machine state
    table._machine_state = data.state

    table.players = [
        PlayerData(
            seat=p.seat,
            name=p.name,
            balance=Decimal(p.balance),
            hand=_deserialize_hand(p.hand),
            current_bet=p.current_bet,
            has_bet=p.has_bet,
            last_result=Decimal(p.last_result) if p.last_result is not None else None,
        )
        for p in data.players
    ]
    table.dealer_hand = _deserialize_hand(data.dealer_hand)
    table._turn_order = list(data.turn_order)
    table._turn_position = data.turn_position
    table._hole_card_hidden = data.hole_card_hidden

    return table


async def _load_table(session_id: str) -> TableGame | None:
    """Load a table from the session store."""
    session_data = await get_session(session_id)
    if session_data and SESSION_KEY_TABLE in session_data:
        return _deserialize_table(session_data[SESSION_KEY_TABLE])
    return None


async def _save_table(session_id: str, table: TableGame) -> None:
    """Save a table to the session store."""
    session_data = await get_session(session_id) or {}
    session_data[SESSION_KEY_TABLE] = _serialize_table(table)
    session_data[SESSION_KEY_LAST_ACTIVITY] = int(time.time())
    if SESSION_KEY_CREATED_AT not in session_data:
        session_data[SESSION_KEY_CREATED_AT] = int(time.time())
    await update_session(session_id, session_data)


async def _get_table(session_id: str) -> TableGame:
    """Get the table for a session, or 404."""
    if extract_session_id(session_id) is None:
        raise HTTPException(status_code=404, detail="Unknown session")

    if session_id in _tables:
        return _tables[session_id]

    table = await _load_table(session_id)
    if table is None:
        raise HTTPException(status_code=404, detail="Unknown session")

    _tables[session_id] = table
    return table


def _new_table(player_names: list[str] | None = None) -> TableGame:
    """Create a table with the configured rules and seat the players."""
    return TableGame(
        rules=TableRules.from_config(config.table),
        player_names=player_names or [],
    )


class RejectionRecorder:
    """Capture the message of the last rejected table action."""

    def __init__(self, table: TableGame) -> None:
        self._table = table
        self.message: str | None = None

    def __enter__(self) -> "RejectionRecorder":
        for event_type in REJECTIONS:
            self._table.subscribe(self._record, event_type)
        return self

    def __exit__(self, *exc_info: object) -> None:
        for event_type in REJECTIONS:
            self._table.events.unsubscribe(self._record, event_type)

    def _record(self, event: GameEvent) -> None:
        self.message = event.data.get("message", event.event_type.name)


def _card_to_response(card: Card) -> CardResponse:
    """Convert a Card to CardResponse."""
    return CardResponse(
        rank=str(card.rank),
        suit=str(card.suit),
        value=card.value,
        name=card.name,
    )


def _hand_to_response(hand: Hand) -> HandResponse:
    """Convert a Hand to HandResponse."""
    return HandResponse(
        cards=[_card_to_response(c) for c in hand.cards],
        value=hand.value,
        is_soft=hand.is_soft,
        is_blackjack=hand.is_blackjack,
        is_busted=hand.is_busted,
    )


def table_state_response(table: TableGame) -> TableStateResponse:
    """Convert table state to a response, hiding the dealer's hole card."""
    seats = []
    for player in table.players:
        controls = table.controls(player.seat)
        seats.append(
            SeatResponse(
                seat=player.seat,
                name=player.name,
                balance=float(player.balance),
                current_bet=player.current_bet,
                has_bet=player.has_bet,
                hand=_hand_to_response(player.hand),
                controls=ControlsResponse(
                    can_bet=controls.can_bet,
                    can_hit=controls.can_hit,
                    can_stand=controls.can_stand,
                ),
                last_result=float(player.last_result) if player.last_result is not None else None,
            )
        )

    visible = table.dealer_visible_cards
    return TableStateResponse(
        state=table.state.name,
        status=table.status_text,
        current_seat=table.current_seat,
        seats=seats,
        dealer=DealerResponse(
            cards=[_card_to_response(c) for c in visible],
            hidden_cards=len(table.dealer_hand.cards) - len(visible),
            value=table.dealer_visible_value,
        ),
        cards_remaining=table.deck.cards_remaining,
    )


@router.post("/new")
async def new_table(
    request: NewTableRequest | None = None,
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> NewTableResponse:
    """Seat players at a new table."""
    names = request.player_names if request else []
    if len(names) > config.table.seats:
        raise HTTPException(status_code=400, detail=f"Table only has {config.table.seats} seats")

    if session_id is None or extract_session_id(session_id) is None:
        session_id = await create_session()

    table = _new_table(names)
    _tables[session_id] = table
    await _save_table(session_id, table)
    logger.info("New table for session %s", session_id)

    return NewTableResponse(session_id=session_id)


@router.get("/state")
async def get_state(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Get current table state."""
    table = await _get_table(session_id)
    return table_state_response(table)


@router.post("/bet")
async def place_bet(
    request: BetRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Place a seat's bet; the last bet in deals the round."""
    table = await _get_table(session_id)

    with RejectionRecorder(table) as rejection:
        accepted = table.place_bet(request.seat, request.amount)
    if not accepted:
        raise HTTPException(status_code=400, detail=rejection.message or "Invalid bet")

    await _save_table(session_id, table)
    return table_state_response(table)


@router.post("/action")
async def player_action(
    request: ActionRequest,
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Execute a player action."""
    table = await _get_table(session_id)

    actions = {
        "hit": table.hit,
        "stand": table.stand,
    }

    with RejectionRecorder(table) as rejection:
        accepted = actions[request.action](request.seat)
    if not accepted:
        raise HTTPException(
            status_code=400,
            detail=rejection.message or f"Cannot {request.action} now",
        )

    await _save_table(session_id, table)
    return table_state_response(table)


@router.post("/next-round")
async def next_round(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> TableStateResponse:
    """Clear the table and reopen betting."""
    table = await _get_table(session_id)

    with RejectionRecorder(table) as rejection:
        accepted = table.new_round()
    if not accepted:
        raise HTTPException(status_code=400, detail=rejection.message or "Round is not complete")

    await _save_table(session_id, table)
    return table_state_response(table)


@router.delete("")
async def leave_table(
    session_id: Annotated[str, Header(alias="X-Session-ID")],
) -> dict[str, str]:
    """Drop the session and its table."""
    await _get_table(session_id)
    _tables.pop(session_id, None)
    await delete_session(session_id)
    logger.info("Session %s left the table", session_id)
    return {"status": "closed"}

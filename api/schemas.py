"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Literal


# Table schemas
class NewTableRequest(BaseModel):
    """Request to seat players at a new table."""

    player_names: list[str] = Field(default_factory=list, max_length=7)


class NewTableResponse(BaseModel):
    """A freshly created table session."""

    session_id: str


class BetRequest(BaseModel):
    """Request to place a seat's bet."""

    seat: int = Field(..., ge=1, description="Seat number (1-based)")
    amount: int = Field(..., description="Bet amount")


class ActionRequest(BaseModel):
    """Request for player action."""

    seat: int = Field(..., ge=1, description="Seat number (1-based)")
    action: Literal["hit", "stand"]


class CardResponse(BaseModel):
    """Card representation."""

    model_config = ConfigDict(from_attributes=True)

    rank: str
    suit: str
    value: int
    name: str


class HandResponse(BaseModel):
    """Hand representation."""

    cards: list[CardResponse]
    value: int
    is_soft: bool
    is_blackjack: bool
    is_busted: bool


class ControlsResponse(BaseModel):
    """Enabled controls for a seat."""

    can_bet: bool
    can_hit: bool
    can_stand: bool


class SeatResponse(BaseModel):
    """One seated player."""

    seat: int
    name: str
    balance: float
    current_bet: int
    has_bet: bool
    hand: HandResponse
    controls: ControlsResponse
    last_result: float | None = None


class DealerResponse(BaseModel):
    """Dealer's hand as a player would see it."""

    cards: list[CardResponse]
    hidden_cards: int
    value: int


class TableStateResponse(BaseModel):
    """Current table state."""

    state: str
    status: str
    current_seat: int | None
    seats: list[SeatResponse]
    dealer: DealerResponse
    cards_remaining: int


# Table state persistence schemas
class CardData(BaseModel):
    """Serialized card data."""

    rank: int
    suit: int


class HandData(BaseModel):
    """Serialized hand data."""

    cards: list[CardData]
    bet: int = 0
    is_standing: bool = False


class PlayerDataModel(BaseModel):
    """Serialized seat data."""

    seat: int
    name: str
    balance: str
    current_bet: int = 0
    has_bet: bool = False
    last_result: str | None = None
    hand: HandData


class RulesData(BaseModel):
    """Serialized rules data."""

    seats: int = 2
    starting_balance: int = 1000
    min_bet: int = 1
    max_bet: int | None = None
    blackjack_payout: float = 1.5
    dealer_stands_on: int = 17
    dealer_hits_soft_17: bool = False


class TableStateData(BaseModel):
    """Serialized table state for session storage."""

    state: str
    players: list[PlayerDataModel]
    dealer_hand: HandData
    deck_cards: list[CardData]
    deck_position: int
    turn_order: list[int]
    turn_position: int
    hole_card_hidden: bool
    rules: RulesData

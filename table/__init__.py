"""Blackjack table engine - cards, hands, seats and turn order, UI-agnostic."""

from table.cards import Card, Deck, Rank, Suit
from table.hand import Hand, Outcome
from table.player import PlayerData, SeatControls
from table.rules import TableRules

__all__ = [
    "Card",
    "Deck",
    "Rank",
    "Suit",
    "Hand",
    "Outcome",
    "PlayerData",
    "SeatControls",
    "TableRules",
]

"""Card and Deck classes - immutable cards dealt from a single indexed deck."""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from random import Random
from typing import Iterator

logger = logging.getLogger(__name__)


class Suit(Enum):
    """Card suits, in the order a fresh deck is laid out."""

    CLUBS = auto()
    DIAMONDS = auto()
    HEARTS = auto()
    SPADES = auto()

    def __str__(self) -> str:
        return "♣♦♥♠"[self.value - 1]

    @property
    def letter(self) -> str:
        """Single-letter code (C, D, H, S)."""
        return self.name[0]

    @property
    def label(self) -> str:
        """Return the lowercase plural name used in card asset names."""
        return self.name.lower()


class Rank(Enum):
    """Card ranks with blackjack values."""

    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13
    ACE = 14

    def __str__(self) -> str:
        if self.value <= 10:
            return str(self.value)
        return self.name[0]

    @property
    def label(self) -> str:
        """Return the rank as written in card asset names ('10', 'queen')."""
        if self.value <= 10:
            return str(self.value)
        return self.name.lower()

    @property
    def blackjack_value(self) -> int:
        """Points the rank scores; an ace scores 11 until the hand demotes it."""
        if self is Rank.ACE:
            return 11
        return min(self.value, 10)

    @property
    def is_ace(self) -> bool:
        return self is Rank.ACE


_RANKS_BY_LABEL = {rank.label: rank for rank in Rank}
_SUITS_BY_LABEL = {suit.label: suit for suit in Suit}
_RANKS_BY_CODE = {str(rank): rank for rank in Rank} | {"T": Rank.TEN}
_SUITS_BY_CODE = {suit.letter: suit for suit in Suit} | {str(suit): suit for suit in Suit}


@dataclass(frozen=True, slots=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name})"

    @property
    def value(self) -> int:
        """Return the blackjack point value."""
        return self.rank.blackjack_value

    @property
    def is_ace(self) -> bool:
        """Check if this card is an Ace."""
        return self.rank.is_ace

    @property
    def name(self) -> str:
        """Return the asset-style name, e.g. 'ace_of_spades'."""
        return f"{self.rank.label}_of_{self.suit.label}"

    @classmethod
    def from_string(cls, s: str) -> "Card":
        """Parse a short code such as 'AS', '10d', 'TD' or 'Q♥'."""
        code = s.strip().upper()
        rank = _RANKS_BY_CODE.get(code[:-1])
        suit = _SUITS_BY_CODE.get(code[-1:])
        if rank is None or suit is None:
            raise ValueError(f"Invalid card string: {s!r}")
        return cls(rank, suit)

    @classmethod
    def from_asset_name(cls, name: str) -> "Card":
        """
        Create a card from a card-art file name.

        Accepts names like '10_of_hearts', 'Queen_of_Clubs' or
        'king_of_spades2' (alternate art variants carry a trailing digit).
        """
        parts = name.strip().lower().split("_of_")
        if len(parts) != 2:
            raise ValueError(f"Invalid card name: {name}")

        rank_str, suit_str = parts
        suit_str = suit_str.rstrip("0123456789")

        if rank_str not in _RANKS_BY_LABEL:
            raise ValueError(f"Invalid rank: {rank_str}")
        if suit_str not in _SUITS_BY_LABEL:
            raise ValueError(f"Invalid suit: {suit_str}")

        return cls(_RANKS_BY_LABEL[rank_str], _SUITS_BY_LABEL[suit_str])


def card_value_from_name(name: str) -> int:
    """
    Look up a card's blackjack value from its asset name.

    Returns 0 (and logs a warning) when the name carries no recognisable rank.
    """
    name = name.lower()

    if name.startswith("ace"):
        return 11
    if name.startswith(("king", "queen", "jack")):
        return 10

    head = name.split("_")[0]
    if head.isdigit():
        return int(head)

    logger.warning("Couldn't determine value for card: %s", name)
    return 0


def standard_cards() -> list[Card]:
    """Return the 52 cards of a standard deck in suit-major order."""
    return [Card(rank, suit) for suit in Suit for rank in Rank]


class Deck:
    """
    A single deck dealt by walking an index over its card list.

    Dealt cards are never removed; ``reset`` rewinds the index so the same
    list can be reshuffled and dealt again.
    """

    def __init__(
        self,
        cards: list[Card] | None = None,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize a deck.

        Args:
            cards: Card list in deal order (defaults to a standard 52-card deck)
            rng: Random number generator for shuffling
        """
        self._cards: list[Card] = list(cards) if cards is not None else standard_cards()
        if not self._cards:
            raise ValueError("Deck must contain at least one card")
        self._rng = rng or Random()
        self._index = 0

    def reset(self) -> None:
        """Rewind the deal position to the top of the deck."""
        self._index = 0

    def shuffle(self) -> None:
        """Shuffle every card in the deck in place (Fisher-Yates)."""
        self._shuffle_from(0)
        logger.debug("Deck shuffled.")

    def _shuffle_from(self, start: int) -> None:
        n = len(self._cards)
        for i in range(start, n):
            j = self._rng.randrange(i, n)
            self._cards[i], self._cards[j] = self._cards[j], self._cards[i]

    def recycle(self, in_play: list[Card]) -> None:
        """
        Reshuffle every card not currently on the table.

        Cards in ``in_play`` are moved ahead of the deal position so they
        cannot be dealt again; the rest are shuffled behind it.
        """
        pool = list(self._cards)
        held = []
        for card in in_play:
            if card in pool:
                pool.remove(card)
                held.append(card)

        self._cards = held + pool
        self._index = len(held)
        self._shuffle_from(self._index)
        logger.debug("Deck recycled with %d cards held back.", len(held))

    def deal(self) -> Card:
        """Deal the next card."""
        if self._index >= len(self._cards):
            raise IndexError("Out of cards in the deck")
        card = self._cards[self._index]
        self._index += 1
        return card

    def deal_many(self, count: int) -> list[Card]:
        """Deal up to ``count`` cards, stopping early if the deck runs out."""
        dealt = []
        while len(dealt) < count and not self.is_exhausted:
            dealt.append(self.deal())
        return dealt

    @property
    def cards(self) -> list[Card]:
        """Return every card in current deck order."""
        return list(self._cards)

    @property
    def position(self) -> int:
        """Return the index of the next card to deal."""
        return self._index

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards not yet dealt."""
        return len(self._cards) - self._index

    @property
    def cards_dealt(self) -> int:
        """Return the number of cards dealt since the last reset."""
        return self._index

    @property
    def is_exhausted(self) -> bool:
        """Check if every card has been dealt."""
        return self._index >= len(self._cards)

    @classmethod
    def restore(
        cls,
        cards: list[Card],
        position: int,
        rng: Random | None = None,
    ) -> "Deck":
        """Rebuild a deck mid-deal from its card order and deal position."""
        if not 0 <= position <= len(cards):
            raise ValueError("Deal position out of range")
        deck = cls(cards=cards, rng=rng)
        deck._index = position
        return deck

    def __len__(self) -> int:
        return self.cards_remaining

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards[self._index:])

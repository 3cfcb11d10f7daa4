"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from table.cards import Card


class Outcome(Enum):
    """Result of a player's hand against the dealer."""

    WIN = "win"
    BLACKJACK = "blackjack"
    LOSE = "lose"
    PUSH = "push"


@dataclass
class Hand:
    """Cards held by one seat or the dealer, with the stake riding on them."""

    cards: list[Card] = field(default_factory=list)
    bet: int = 0
    is_standing: bool = False

    def add_card(self, card: Card) -> None:
        """Take a card."""
        self.cards.append(card)

    def clear(self) -> None:
        """Empty the hand and forget its bet."""
        self.cards.clear()
        self.bet = 0
        self.is_standing = False

    def _hard_total(self) -> int:
        """Total with every ace counted as 1."""
        return sum(1 if card.is_ace else card.value for card in self.cards)

    @property
    def value(self) -> int:
        """
        Best total for the hand.

        One ace is promoted to 11 when that does not take the hand past 21;
        a busted hand reports its lowest total.
        """
        hard = self._hard_total()
        if self.is_soft:
            return hard + 10
        return hard

    @property
    def is_soft(self) -> bool:
        """True while an ace is being counted as 11."""
        return any(card.is_ace for card in self.cards) and self._hard_total() + 10 <= 21

    @property
    def is_blackjack(self) -> bool:
        """Two-card 21."""
        return len(self.cards) == 2 and self.value == 21

    @property
    def is_busted(self) -> bool:
        """Over 21."""
        return self.value > 21

    @property
    def is_finished(self) -> bool:
        """No more cards may be taken."""
        return self.is_standing or self.is_busted or self.is_blackjack

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        if self.is_busted:
            label = "BUST"
        elif self.is_blackjack:
            label = "BLACKJACK"
        elif self.is_soft:
            label = f"soft {self.value}"
        else:
            label = str(self.value)
        return " ".join([*(str(card) for card in self.cards), f"({label})"])

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value})"


def evaluate_hands(player_hand: Hand, dealer_hand: Hand) -> Outcome:
    """Compare a player's hand against the dealer's."""
    # Player busts always loses, even against a dealer bust
    if player_hand.is_busted:
        return Outcome.LOSE

    player_bj = player_hand.is_blackjack
    dealer_bj = dealer_hand.is_blackjack

    if player_bj and dealer_bj:
        return Outcome.PUSH
    if player_bj:
        return Outcome.BLACKJACK
    if dealer_bj:
        return Outcome.LOSE

    if dealer_hand.is_busted:
        return Outcome.WIN

    player_value = player_hand.value
    dealer_value = dealer_hand.value
    if player_value > dealer_value:
        return Outcome.WIN
    if dealer_value > player_value:
        return Outcome.LOSE
    return Outcome.PUSH

"""Table rule configuration."""

from dataclasses import dataclass

from config import TableConfig


@dataclass(frozen=True)
class TableRules:
    """
    Rules for one blackjack table.

    Covers seating, bet limits, payouts and how the dealer plays.
    """

    # Seating
    seats: int = 2
    starting_balance: int = 1000

    # Betting limits (max_bet None = limited only by the player's balance)
    min_bet: int = 1
    max_bet: int | None = None

    # Blackjack payout (3:2 = 1.5, 6:5 = 1.2)
    blackjack_payout: float = 1.5

    # Dealer rules
    dealer_stands_on: int = 17
    dealer_hits_soft_17: bool = False  # S17 vs H17

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.seats < 1:
            raise ValueError("seats must be at least 1")
        if self.min_bet < 1:
            raise ValueError("min_bet must be at least 1")
        if self.max_bet is not None and self.max_bet < self.min_bet:
            raise ValueError("max_bet must not be below min_bet")
        if self.starting_balance < 0:
            raise ValueError("starting_balance must not be negative")
        if self.blackjack_payout < 1.0:
            raise ValueError("blackjack_payout must be at least 1.0")
        if not 12 <= self.dealer_stands_on <= 21:
            raise ValueError("dealer_stands_on must be between 12 and 21")

    @classmethod
    def from_config(cls, table_config: TableConfig) -> "TableRules":
        """Build rules from the application's table configuration."""
        return cls(
            seats=table_config.seats,
            starting_balance=table_config.starting_balance,
            min_bet=table_config.min_bet,
            max_bet=table_config.max_bet,
            blackjack_payout=table_config.blackjack_payout,
            dealer_stands_on=table_config.dealer_stands_on,
            dealer_hits_soft_17=table_config.dealer_hits_soft_17,
        )

    @classmethod
    def heads_up(cls) -> "TableRules":
        """Single player against the dealer."""
        return cls(seats=1)

    @classmethod
    def six_to_five(cls) -> "TableRules":
        """Two seats, naturals pay 6:5 and the dealer hits soft 17."""
        return cls(blackjack_payout=1.2, dealer_hits_soft_17=True)

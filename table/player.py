"""Player seat state: name, balance, bet and hand."""

from dataclasses import dataclass, field
from decimal import Decimal

from table.hand import Hand, Outcome
from table.rules import TableRules


@dataclass(frozen=True)
class SeatControls:
    """Which of a seat's controls are currently enabled."""

    can_bet: bool = False
    can_hit: bool = False
    can_stand: bool = False

    @classmethod
    def betting_only(cls) -> "SeatControls":
        """Only the bet control enabled."""
        return cls(can_bet=True)

    @classmethod
    def actions(cls) -> "SeatControls":
        """Hit and stand enabled."""
        return cls(can_hit=True, can_stand=True)

    @classmethod
    def disabled(cls) -> "SeatControls":
        """Everything disabled."""
        return cls()


@dataclass
class PlayerData:
    """A seated player."""

    seat: int
    name: str = ""
    balance: Decimal = Decimal("1000")
    hand: Hand = field(default_factory=Hand)
    current_bet: int = 0
    has_bet: bool = False
    last_result: Decimal | None = None

    def __post_init__(self) -> None:
        self.name = self.name.strip() or f"Player {self.seat}"
        self.balance = Decimal(str(self.balance))

    def validate_bet(self, amount: int, rules: TableRules) -> str | None:
        """
        Check a bet against the table limits and this player's balance.

        Returns:
            An error message, or None if the bet is acceptable
        """
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return f"Invalid bet for {self.name}."
        if amount < rules.min_bet:
            return f"Bet must be at least {rules.min_bet}"
        if rules.max_bet is not None and amount > rules.max_bet:
            return f"Bet must be at most {rules.max_bet}"
        if Decimal(amount) > self.balance:
            return f"{self.name} does not have enough balance."
        return None

    def can_cover(self, amount: int) -> bool:
        """Check if the player can afford a bet of ``amount``."""
        return self.balance >= Decimal(amount)

    def place_bet(self, amount: int) -> None:
        """Move ``amount`` from the balance onto the table."""
        if Decimal(amount) > self.balance:
            raise ValueError(f"{self.name} cannot cover a bet of {amount}")
        self.balance -= Decimal(amount)
        self.current_bet = amount
        self.hand.bet = amount
        self.has_bet = True

    def settle(self, outcome: Outcome, blackjack_payout: float) -> Decimal:
        """
        Pay out the current bet.

        The stake was already taken when the bet was placed, so a win credits
        stake plus winnings and a push credits the stake back.

        Returns:
            Net result of the round for this player
        """
        stake = Decimal(self.current_bet)

        if outcome == Outcome.BLACKJACK:
            net = stake * Decimal(str(blackjack_payout))
        elif outcome == Outcome.WIN:
            net = stake
        elif outcome == Outcome.PUSH:
            net = Decimal("0")
        else:
            net = -stake

        self.balance += stake + net
        self.last_result = net
        return net

    def reset_for_new_round(self) -> None:
        """Clear the hand and bet for the next round."""
        self.hand.clear()
        self.current_bet = 0
        self.has_bet = False

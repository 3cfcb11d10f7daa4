"""Table state enumeration."""

from enum import Enum, auto


class TableState(Enum):
    """
    Table state machine states.

    Flow: WAITING_FOR_BETS → DEALING → PLAYER_TURN → DEALER_TURN → RESOLVING → ROUND_COMPLETE
    """

    # Players have not been seated yet
    NOT_STARTED = auto()

    # Seats are placing bets
    WAITING_FOR_BETS = auto()

    # Cards being dealt
    DEALING = auto()

    # Seated players act in seat order
    PLAYER_TURN = auto()

    # Dealer plays
    DEALER_TURN = auto()

    # Determining winners
    RESOLVING = auto()

    # Round finished, ready for next
    ROUND_COMPLETE = auto()

    # No seat can cover the minimum bet
    GAME_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


"""Blackjack table engine with state machine."""

import logging
from decimal import Decimal
from random import Random
from typing import Callable

from transitions import Machine

from table.cards import Card, Deck
from table.hand import Hand, Outcome, evaluate_hands
from table.player import PlayerData, SeatControls
from table.rules import TableRules
from table.game.events import EventEmitter, EventType, GameEvent
from table.game.state import TableState

logger = logging.getLogger(__name__)


def format_money(amount: Decimal) -> str:
    """Format an amount without trailing zeros on whole numbers ('150', '7.50')."""
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f"{amount:.2f}"


class TableGame:
    """
    Blackjack table engine using a state machine.

    Seated players bet, then act one after another in seat order before the
    dealer plays. The engine is UI-agnostic: communication happens through
    events, return values and the query properties only.
    """

    # State machine states
    STATES = [s.name.lower() for s in TableState]

    # State machine transitions
    TRANSITIONS = [
        {
            "trigger": "seat_players",
            "source": ["not_started", "waiting_for_bets", "round_complete", "game_over"],
            "dest": "waiting_for_bets",
        },
        {"trigger": "close_bets", "source": "waiting_for_bets", "dest": "dealing"},
        {"trigger": "open_turns", "source": "dealing", "dest": "player_turn"},
        {"trigger": "skip_turns", "source": "dealing", "dest": "dealer_turn"},
        {"trigger": "pass_turn", "source": "player_turn", "dest": "player_turn"},
        {"trigger": "finish_turns", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "finish_dealer", "source": "dealer_turn", "dest": "resolving"},
        {"trigger": "finish_round", "source": "resolving", "dest": "round_complete"},
        {"trigger": "bankrupt", "source": "resolving", "dest": "game_over"},
        {"trigger": "reopen_bets", "source": "round_complete", "dest": "waiting_for_bets"},
    ]

    def __init__(
        self,
        rules: TableRules | None = None,
        player_names: list[str] | None = None,
        rng: Random | None = None,
        deck: Deck | None = None,
    ) -> None:
        """
        Initialize a new table.

        Args:
            rules: Table rules (uses defaults if not provided)
            player_names: If given, seat these players immediately
            rng: Random number generator for reproducible games
            deck: Deck to deal from (a standard 52-card deck if not provided)
        """
        self.rules = rules or TableRules()
        self.deck = deck or Deck(rng=rng)
        self.players: list[PlayerData] = []
        self.dealer_hand = Hand()
        self.events = EventEmitter()

        self._turn_order: list[int] = []
        self._turn_position = 0
        self._hole_card_hidden = False

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="not_started",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

        if player_names is not None:
            self.start_game(player_names)

    @property
    def state(self) -> TableState:
        """Get current table state as enum."""
        return TableState[self._machine_state.upper()]  # type: ignore

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to table events."""
        self.events.subscribe(handler, event_type)

    # ------------------------------------------------------------------
    # Seating and betting
    # ------------------------------------------------------------------

    def start_game(self, player_names: list[str] | None = None) -> bool:
        """
        Seat the players with fresh balances and open betting.

        Args:
            player_names: One name per seat; missing or blank names default
                to "Player N"

        Returns:
            True if the game was started
        """
        if self.state not in (
            TableState.NOT_STARTED,
            TableState.WAITING_FOR_BETS,
            TableState.ROUND_COMPLETE,
            TableState.GAME_OVER,
        ):
            self._reject("Cannot start a game while a round is in progress")
            return False

        names = list(player_names or [])
        if len(names) > self.rules.seats:
            self._reject(f"Table only has {self.rules.seats} seats")
            return False
        names += [""] * (self.rules.seats - len(names))

        self.players = [
            PlayerData(
                seat=seat,
                name=name,
                balance=Decimal(self.rules.starting_balance),
            )
            for seat, name in enumerate(names, start=1)
        ]
        self.dealer_hand.clear()
        self._turn_order = []
        self._turn_position = 0
        self._hole_card_hidden = False

        self._reset_deck()

        self.seat_players()
        self.events.emit_new(
            EventType.GAME_STARTED,
            players=[p.name for p in self.players],
            balance=self.rules.starting_balance,
        )
        logger.info("Game started with %s", ", ".join(p.name for p in self.players))
        return True

    def place_bet(self, seat: int, amount: int) -> bool:
        """
        Place a seat's bet for the coming round.

        The stake is taken from the balance immediately. Once every seat
        still in play has bet, the cards are dealt.

        Args:
            seat: Seat number (1-based)
            amount: Bet amount

        Returns:
            True if the bet was accepted
        """
        if self.state != TableState.WAITING_FOR_BETS:
            self._reject("Cannot bet in current state", seat=seat)
            return False

        player = self.player(seat)
        if player is None:
            self._reject(f"No player in seat {seat}", seat=seat)
            return False

        if player.has_bet:
            self._reject(f"{player.name} has already bet", seat=seat)
            return False

        if not player.can_cover(self.rules.min_bet):
            self._reject(f"{player.name} is sitting out", seat=seat)
            return False

        if isinstance(amount, int) and not isinstance(amount, bool) and amount > 0:
            if Decimal(amount) > player.balance:
                self.events.emit_new(
                    EventType.INSUFFICIENT_FUNDS,
                    seat=seat,
                    message=f"{player.name} does not have enough balance.",
                    required=amount,
                    available=float(player.balance),
                )
                return False

        error = player.validate_bet(amount, self.rules)
        if error is not None:
            self._reject(error, seat=seat)
            return False

        player.place_bet(amount)
        self.events.emit_new(
            EventType.BET_PLACED,
            seat=seat,
            amount=amount,
            balance=float(player.balance),
        )

        if all(p.has_bet for p in self._seats_in_play()):
            self._deal_round()

        return True

    # ------------------------------------------------------------------
    # Dealing
    # ------------------------------------------------------------------

    def _deal_round(self) -> None:
        """Reset the deck and deal two cards to each seat, then the dealer."""
        self.close_bets()
        self._turn_order = [p.seat for p in self.players if p.has_bet]
        self._turn_position = 0

        self._reset_deck()

        for seat in self._turn_order:
            hand = self.players[seat - 1].hand
            self._deal_card_to_hand(hand, seat=seat)
            self._deal_card_to_hand(hand, seat=seat)

        self._hole_card_hidden = True
        self._deal_card_to_hand(self.dealer_hand)
        self._deal_card_to_hand(self.dealer_hand, face_up=False)

        self.events.emit_new(EventType.ROUND_STARTED, seats=list(self._turn_order))

        for seat in self._turn_order:
            player = self.players[seat - 1]
            if player.hand.is_blackjack:
                player.hand.is_standing = True
                self.events.emit_new(EventType.PLAYER_BLACKJACK, seat=seat)

        # Dealer peeks for a natural before anyone acts
        if self.dealer_hand.is_blackjack:
            self.events.emit_new(EventType.DEALER_BLACKJACK)
            self.skip_turns()
            self._play_dealer()
            return

        self._turn_position = self._next_open_position(0)
        if self._turn_position >= len(self._turn_order):
            self.skip_turns()
            self._play_dealer()
            return

        self.open_turns()
        self._announce_turn()

    def _reset_deck(self) -> None:
        """Gather the deck back together and shuffle it."""
        self.deck.reset()
        self.deck.shuffle()
        self.events.emit_new(EventType.DECK_SHUFFLED, cards=len(self.deck))

    def _draw(self) -> Card:
        """Draw a card, reshuffling the undealt cards if the deck runs out."""
        if self.deck.is_exhausted:
            logger.warning("Out of cards in the deck, reshuffling")
            self.deck.recycle(self._cards_in_play())
            if self.deck.is_exhausted:
                # Every card is on the table; start the whole deck over
                self.deck.reset()
                self.deck.shuffle()
            self.events.emit_new(EventType.DECK_SHUFFLED, cards=len(self.deck))
        return self.deck.deal()

    def _cards_in_play(self) -> list[Card]:
        """Return every card currently held by a player or the dealer."""
        cards = list(self.dealer_hand.cards)
        for player in self.players:
            cards.extend(player.hand.cards)
        return cards

    def _deal_card_to_hand(
        self,
        hand: Hand,
        seat: int | None = None,
        face_up: bool = True,
    ) -> Card:
        """Deal a card to a hand."""
        card = self._draw()
        hand.add_card(card)
        self.events.emit_new(
            EventType.CARD_DEALT,
            card=str(card) if face_up else "??",
            name=card.name if face_up else None,
            hand="dealer" if seat is None else "player",
            seat=seat,
            hand_value=hand.value if face_up else None,
        )
        return card

    # ------------------------------------------------------------------
    # Player turns
    # ------------------------------------------------------------------

    def hit(self, seat: int) -> bool:
        """The seat whose turn it is takes another card."""
        if not self._check_turn(seat, "hit"):
            return False

        hand = self.players[seat - 1].hand
        self._deal_card_to_hand(hand, seat=seat)
        self.events.emit_new(EventType.PLAYER_HIT, seat=seat, hand_value=hand.value)

        if hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, seat=seat, hand_value=hand.value)
            self._advance_turn()
        elif hand.value == 21:
            # Auto-stand on 21
            hand.is_standing = True
            self.events.emit_new(EventType.PLAYER_STAND, seat=seat, hand_value=hand.value)
            self._advance_turn()
        else:
            self.pass_turn()  # Stay in player turn

        return True

    def stand(self, seat: int) -> bool:
        """The seat whose turn it is keeps its hand."""
        if not self._check_turn(seat, "stand"):
            return False

        hand = self.players[seat - 1].hand
        hand.is_standing = True
        self.events.emit_new(EventType.PLAYER_STAND, seat=seat, hand_value=hand.value)
        self._advance_turn()
        return True

    def _check_turn(self, seat: int, action: str) -> bool:
        """Validate that ``seat`` may act now."""
        if self.state != TableState.PLAYER_TURN:
            self._reject(f"Cannot {action} in current state", seat=seat)
            return False
        if seat != self.current_seat:
            self._reject(f"It is not seat {seat}'s turn", seat=seat)
            return False
        return True

    def _next_open_position(self, start: int) -> int:
        """Find the next turn position whose hand can still act."""
        position = start
        while position < len(self._turn_order):
            hand = self.players[self._turn_order[position] - 1].hand
            if not hand.is_finished:
                break
            position += 1
        return position

    def _advance_turn(self) -> None:
        """Move to the next seat or to the dealer."""
        self._turn_position = self._next_open_position(self._turn_position + 1)

        if self._turn_position >= len(self._turn_order):
            self.finish_turns()
            self.events.emit_new(EventType.TURN_CHANGED, seat=None, status=self.status_text)
            self._play_dealer()
            return

        self.pass_turn()
        self._announce_turn()

    def _announce_turn(self) -> None:
        seat = self.current_seat
        self.events.emit_new(EventType.TURN_CHANGED, seat=seat, status=self.status_text)

    # ------------------------------------------------------------------
    # Dealer and settlement
    # ------------------------------------------------------------------

    def _play_dealer(self) -> None:
        """Reveal the hole card and draw to the dealer's standing total."""
        self._hole_card_hidden = False
        if len(self.dealer_hand.cards) >= 2:
            self.events.emit_new(
                EventType.DEALER_REVEALS,
                card=str(self.dealer_hand.cards[1]),
                hand_value=self.dealer_hand.value,
            )

        hands = [self.players[seat - 1].hand for seat in self._turn_order]
        live_hands = [h for h in hands if not h.is_busted]

        # No draws when every live hand is a natural
        if any(not h.is_blackjack for h in live_hands):
            while self._dealer_should_hit():
                self._deal_card_to_hand(self.dealer_hand)
                self.events.emit_new(EventType.DEALER_HITS, hand_value=self.dealer_hand.value)

        if self.dealer_hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=self.dealer_hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=self.dealer_hand.value)

        self.finish_dealer()
        self._resolve_round()

    def _dealer_should_hit(self) -> bool:
        """Determine if dealer should hit."""
        value = self.dealer_hand.value
        if value < self.rules.dealer_stands_on:
            return True
        if value == 17 and self.dealer_hand.is_soft and self.rules.dealer_hits_soft_17:
            return True
        return False

    def _resolve_round(self) -> None:
        """Settle every bet against the dealer's hand."""
        total_result = Decimal("0")
        results: dict[int, str] = {}

        for seat in self._turn_order:
            player = self.players[seat - 1]
            outcome = evaluate_hands(player.hand, self.dealer_hand)
            net = player.settle(outcome, self.rules.blackjack_payout)
            total_result += net
            results[seat] = outcome.value

            if outcome in (Outcome.WIN, Outcome.BLACKJACK):
                self.events.emit_new(
                    EventType.PLAYER_WINS,
                    seat=seat,
                    amount=float(net),
                    blackjack=outcome == Outcome.BLACKJACK,
                )
            elif outcome == Outcome.LOSE:
                self.events.emit_new(EventType.PLAYER_LOSES, seat=seat, amount=float(-net))
            else:
                self.events.emit_new(EventType.PUSH, seat=seat)

            self.events.emit_new(
                EventType.BET_RESOLVED,
                seat=seat,
                outcome=outcome.value,
                result=float(net),
                balance=float(player.balance),
            )

        self.events.emit_new(
            EventType.ROUND_ENDED,
            results=results,
            dealer_value=self.dealer_hand.value,
            result=float(total_result),
        )

        if not self._seats_in_play():
            self.bankrupt()
            self.events.emit_new(EventType.GAME_ENDED, reason="bankrupt")
            logger.info("Game over: no player can cover the minimum bet")
            return

        self.finish_round()

    def new_round(self) -> bool:
        """Clear the table and reopen betting."""
        if self.state != TableState.ROUND_COMPLETE:
            self._reject("Round is not complete")
            return False

        for player in self.players:
            player.reset_for_new_round()
        self.dealer_hand.clear()
        self._turn_order = []
        self._turn_position = 0
        self._hole_card_hidden = False
        self.deck.reset()

        self.reopen_bets()
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def player(self, seat: int) -> PlayerData | None:
        """Get the player in a seat (1-based)."""
        if 1 <= seat <= len(self.players):
            return self.players[seat - 1]
        return None

    def _seats_in_play(self) -> list[PlayerData]:
        """Players who can still cover the minimum bet."""
        return [p for p in self.players if p.can_cover(self.rules.min_bet)]

    @property
    def round_seats(self) -> list[int]:
        """Seats dealt into the current round, in turn order."""
        return list(self._turn_order)

    @property
    def current_seat(self) -> int | None:
        """Seat whose turn it is, or None outside player turns."""
        if self.state != TableState.PLAYER_TURN:
            return None
        if 0 <= self._turn_position < len(self._turn_order):
            return self._turn_order[self._turn_position]
        return None

    @property
    def current_player(self) -> PlayerData | None:
        """Player whose turn it is."""
        seat = self.current_seat
        return self.players[seat - 1] if seat is not None else None

    def controls(self, seat: int) -> SeatControls:
        """Which controls the given seat should have enabled."""
        player = self.player(seat)
        if player is None:
            return SeatControls.disabled()

        if self.state == TableState.WAITING_FOR_BETS:
            if not player.has_bet and player.can_cover(self.rules.min_bet):
                return SeatControls.betting_only()
            return SeatControls.disabled()

        if self.state == TableState.PLAYER_TURN and seat == self.current_seat:
            return SeatControls.actions()

        return SeatControls.disabled()

    @property
    def is_hole_card_hidden(self) -> bool:
        """Check if the dealer's second card is still face down."""
        return self._hole_card_hidden and len(self.dealer_hand.cards) >= 2

    @property
    def dealer_upcard(self) -> Card | None:
        """The dealer's face-up first card."""
        if self.dealer_hand.cards:
            return self.dealer_hand.cards[0]
        return None

    @property
    def dealer_visible_cards(self) -> list[Card]:
        """Dealer cards a player is allowed to see."""
        if self.is_hole_card_hidden:
            return self.dealer_hand.cards[:1]
        return list(self.dealer_hand.cards)

    @property
    def dealer_visible_value(self) -> int:
        """Value of the dealer cards a player is allowed to see."""
        return Hand(cards=self.dealer_visible_cards).value

    @property
    def status_text(self) -> str:
        """One-line description of what the table is waiting for."""
        state = self.state

        if state == TableState.NOT_STARTED:
            return "Enter player names to start"
        if state == TableState.WAITING_FOR_BETS:
            return "Place your bets"
        if state == TableState.DEALING:
            return "Dealing..."
        if state == TableState.PLAYER_TURN:
            player = self.current_player
            return f"{player.name}'s Turn" if player else "Player's Turn"
        if state == TableState.DEALER_TURN:
            if len(self._turn_order) == 2:
                return "Both players stood. Dealer's Turn..."
            return "All players stood. Dealer's Turn..."
        if state == TableState.GAME_OVER:
            return "Game over"

        parts = []
        for seat in self._turn_order:
            player = self.players[seat - 1]
            result = player.last_result
            if result is None:
                continue
            if result > 0:
                parts.append(f"{player.name} wins ${format_money(result)}")
            elif result < 0:
                parts.append(f"{player.name} loses ${format_money(-result)}")
            else:
                parts.append(f"{player.name} pushes")
        return f"Dealer has {self.dealer_hand.value}. " + ", ".join(parts)

    def _reject(self, message: str, **data) -> None:
        self.events.emit_new(EventType.INVALID_ACTION, message=message, state=self.state.name, **data)

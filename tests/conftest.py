"""Pytest fixtures for table tests."""

import pytest
from random import Random

from table.cards import Card, Deck
from table.hand import Hand
from table.rules import TableRules
from table.game import TableGame
from api.session import InMemorySessionStore, set_session_store


class NoShuffleRandom(Random):
    """Random whose Fisher-Yates swaps are all no-ops, so decks keep their order."""

    def randrange(self, start, stop=None, step=1):
        return start


def cards(*codes: str) -> list[Card]:
    """Build cards from short codes like 'AS', '10H', 'KD'."""
    return [Card.from_string(code) for code in codes]


def make_hand(*codes: str) -> Hand:
    """Build a hand from short card codes."""
    return Hand(cards=cards(*codes))


@pytest.fixture(autouse=True)
def in_memory_sessions():
    """Keep API tests off Redis."""
    set_session_store(InMemorySessionStore())
    yield
    set_session_store(None)


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def deck(rng):
    """A shuffled deck."""
    d = Deck(rng=rng)
    d.shuffle()
    return d


@pytest.fixture
def rules():
    """Default two-seat rules."""
    return TableRules()


@pytest.fixture
def table(rng):
    """A two-seat table with players seated."""
    return TableGame(player_names=["Alice", "Bob"], rng=rng)


@pytest.fixture
def stacked_table():
    """
    Factory for a table that deals ``codes`` in order.

    Deal order is seat 1 twice, seat 2 twice, dealer twice, then any hits.
    """

    def _make(*codes: str, rules: TableRules | None = None, names=("Alice", "Bob")) -> TableGame:
        deck = Deck(cards=cards(*codes), rng=NoShuffleRandom())
        return TableGame(rules=rules, player_names=list(names), deck=deck)

    return _make


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return make_hand("AS", "KH")


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return make_hand("AS", "6H")


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return make_hand("10S", "6H")


@pytest.fixture
def bust_hand():
    """A busted hand."""
    return make_hand("10S", "6H", "KC")

"""Tests for Card and Deck classes."""

import logging

import pytest
from random import Random

from table.cards import Card, Deck, Rank, Suit, card_value_from_name, standard_cards
from conftest import NoShuffleRandom, cards


class TestCard:
    """Tests for the Card class."""

    def test_card_creation(self):
        """Test creating a card."""
        card = Card(Rank.ACE, Suit.SPADES)
        assert card.rank == Rank.ACE
        assert card.suit == Suit.SPADES

    def test_card_immutability(self):
        """Test that cards are immutable."""
        card = Card(Rank.ACE, Suit.SPADES)
        with pytest.raises(AttributeError):
            card.rank = Rank.KING

    def test_card_value(self):
        """Test card blackjack values."""
        assert Card(Rank.TWO, Suit.HEARTS).value == 2
        assert Card(Rank.TEN, Suit.HEARTS).value == 10
        assert Card(Rank.JACK, Suit.HEARTS).value == 10
        assert Card(Rank.QUEEN, Suit.HEARTS).value == 10
        assert Card(Rank.KING, Suit.HEARTS).value == 10
        assert Card(Rank.ACE, Suit.HEARTS).value == 11

    def test_card_name(self):
        """Test asset-style card names."""
        assert Card(Rank.ACE, Suit.SPADES).name == "ace_of_spades"
        assert Card(Rank.TEN, Suit.HEARTS).name == "10_of_hearts"
        assert Card(Rank.QUEEN, Suit.CLUBS).name == "queen_of_clubs"

    def test_card_from_string(self):
        """Test creating cards from strings."""
        assert Card.from_string("AS") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("2H") == Card(Rank.TWO, Suit.HEARTS)
        assert Card.from_string("10D") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("TD") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("kc") == Card(Rank.KING, Suit.CLUBS)
        assert Card.from_string("A♠") == Card(Rank.ACE, Suit.SPADES)

    def test_card_from_string_invalid(self):
        """Test that bad card strings raise ValueError."""
        with pytest.raises(ValueError):
            Card.from_string("Z")
        with pytest.raises(ValueError):
            Card.from_string("1S")
        with pytest.raises(ValueError):
            Card.from_string("AX")

    def test_card_from_asset_name(self):
        """Test parsing card art file names."""
        assert Card.from_asset_name("10_of_hearts") == Card(Rank.TEN, Suit.HEARTS)
        assert Card.from_asset_name("Queen_of_Clubs") == Card(Rank.QUEEN, Suit.CLUBS)
        assert Card.from_asset_name("king_of_spades2") == Card(Rank.KING, Suit.SPADES)

    def test_card_from_asset_name_invalid(self):
        """Test that unknown asset names raise ValueError."""
        with pytest.raises(ValueError):
            Card.from_asset_name("red_joker")
        with pytest.raises(ValueError):
            Card.from_asset_name("11_of_hearts")
        with pytest.raises(ValueError):
            Card.from_asset_name("ace_of_stars")

    def test_card_str(self):
        """Test string representation."""
        card = Card(Rank.ACE, Suit.SPADES)
        assert str(card) == "A♠"

    def test_card_hash(self):
        """Test that cards can be used in sets/dicts."""
        assert len({Card(Rank.ACE, Suit.SPADES), Card(Rank.ACE, Suit.SPADES)}) == 1


class TestCardValueFromName:
    """Tests for value lookup by asset name."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("ace_of_spades", 11),
            ("Ace_of_Hearts", 11),
            ("king_of_clubs", 10),
            ("queen_of_hearts2", 10),
            ("jack_of_diamonds", 10),
            ("10_of_spades", 10),
            ("7_of_clubs", 7),
            ("2_of_hearts", 2),
        ],
    )
    def test_known_names(self, name, expected):
        assert card_value_from_name(name) == expected

    def test_unknown_name_warns_and_returns_zero(self, caplog):
        with caplog.at_level(logging.WARNING, logger="table.cards"):
            assert card_value_from_name("red_joker") == 0
        assert "red_joker" in caplog.text


class TestDeck:
    """Tests for the Deck class."""

    def test_deck_creation(self):
        """Test creating a new deck."""
        deck = Deck()
        assert len(deck) == 52
        assert deck.cards_dealt == 0

    def test_deck_has_all_cards(self):
        """Test that deck contains all 52 unique cards."""
        deck_cards = list(Deck())
        assert len(deck_cards) == 52
        assert len(set(deck_cards)) == 52

    def test_empty_deck_raises(self):
        """Test that a deck needs at least one card."""
        with pytest.raises(ValueError):
            Deck(cards=[])

    def test_deck_shuffle(self):
        """Test shuffling changes card order but keeps every card."""
        deck = Deck(rng=Random(42))
        order_before = deck.cards

        deck.shuffle()
        order_after = deck.cards

        assert sorted(order_before, key=repr) == sorted(order_after, key=repr)
        assert order_before != order_after

    def test_shuffle_is_reproducible(self):
        """Test that the same seed gives the same order."""
        deck1 = Deck(rng=Random(7))
        deck2 = Deck(rng=Random(7))
        deck1.shuffle()
        deck2.shuffle()
        assert deck1.cards == deck2.cards

    def test_no_swap_random_keeps_order(self):
        """Test that the stacked-deck helper really leaves the order alone."""
        deck = Deck(rng=NoShuffleRandom())
        deck.shuffle()
        assert deck.cards == standard_cards()

    def test_deal_walks_the_deck(self):
        """Test dealing returns cards in order and advances the position."""
        deck = Deck(cards=cards("AS", "KH", "7D"))
        assert deck.deal() == Card(Rank.ACE, Suit.SPADES)
        assert deck.deal() == Card(Rank.KING, Suit.HEARTS)
        assert deck.cards_dealt == 2
        assert deck.cards_remaining == 1
        assert len(deck.cards) == 3

    def test_deal_exhausted_raises(self):
        """Test that dealing past the last card raises IndexError."""
        deck = Deck(cards=cards("AS"))
        deck.deal()
        assert deck.is_exhausted
        with pytest.raises(IndexError):
            deck.deal()

    def test_deal_many_stops_at_exhaustion(self):
        """Test bulk deal returns only what is left."""
        deck = Deck(cards=cards("AS", "KH", "7D"))
        assert len(deck.deal_many(2)) == 2
        assert deck.deal_many(5) == [Card(Rank.SEVEN, Suit.DIAMONDS)]
        assert deck.deal_many(1) == []

    def test_reset_rewinds_without_reordering(self):
        """Test reset only rewinds the deal position."""
        deck = Deck(rng=Random(1))
        deck.shuffle()
        order = deck.cards
        first = deck.deal()
        deck.deal()

        deck.reset()

        assert deck.cards_remaining == 52
        assert deck.cards == order
        assert deck.deal() == first

    def test_recycle_holds_back_cards_in_play(self):
        """Test recycling never redeals a card that is on the table."""
        deck = Deck(rng=Random(3))
        deck.shuffle()
        in_play = deck.deal_many(52)[:5]

        deck.recycle(in_play)

        assert deck.cards_remaining == 47
        remaining = list(deck)
        assert not set(in_play) & set(remaining)
        assert len(set(remaining)) == 47

    def test_restore(self):
        """Test rebuilding a deck mid-deal."""
        order = cards("AS", "KH", "7D")
        deck = Deck.restore(order, position=2)
        assert deck.deal() == Card(Rank.SEVEN, Suit.DIAMONDS)

        with pytest.raises(ValueError):
            Deck.restore(order, position=4)

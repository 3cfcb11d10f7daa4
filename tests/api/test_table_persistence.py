"""Tests for saving and restoring tables through session data."""

import json
from decimal import Decimal

from api.routes.table import _deserialize_table, _serialize_table
from table.cards import Deck
from table.game import TableGame, TableState
from table.rules import TableRules
from conftest import NoShuffleRandom, cards


class TestTablePersistence:
    def test_waiting_table_round_trip(self, table):
        restored = _deserialize_table(_serialize_table(table))

        assert restored.state == TableState.WAITING_FOR_BETS
        assert [p.name for p in restored.players] == ["Alice", "Bob"]
        assert all(p.balance == Decimal("1000") for p in restored.players)

    def test_serialized_table_is_json_safe(self, stacked_table):
        table = stacked_table("10S", "6H", "9C", "7D", "10H", "7C")
        table.place_bet(1, 100)
        table.place_bet(2, 50)

        raw = _serialize_table(table)
        assert json.loads(json.dumps(raw)) == raw

    def test_mid_round_restore_continues_play(self, stacked_table):
        table = stacked_table("10S", "6H", "9C", "7D", "10H", "7C", "5S")
        table.place_bet(1, 100)
        table.place_bet(2, 50)

        restored = _deserialize_table(_serialize_table(table))

        assert restored.state == TableState.PLAYER_TURN
        assert restored.current_seat == 1
        assert restored.is_hole_card_hidden
        assert restored.deck.position == table.deck.position
        assert restored.players[0].balance == Decimal("900")
        assert restored.players[0].current_bet == 100

        assert restored.hit(1)
        assert restored.players[0].hand.value == 21
        assert restored.current_seat == 2

        assert restored.stand(2)
        assert restored.state == TableState.ROUND_COMPLETE
        assert restored.players[0].balance == Decimal("1100")
        assert restored.players[1].balance == Decimal("950")

    def test_fractional_results_survive(self):
        table_rules = TableRules(seats=1)
        deck = Deck(cards=cards("AS", "KH", "9C", "7D"), rng=NoShuffleRandom())
        table = TableGame(rules=table_rules, player_names=["Alice"], deck=deck)
        table.place_bet(1, 5)

        restored = _deserialize_table(_serialize_table(table))

        assert restored.state == TableState.ROUND_COMPLETE
        assert restored.players[0].last_result == Decimal("7.5")
        assert restored.players[0].balance == Decimal("1007.5")
        assert "7.50" in restored.status_text

    def test_custom_rules_are_kept(self):
        rules = TableRules(seats=1, min_bet=10, max_bet=200, dealer_hits_soft_17=True)
        table = TableGame(rules=rules, player_names=["Solo"])

        restored = _deserialize_table(_serialize_table(table))
        assert restored.rules == rules

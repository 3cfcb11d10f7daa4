"""Tests for table rules."""

import pytest

from config import TableConfig
from table.rules import TableRules


class TestTableRules:
    """Tests for the TableRules class."""

    def test_defaults(self, rules):
        assert rules.seats == 2
        assert rules.starting_balance == 1000
        assert rules.min_bet == 1
        assert rules.max_bet is None
        assert rules.blackjack_payout == 1.5
        assert rules.dealer_stands_on == 17
        assert not rules.dealer_hits_soft_17

    def test_rules_are_frozen(self, rules):
        with pytest.raises(AttributeError):
            rules.min_bet = 5

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"seats": 0},
            {"min_bet": 0},
            {"min_bet": 50, "max_bet": 10},
            {"starting_balance": -1},
            {"blackjack_payout": 0.5},
            {"dealer_stands_on": 22},
        ],
    )
    def test_invalid_rules_raise(self, kwargs):
        with pytest.raises(ValueError):
            TableRules(**kwargs)

    def test_from_config(self):
        table_config = TableConfig(
            seats=1,
            starting_balance=500,
            min_bet=5,
            max_bet=100,
            dealer_hits_soft_17=True,
        )
        rules = TableRules.from_config(table_config)
        assert rules.seats == 1
        assert rules.starting_balance == 500
        assert rules.min_bet == 5
        assert rules.max_bet == 100
        assert rules.dealer_hits_soft_17

    def test_presets(self):
        assert TableRules.heads_up().seats == 1
        six_five = TableRules.six_to_five()
        assert six_five.blackjack_payout == 1.2
        assert six_five.dealer_hits_soft_17

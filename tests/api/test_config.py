"""Tests for configuration classes."""

import logging
import os
import pytest
from dataclasses import FrozenInstanceError
from unittest.mock import patch

from config import (
    AppConfig,
    CORSConfig,
    LoggingConfig,
    RateLimitConfig,
    RedisConfig,
    SecurityConfig,
    TableConfig,
    _parse_cors_origins,
    configure_logging,
)


class TestCORSConfig:
    def test_default_origin(self):
        with patch.dict(os.environ, {}, clear=True):
            assert CORSConfig().allowed_origins == ["http://localhost:8000"]

    def test_parses_comma_separated_origins(self):
        with patch.dict(os.environ, {"CORS_ORIGINS": " http://a.test , ,http://b.test "}):
            assert _parse_cors_origins() == ["http://a.test", "http://b.test"]


class TestRateLimitConfig:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            limits = RateLimitConfig()
        assert limits.enabled is True
        assert limits.requests_per_minute == 60

    @pytest.mark.parametrize("flag", ["false", "0", "no", "FALSE"])
    def test_anything_but_true_disables(self, flag):
        with patch.dict(os.environ, {"RATE_LIMIT_ENABLED": flag, "RATE_LIMIT_RPM": "120"}):
            limits = RateLimitConfig()
        assert limits.enabled is False
        assert limits.requests_per_minute == 120


class TestSecurityConfig:
    def test_secret_key_from_env(self):
        with patch.dict(os.environ, {"SECRET_KEY": "shuffle"}):
            assert SecurityConfig().secret_key == "shuffle"

    def test_secret_key_generated_when_unset(self):
        with patch.dict(os.environ, {}, clear=True):
            assert len(SecurityConfig().secret_key) > 20


class TestRedisConfig:
    def test_url_without_password(self):
        with patch.dict(os.environ, {}, clear=True):
            redis_config = RedisConfig()
        assert redis_config.enabled is True
        assert redis_config.url == "redis://localhost:6379/0"

    def test_url_from_env(self):
        env = {
            "REDIS_HOST": "cache",
            "REDIS_PORT": "6380",
            "REDIS_DB": "2",
            "REDIS_PASSWORD": "pw",
            "REDIS_ENABLED": "false",
        }
        with patch.dict(os.environ, env, clear=True):
            redis_config = RedisConfig()
        assert redis_config.url == "redis://:pw@cache:6380/2"
        assert redis_config.enabled is False


class TestTableConfig:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            table = TableConfig()
        assert table.seats == 2
        assert table.starting_balance == 1000
        assert table.min_bet == 1
        assert table.max_bet is None
        assert table.blackjack_payout == 1.5
        assert table.dealer_stands_on == 17
        assert table.dealer_hits_soft_17 is False

    def test_from_env(self):
        env = {
            "TABLE_SEATS": "1",
            "TABLE_STARTING_BALANCE": "250",
            "TABLE_MIN_BET": "5",
            "TABLE_MAX_BET": "100",
            "TABLE_DEALER_HITS_SOFT_17": "true",
        }
        with patch.dict(os.environ, env, clear=True):
            table = TableConfig()
        assert (table.seats, table.starting_balance, table.min_bet, table.max_bet) == (1, 250, 5, 100)
        assert table.dealer_hits_soft_17 is True

    def test_blank_max_bet_means_no_limit(self):
        with patch.dict(os.environ, {"TABLE_MAX_BET": "  "}):
            assert TableConfig().max_bet is None

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            TableConfig().seats = 3


class TestLogging:
    def test_level_is_uppercased(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "warning"}):
            assert LoggingConfig().level == "WARNING"

    def test_configure_logging_sets_root_level(self):
        root = logging.getLogger()
        previous = root.level
        try:
            with patch("config.config", AppConfig(debug=False)):
                configure_logging(LoggingConfig(level="ERROR"))
            assert root.level == logging.ERROR
        finally:
            root.setLevel(previous)

    def test_debug_overrides_level(self):
        root = logging.getLogger()
        previous = root.level
        try:
            with patch("config.config", AppConfig(debug=True)):
                configure_logging(LoggingConfig(level="ERROR"))
            assert root.level == logging.DEBUG
        finally:
            root.setLevel(previous)


class TestAppConfig:
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            app_config = AppConfig()
        assert app_config.debug is False
        assert app_config.host == "0.0.0.0"
        assert app_config.port == 8000
        assert app_config.session_ttl == 3600
        assert isinstance(app_config.table, TableConfig)
        assert isinstance(app_config.logging, LoggingConfig)

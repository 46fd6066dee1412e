"""Tests for RelaySettings."""

import os
from unittest.mock import patch

import pytest

from relay.config import RelaySettings
from relay.market.registry import DEFAULT_SYMBOLS


class TestRelaySettings:

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = RelaySettings.from_env()

        assert settings.api_key == ""
        assert settings.registry.symbols == DEFAULT_SYMBOLS
        assert settings.feed_source == "finnhub"
        assert settings.reconnect_delay == 15.0
        assert settings.port == 3001
        assert settings.ws_url == "wss://ws.finnhub.io"
        assert settings.send_timeout == 5.0
        assert settings.cors_origins == ("*",)

    def test_reads_environment(self):
        env = {
            "FINNHUB_API_KEY": "  test-key-123 ",
            "RELAY_SYMBOLS": "AAPL, TSLA",
            "RELAY_FEED_SOURCE": "Simulator",
            "RELAY_RECONNECT_DELAY": "2.5",
            "RELAY_SINK_QUEUE_SIZE": "10",
            "FINNHUB_REST_URL": "http://localhost:9000/api/v1/",
            "RELAY_LOG_LEVEL": "debug",
            "RELAY_SEND_TIMEOUT": "0.5",
            "RELAY_CORS_ORIGINS": "http://localhost:3000, http://localhost:5173,",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = RelaySettings.from_env()

        assert settings.api_key == "test-key-123"
        assert list(settings.registry) == ["AAPL", "TSLA"]
        assert settings.feed_source == "simulator"
        assert settings.reconnect_delay == 2.5
        assert settings.sink_queue_size == 10
        assert settings.rest_url == "http://localhost:9000/api/v1"
        assert settings.log_level == "DEBUG"
        assert settings.send_timeout == 0.5
        assert settings.cors_origins == ("http://localhost:3000", "http://localhost:5173")

    def test_unknown_feed_source(self):
        with patch.dict(os.environ, {"RELAY_FEED_SOURCE": "bloomberg"}, clear=True):
            with pytest.raises(ValueError):
                RelaySettings.from_env()

    @pytest.mark.parametrize(
        "name,value",
        [
            ("RELAY_RECONNECT_DELAY", "soon"),
            ("RELAY_RECONNECT_DELAY", "-1"),
            ("RELAY_RECONNECT_DELAY", "0"),
            ("RELAY_RECONNECT_DELAY", "nan"),
            ("RELAY_RECONNECT_DELAY", "inf"),
            ("RELAY_QUOTE_TIMEOUT", "0"),
            ("RELAY_SEND_TIMEOUT", "-inf"),
            ("RELAY_SINK_QUEUE_SIZE", "0"),
            ("RELAY_PORT", "http"),
        ],
    )
    def test_bad_numbers(self, name, value):
        with patch.dict(os.environ, {name: value}, clear=True):
            with pytest.raises(ValueError):
                RelaySettings.from_env()

    def test_blank_symbols_fall_back_to_default(self):
        with patch.dict(os.environ, {"RELAY_SYMBOLS": "  "}, clear=True):
            settings = RelaySettings.from_env()
        assert settings.registry.symbols == DEFAULT_SYMBOLS

    def test_only_commas_rejected(self):
        with patch.dict(os.environ, {"RELAY_SYMBOLS": ",,"}, clear=True):
            with pytest.raises(ValueError):
                RelaySettings.from_env()

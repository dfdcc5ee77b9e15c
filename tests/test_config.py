"""Unit tests for RelayConfig."""

import pytest

from chatrelay.config import RelayConfig
from chatrelay.core.exceptions import ConfigError


def test_defaults():
    config = RelayConfig.from_env({})

    assert config.host == "0.0.0.0"
    assert config.port == 8080
    assert config.history_limit == 100
    assert config.messages_limit == 100
    assert config.max_messages is None
    assert config.log_level == "INFO"


def test_overrides():
    config = RelayConfig.from_env({
        "CHATRELAY_HOST": "127.0.0.1",
        "CHATRELAY_PORT": "9000",
        "CHATRELAY_HISTORY_LIMIT": "20",
        "CHATRELAY_MAX_MESSAGES": "500",
        "CHATRELAY_SEND_TIMEOUT": "1.5",
        "CHATRELAY_LOG_LEVEL": "debug",
        "UNRELATED": "ignored",
    })

    assert config.host == "127.0.0.1"
    assert config.port == 9000
    assert config.history_limit == 20
    assert config.max_messages == 500
    assert config.send_timeout == 1.5
    assert config.log_level == "DEBUG"


def test_blank_values_use_defaults():
    config = RelayConfig.from_env({"CHATRELAY_PORT": "  ", "CHATRELAY_MAX_MESSAGES": ""})
    assert config.port == 8080
    assert config.max_messages is None


@pytest.mark.parametrize("name, value", [
    ("CHATRELAY_PORT", "http"),
    ("CHATRELAY_PORT", "70000"),
    ("CHATRELAY_HISTORY_LIMIT", "0"),
    ("CHATRELAY_MAX_MESSAGES", "-1"),
    ("CHATRELAY_QUEUE_SIZE", "-5"),
    ("CHATRELAY_SEND_TIMEOUT", "soon"),
])
def test_invalid_values(name, value):
    with pytest.raises(ConfigError):
        RelayConfig.from_env({name: value})

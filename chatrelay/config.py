"""
Relay configuration.

Values come from the environment (optionally a ``.env`` file), falling back to
the defaults below.
"""

import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

from chatrelay.core.broadcast_hub import DEFAULT_QUEUE_SIZE, DEFAULT_SEND_TIMEOUT
from chatrelay.core.exceptions import ConfigError
from chatrelay.core.session import DEFAULT_HISTORY_LIMIT

ENV_PREFIX = "CHATRELAY_"

T = TypeVar('T')


@dataclass
class RelayConfig:
    """Settings for the relay server."""

    host: str = "0.0.0.0"
    port: int = 8080
    history_limit: int = DEFAULT_HISTORY_LIMIT
    messages_limit: int = 100
    max_messages: Optional[int] = None
    queue_size: int = DEFAULT_QUEUE_SIZE
    send_timeout: float = DEFAULT_SEND_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> 'RelayConfig':
        """
        Build a config from CHATRELAY_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ
            dotenv: Load a .env file into os.environ first

        Raises:
            ConfigError: If a value cannot be parsed
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        defaults = cls()

        def read(name: str, parse: Callable[[str], T], default: T) -> T:
            raw = environ.get(ENV_PREFIX + name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return parse(raw.strip())
            except ValueError as e:
                raise ConfigError(f"Invalid value for {ENV_PREFIX + name}: {raw!r}") from e

        config = cls(
            host=read("HOST", str, defaults.host),
            port=read("PORT", int, defaults.port),
            history_limit=read("HISTORY_LIMIT", int, defaults.history_limit),
            messages_limit=read("MESSAGES_LIMIT", int, defaults.messages_limit),
            max_messages=read("MAX_MESSAGES", int, defaults.max_messages),
            queue_size=read("QUEUE_SIZE", int, defaults.queue_size),
            send_timeout=read("SEND_TIMEOUT", float, defaults.send_timeout),
            log_level=read("LOG_LEVEL", str.upper, defaults.log_level),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Check value ranges, raising ConfigError on the first bad one."""
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port out of range: {self.port}")
        if self.history_limit <= 0:
            raise ConfigError(f"History limit must be positive: {self.history_limit}")
        if self.messages_limit <= 0:
            raise ConfigError(f"Messages limit must be positive: {self.messages_limit}")
        if self.max_messages is not None and self.max_messages <= 0:
            raise ConfigError(f"Max messages must be positive: {self.max_messages}")
        if self.queue_size < 0:
            raise ConfigError(f"Queue size cannot be negative: {self.queue_size}")
        if self.send_timeout <= 0:
            raise ConfigError(f"Send timeout must be positive: {self.send_timeout}")

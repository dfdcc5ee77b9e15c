"""Custom exceptions for the relay."""


class RelayError(Exception):
    """Base exception for relay errors."""
    pass


class MalformedMessageError(RelayError):
    """Exception raised when an inbound frame cannot be decoded."""
    pass


class DeliveryError(RelayError):
    """Exception raised when a message cannot be pushed to a client."""
    pass


class ConfigError(RelayError):
    """Exception raised for invalid configuration values."""
    pass

"""Exceptions raised by the action encoding and signing path.

All errors are raised synchronously to the caller. Nothing in the
signing path retries or recovers on its own.
"""


class HyperliquidSigningError(Exception):
    """Base class for all errors raised by this package."""


class InvalidNumber(HyperliquidSigningError, ValueError):
    """A numeric input was NaN or infinite."""


class PrecisionLoss(HyperliquidSigningError, ValueError):
    """A numeric input cannot be represented on the wire without rounding.

    - Prices and sizes need more than 8 decimals

    - Integer conversions would drift by more than the allowed tolerance
    """


class UnknownIdentifier(HyperliquidSigningError):
    """An order identifier was neither an integer order id nor a client order id."""


class UnknownAsset(UnknownIdentifier):
    """A coin name could not be resolved to an asset id."""


class SigningError(HyperliquidSigningError):
    """The underlying ECDSA library failed, or produced a malformed signature."""


class ProtocolSchemaError(HyperliquidSigningError):
    """A value does not fit the protocol schema.

    Raised for wire values the canonical serialiser refuses, and for actions
    that have no typed data definition for the envelope they were sent to.
    """


class HyperliquidAPIError(Exception):
    """The Hyperliquid HTTP API rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None, payload: dict | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

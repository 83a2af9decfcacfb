"""Client order ids.

A client order id (cloid) is a caller chosen 16-byte identifier attached
to an order, so the order can be cancelled or modified before the exchange
has assigned it an order id.
"""

from dataclasses import dataclass

from hexbytes import HexBytes

from eth_hyperliquid.errors import UnknownIdentifier

#: Cloids are exactly 16 bytes
CLOID_LENGTH = 16


@dataclass(frozen=True, slots=True)
class Cloid:
    """16-byte client order id.

    Wire form is ``0x`` followed by 32 lowercase hex characters,
    encoded as a string in the canonical serialisation.
    """

    #: Raw identifier bytes
    value: bytes

    def __post_init__(self):
        if len(self.value) != CLOID_LENGTH:
            raise UnknownIdentifier(f"Cloid must be {CLOID_LENGTH} bytes, got {len(self.value)}")

    @classmethod
    def from_int(cls, value: int) -> "Cloid":
        """Create a cloid from a non-negative integer, left padded with zeros."""
        if value < 0 or value >= 2 ** (8 * CLOID_LENGTH):
            raise UnknownIdentifier(f"Cloid integer out of range: {value}")
        return cls(value.to_bytes(CLOID_LENGTH, "big"))

    @classmethod
    def from_str(cls, value: str) -> "Cloid":
        """Create a cloid from its ``0x`` prefixed hex form."""
        if not value.startswith("0x") or len(value) != 2 + 2 * CLOID_LENGTH:
            raise UnknownIdentifier(f"Cloid must be 0x followed by {2 * CLOID_LENGTH} hex characters: {value}")
        try:
            return cls(bytes(HexBytes(value)))
        except ValueError as e:
            raise UnknownIdentifier(f"Cloid is not valid hex: {value}") from e

    def to_raw(self) -> str:
        """Wire form of the cloid."""
        return "0x" + self.value.hex()

    def __str__(self):
        return self.to_raw()

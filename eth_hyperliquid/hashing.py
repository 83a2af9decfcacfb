"""L1 action hash.

The hash commits to the action, the nonce, the optional vault and the
optional expiry:

.. code-block:: text

    keccak256(
        msgpack(action)
        || nonce as 8 bytes big endian
        || 0x00                                 if no vault
        || 0x01 || vault address as 20 bytes    if vault
        || 0x00 || expires_after as 8 bytes     only if expiry is set
    )

The expiry tag byte is ``0x00`` even though the value is present.
"""

from eth_typing import HexAddress
from hexbytes import HexBytes
from web3 import Web3

from eth_hyperliquid.errors import ProtocolSchemaError
from eth_hyperliquid.serialisation import canonical_serialise


def address_to_bytes(address: HexAddress | str) -> bytes:
    """Convert a ``0x`` address to its 20 raw bytes."""
    try:
        raw = bytes(HexBytes(address))
    except ValueError as e:
        raise ProtocolSchemaError(f"Not a hex address: {address}") from e
    if len(raw) != 20:
        raise ProtocolSchemaError(f"Address must be 20 bytes: {address}")
    return raw


def encode_action_preimage(
    wire: dict | list,
    nonce: int,
    vault_address: HexAddress | str | None = None,
    expires_after: int | None = None,
) -> bytes:
    """Build the bytes that :py:func:`hash_action` hashes."""
    data = canonical_serialise(wire)
    data += nonce.to_bytes(8, "big")
    if vault_address is None:
        data += b"\x00"
    else:
        data += b"\x01" + address_to_bytes(vault_address)
    if expires_after is not None:
        data += b"\x00" + expires_after.to_bytes(8, "big")
    return data


def hash_action(
    wire: dict | list,
    nonce: int,
    vault_address: HexAddress | str | None = None,
    expires_after: int | None = None,
) -> bytes:
    """Compute the 32-byte action hash used as the phantom agent connection id.

    :param wire:
        Wire form of the action

    :param nonce:
        Millisecond timestamp nonce

    :param vault_address:
        Vault or sub-account the action is made on behalf of

    :param expires_after:
        Millisecond timestamp after which the exchange rejects the action

    :return:
        Keccak-256 digest
    """
    try:
        return bytes(Web3.keccak(encode_action_preimage(wire, nonce, vault_address, expires_after)))
    except OverflowError as e:
        raise ProtocolSchemaError(f"Nonce or expiry does not fit in 8 bytes: {nonce}, {expires_after}") from e

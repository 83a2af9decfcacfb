"""Signing 32-byte digests with a local private key.

- Uses ``eth_account`` for secp256k1

- Signatures are returned as ``r``, ``s`` and ``v`` with ``v`` always 27 or 28,
  the form Hyperliquid expects in the ``/exchange`` payload
"""

import logging
from dataclasses import dataclass

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress
from hexbytes import HexBytes

from eth_hyperliquid.compat import sign_hash_compat
from eth_hyperliquid.errors import SigningError

logger = logging.getLogger(__name__)

#: ``r`` + ``s`` + ``v``
SIGNATURE_LENGTH = 65


@dataclass(frozen=True, slots=True)
class Signature:
    """ECDSA signature in the form posted to Hyperliquid."""

    #: 32 bytes
    r: bytes

    #: 32 bytes
    s: bytes

    #: 27 or 28
    v: int

    def to_dict(self) -> dict:
        """JSON form, ``r`` and ``s`` as zero padded 32-byte hex."""
        return {
            "r": "0x" + self.r.hex(),
            "s": "0x" + self.s.hex(),
            "v": self.v,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Signature":
        """Parse the JSON form.

        Accepts ``r`` and ``s`` with leading zeros dropped, as emitted by some clients.
        """
        try:
            r = int(data["r"], 16).to_bytes(32, "big")
            s = int(data["s"], 16).to_bytes(32, "big")
            v = int(data["v"])
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise SigningError(f"Not a valid signature: {data}") from e
        return cls(r=r, s=s, v=v)

    def to_bytes(self) -> bytes:
        return self.r + self.s + bytes([self.v])


def get_account(private_key: str | bytes | LocalAccount) -> LocalAccount:
    """Turn a hex private key into an ``eth_account`` account."""
    if isinstance(private_key, LocalAccount):
        return private_key
    try:
        return Account.from_key(private_key)
    except (ValueError, TypeError) as e:
        # Never include the key itself in the message
        raise SigningError("Could not load private key") from e


def sign_hash(digest: bytes, private_key: str | bytes | LocalAccount) -> Signature:
    """Sign a 32-byte digest.

    :param digest:
        EIP-712 hash to sign

    :param private_key:
        Hex private key or an already loaded account

    :return:
        Signature with ``v`` normalised to 27 or 28

    :raise SigningError:
        The key could not be loaded, or the library did not return a 65-byte signature
    """
    if len(digest) != 32:
        raise SigningError(f"Digest must be 32 bytes, got {len(digest)}")

    account = get_account(private_key)

    try:
        signed = sign_hash_compat(account, bytes(digest))
    except (ValueError, TypeError) as e:
        raise SigningError(f"Signing failed: {e}") from e

    raw = bytes(signed.signature)
    if len(raw) != SIGNATURE_LENGTH:
        raise SigningError(f"Expected a {SIGNATURE_LENGTH} byte signature, got {len(raw)}")

    v = raw[64]
    if v < 27:
        v += 27

    logger.debug("Signed digest %s by %s", HexBytes(digest).hex(), account.address)
    return Signature(r=raw[0:32], s=raw[32:64], v=v)


def recover_signer(digest: bytes, signature: Signature) -> HexAddress:
    """Recover the address that produced ``signature`` over ``digest``."""
    try:
        return Account._recover_hash(bytes(digest), signature=signature.to_bytes())
    except (ValueError, TypeError) as e:
        raise SigningError(f"Could not recover signer: {e}") from e

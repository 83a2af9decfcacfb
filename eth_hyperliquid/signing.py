"""Sign actions and assemble ``/exchange`` payloads.

Example:

.. code-block:: python

    from eth_hyperliquid.actions import UpdateLeverage
    from eth_hyperliquid.signing import sign_action

    signed = sign_action(
        UpdateLeverage(asset=0, is_cross=True, leverage=5),
        private_key,
        nonce=get_timestamp_ms(),
        is_mainnet=True,
    )
    session.post(f"{api_url}/exchange", json=signed.to_payload())
"""

import logging
import time
from dataclasses import dataclass

from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress

from eth_hyperliquid.actions import Action
from eth_hyperliquid.envelope import TypedData, select_envelope
from eth_hyperliquid.signer import Signature, sign_hash

logger = logging.getLogger(__name__)


def get_timestamp_ms() -> int:
    """Current time as a millisecond nonce."""
    return int(time.time() * 1000)


@dataclass(slots=True)
class SignedAction:
    """An action together with everything the exchange needs to verify it."""

    action: Action

    #: Wire dict that was signed
    wire: dict

    signature: Signature

    nonce: int

    vault_address: HexAddress | None = None

    expires_after: int | None = None

    def to_payload(self) -> dict:
        """Body of the ``POST /exchange`` request."""
        return {
            "action": self.action.to_posted_wire(self.wire),
            "nonce": self.nonce,
            "signature": self.signature.to_dict(),
            "vaultAddress": self.vault_address if self.action.posts_vault_address else None,
            "expiresAfter": self.expires_after,
        }


def build_typed_data(
    action: Action,
    nonce: int,
    is_mainnet: bool,
    vault_address: HexAddress | None = None,
    expires_after: int | None = None,
) -> TypedData:
    """Typed data an action is signed over, through its envelope."""
    envelope = select_envelope(action)
    return envelope.build_typed_data(action, nonce, is_mainnet, vault_address, expires_after)


def sign_typed_data(typed_data: TypedData, private_key: str | bytes | LocalAccount) -> Signature:
    return sign_hash(typed_data.hash(), private_key)


def sign_action(
    action: Action,
    private_key: str | bytes | LocalAccount,
    nonce: int,
    is_mainnet: bool,
    vault_address: HexAddress | None = None,
    expires_after: int | None = None,
) -> SignedAction:
    """Sign an action.

    The result is a pure function of the inputs. The nonce is not checked for
    uniqueness, that is the caller's duty.

    :param action:
        Any :py:class:`~eth_hyperliquid.actions.Action`

    :param private_key:
        Hex private key or a loaded account. For L1 actions this can be an approved agent key.

    :param nonce:
        Millisecond timestamp, see :py:func:`get_timestamp_ms`

    :param is_mainnet:
        Selects the phantom agent source and the ``hyperliquidChain`` name

    :param vault_address:
        Act on behalf of a vault or a sub-account

    :param expires_after:
        Millisecond timestamp after which the exchange rejects the action

    :return:
        Signed action, see :py:meth:`SignedAction.to_payload`
    """
    typed_data = build_typed_data(action, nonce, is_mainnet, vault_address, expires_after)
    signature = sign_typed_data(typed_data, private_key)
    logger.debug("Signed %s action, nonce %d, primary type %s", action.action_type, nonce, typed_data.primary_type)
    return SignedAction(
        action=action,
        wire=action.to_wire(is_mainnet),
        signature=signature,
        nonce=nonce,
        vault_address=vault_address,
        expires_after=expires_after,
    )

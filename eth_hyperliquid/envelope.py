"""EIP-712 envelopes for Hyperliquid actions.

Hyperliquid accepts signatures over two different EIP-712 domains:

- **Phantom agent** for L1 actions (orders, cancels, leverage, ...).
  The action is hashed with :py:func:`~eth_hyperliquid.hashing.hash_action`
  and the hash is signed as the ``connectionId`` of an ``Agent`` struct on the
  ``Exchange`` domain, chain id 1337.

- **User signed** for actions that move funds or change account permissions.
  The action fields are signed directly as a
  ``HyperliquidTransaction:<Name>`` struct on the
  ``HyperliquidSignTransaction`` domain, chain id 421614.

Each action declares which envelope it uses through
:py:attr:`~eth_hyperliquid.actions.Action.signing_scheme` and
:py:func:`select_envelope` is the one place that maps the scheme to an envelope.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from eth_typing import HexAddress
from hexbytes import HexBytes

from eth_hyperliquid.actions import Action, MultiSig, SigningScheme, UserSignedAction, network_name
from eth_hyperliquid.constants import (
    DOMAIN_VERSION,
    L1_CHAIN_ID,
    L1_DOMAIN_NAME,
    MAINNET_SOURCE,
    TESTNET_SOURCE,
    USER_SIGNED_CHAIN_ID,
    USER_SIGNED_DOMAIN_NAME,
    USER_SIGNED_PRIMARY_TYPE_PREFIX,
    ZERO_ADDRESS,
)
from eth_hyperliquid.eip_712 import EIP712_DOMAIN_FIELDS, eip712_encode_hash
from eth_hyperliquid.errors import ProtocolSchemaError
from eth_hyperliquid.hashing import hash_action

logger = logging.getLogger(__name__)

#: Phantom agent struct
AGENT_FIELDS = [
    {"name": "source", "type": "string"},
    {"name": "connectionId", "type": "bytes32"},
]

#: Primary type of the multi-sig outer action
SEND_MULTI_SIG_PRIMARY_TYPE = USER_SIGNED_PRIMARY_TYPE_PREFIX + "SendMultiSig"

#: Struct of the multi-sig outer action
SEND_MULTI_SIG_FIELDS = [
    {"name": "hyperliquidChain", "type": "string"},
    {"name": "multiSigActionHash", "type": "bytes32"},
    {"name": "nonce", "type": "uint64"},
]


@dataclass(slots=True)
class TypedData:
    """EIP-712 typed data ready to be hashed."""

    domain: dict

    #: Struct definitions, without ``EIP712Domain``
    types: dict[str, list[dict]]

    primary_type: str

    message: dict

    def to_dict(self) -> dict:
        """Full message form, as accepted by ``eth_account.messages.encode_typed_data(full_message=...)``."""
        return {
            "domain": self.domain,
            "types": {"EIP712Domain": EIP712_DOMAIN_FIELDS, **self.types},
            "primaryType": self.primary_type,
            "message": self.message,
        }

    def hash(self) -> bytes:
        """The 32-byte digest to sign."""
        return bytes(eip712_encode_hash(self.to_dict()))


def l1_domain() -> dict:
    return {
        "name": L1_DOMAIN_NAME,
        "version": DOMAIN_VERSION,
        "chainId": L1_CHAIN_ID,
        "verifyingContract": ZERO_ADDRESS,
    }


def user_signed_domain() -> dict:
    return {
        "name": USER_SIGNED_DOMAIN_NAME,
        "version": DOMAIN_VERSION,
        "chainId": USER_SIGNED_CHAIN_ID,
        "verifyingContract": ZERO_ADDRESS,
    }


def construct_phantom_agent(action_hash: bytes, is_mainnet: bool) -> dict:
    """The ``Agent`` message whose ``connectionId`` is the action hash."""
    return {
        "source": MAINNET_SOURCE if is_mainnet else TESTNET_SOURCE,
        "connectionId": action_hash,
    }


def l1_typed_data(
    wire: dict | list,
    nonce: int,
    is_mainnet: bool,
    vault_address: HexAddress | None = None,
    expires_after: int | None = None,
) -> TypedData:
    """Phantom agent typed data for any L1 wire value.

    Also used for multi-sig participants, who sign a list wrapping the inner action.
    """
    action_hash = hash_action(wire, nonce, vault_address, expires_after)
    logger.debug("L1 action hash %s, nonce %d", HexBytes(action_hash).hex(), nonce)
    return TypedData(
        domain=l1_domain(),
        types={"Agent": AGENT_FIELDS},
        primary_type="Agent",
        message=construct_phantom_agent(action_hash, is_mainnet),
    )


def user_signed_typed_data(message: dict, fields: list[dict], primary_type_suffix: str) -> TypedData:
    """Typed data on the user-signed domain.

    :param message:
        Wire dict, extra keys not named in ``fields`` are ignored by the hashing

    :param fields:
        Full struct definition, starting with ``hyperliquidChain``
    """
    primary_type = USER_SIGNED_PRIMARY_TYPE_PREFIX + primary_type_suffix
    return TypedData(
        domain=user_signed_domain(),
        types={primary_type: fields},
        primary_type=primary_type,
        message=message,
    )


def user_signed_fields(action: UserSignedAction) -> list[dict]:
    """Struct definition of a user-signed action."""
    fields = [{"name": "hyperliquidChain", "type": "string"}]
    fields += [{"name": name, "type": typ} for name, typ in action.eip712_fields]
    return fields


class Envelope(ABC):
    """Turns an action into EIP-712 typed data."""

    @abstractmethod
    def build_typed_data(
        self,
        action: Action,
        nonce: int,
        is_mainnet: bool,
        vault_address: HexAddress | None = None,
        expires_after: int | None = None,
    ) -> TypedData:
        """Build the typed data to sign for ``action``.

        :param nonce:
            Millisecond timestamp nonce

        :param vault_address:
            Vault or sub-account the action is made for

        :param expires_after:
            Millisecond timestamp after which the action is rejected
        """


class PhantomAgentEnvelope(Envelope):
    """Envelope for L1 actions."""

    def build_typed_data(
        self,
        action: Action,
        nonce: int,
        is_mainnet: bool,
        vault_address: HexAddress | None = None,
        expires_after: int | None = None,
    ) -> TypedData:
        return l1_typed_data(action.to_wire(is_mainnet), nonce, is_mainnet, vault_address, expires_after)


class UserSignedEnvelope(Envelope):
    """Envelope for user-signed actions and the multi-sig outer action.

    Vault and expiry do not take part in user-signed messages, except for the
    multi-sig outer action where they are part of the hashed inner payload.
    """

    def build_typed_data(
        self,
        action: Action,
        nonce: int,
        is_mainnet: bool,
        vault_address: HexAddress | None = None,
        expires_after: int | None = None,
    ) -> TypedData:
        if isinstance(action, MultiSig):
            return self.build_multi_sig_typed_data(action, nonce, is_mainnet, vault_address, expires_after)

        if not isinstance(action, UserSignedAction):
            raise ProtocolSchemaError(f"Action {action.action_type} has no user-signed type definition")

        return user_signed_typed_data(
            action.to_wire(is_mainnet),
            user_signed_fields(action),
            action.primary_type_suffix,
        )

    def build_multi_sig_typed_data(
        self,
        action: MultiSig,
        nonce: int,
        is_mainnet: bool,
        vault_address: HexAddress | None = None,
        expires_after: int | None = None,
    ) -> TypedData:
        wire = action.to_wire(is_mainnet)
        without_type = {k: v for k, v in wire.items() if k != "type"}
        multi_sig_action_hash = hash_action(without_type, nonce, vault_address, expires_after)
        message = {
            "hyperliquidChain": network_name(is_mainnet),
            "multiSigActionHash": multi_sig_action_hash,
            "nonce": nonce,
        }
        return user_signed_typed_data(message, SEND_MULTI_SIG_FIELDS, "SendMultiSig")


#: Shared stateless envelope instances
PHANTOM_AGENT_ENVELOPE = PhantomAgentEnvelope()
USER_SIGNED_ENVELOPE = UserSignedEnvelope()


def select_envelope(action: Action) -> Envelope:
    """Pick the envelope an action is signed with."""
    match action.signing_scheme:
        case SigningScheme.l1:
            return PHANTOM_AGENT_ENVELOPE
        case SigningScheme.user_signed:
            return USER_SIGNED_ENVELOPE
        case _:
            raise ProtocolSchemaError(f"Unknown signing scheme {action.signing_scheme} for {action.action_type}")

"""Multi-sig actions.

A multi-sig account is controlled by a set of authorised users and a
threshold. Submitting an action for it goes in two steps:

1. Each participant signs the inner action with
   :py:func:`sign_multi_sig_inner` and hands the signature to a coordinator.

2. The coordinator, called the *outer signer* and itself an authorised user,
   collects the signatures with :py:func:`build_multi_sig_action` and signs
   the resulting :py:class:`~eth_hyperliquid.actions.MultiSig` action with
   :py:func:`~eth_hyperliquid.signing.sign_action`.

Participants only return values. Nothing here holds shared state, so
participants can sign on separate machines.

Example:

.. code-block:: python

    inner = UsdSend(destination=receiver, amount=10.0, time=nonce)

    signatures = [
        sign_multi_sig_inner(inner, key, nonce, is_mainnet, multi_sig_user, outer_signer.address)
        for key in participant_keys
    ]

    action = build_multi_sig_action(inner, signatures, is_mainnet, multi_sig_user, outer_signer.address)
    signed = sign_action(action, outer_signer, nonce, is_mainnet)
"""

import logging

from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress

from eth_hyperliquid.actions import Action, MultiSig, SigningScheme, UserSignedAction
from eth_hyperliquid.envelope import TypedData, l1_typed_data, user_signed_fields, user_signed_typed_data
from eth_hyperliquid.errors import ProtocolSchemaError
from eth_hyperliquid.signer import Signature, sign_hash

logger = logging.getLogger(__name__)

#: Struct fields injected into user-signed inner actions, right after ``hyperliquidChain``
MULTI_SIG_USER_SIGNED_FIELDS = [
    {"name": "payloadMultiSigUser", "type": "address"},
    {"name": "outerSigner", "type": "address"},
]


def build_multi_sig_inner_typed_data(
    action: Action,
    nonce: int,
    is_mainnet: bool,
    multi_sig_user: HexAddress,
    outer_signer: HexAddress,
    vault_address: HexAddress | None = None,
    expires_after: int | None = None,
) -> TypedData:
    """Typed data a participant signs for a multi-sig inner action.

    - L1 inner actions are hashed as the list
      ``[multi_sig_user, outer_signer, inner wire]`` and signed through the phantom agent

    - User-signed inner actions get ``payloadMultiSigUser`` and ``outerSigner``
      added to both the message and the struct definition
    """
    wire = action.to_wire(is_mainnet)
    match action.signing_scheme:
        case SigningScheme.l1:
            envelope = [multi_sig_user.lower(), outer_signer.lower(), wire]
            return l1_typed_data(envelope, nonce, is_mainnet, vault_address, expires_after)
        case SigningScheme.user_signed:
            if not isinstance(action, UserSignedAction):
                raise ProtocolSchemaError(f"{action.action_type} cannot be nested in a multi-sig action")

            fields = user_signed_fields(action)
            fields = fields[:1] + MULTI_SIG_USER_SIGNED_FIELDS + fields[1:]

            message = dict(wire)
            message["payloadMultiSigUser"] = multi_sig_user.lower()
            message["outerSigner"] = outer_signer.lower()
            return user_signed_typed_data(message, fields, action.primary_type_suffix)
        case _:
            raise ProtocolSchemaError(f"Unknown signing scheme {action.signing_scheme}")


def sign_multi_sig_inner(
    action: Action,
    private_key: str | bytes | LocalAccount,
    nonce: int,
    is_mainnet: bool,
    multi_sig_user: HexAddress,
    outer_signer: HexAddress,
    vault_address: HexAddress | None = None,
    expires_after: int | None = None,
) -> Signature:
    """Participant step: sign an inner action for a multi-sig account.

    All participants and the outer signer must use the same nonce,
    vault address and expiry.

    :param private_key:
        Key of one of the authorised users

    :param multi_sig_user:
        The multi-sig account

    :param outer_signer:
        Authorised user who will submit the outer action
    """
    typed_data = build_multi_sig_inner_typed_data(
        action,
        nonce,
        is_mainnet,
        multi_sig_user,
        outer_signer,
        vault_address,
        expires_after,
    )
    signature = sign_hash(typed_data.hash(), private_key)
    logger.debug("Signed multi-sig inner %s for %s", action.action_type, multi_sig_user)
    return signature


def build_multi_sig_action(
    action: Action,
    signatures: list[Signature],
    is_mainnet: bool,
    multi_sig_user: HexAddress,
    outer_signer: HexAddress,
) -> MultiSig:
    """Coordinator step: wrap the inner action and the collected signatures.

    The inner action is rendered for the same network the participants signed for.
    """
    if isinstance(action, MultiSig):
        raise ProtocolSchemaError("Multi-sig actions cannot be nested")

    return MultiSig(
        multi_sig_user=multi_sig_user,
        outer_signer=outer_signer,
        inner_wire=action.to_wire(is_mainnet),
        signatures=list(signatures),
    )

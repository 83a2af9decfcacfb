"""Hyperliquid action wire model.

Every request that mutates exchange state is an *action*. Each action is a
frozen dataclass that knows

- its wire ``type`` tag

- how it is signed: as an L1 action through the phantom agent, or as a
  user-signed EIP-712 transaction

- how to render itself as a wire dict, with keys in protocol order

Key order matters: L1 actions are hashed over their MessagePack encoding and
MessagePack keeps dict insertion order. A differently ordered dict produces a
different hash and the exchange recovers a different, unknown signer.

Example:

.. code-block:: python

    from eth_hyperliquid.actions import LimitOrderType, OrderWire, PlaceOrders, Tif

    action = PlaceOrders(
        orders=[
            OrderWire(
                asset=4,
                is_buy=True,
                limit_px=1670.1,
                sz=0.0147,
                reduce_only=False,
                order_type=LimitOrderType(Tif.ioc),
            )
        ],
    )
    wire = action.to_wire(is_mainnet=True)
    # {"type": "order", "orders": [{"a": 4, "b": True, "p": "1670.1", ...}], "grouping": "na"}

For user-signed actions see :py:data:`UserSignedAction.eip712_fields`.
"""

import enum
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

from eth_typing import HexAddress

from eth_hyperliquid.cloid import Cloid
from eth_hyperliquid.constants import MAINNET_CHAIN_NAME, SIGNATURE_CHAIN_ID, TESTNET_CHAIN_NAME
from eth_hyperliquid.errors import UnknownIdentifier
from eth_hyperliquid.numeric import float_to_usd_int, float_to_wire
from eth_hyperliquid.signer import Signature


class SigningScheme(enum.Enum):
    """How an action is authenticated."""

    #: Hashed over MessagePack and signed through the phantom agent
    l1 = "l1"

    #: Signed as a plain EIP-712 message on the ``HyperliquidSignTransaction`` domain
    user_signed = "user_signed"


class Tif(enum.Enum):
    """Time in force of a limit order."""

    #: Add liquidity only, post only
    alo = "Alo"

    #: Immediate or cancel
    ioc = "Ioc"

    #: Good until cancelled
    gtc = "Gtc"


class TpSl(enum.Enum):
    """Whether a trigger order is a take profit or a stop loss."""

    tp = "tp"
    sl = "sl"


class OrderGrouping(enum.Enum):
    """How orders placed in one batch relate to each other."""

    #: Independent orders
    na = "na"

    #: A parent order followed by take profit and stop loss children
    normal_tpsl = "normalTpsl"

    #: Take profit and stop loss bound to the whole position
    position_tpsl = "positionTpsl"


def network_name(is_mainnet: bool) -> str:
    """``hyperliquidChain`` value for a network."""
    return MAINNET_CHAIN_NAME if is_mainnet else TESTNET_CHAIN_NAME


@dataclass(frozen=True, slots=True)
class LimitOrderType:
    """Resting limit order."""

    tif: Tif = Tif.gtc

    def to_wire(self) -> dict:
        return {"limit": {"tif": self.tif.value}}


@dataclass(frozen=True, slots=True)
class TriggerOrderType:
    """Order that activates when the mark price crosses ``trigger_px``."""

    trigger_px: float
    is_market: bool
    tpsl: TpSl

    def to_wire(self) -> dict:
        return {
            "trigger": {
                "isMarket": self.is_market,
                "triggerPx": float_to_wire(self.trigger_px),
                "tpsl": self.tpsl.value,
            }
        }


#: Either order type
OrderType = LimitOrderType | TriggerOrderType


@dataclass(frozen=True, slots=True)
class OrderWire:
    """One order with its coin already resolved to an asset id."""

    asset: int
    is_buy: bool
    limit_px: float
    sz: float
    reduce_only: bool
    order_type: OrderType
    cloid: Cloid | None = None

    def to_wire(self) -> dict:
        wire = {
            "a": self.asset,
            "b": self.is_buy,
            "p": float_to_wire(self.limit_px),
            "s": float_to_wire(self.sz),
            "r": self.reduce_only,
            "t": self.order_type.to_wire(),
        }
        if self.cloid is not None:
            wire["c"] = self.cloid.to_raw()
        return wire


@dataclass(frozen=True, slots=True)
class OrderRequest:
    """An order as the caller describes it, by coin name."""

    coin: str
    is_buy: bool
    sz: float
    limit_px: float
    order_type: OrderType
    reduce_only: bool = False
    cloid: Cloid | None = None

    def to_order_wire(self, asset: int) -> OrderWire:
        return OrderWire(
            asset=asset,
            is_buy=self.is_buy,
            limit_px=self.limit_px,
            sz=self.sz,
            reduce_only=self.reduce_only,
            order_type=self.order_type,
            cloid=self.cloid,
        )


@dataclass(frozen=True, slots=True)
class ModifyWire:
    """Replace a resting order, identified by order id or cloid."""

    oid: int | Cloid
    order: OrderWire

    def to_wire(self) -> dict:
        # bool is an int subclass, but never a valid order id
        if isinstance(self.oid, Cloid):
            oid = self.oid.to_raw()
        elif isinstance(self.oid, int) and not isinstance(self.oid, bool):
            oid = self.oid
        else:
            raise UnknownIdentifier(f"Modify needs an integer order id or a Cloid, got {self.oid!r}")
        return {"oid": oid, "order": self.order.to_wire()}


@dataclass(frozen=True, slots=True)
class ModifyRequest:
    """A modify as the caller describes it, by coin name."""

    oid: int | Cloid
    order: OrderRequest


@dataclass(frozen=True, slots=True)
class CancelRequest:
    coin: str
    oid: int


@dataclass(frozen=True, slots=True)
class CancelByCloidRequest:
    coin: str
    cloid: Cloid


@dataclass(frozen=True, slots=True)
class BuilderInfo:
    """Builder code attached to an order batch.

    :param address:
        Builder address, lowercased on the wire

    :param fee:
        Fee in tenths of a basis point, ``10`` means 1 bp
    """

    address: HexAddress
    fee: int

    def to_wire(self) -> dict:
        return {"b": self.address.lower(), "f": self.fee}


@dataclass(frozen=True)
class Action(ABC):
    """Base class of all signable actions."""

    #: Wire ``type`` tag
    action_type: ClassVar[str]

    #: How this action is signed
    signing_scheme: ClassVar[SigningScheme] = SigningScheme.l1

    #: Whether the ``/exchange`` payload carries the vault address.
    #:
    #: Transfers that name their sub-account inside the action post ``null``.
    posts_vault_address: ClassVar[bool] = True

    @abstractmethod
    def to_wire(self, is_mainnet: bool) -> dict:
        """Render the action as an ordered wire dict.

        :param is_mainnet:
            Only user-signed actions depend on the network
        """

    def to_posted_wire(self, wire: dict) -> dict:
        """Adjust the signed wire dict before it is posted to ``/exchange``."""
        return wire


@dataclass(frozen=True)
class PlaceOrders(Action):
    """Place one or more orders."""

    action_type: ClassVar[str] = "order"

    orders: list[OrderWire]
    grouping: OrderGrouping = OrderGrouping.na
    builder: BuilderInfo | None = None

    def to_wire(self, is_mainnet: bool) -> dict:
        wire = {
            "type": self.action_type,
            "orders": [o.to_wire() for o in self.orders],
            "grouping": self.grouping.value,
        }
        if self.builder is not None:
            wire["builder"] = self.builder.to_wire()
        return wire


@dataclass(frozen=True)
class BatchModify(Action):
    action_type: ClassVar[str] = "batchModify"

    modifies: list[ModifyWire]

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "modifies": [m.to_wire() for m in self.modifies],
        }


@dataclass(frozen=True)
class Cancel(Action):
    """Cancel orders by ``(asset, order id)`` pairs."""

    action_type: ClassVar[str] = "cancel"

    cancels: list[tuple[int, int]]

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "cancels": [{"a": asset, "o": oid} for asset, oid in self.cancels],
        }


@dataclass(frozen=True)
class CancelByCloid(Action):
    """Cancel orders by ``(asset, cloid)`` pairs."""

    action_type: ClassVar[str] = "cancelByCloid"

    cancels: list[tuple[int, Cloid]]

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "cancels": [{"asset": asset, "cloid": cloid.to_raw()} for asset, cloid in self.cancels],
        }


@dataclass(frozen=True)
class ScheduleCancel(Action):
    """Dead man's switch: cancel all orders at ``time``, or clear the schedule when ``None``."""

    action_type: ClassVar[str] = "scheduleCancel"

    time: int | None = None

    def to_wire(self, is_mainnet: bool) -> dict:
        wire: dict[str, Any] = {"type": self.action_type}
        if self.time is not None:
            wire["time"] = self.time
        return wire


@dataclass(frozen=True)
class UpdateLeverage(Action):
    action_type: ClassVar[str] = "updateLeverage"

    asset: int
    is_cross: bool
    leverage: int

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "asset": self.asset,
            "isCross": self.is_cross,
            "leverage": self.leverage,
        }


@dataclass(frozen=True)
class UpdateIsolatedMargin(Action):
    """Add or remove isolated margin, ``amount`` in USD, negative to remove."""

    action_type: ClassVar[str] = "updateIsolatedMargin"

    asset: int
    amount: float

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "asset": self.asset,
            "isBuy": True,
            "ntli": float_to_usd_int(self.amount),
        }


@dataclass(frozen=True)
class SetReferrer(Action):
    action_type: ClassVar[str] = "setReferrer"

    code: str

    def to_wire(self, is_mainnet: bool) -> dict:
        return {"type": self.action_type, "code": self.code}


@dataclass(frozen=True)
class CreateSubAccount(Action):
    action_type: ClassVar[str] = "createSubAccount"

    name: str

    def to_wire(self, is_mainnet: bool) -> dict:
        return {"type": self.action_type, "name": self.name}


@dataclass(frozen=True)
class SubAccountTransfer(Action):
    """Move USD between the master account and a sub-account."""

    action_type: ClassVar[str] = "subAccountTransfer"

    sub_account_user: HexAddress
    is_deposit: bool
    usd: int

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "subAccountUser": self.sub_account_user.lower(),
            "isDeposit": self.is_deposit,
            "usd": self.usd,
        }


@dataclass(frozen=True)
class SubAccountSpotTransfer(Action):
    action_type: ClassVar[str] = "subAccountSpotTransfer"

    sub_account_user: HexAddress
    is_deposit: bool
    token: str
    amount: float

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "subAccountUser": self.sub_account_user.lower(),
            "isDeposit": self.is_deposit,
            "token": self.token,
            "amount": float_to_wire(self.amount),
        }


@dataclass(frozen=True)
class VaultTransfer(Action):
    """Deposit to or withdraw from a vault, ``usd`` in micro-dollars."""

    action_type: ClassVar[str] = "vaultTransfer"

    vault_address: HexAddress
    is_deposit: bool
    usd: int

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "vaultAddress": self.vault_address.lower(),
            "isDeposit": self.is_deposit,
            "usd": self.usd,
        }


@dataclass(frozen=True)
class SpotDeployRegisterToken(Action):
    """Register a new spot token, the first step of a spot deployment.

    :param max_gas:
        Highest deploy auction price the deployer accepts
    """

    action_type: ClassVar[str] = "spotDeploy"

    token_name: str
    sz_decimals: int
    wei_decimals: int
    max_gas: int
    full_name: str

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "registerToken2": {
                "spec": {
                    "name": self.token_name,
                    "szDecimals": self.sz_decimals,
                    "weiDecimals": self.wei_decimals,
                },
                "maxGas": self.max_gas,
                "fullName": self.full_name,
            },
        }


@dataclass(frozen=True)
class SpotDeployUserGenesis(Action):
    """Assign the genesis balances of a registered spot token.

    Balances are in wei and go on the wire as decimal strings.

    :param user_and_wei:
        ``(user, wei)`` pairs

    :param existing_token_and_wei:
        ``(token index, wei)`` pairs, giving the holders of an existing token a share
    """

    action_type: ClassVar[str] = "spotDeploy"

    token: int
    user_and_wei: list[tuple[HexAddress, int]]
    existing_token_and_wei: list[tuple[int, int]] = field(default_factory=list)

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "userGenesis": {
                "token": self.token,
                "userAndWei": [[user.lower(), str(wei)] for user, wei in self.user_and_wei],
                "existingTokenAndWei": [[token, str(wei)] for token, wei in self.existing_token_and_wei],
            },
        }


@dataclass(frozen=True)
class UserSignedAction(Action):
    """Base class of actions signed directly on the ``HyperliquidSignTransaction`` domain.

    The wire dict carries the action fields followed by ``signatureChainId``
    and ``hyperliquidChain``. The EIP-712 message is the same dict, and its
    type is ``hyperliquidChain`` followed by :py:attr:`eip712_fields`.
    """

    signing_scheme: ClassVar[SigningScheme] = SigningScheme.user_signed

    #: Suffix of the ``HyperliquidTransaction:<suffix>`` primary type
    primary_type_suffix: ClassVar[str]

    #: ``(name, solidity type)`` pairs after ``hyperliquidChain``, in signing order
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]]

    @abstractmethod
    def wire_fields(self) -> dict:
        """Action specific fields, in wire order."""

    def to_wire(self, is_mainnet: bool) -> dict:
        wire = {"type": self.action_type}
        wire.update(self.wire_fields())
        wire["signatureChainId"] = SIGNATURE_CHAIN_ID
        wire["hyperliquidChain"] = network_name(is_mainnet)
        return wire


@dataclass(frozen=True)
class UsdSend(UserSignedAction):
    """Send USDC to another address on the perp balance."""

    action_type: ClassVar[str] = "usdSend"
    primary_type_suffix: ClassVar[str] = "UsdSend"
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("destination", "string"),
        ("amount", "string"),
        ("time", "uint64"),
    )

    destination: HexAddress
    amount: float
    time: int

    def wire_fields(self) -> dict:
        return {
            "amount": float_to_wire(self.amount),
            "destination": self.destination.lower(),
            "time": self.time,
        }


@dataclass(frozen=True)
class SpotSend(UserSignedAction):
    """Send a spot token, ``token`` is ``NAME:0x<token id>``."""

    action_type: ClassVar[str] = "spotSend"
    primary_type_suffix: ClassVar[str] = "SpotSend"
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("destination", "string"),
        ("token", "string"),
        ("amount", "string"),
        ("time", "uint64"),
    )

    destination: HexAddress
    token: str
    amount: float
    time: int

    def wire_fields(self) -> dict:
        return {
            "destination": self.destination.lower(),
            "token": self.token,
            "amount": float_to_wire(self.amount),
            "time": self.time,
        }


@dataclass(frozen=True)
class Withdraw(UserSignedAction):
    """Withdraw USDC through the bridge."""

    action_type: ClassVar[str] = "withdraw3"
    primary_type_suffix: ClassVar[str] = "Withdraw"
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("destination", "string"),
        ("amount", "string"),
        ("time", "uint64"),
    )

    destination: HexAddress
    amount: float
    time: int

    def wire_fields(self) -> dict:
        return {
            "destination": self.destination.lower(),
            "amount": float_to_wire(self.amount),
            "time": self.time,
        }


@dataclass(frozen=True)
class UsdClassTransfer(UserSignedAction):
    """Move USDC between the spot and perp balances.

    When acting for a sub-account, the sub-account is named inside the
    amount string and the payload carries no vault address.
    """

    action_type: ClassVar[str] = "usdClassTransfer"
    primary_type_suffix: ClassVar[str] = "UsdClassTransfer"
    posts_vault_address: ClassVar[bool] = False
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("amount", "string"),
        ("toPerp", "bool"),
        ("nonce", "uint64"),
    )

    amount: float
    to_perp: bool
    nonce: int
    sub_account: HexAddress | None = None

    def wire_fields(self) -> dict:
        amount = float_to_wire(self.amount)
        if self.sub_account:
            amount += f" subaccount:{self.sub_account}"
        return {
            "amount": amount,
            "toPerp": self.to_perp,
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class SendAsset(UserSignedAction):
    """Move a token between dexes, accounts and sub-accounts."""

    action_type: ClassVar[str] = "sendAsset"
    primary_type_suffix: ClassVar[str] = "SendAsset"
    posts_vault_address: ClassVar[bool] = False
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("destination", "string"),
        ("sourceDex", "string"),
        ("destinationDex", "string"),
        ("token", "string"),
        ("amount", "string"),
        ("fromSubAccount", "string"),
        ("nonce", "uint64"),
    )

    destination: HexAddress
    source_dex: str
    destination_dex: str
    token: str
    amount: float
    nonce: int
    from_sub_account: HexAddress | None = None

    def wire_fields(self) -> dict:
        return {
            "destination": self.destination,
            "sourceDex": self.source_dex,
            "destinationDex": self.destination_dex,
            "token": self.token,
            "amount": float_to_wire(self.amount),
            "fromSubAccount": self.from_sub_account or "",
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class TokenDelegate(UserSignedAction):
    """Stake or unstake HYPE with a validator, ``wei`` in the token's smallest unit."""

    action_type: ClassVar[str] = "tokenDelegate"
    primary_type_suffix: ClassVar[str] = "TokenDelegate"
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("validator", "address"),
        ("wei", "uint64"),
        ("isUndelegate", "bool"),
        ("nonce", "uint64"),
    )

    validator: HexAddress
    wei: int
    is_undelegate: bool
    nonce: int

    def wire_fields(self) -> dict:
        return {
            "validator": self.validator.lower(),
            "wei": self.wei,
            "isUndelegate": self.is_undelegate,
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class ApproveAgent(UserSignedAction):
    """Authorise an API wallet to sign L1 actions on behalf of the account.

    An unnamed agent is signed with an empty ``agentName``, but the field
    is left out of the posted action.
    """

    action_type: ClassVar[str] = "approveAgent"
    primary_type_suffix: ClassVar[str] = "ApproveAgent"
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("agentAddress", "address"),
        ("agentName", "string"),
        ("nonce", "uint64"),
    )

    agent_address: HexAddress
    nonce: int
    agent_name: str | None = None

    def wire_fields(self) -> dict:
        return {
            "agentAddress": self.agent_address.lower(),
            "agentName": self.agent_name or "",
            "nonce": self.nonce,
        }

    def to_posted_wire(self, wire: dict) -> dict:
        if self.agent_name is None:
            wire = {k: v for k, v in wire.items() if k != "agentName"}
        return wire


@dataclass(frozen=True)
class ApproveBuilderFee(UserSignedAction):
    """Allow a builder to charge up to ``max_fee_rate``, e.g. ``"0.001%"``."""

    action_type: ClassVar[str] = "approveBuilderFee"
    primary_type_suffix: ClassVar[str] = "ApproveBuilderFee"
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("maxFeeRate", "string"),
        ("builder", "address"),
        ("nonce", "uint64"),
    )

    builder: HexAddress
    max_fee_rate: str
    nonce: int

    @classmethod
    def from_fraction(cls, builder: HexAddress, max_fee_rate: float, nonce: int) -> "ApproveBuilderFee":
        """Create from a fraction, ``0.01`` is rendered as ``"1%"``."""
        return cls(builder=builder, max_fee_rate=float_to_wire(max_fee_rate * 100) + "%", nonce=nonce)

    def wire_fields(self) -> dict:
        return {
            "maxFeeRate": self.max_fee_rate,
            "builder": self.builder.lower(),
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class ConvertToMultiSigUser(UserSignedAction):
    """Turn the account into a multi-sig account.

    Authorised users are lowercased and sorted, then embedded as a compact
    JSON string in the ``signers`` field.
    """

    action_type: ClassVar[str] = "convertToMultiSigUser"
    primary_type_suffix: ClassVar[str] = "ConvertToMultiSigUser"
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("signers", "string"),
        ("nonce", "uint64"),
    )

    authorized_users: list[HexAddress]
    threshold: int
    nonce: int

    def signers_json(self) -> str:
        signers = {
            "authorizedUsers": sorted(a.lower() for a in self.authorized_users),
            "threshold": self.threshold,
        }
        return json.dumps(signers, separators=(",", ":"))

    def wire_fields(self) -> dict:
        return {
            "signers": self.signers_json(),
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class UserDexAbstraction(UserSignedAction):
    """Enable or disable dex abstraction for ``user``."""

    action_type: ClassVar[str] = "userDexAbstraction"
    primary_type_suffix: ClassVar[str] = "UserDexAbstraction"
    eip712_fields: ClassVar[tuple[tuple[str, str], ...]] = (
        ("user", "address"),
        ("enabled", "bool"),
        ("nonce", "uint64"),
    )

    user: HexAddress
    enabled: bool
    nonce: int

    def wire_fields(self) -> dict:
        return {
            "user": self.user.lower(),
            "enabled": self.enabled,
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class MultiSig(Action):
    """Outer action submitted on behalf of a multi-sig account.

    Built by :py:func:`eth_hyperliquid.multisig.build_multi_sig_action` once
    enough participants have signed ``inner_wire``.

    Signed on the user-signed domain as ``HyperliquidTransaction:SendMultiSig``
    over the hash of the wire dict without its ``type`` key.
    """

    action_type: ClassVar[str] = "multiSig"
    signing_scheme: ClassVar[SigningScheme] = SigningScheme.user_signed

    multi_sig_user: HexAddress
    outer_signer: HexAddress
    inner_wire: dict
    signatures: list[Signature] = field(default_factory=list)

    def to_wire(self, is_mainnet: bool) -> dict:
        return {
            "type": self.action_type,
            "signatureChainId": SIGNATURE_CHAIN_ID,
            "signatures": [s.to_dict() for s in self.signatures],
            "payload": {
                "multiSigUser": self.multi_sig_user.lower(),
                "outerSigner": self.outer_signer.lower(),
                "action": self.inner_wire,
            },
        }

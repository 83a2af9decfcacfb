"""Hyperliquid exchange client.

Resolves coin names, stamps nonces, signs actions and posts them to
the ``/exchange`` endpoint.

Example:

.. code-block:: python

    from eth_hyperliquid.config import HyperliquidConfig
    from eth_hyperliquid.exchange import HyperliquidExchange
    from eth_hyperliquid.actions import LimitOrderType, Tif

    exchange = HyperliquidExchange.from_config(HyperliquidConfig.from_env())

    # Rest a bid on ETH perp
    exchange.order("ETH", is_buy=True, sz=0.01, limit_px=1800.0, order_type=LimitOrderType(Tif.gtc))

    # Take liquidity with 1% slippage
    exchange.market_open("ETH", is_buy=True, sz=0.01, slippage=0.01)

The client is not thread safe: nonces are millisecond timestamps and two
actions signed in the same millisecond by different threads collide.
"""

import logging

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import HexAddress
from requests import Session

from eth_hyperliquid.actions import (
    Action,
    ApproveAgent,
    ApproveBuilderFee,
    BatchModify,
    BuilderInfo,
    Cancel,
    CancelByCloid,
    CancelByCloidRequest,
    CancelRequest,
    ConvertToMultiSigUser,
    CreateSubAccount,
    LimitOrderType,
    ModifyRequest,
    ModifyWire,
    OrderGrouping,
    OrderRequest,
    OrderType,
    PlaceOrders,
    ScheduleCancel,
    SendAsset,
    SetReferrer,
    SpotDeployRegisterToken,
    SpotDeployUserGenesis,
    SpotSend,
    SubAccountSpotTransfer,
    SubAccountTransfer,
    Tif,
    TokenDelegate,
    UpdateIsolatedMargin,
    UpdateLeverage,
    UsdClassTransfer,
    UsdSend,
    UserDexAbstraction,
    VaultTransfer,
    Withdraw,
)
from eth_hyperliquid.api import DEFAULT_TIMEOUT, fetch_all_mids, fetch_position_size, post_exchange_request
from eth_hyperliquid.cloid import Cloid
from eth_hyperliquid.config import HyperliquidConfig
from eth_hyperliquid.constants import (
    DEFAULT_SLIPPAGE,
    HYPERLIQUID_API_URL,
    MAX_PERP_PRICE_DECIMALS,
    MAX_SPOT_PRICE_DECIMALS,
    PRICE_SIGNIFICANT_FIGURES,
    SPOT_ASSET_ID_OFFSET,
)
from eth_hyperliquid.errors import HyperliquidAPIError, UnknownAsset
from eth_hyperliquid.metadata import AssetMetadata, fetch_asset_metadata
from eth_hyperliquid.multisig import build_multi_sig_action
from eth_hyperliquid.numeric import get_dex, round_half_to_even, round_to_significant_figures
from eth_hyperliquid.session import create_hyperliquid_session
from eth_hyperliquid.signer import Signature, get_account
from eth_hyperliquid.signing import SignedAction, get_timestamp_ms, sign_action

logger = logging.getLogger(__name__)


class HyperliquidExchange:
    """Sign and submit actions for one account.

    :param private_key:
        Account key, or the key of an agent approved for ``account_address``
    :param metadata:
        Coin to asset id resolution, see :py:func:`~eth_hyperliquid.metadata.fetch_asset_metadata`
    :param api_url:
        Mainnet, testnet or local API URL
    :param session:
        HTTP session, see :py:func:`~eth_hyperliquid.session.create_hyperliquid_session`
    :param account_address:
        Account an agent key trades for. Defaults to the key's own address.
    :param vault_address:
        Vault or sub-account to act on behalf of
    :param expires_after:
        Millisecond timestamp after which L1 actions are rejected
    :param is_mainnet:
        Sign for mainnet or testnet. Derived from ``api_url`` when not given,
        set it when the API is reached through a proxy.
    """

    def __init__(
        self,
        private_key: str | LocalAccount,
        metadata: AssetMetadata,
        api_url: str = HYPERLIQUID_API_URL,
        session: Session | None = None,
        account_address: HexAddress | None = None,
        vault_address: HexAddress | None = None,
        expires_after: int | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        is_mainnet: bool | None = None,
    ):
        self.account = get_account(private_key)
        self.metadata = metadata
        self.api_url = api_url
        self.session = session or create_hyperliquid_session()
        self.account_address = account_address
        self.vault_address = vault_address
        self.expires_after = expires_after
        self.timeout = timeout
        if is_mainnet is None:
            is_mainnet = api_url == HYPERLIQUID_API_URL
        self._is_mainnet = is_mainnet

    def __repr__(self):
        return f"<HyperliquidExchange {self.api_url} signer:{self.account.address} vault:{self.vault_address}>"

    @classmethod
    def from_config(
        cls,
        config: HyperliquidConfig,
        session: Session | None = None,
        metadata: AssetMetadata | None = None,
    ) -> "HyperliquidExchange":
        """Create a client, loading asset metadata from the API unless given."""
        session = session or create_hyperliquid_session()
        if metadata is None:
            metadata = fetch_asset_metadata(session, config.api_url)
        return cls(
            config.private_key,
            metadata,
            api_url=config.api_url,
            session=session,
            account_address=config.account_address,
            vault_address=config.vault_address,
            expires_after=config.expires_after,
            is_mainnet=config.is_mainnet,
        )

    @property
    def is_mainnet(self) -> bool:
        return self._is_mainnet

    @property
    def address(self) -> HexAddress:
        """Address of the signing key."""
        return self.account.address

    def set_expires_after(self, expires_after: int | None):
        """Set or clear the expiry stamped on subsequent L1 actions."""
        self.expires_after = expires_after

    def sign(self, action: Action, nonce: int | None = None) -> SignedAction:
        """Sign an action with this client's key, vault and expiry, without posting it."""
        if nonce is None:
            nonce = get_timestamp_ms()
        return sign_action(
            action,
            self.account,
            nonce,
            self.is_mainnet,
            vault_address=self.vault_address,
            expires_after=self.expires_after,
        )

    def post_action(self, action: Action, nonce: int | None = None) -> dict:
        """Sign and submit an action.

        :return:
            Exchange response with ``status == "ok"``
        :raise HyperliquidAPIError:
            The exchange rejected the action or could not be reached
        """
        signed = self.sign(action, nonce)
        return post_exchange_request(self.session, self.api_url, signed.to_payload(), self.timeout)

    def order(
        self,
        coin: str,
        is_buy: bool,
        sz: float,
        limit_px: float,
        order_type: OrderType,
        reduce_only: bool = False,
        cloid: Cloid | None = None,
        builder: BuilderInfo | None = None,
    ) -> dict:
        """Place a single order."""
        request = OrderRequest(coin, is_buy, sz, limit_px, order_type, reduce_only, cloid)
        return self.bulk_orders([request], builder=builder)

    def bulk_orders(
        self,
        order_requests: list[OrderRequest],
        builder: BuilderInfo | None = None,
        grouping: OrderGrouping = OrderGrouping.na,
    ) -> dict:
        """Place several orders in one action."""
        orders = [r.to_order_wire(self.metadata.name_to_asset(r.coin)) for r in order_requests]
        return self.post_action(PlaceOrders(orders=orders, grouping=grouping, builder=builder))

    def modify_order(
        self,
        oid: int | Cloid,
        coin: str,
        is_buy: bool,
        sz: float,
        limit_px: float,
        order_type: OrderType,
        reduce_only: bool = False,
        cloid: Cloid | None = None,
    ) -> dict:
        """Replace a resting order identified by order id or cloid."""
        request = OrderRequest(coin, is_buy, sz, limit_px, order_type, reduce_only, cloid)
        return self.bulk_modify_orders([ModifyRequest(oid, request)])

    def bulk_modify_orders(self, modify_requests: list[ModifyRequest]) -> dict:
        modifies = [ModifyWire(m.oid, m.order.to_order_wire(self.metadata.name_to_asset(m.order.coin))) for m in modify_requests]
        return self.post_action(BatchModify(modifies=modifies))

    def get_slippage_price(
        self,
        coin: str,
        is_buy: bool,
        slippage: float = DEFAULT_SLIPPAGE,
        px: float | None = None,
    ) -> float:
        """Aggressive limit price for a market order.

        - Start from ``px`` or the current mid price
        - Move it by ``slippage`` against us
        - Round to 5 significant figures, then to the decimals the asset allows

        :raise UnknownAsset:
            No mid price for the coin
        """
        coin = self.metadata.name_to_coin(coin)
        if px is None:
            mids = fetch_all_mids(self.session, self.api_url, get_dex(coin), self.timeout)
            if coin not in mids:
                raise UnknownAsset(f"No mid price for {coin}")
            px = mids[coin]

        asset = self.metadata.name_to_asset(coin)
        is_spot = asset >= SPOT_ASSET_ID_OFFSET

        px *= (1 + slippage) if is_buy else (1 - slippage)

        max_decimals = MAX_SPOT_PRICE_DECIMALS if is_spot else MAX_PERP_PRICE_DECIMALS
        decimals = max_decimals - self.metadata.asset_to_sz_decimals(asset)
        return round_half_to_even(round_to_significant_figures(px, PRICE_SIGNIFICANT_FIGURES), decimals)

    def market_open(
        self,
        coin: str,
        is_buy: bool,
        sz: float,
        px: float | None = None,
        slippage: float = DEFAULT_SLIPPAGE,
        cloid: Cloid | None = None,
        builder: BuilderInfo | None = None,
    ) -> dict:
        """Open a position with an immediate-or-cancel limit order at the slippage price."""
        limit_px = self.get_slippage_price(coin, is_buy, slippage, px)
        return self.order(coin, is_buy, sz, limit_px, LimitOrderType(Tif.ioc), reduce_only=False, cloid=cloid, builder=builder)

    def market_close(
        self,
        coin: str,
        sz: float | None = None,
        px: float | None = None,
        slippage: float = DEFAULT_SLIPPAGE,
        cloid: Cloid | None = None,
        builder: BuilderInfo | None = None,
    ) -> dict:
        """Close all or ``sz`` of an open perp position with a reduce-only market order.

        :raise HyperliquidAPIError:
            No open position for the coin
        """
        user = self.vault_address or self.account_address or self.address
        position_size = fetch_position_size(self.session, self.api_url, user, coin, self.timeout)
        if not position_size:
            raise HyperliquidAPIError(f"No open position for {coin} on {user}")

        if sz is None:
            sz = abs(position_size)
        is_buy = position_size < 0

        limit_px = self.get_slippage_price(coin, is_buy, slippage, px)
        return self.order(coin, is_buy, sz, limit_px, LimitOrderType(Tif.ioc), reduce_only=True, cloid=cloid, builder=builder)

    def cancel(self, coin: str, oid: int) -> dict:
        return self.bulk_cancel([CancelRequest(coin, oid)])

    def bulk_cancel(self, cancel_requests: list[CancelRequest]) -> dict:
        cancels = [(self.metadata.name_to_asset(c.coin), c.oid) for c in cancel_requests]
        return self.post_action(Cancel(cancels=cancels))

    def cancel_by_cloid(self, coin: str, cloid: Cloid) -> dict:
        return self.bulk_cancel_by_cloid([CancelByCloidRequest(coin, cloid)])

    def bulk_cancel_by_cloid(self, cancel_requests: list[CancelByCloidRequest]) -> dict:
        cancels = [(self.metadata.name_to_asset(c.coin), c.cloid) for c in cancel_requests]
        return self.post_action(CancelByCloid(cancels=cancels))

    def schedule_cancel(self, time: int | None = None) -> dict:
        """Cancel all open orders at ``time``, a millisecond timestamp.

        Pass ``None`` to remove a scheduled cancel.
        """
        return self.post_action(ScheduleCancel(time=time))

    def update_leverage(self, leverage: int, coin: str, is_cross: bool = True) -> dict:
        return self.post_action(UpdateLeverage(asset=self.metadata.name_to_asset(coin), is_cross=is_cross, leverage=leverage))

    def update_isolated_margin(self, amount: float, coin: str) -> dict:
        """Add margin to an isolated position, negative ``amount`` removes it."""
        return self.post_action(UpdateIsolatedMargin(asset=self.metadata.name_to_asset(coin), amount=amount))

    def set_referrer(self, code: str) -> dict:
        return self.post_action(SetReferrer(code=code))

    def create_sub_account(self, name: str) -> dict:
        return self.post_action(CreateSubAccount(name=name))

    def sub_account_transfer(self, sub_account_user: HexAddress, is_deposit: bool, usd: int) -> dict:
        """Move USD to or from a sub-account, ``usd`` in micro-dollars."""
        return self.post_action(SubAccountTransfer(sub_account_user=sub_account_user, is_deposit=is_deposit, usd=usd))

    def sub_account_spot_transfer(self, sub_account_user: HexAddress, is_deposit: bool, token: str, amount: float) -> dict:
        return self.post_action(SubAccountSpotTransfer(sub_account_user=sub_account_user, is_deposit=is_deposit, token=token, amount=amount))

    def vault_usd_transfer(self, vault_address: HexAddress, is_deposit: bool, usd: int) -> dict:
        """Deposit to or withdraw from a vault, ``usd`` in micro-dollars."""
        return self.post_action(VaultTransfer(vault_address=vault_address, is_deposit=is_deposit, usd=usd))

    def spot_deploy_register_token(self, token_name: str, sz_decimals: int, wei_decimals: int, max_gas: int, full_name: str) -> dict:
        """Register a spot token. See :py:class:`~eth_hyperliquid.actions.SpotDeployRegisterToken`."""
        action = SpotDeployRegisterToken(
            token_name=token_name,
            sz_decimals=sz_decimals,
            wei_decimals=wei_decimals,
            max_gas=max_gas,
            full_name=full_name,
        )
        return self.post_action(action)

    def spot_deploy_user_genesis(
        self,
        token: int,
        user_and_wei: list[tuple[HexAddress, int]],
        existing_token_and_wei: list[tuple[int, int]] | None = None,
    ) -> dict:
        action = SpotDeployUserGenesis(
            token=token,
            user_and_wei=list(user_and_wei),
            existing_token_and_wei=list(existing_token_and_wei or []),
        )
        return self.post_action(action)

    def usd_class_transfer(self, amount: float, to_perp: bool) -> dict:
        """Move USDC between spot and perp balances."""
        nonce = get_timestamp_ms()
        action = UsdClassTransfer(amount=amount, to_perp=to_perp, nonce=nonce, sub_account=self.vault_address)
        return self.post_action(action, nonce)

    def send_asset(self, destination: HexAddress, source_dex: str, destination_dex: str, token: str, amount: float) -> dict:
        nonce = get_timestamp_ms()
        action = SendAsset(
            destination=destination,
            source_dex=source_dex,
            destination_dex=destination_dex,
            token=token,
            amount=amount,
            nonce=nonce,
            from_sub_account=self.vault_address,
        )
        return self.post_action(action, nonce)

    def usd_transfer(self, amount: float, destination: HexAddress) -> dict:
        nonce = get_timestamp_ms()
        return self.post_action(UsdSend(destination=destination, amount=amount, time=nonce), nonce)

    def spot_transfer(self, amount: float, destination: HexAddress, token: str) -> dict:
        nonce = get_timestamp_ms()
        return self.post_action(SpotSend(destination=destination, token=token, amount=amount, time=nonce), nonce)

    def withdraw_from_bridge(self, amount: float, destination: HexAddress) -> dict:
        nonce = get_timestamp_ms()
        return self.post_action(Withdraw(destination=destination, amount=amount, time=nonce), nonce)

    def token_delegate(self, validator: HexAddress, wei: int, is_undelegate: bool) -> dict:
        nonce = get_timestamp_ms()
        return self.post_action(TokenDelegate(validator=validator, wei=wei, is_undelegate=is_undelegate, nonce=nonce), nonce)

    def approve_agent(self, name: str | None = None) -> tuple[dict, LocalAccount]:
        """Create a new agent key and approve it to trade for this account.

        :return:
            Tuple (exchange response, agent account). Store the agent key, it is not recoverable.
        """
        agent = Account.create()
        nonce = get_timestamp_ms()
        logger.info("Approving agent %s, name %s", agent.address, name)
        response = self.post_action(ApproveAgent(agent_address=agent.address, nonce=nonce, agent_name=name), nonce)
        return response, agent

    def approve_builder_fee(self, builder: HexAddress, max_fee_rate: float) -> dict:
        """Approve a builder fee, ``max_fee_rate`` as a fraction, ``0.001`` is 0.1%."""
        nonce = get_timestamp_ms()
        return self.post_action(ApproveBuilderFee.from_fraction(builder, max_fee_rate, nonce), nonce)

    def convert_to_multi_sig_user(self, authorized_users: list[HexAddress], threshold: int) -> dict:
        nonce = get_timestamp_ms()
        return self.post_action(ConvertToMultiSigUser(authorized_users=authorized_users, threshold=threshold, nonce=nonce), nonce)

    def user_dex_abstraction(self, user: HexAddress, enabled: bool) -> dict:
        nonce = get_timestamp_ms()
        return self.post_action(UserDexAbstraction(user=user, enabled=enabled, nonce=nonce), nonce)

    def multi_sig(
        self,
        multi_sig_user: HexAddress,
        inner_action: Action,
        signatures: list[Signature],
        nonce: int,
    ) -> dict:
        """Submit an action for a multi-sig account as its outer signer.

        :param signatures:
            Participant signatures from :py:func:`~eth_hyperliquid.multisig.sign_multi_sig_inner`,
            made over the same ``nonce`` with this client as the outer signer
        """
        action = build_multi_sig_action(inner_action, signatures, self.is_mainnet, multi_sig_user, self.address)
        return self.post_action(action, nonce)

"""Exchange client with a mocked HTTP session."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from eth_hyperliquid.actions import LimitOrderType, OrderRequest, ScheduleCancel, Tif
from eth_hyperliquid.cloid import Cloid
from eth_hyperliquid.config import HyperliquidConfig
from eth_hyperliquid.constants import HYPERLIQUID_API_URL, HYPERLIQUID_TESTNET_API_URL
from eth_hyperliquid.errors import HyperliquidAPIError, UnknownAsset
from eth_hyperliquid.exchange import HyperliquidExchange

VAULT = "0x1d9470d4b963f552e6f671a81619d395877bf409"


def make_response(data: dict) -> MagicMock:
    response = MagicMock()
    response.json.return_value = data
    response.raise_for_status.return_value = None
    return response


@pytest.fixture()
def session() -> MagicMock:
    """Session that accepts every action."""
    session = MagicMock(spec=requests.Session)
    session.post.return_value = make_response({"status": "ok", "response": {"type": "default"}})
    return session


@pytest.fixture()
def exchange(private_key, metadata, session) -> HyperliquidExchange:
    return HyperliquidExchange(private_key, metadata, api_url=HYPERLIQUID_API_URL, session=session)


def posted_payload(session: MagicMock) -> dict:
    url = session.post.call_args.args[0]
    assert url.endswith("/exchange")
    return session.post.call_args.kwargs["json"]


def test_order(exchange, session):
    """Coin names are resolved to asset ids before signing."""
    result = exchange.order("ETH", True, 0.1, 1800.0, LimitOrderType(Tif.gtc), cloid=Cloid.from_int(1))
    assert result["status"] == "ok"

    payload = posted_payload(session)
    order = payload["action"]["orders"][0]
    assert order["a"] == 1
    assert order["p"] == "1800"
    assert order["s"] == "0.1"
    assert order["c"] == "0x00000000000000000000000000000001"
    assert payload["vaultAddress"] is None
    assert payload["signature"]["v"] in (27, 28)


def test_bulk_orders_spot(exchange, session):
    exchange.bulk_orders(
        [
            OrderRequest("PURR/USDC", True, 100, 0.2, LimitOrderType(Tif.alo)),
            OrderRequest("HFUN/USDC", False, 1.5, 30, LimitOrderType(Tif.alo)),
        ]
    )
    orders = posted_payload(session)["action"]["orders"]
    assert [o["a"] for o in orders] == [10_000, 10_001]


def test_unknown_coin(exchange, session):
    with pytest.raises(UnknownAsset):
        exchange.order("DOGE", True, 1, 1, LimitOrderType())
    session.post.assert_not_called()


def test_slippage_price(exchange):
    """Price moves against us, then rounds to 5 significant figures and the allowed decimals."""
    # Perp with 4 size decimals allows 2 price decimals
    assert exchange.get_slippage_price("ETH", True, slippage=0.05, px=1800.0) == 1890.0
    assert exchange.get_slippage_price("ETH", False, slippage=0.05, px=1800.0) == 1710.0
    assert exchange.get_slippage_price("ETH", True, slippage=0.01, px=1234.567) == 1246.9

    # Spot with 0 size decimals allows 8 price decimals
    assert exchange.get_slippage_price("PURR/USDC", True, slippage=0.05, px=0.123456) == 0.12963


def test_slippage_price_from_mids(exchange, session):
    session.post.return_value = make_response({"ETH": "2000.0", "BTC": "60000.0"})
    assert exchange.get_slippage_price("BTC", False, slippage=0.1) == 54000.0
    assert session.post.call_args.kwargs["json"] == {"type": "allMids"}


def test_slippage_price_no_mid(exchange, session):
    session.post.return_value = make_response({"BTC": "60000.0"})
    with pytest.raises(UnknownAsset):
        exchange.get_slippage_price("ETH", True)


def test_market_open(exchange, session):
    exchange.market_open("ETH", True, 0.5, px=1800.0)
    order = posted_payload(session)["action"]["orders"][0]
    assert order["t"] == {"limit": {"tif": "Ioc"}}
    assert order["p"] == "1890"
    assert order["r"] is False


def test_market_close(exchange, session):
    """Short position is closed with a reduce-only buy."""
    state = {"assetPositions": [{"position": {"coin": "ETH", "szi": "-0.25"}}]}
    session.post.side_effect = [make_response(state), make_response({"status": "ok"})]

    exchange.market_close("ETH", px=1800.0)
    order = posted_payload(session)["action"]["orders"][0]
    assert order["b"] is True
    assert order["s"] == "0.25"
    assert order["r"] is True


def test_market_close_no_position(exchange, session):
    session.post.return_value = make_response({"assetPositions": []})
    with pytest.raises(HyperliquidAPIError, match="No open position"):
        exchange.market_close("ETH", px=1800.0)


def test_vault_and_expiry(private_key, metadata, session):
    exchange = HyperliquidExchange(private_key, metadata, session=session, vault_address=VAULT, expires_after=123)
    exchange.cancel("BTC", 99)
    payload = posted_payload(session)
    assert payload["action"] == {"type": "cancel", "cancels": [{"a": 0, "o": 99}]}
    assert payload["vaultAddress"] == VAULT
    assert payload["expiresAfter"] == 123

    exchange.set_expires_after(None)
    exchange.usd_class_transfer(5, to_perp=True)
    payload = posted_payload(session)
    assert payload["vaultAddress"] is None
    assert payload["expiresAfter"] is None
    assert payload["action"]["amount"] == f"5 subaccount:{VAULT}"


def test_user_signed_transfer(private_key, metadata, session):
    """Testnet URL selects testnet signing, time and nonce share the timestamp."""
    exchange = HyperliquidExchange(private_key, metadata, api_url=HYPERLIQUID_TESTNET_API_URL, session=session)
    with patch("eth_hyperliquid.exchange.get_timestamp_ms", return_value=1687816341423):
        exchange.usd_transfer(1, "0x5e9ee1089755c3435139848e47e6635505d5a13a")

    payload = posted_payload(session)
    assert payload["nonce"] == 1687816341423
    assert payload["action"]["time"] == 1687816341423
    assert payload["action"]["hyperliquidChain"] == "Testnet"
    assert payload["signature"] == {
        "r": "0x637b37dd731507cdd24f46532ca8ba6eec616952c56218baeff04144e4a77073",
        "s": "0x11a6a24900e6e314136d2592e2f8d502cd89b7c15b198e1bee043c9589f9fad7",
        "v": 27,
    }


def test_approve_agent(exchange, session):
    """A new agent key is returned and the unnamed agent posts no name."""
    _, agent = exchange.approve_agent()
    action = posted_payload(session)["action"]
    assert action["agentAddress"] == agent.address.lower()
    assert "agentName" not in action

    exchange.approve_agent("bot")
    assert posted_payload(session)["action"]["agentName"] == "bot"


def test_update_leverage(exchange, session):
    exchange.update_leverage(10, "BTC", is_cross=False)
    assert posted_payload(session)["action"] == {"type": "updateLeverage", "asset": 0, "isCross": False, "leverage": 10}


def test_rejected_action(exchange, session):
    session.post.return_value = make_response({"status": "err", "response": "Insufficient margin"})
    with pytest.raises(HyperliquidAPIError, match="Insufficient margin"):
        exchange.set_referrer("ABC")


def test_http_error(exchange, session):
    response = MagicMock()
    response.status_code = 500
    response.text = "boom"
    session.post.return_value.raise_for_status.side_effect = requests.HTTPError(response=response)
    with pytest.raises(HyperliquidAPIError) as exc_info:
        exchange.create_sub_account("sub")
    assert exc_info.value.status_code == 500


def test_multi_sig(exchange, session, account):
    exchange.multi_sig("0x0000000000000000000000000000000000005678", ScheduleCancel(), [], nonce=42)
    payload = posted_payload(session)
    assert payload["nonce"] == 42
    assert payload["action"]["payload"]["outerSigner"] == account.address.lower()


def test_spot_deploy(exchange, session):
    exchange.spot_deploy_register_token("TEST", 2, 8, 1_000_000, "Test token")
    action = posted_payload(session)["action"]
    assert action["type"] == "spotDeploy"
    assert action["registerToken2"]["maxGas"] == 1_000_000

    exchange.spot_deploy_user_genesis(1, [("0x1D9470D4B963f552e6F671A81619D395877bF409", 10**18)])
    genesis = posted_payload(session)["action"]["userGenesis"]
    assert genesis["userAndWei"] == [["0x1d9470d4b963f552e6f671a81619d395877bf409", "1000000000000000000"]]
    assert genesis["existingTokenAndWei"] == []


def test_network_from_config_behind_proxy(metadata, session):
    """A configured mainnet network signs as mainnet even through a custom API URL."""
    config = HyperliquidConfig.from_env(
        {
            "HYPERLIQUID_PRIVATE_KEY": "0x" + "11" * 32,
            "HYPERLIQUID_NETWORK": "mainnet",
            "HYPERLIQUID_API_URL": "https://hl-proxy.example.com/",
        }
    )
    exchange = HyperliquidExchange.from_config(config, session=session, metadata=metadata)
    assert exchange.api_url == "https://hl-proxy.example.com"
    assert exchange.is_mainnet

    with patch("eth_hyperliquid.exchange.get_timestamp_ms", return_value=1687816341423):
        exchange.usd_transfer(1, "0x5e9ee1089755c3435139848e47e6635505d5a13a")
    assert posted_payload(session)["action"]["hyperliquidChain"] == "Mainnet"

    testnet = HyperliquidExchange(private_key="0x" + "11" * 32, metadata=metadata, api_url="https://hl-proxy.example.com", session=session)
    assert not testnet.is_mainnet

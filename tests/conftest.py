"""Shared pytest fixtures for Hyperliquid signing tests."""

import pytest
from eth_account import Account
from eth_account.signers.local import LocalAccount

from eth_hyperliquid.metadata import StaticAssetMetadata


@pytest.fixture(scope="module")
def private_key() -> str:
    """Well-known test key, used by the reference signing vectors."""
    return "0x0123456789012345678901234567890123456789012345678901234567890123"


@pytest.fixture(scope="module")
def account(private_key) -> LocalAccount:
    return Account.from_key(private_key)


@pytest.fixture()
def metadata() -> StaticAssetMetadata:
    """ETH and BTC perps plus the PURR/USDC spot pair."""
    metadata = StaticAssetMetadata()
    metadata.add_asset("BTC", 0, 5)
    metadata.add_asset("ETH", 1, 4)
    metadata.add_asset("PURR/USDC", 10_000, 0, name="PURR/USDC")
    metadata.add_asset("@1", 10_001, 2, name="HFUN/USDC")
    return metadata

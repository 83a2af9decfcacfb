"""Coin and asset metadata.

Orders refer to assets by integer id. Perps are numbered by their position in
the ``meta`` universe, spot pairs by their ``spotMeta`` index plus 10 000.

The exchange client only needs to resolve names to ids and look up size
decimals, expressed by :py:class:`AssetMetadata`.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from requests import Session

from eth_hyperliquid.api import DEFAULT_TIMEOUT, post_info
from eth_hyperliquid.constants import SPOT_ASSET_ID_OFFSET
from eth_hyperliquid.errors import UnknownAsset

logger = logging.getLogger(__name__)


class AssetMetadata(Protocol):
    """Resolve coin names to asset ids."""

    def name_to_coin(self, name: str) -> str:
        """Map a display name such as ``"PURR/USDC"`` to its coin, e.g. ``"PURR/USDC"`` or ``"@1"``."""

    def name_to_asset(self, name: str) -> int:
        """Asset id of a coin or display name.

        :raise UnknownAsset:
            Not listed
        """

    def asset_to_sz_decimals(self, asset: int) -> int:
        """Decimals the size of an order on this asset may have."""


@dataclass(slots=True)
class StaticAssetMetadata:
    """Asset metadata held in memory.

    Build from the Info API with :py:func:`fetch_asset_metadata`,
    or by hand in tests.
    """

    coin_to_asset: dict[str, int] = field(default_factory=dict)
    asset_sz_decimals: dict[int, int] = field(default_factory=dict)
    names: dict[str, str] = field(default_factory=dict)

    def add_asset(self, coin: str, asset: int, sz_decimals: int, name: str | None = None):
        self.coin_to_asset[coin] = asset
        self.asset_sz_decimals[asset] = sz_decimals
        self.names[coin] = coin
        if name:
            self.names[name] = coin

    def name_to_coin(self, name: str) -> str:
        try:
            return self.names[name]
        except KeyError as e:
            raise UnknownAsset(f"Unknown coin: {name}") from e

    def name_to_asset(self, name: str) -> int:
        return self.coin_to_asset[self.name_to_coin(name)]

    def asset_to_sz_decimals(self, asset: int) -> int:
        try:
            return self.asset_sz_decimals[asset]
        except KeyError as e:
            raise UnknownAsset(f"Unknown asset id: {asset}") from e


def fetch_asset_metadata(session: Session, api_url: str, timeout: float = DEFAULT_TIMEOUT) -> StaticAssetMetadata:
    """Load perp and spot listings from the Info API.

    Only the default perp dex is loaded.
    """
    metadata = StaticAssetMetadata()

    meta = post_info(session, api_url, "meta", timeout=timeout)
    for asset, info in enumerate(meta["universe"]):
        metadata.add_asset(info["name"], asset, info["szDecimals"])

    spot_meta = post_info(session, api_url, "spotMeta", timeout=timeout)
    tokens = spot_meta["tokens"]
    for spot_info in spot_meta["universe"]:
        base, quote = spot_info["tokens"]
        base_info = tokens[base]
        quote_info = tokens[quote]
        metadata.add_asset(
            spot_info["name"],
            spot_info["index"] + SPOT_ASSET_ID_OFFSET,
            base_info["szDecimals"],
            name=f"{base_info['name']}/{quote_info['name']}",
        )

    logger.info("Loaded %d perp and %d spot assets from %s", len(meta["universe"]), len(spot_meta["universe"]), api_url)
    return metadata

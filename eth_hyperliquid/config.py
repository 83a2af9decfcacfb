"""Configuration read from environment variables.

.. list-table::
    :header-rows: 1

    * - Variable
      - Meaning
    * - ``HYPERLIQUID_PRIVATE_KEY``
      - Hex private key of the account or of an approved agent, required
    * - ``HYPERLIQUID_NETWORK``
      - ``mainnet`` (default), ``testnet`` or ``local``
    * - ``HYPERLIQUID_API_URL``
      - Override the API URL of the network
    * - ``HYPERLIQUID_ACCOUNT_ADDRESS``
      - Account the agent key trades for
    * - ``HYPERLIQUID_VAULT_ADDRESS``
      - Vault or sub-account to act on behalf of
    * - ``HYPERLIQUID_EXPIRES_AFTER``
      - Millisecond timestamp after which actions are rejected
"""

import os
from dataclasses import dataclass

from eth_typing import HexAddress

from eth_hyperliquid.constants import HYPERLIQUID_API_URL, HYPERLIQUID_LOCAL_API_URL, HYPERLIQUID_TESTNET_API_URL

#: Network name to API URL
NETWORK_API_URLS = {
    "mainnet": HYPERLIQUID_API_URL,
    "testnet": HYPERLIQUID_TESTNET_API_URL,
    "local": HYPERLIQUID_LOCAL_API_URL,
}


@dataclass(slots=True)
class HyperliquidConfig:
    """Settings for :py:class:`~eth_hyperliquid.exchange.HyperliquidExchange`."""

    private_key: str

    api_url: str = HYPERLIQUID_API_URL

    account_address: HexAddress | None = None

    vault_address: HexAddress | None = None

    expires_after: int | None = None

    #: ``mainnet``, ``testnet`` or ``local``. When not set the network is derived from ``api_url``.
    network: str | None = None

    def __repr__(self):
        # Keep the key out of logs and tracebacks
        return f"<HyperliquidConfig {self.network} {self.api_url} account:{self.account_address} vault:{self.vault_address}>"

    @property
    def is_mainnet(self) -> bool:
        if self.network is None:
            return self.api_url == HYPERLIQUID_API_URL
        return self.network == "mainnet"

    @classmethod
    def from_env(cls, environ: dict | None = None) -> "HyperliquidConfig":
        """Read the configuration from environment variables.

        :param environ:
            Defaults to ``os.environ``

        :raise ValueError:
            A required variable is missing or a value is malformed
        """
        if environ is None:
            environ = os.environ

        private_key = environ.get("HYPERLIQUID_PRIVATE_KEY")
        if not private_key:
            raise ValueError("HYPERLIQUID_PRIVATE_KEY environment variable not set")

        network = environ.get("HYPERLIQUID_NETWORK", "mainnet").lower()
        if network not in NETWORK_API_URLS:
            raise ValueError(f"HYPERLIQUID_NETWORK must be one of {', '.join(NETWORK_API_URLS)}, got {network}")

        api_url = environ.get("HYPERLIQUID_API_URL") or NETWORK_API_URLS[network]

        expires_after = environ.get("HYPERLIQUID_EXPIRES_AFTER")
        if expires_after:
            try:
                expires_after = int(expires_after)
            except ValueError as e:
                raise ValueError(f"HYPERLIQUID_EXPIRES_AFTER must be a millisecond timestamp, got {expires_after}") from e
        else:
            expires_after = None

        return cls(
            private_key=private_key,
            api_url=api_url.rstrip("/"),
            account_address=environ.get("HYPERLIQUID_ACCOUNT_ADDRESS") or None,
            vault_address=environ.get("HYPERLIQUID_VAULT_ADDRESS") or None,
            expires_after=expires_after,
            network=network,
        )

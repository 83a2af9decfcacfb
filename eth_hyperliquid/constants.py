"""Protocol constants for Hyperliquid action signing.

Domains, chain ids and API endpoints shared by
:py:mod:`~eth_hyperliquid.envelope`, :py:mod:`~eth_hyperliquid.exchange`
and :py:mod:`~eth_hyperliquid.config`.
"""

from eth_typing import HexAddress

#: Hyperliquid mainnet API endpoint
HYPERLIQUID_API_URL = "https://api.hyperliquid.xyz"

#: Hyperliquid testnet API endpoint
HYPERLIQUID_TESTNET_API_URL = "https://api.hyperliquid-testnet.xyz"

#: Locally running node, used in development
HYPERLIQUID_LOCAL_API_URL = "http://localhost:3001"

#: All EIP-712 domains in this protocol use the zero address as the verifying contract
ZERO_ADDRESS: HexAddress = HexAddress("0x0000000000000000000000000000000000000000")

#: Chain id of the phantom agent domain used by L1 actions.
#:
#: Fixed regardless of mainnet or testnet. The network is selected
#: with the agent ``source`` field instead.
L1_CHAIN_ID = 1337

#: EIP-712 domain name for L1 actions
L1_DOMAIN_NAME = "Exchange"

#: Chain id of the user-signed transaction domain (Arbitrum Sepolia)
USER_SIGNED_CHAIN_ID = 421614

#: Hex form of :py:data:`USER_SIGNED_CHAIN_ID`, stamped on user-signed actions
SIGNATURE_CHAIN_ID = "0x66eee"

#: EIP-712 domain name for user-signed actions
USER_SIGNED_DOMAIN_NAME = "HyperliquidSignTransaction"

#: Both domains use version 1
DOMAIN_VERSION = "1"

#: Phantom agent ``source`` for mainnet
MAINNET_SOURCE = "a"

#: Phantom agent ``source`` for testnet
TESTNET_SOURCE = "b"

#: ``hyperliquidChain`` value stamped on user-signed actions for mainnet
MAINNET_CHAIN_NAME = "Mainnet"

#: ``hyperliquidChain`` value stamped on user-signed actions for testnet
TESTNET_CHAIN_NAME = "Testnet"

#: Prefix of the EIP-712 primary type of user-signed actions
USER_SIGNED_PRIMARY_TYPE_PREFIX = "HyperliquidTransaction:"

#: Default slippage for market orders, 5%
DEFAULT_SLIPPAGE = 0.05

#: Spot asset ids start here, perp asset ids are below
SPOT_ASSET_ID_OFFSET = 10_000

#: Maximum decimals allowed in a perp price
MAX_PERP_PRICE_DECIMALS = 6

#: Maximum decimals allowed in a spot price
MAX_SPOT_PRICE_DECIMALS = 8

#: Significant figures allowed in a price
PRICE_SIGNIFICANT_FIGURES = 5

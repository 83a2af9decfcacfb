"""eth_hyperliquid package root.

Hyperliquid action construction, canonical encoding and signing.

- :py:mod:`eth_hyperliquid.actions` describes every signable action

- :py:mod:`eth_hyperliquid.signing` turns an action into a signed ``/exchange`` payload

- :py:mod:`eth_hyperliquid.exchange` is a thin client around the above
"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""

    # Use Python tuple comparison for version numbers
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"web3-hyperliquid-signing needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()

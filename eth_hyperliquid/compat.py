"""web3.py / eth_account version compatibility.

``eth_account`` renamed ``signHash`` to ``unsafe_sign_hash`` in the release
shipped with web3.py v7.
"""

from importlib.metadata import version

from eth_account.datastructures import SignedMessage
from eth_account.signers.local import LocalAccount
from packaging.version import Version

pkg_version = version("web3")
WEB3_PY_V7 = Version(pkg_version) >= Version("7.0.0")


def sign_hash_compat(account: LocalAccount, message_hash: bytes) -> SignedMessage:
    """Sign a raw 32-byte hash with whatever API the installed eth_account offers."""
    if WEB3_PY_V7:
        return account.unsafe_sign_hash(message_hash)
    else:
        return account.signHash(message_hash)

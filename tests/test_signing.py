"""Signing actions against reference vectors.

Vectors are produced with the well-known test key in ``conftest.py``.
"""

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from eth_hyperliquid.actions import (
    Cancel,
    LimitOrderType,
    OrderWire,
    PlaceOrders,
    SubAccountTransfer,
    Tif,
    UsdClassTransfer,
    UsdSend,
)
from eth_hyperliquid.cloid import Cloid
from eth_hyperliquid.envelope import select_envelope
from eth_hyperliquid.errors import SigningError
from eth_hyperliquid.signer import Signature, recover_signer, sign_hash
from eth_hyperliquid.signing import build_typed_data, sign_action


@pytest.fixture()
def order_action() -> PlaceOrders:
    order = OrderWire(
        asset=1,
        is_buy=True,
        limit_px=100,
        sz=100,
        reduce_only=False,
        order_type=LimitOrderType(Tif.gtc),
        cloid=Cloid.from_str("0x00000000000000000000000000000001"),
    )
    return PlaceOrders(orders=[order])


def test_l1_order_mainnet(order_action, private_key):
    signed = sign_action(order_action, private_key, nonce=0, is_mainnet=True)
    sig = signed.signature
    assert int.from_bytes(sig.r, "big") == 0x41AE18E8239A56CACBC5DAD94D45D0B747E5DA11AD564077FCAC71277A946E3
    assert int.from_bytes(sig.s, "big") == 0x3C61F667E747404FE7EEA8F90AB0E76CC12CE60270438B2058324681A00116DA
    assert sig.v == 27


def test_l1_order_testnet(order_action, private_key):
    signed = sign_action(order_action, private_key, nonce=0, is_mainnet=False)
    sig = signed.signature
    assert sig.to_dict() == {
        "r": "0xeba0664bed2676fc4e5a743bf89e5c7501aa6d870bdb9446e122c9466c5cd16d",
        "s": "0x7f3e74825c9114bc59086f1eebea2928c190fdfbfde144827cb02b85bbe90988",
        "v": 28,
    }


def test_sub_account_transfer(private_key):
    action = SubAccountTransfer(sub_account_user="0x1d9470d4b963f552e6f671a81619d395877bf409", is_deposit=True, usd=10)
    sig = sign_action(action, private_key, nonce=0, is_mainnet=True).signature
    assert sig.to_dict() == {
        "r": "0x43592d7c6c7d816ece2e206f174be61249d651944932b13343f4d13f306ae602",
        "s": "0x71a926cb5c9a7c01c3359ec4c4c34c16ff8107d610994d4de0e6430e5cc0f4c9",
        "v": 28,
    }


def test_usd_send_testnet(private_key):
    """User-signed action, vector from a testnet usdSend."""
    action = UsdSend(destination="0x5e9ee1089755c3435139848e47e6635505d5a13a", amount=1, time=1687816341423)
    sig = sign_action(action, private_key, nonce=1687816341423, is_mainnet=False).signature
    assert sig.to_dict() == {
        "r": "0x637b37dd731507cdd24f46532ca8ba6eec616952c56218baeff04144e4a77073",
        "s": "0x11a6a24900e6e314136d2592e2f8d502cd89b7c15b198e1bee043c9589f9fad7",
        "v": 27,
    }


def test_user_signed_ignores_vault_and_expiry(private_key):
    action = UsdSend(destination="0x5e9ee1089755c3435139848e47e6635505d5a13a", amount=1, time=1687816341423)
    plain = sign_action(action, private_key, nonce=1687816341423, is_mainnet=False)
    with_vault = sign_action(
        action,
        private_key,
        nonce=1687816341423,
        is_mainnet=False,
        vault_address="0x1d9470d4b963f552e6f671a81619d395877bf409",
        expires_after=1,
    )
    assert plain.signature == with_vault.signature


def test_l1_expiry_changes_signature(order_action, private_key):
    plain = sign_action(order_action, private_key, nonce=0, is_mainnet=True)
    expiring = sign_action(order_action, private_key, nonce=0, is_mainnet=True, expires_after=1_700_000_000_000)
    assert plain.signature != expiring.signature


@pytest.mark.parametrize("nonce", [0, 1, 2, 3, 1677777606040, 1700000000001])
def test_signature_recovers(order_action, private_key, account, nonce):
    """v is always 27 or 28 and the signature recovers to the key's address."""
    signed = sign_action(order_action, private_key, nonce=nonce, is_mainnet=True)
    assert signed.signature.v in (27, 28)

    digest = build_typed_data(order_action, nonce, True).hash()
    assert recover_signer(digest, signed.signature) == account.address


def test_typed_data_matches_eth_account(private_key):
    """Our EIP-712 hashing agrees with eth_account's own encoder."""
    action = UsdSend(destination="0x5e9ee1089755c3435139848e47e6635505d5a13a", amount=1, time=1687816341423)
    typed_data = select_envelope(action).build_typed_data(action, 1687816341423, is_mainnet=False)

    ours = sign_hash(typed_data.hash(), private_key)
    theirs = Account.sign_message(encode_typed_data(full_message=typed_data.to_dict()), private_key)
    assert ours.r == theirs.r.to_bytes(32, "big")
    assert ours.s == theirs.s.to_bytes(32, "big")
    assert ours.v == theirs.v


def test_payload(order_action, private_key):
    """The /exchange body carries vault and expiry."""
    vault = "0x1d9470d4b963f552e6f671a81619d395877bf409"
    signed = sign_action(order_action, private_key, nonce=5, is_mainnet=True, vault_address=vault, expires_after=10)
    payload = signed.to_payload()
    assert list(payload.keys()) == ["action", "nonce", "signature", "vaultAddress", "expiresAfter"]
    assert payload["action"]["type"] == "order"
    assert payload["nonce"] == 5
    assert payload["vaultAddress"] == vault
    assert payload["expiresAfter"] == 10


def test_payload_without_vault(private_key):
    """Transfers naming the sub-account in the action post no vault."""
    vault = "0x1d9470d4b963f552e6f671a81619d395877bf409"
    action = UsdClassTransfer(amount=1, to_perp=True, nonce=5, sub_account=vault)
    payload = sign_action(action, private_key, nonce=5, is_mainnet=True, vault_address=vault).to_payload()
    assert payload["vaultAddress"] is None
    assert payload["expiresAfter"] is None

    payload = sign_action(Cancel(cancels=[(1, 2)]), private_key, nonce=5, is_mainnet=True).to_payload()
    assert payload["vaultAddress"] is None


def test_signature_dict_round_trip():
    """Leading zeros dropped by other clients are padded back."""
    sig = Signature.from_dict({"r": "0x1", "s": "0x" + "ab" * 32, "v": 27})
    assert sig.r == b"\x00" * 31 + b"\x01"
    assert sig.to_dict()["r"] == "0x" + "00" * 31 + "01"


def test_signature_bad_dict():
    with pytest.raises(SigningError):
        Signature.from_dict({"r": "0xzz", "s": "0x1", "v": 27})


def test_sign_hash_bad_digest(private_key):
    with pytest.raises(SigningError):
        sign_hash(b"\x00" * 31, private_key)


def test_sign_hash_bad_key():
    with pytest.raises(SigningError):
        sign_hash(b"\x00" * 32, "0x1234")

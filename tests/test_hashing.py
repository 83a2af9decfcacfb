"""L1 action hash."""

import pytest
from hexbytes import HexBytes

from eth_hyperliquid.actions import LimitOrderType, OrderWire, PlaceOrders, Tif
from eth_hyperliquid.envelope import construct_phantom_agent
from eth_hyperliquid.errors import ProtocolSchemaError
from eth_hyperliquid.hashing import encode_action_preimage, hash_action
from eth_hyperliquid.serialisation import canonical_serialise


@pytest.fixture()
def order_wire() -> dict:
    order = OrderWire(
        asset=4,
        is_buy=True,
        limit_px=1670.1,
        sz=0.0147,
        reduce_only=False,
        order_type=LimitOrderType(Tif.ioc),
    )
    return PlaceOrders(orders=[order]).to_wire(is_mainnet=True)


def test_phantom_agent_connection_id(order_wire):
    """Connection id matches the reference vector."""
    action_hash = hash_action(order_wire, 1677777606040)
    agent = construct_phantom_agent(action_hash, is_mainnet=True)
    assert agent["source"] == "a"
    assert HexBytes(agent["connectionId"]) == HexBytes("0x0fcbeda5ae3c4950a548021552a4fea2226858c4453571bf3f24ba017eac2908")

    assert construct_phantom_agent(action_hash, is_mainnet=False)["source"] == "b"


def test_hash_deterministic(order_wire):
    assert hash_action(order_wire, 1) == hash_action(dict(order_wire), 1)
    assert len(hash_action(order_wire, 1)) == 32
    assert hash_action(order_wire, 1) != hash_action(order_wire, 2)


def test_preimage_layout():
    """Nonce, vault tag and the asymmetric expiry tag."""
    wire = {"type": "x"}
    packed = canonical_serialise(wire)
    nonce = b"\x00" * 7 + b"\x01"

    assert encode_action_preimage(wire, 1) == packed + nonce + b"\x00"

    vault = "0x" + "11" * 20
    assert encode_action_preimage(wire, 1, vault_address=vault) == packed + nonce + b"\x01" + b"\x11" * 20

    assert encode_action_preimage(wire, 1, expires_after=5) == packed + nonce + b"\x00" + b"\x00" + (5).to_bytes(8, "big")

    assert encode_action_preimage(wire, 1, vault_address=vault, expires_after=5) == packed + nonce + b"\x01" + b"\x11" * 20 + b"\x00" + (5).to_bytes(8, "big")


def test_vault_and_expiry_change_hash(order_wire):
    base = hash_action(order_wire, 1)
    assert hash_action(order_wire, 1, vault_address="0x1d9470d4b963f552e6f671a81619d395877bf409") != base
    assert hash_action(order_wire, 1, expires_after=1) != base


def test_bad_vault(order_wire):
    with pytest.raises(ProtocolSchemaError):
        hash_action(order_wire, 1, vault_address="0x1234")


def test_nonce_too_large(order_wire):
    with pytest.raises(ProtocolSchemaError):
        hash_action(order_wire, 2**64)

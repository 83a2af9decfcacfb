"""Envelope selection and typed data layout."""

import pytest

from eth_hyperliquid.actions import (
    ApproveAgent,
    ConvertToMultiSigUser,
    MultiSig,
    SetReferrer,
    TokenDelegate,
    UpdateLeverage,
    UsdSend,
    UserDexAbstraction,
)
from eth_hyperliquid.envelope import (
    PHANTOM_AGENT_ENVELOPE,
    USER_SIGNED_ENVELOPE,
    PhantomAgentEnvelope,
    UserSignedEnvelope,
    select_envelope,
)
from eth_hyperliquid.errors import ProtocolSchemaError
from eth_hyperliquid.hashing import hash_action


def test_select_envelope():
    """Each action is signed through exactly one envelope."""
    assert isinstance(select_envelope(UpdateLeverage(asset=1, is_cross=True, leverage=3)), PhantomAgentEnvelope)
    assert select_envelope(SetReferrer(code="ABC")) is PHANTOM_AGENT_ENVELOPE
    assert isinstance(select_envelope(UsdSend(destination="0x" + "00" * 20, amount=1, time=1)), UserSignedEnvelope)
    assert select_envelope(MultiSig(multi_sig_user="0x" + "00" * 20, outer_signer="0x" + "00" * 20, inner_wire={})) is USER_SIGNED_ENVELOPE


def test_phantom_agent_typed_data():
    action = UpdateLeverage(asset=1, is_cross=True, leverage=3)
    typed_data = PHANTOM_AGENT_ENVELOPE.build_typed_data(action, 10, is_mainnet=False)
    data = typed_data.to_dict()

    assert data["primaryType"] == "Agent"
    assert data["domain"] == {
        "name": "Exchange",
        "version": "1",
        "chainId": 1337,
        "verifyingContract": "0x0000000000000000000000000000000000000000",
    }
    assert data["types"]["Agent"] == [
        {"name": "source", "type": "string"},
        {"name": "connectionId", "type": "bytes32"},
    ]
    assert data["message"] == {"source": "b", "connectionId": hash_action(action.to_wire(False), 10)}


def test_user_signed_typed_data():
    action = TokenDelegate(validator="0x5E9EE1089755C3435139848E47E6635505D5A13A", wei=10**8, is_undelegate=False, nonce=3)
    typed_data = USER_SIGNED_ENVELOPE.build_typed_data(action, 3, is_mainnet=True)
    data = typed_data.to_dict()

    assert data["primaryType"] == "HyperliquidTransaction:TokenDelegate"
    assert data["domain"]["name"] == "HyperliquidSignTransaction"
    assert data["domain"]["chainId"] == 421614
    assert data["types"]["HyperliquidTransaction:TokenDelegate"] == [
        {"name": "hyperliquidChain", "type": "string"},
        {"name": "validator", "type": "address"},
        {"name": "wei", "type": "uint64"},
        {"name": "isUndelegate", "type": "bool"},
        {"name": "nonce", "type": "uint64"},
    ]
    assert data["message"]["hyperliquidChain"] == "Mainnet"
    assert data["message"]["validator"] == "0x5e9ee1089755c3435139848e47e6635505d5a13a"


@pytest.mark.parametrize(
    "action,primary_type",
    [
        (ApproveAgent(agent_address="0x" + "11" * 20, nonce=1), "HyperliquidTransaction:ApproveAgent"),
        (ConvertToMultiSigUser(authorized_users=["0x" + "11" * 20], threshold=1, nonce=1), "HyperliquidTransaction:ConvertToMultiSigUser"),
        (UserDexAbstraction(user="0x" + "11" * 20, enabled=True, nonce=1), "HyperliquidTransaction:UserDexAbstraction"),
    ],
)
def test_user_signed_hashes(action, primary_type):
    """Every user-signed action produces a hashable message for its own type."""
    typed_data = select_envelope(action).build_typed_data(action, 1, is_mainnet=True)
    assert typed_data.primary_type == primary_type
    assert len(typed_data.hash()) == 32


def test_user_signed_envelope_refuses_l1():
    """An L1 action has no user-signed type definition."""
    with pytest.raises(ProtocolSchemaError):
        USER_SIGNED_ENVELOPE.build_typed_data(SetReferrer(code="ABC"), 1, is_mainnet=True)


def test_multi_sig_outer_typed_data():
    """The outer action signs the hash of its wire form without the type tag."""
    action = MultiSig(multi_sig_user="0x" + "AB" * 20, outer_signer="0x" + "CD" * 20, inner_wire={"type": "scheduleCancel"})
    typed_data = USER_SIGNED_ENVELOPE.build_typed_data(action, 7, is_mainnet=True)

    wire = action.to_wire(True)
    del wire["type"]

    assert typed_data.primary_type == "HyperliquidTransaction:SendMultiSig"
    assert typed_data.message == {
        "hyperliquidChain": "Mainnet",
        "multiSigActionHash": hash_action(wire, 7),
        "nonce": 7,
    }
    assert [f["name"] for f in typed_data.types["HyperliquidTransaction:SendMultiSig"]] == ["hyperliquidChain", "multiSigActionHash", "nonce"]

"""Client order ids."""

import pytest

from eth_hyperliquid.cloid import Cloid
from eth_hyperliquid.errors import UnknownIdentifier


def test_cloid_from_int():
    cloid = Cloid.from_int(1)
    assert cloid.to_raw() == "0x00000000000000000000000000000001"
    assert str(cloid) == cloid.to_raw()


def test_cloid_from_str():
    cloid = Cloid.from_str("0x0123456789ABCDEF0123456789abcdef")
    assert cloid.to_raw() == "0x0123456789abcdef0123456789abcdef"
    assert cloid == Cloid.from_int(0x0123456789ABCDEF0123456789ABCDEF)


@pytest.mark.parametrize(
    "value",
    [
        "0x01",
        "00000000000000000000000000000001",
        "0x0000000000000000000000000000000g",
        "0x000000000000000000000000000000001",
    ],
)
def test_cloid_bad_str(value):
    with pytest.raises(UnknownIdentifier):
        Cloid.from_str(value)


def test_cloid_out_of_range():
    with pytest.raises(UnknownIdentifier):
        Cloid.from_int(2**128)

    with pytest.raises(UnknownIdentifier):
        Cloid.from_int(-1)

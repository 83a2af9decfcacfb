"""Canonical MessagePack serialisation of wire values.

L1 actions are hashed over their MessagePack bytes. The byte stream has to
match what the exchange produces when it re-encodes the posted JSON:

- dict keys in insertion order

- integers in their most compact encoding

- prices and sizes as strings, never as floats
"""

from typing import Any

import msgpack

from eth_hyperliquid.errors import ProtocolSchemaError


def check_wire_value(value: Any, path: str = "$"):
    """Walk a wire value and reject anything without a canonical encoding.

    :raise ProtocolSchemaError:
        On floats, non-string dict keys and any type that is not part of the wire schema
    """
    # bool before int, as bool is an int subclass
    if value is None or isinstance(value, (bool, str, bytes)):
        return
    if isinstance(value, int):
        if value < -(2**63) or value >= 2**64:
            raise ProtocolSchemaError(f"Integer out of 64-bit range at {path}: {value}")
        return
    if isinstance(value, float):
        raise ProtocolSchemaError(f"Floats are not allowed on the wire, format them as strings first. At {path}: {value}")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise ProtocolSchemaError(f"Dict keys must be strings at {path}: {k!r}")
            check_wire_value(v, f"{path}.{k}")
        return
    if isinstance(value, (list, tuple)):
        for idx, v in enumerate(value):
            check_wire_value(v, f"{path}[{idx}]")
        return
    raise ProtocolSchemaError(f"Unsupported wire type {type(value).__name__} at {path}")


def canonical_serialise(value: Any) -> bytes:
    """Encode a wire value as canonical MessagePack bytes.

    :param value:
        Output of :py:meth:`eth_hyperliquid.actions.Action.to_wire`,
        or any nested structure of dicts, lists, strings, ints, bools and ``None``

    :return:
        MessagePack bytes
    """
    check_wire_value(value)
    return msgpack.packb(value, use_bin_type=True)

"""Canonical encoding and hashing of links.

The canonical form of a link is the exact input to hashing and signing:
every field except ``signature``, object keys sorted by code point at every
nesting level, compact JSON, UTF-8.  Because the signature depends on the
bytes, the encoding must be reproducible on any platform.

Numeric rule
------------
Only integers have a canonical form.  They are written in plain decimal and
must lie in ``[-(2**53 - 1), 2**53 - 1]`` so that readers using IEEE-754
doubles decode the same value.  A float with an integral value is written
as that integer (``1.0`` -> ``1``); NaN, infinities and non-integral floats
are rejected.
"""
from __future__ import annotations

import json
import math
from collections.abc import Mapping
from typing import Any

from eth_utils import keccak

from cdl_protocol.core.errors import CanonicalizationError
from cdl_protocol.core.types import Digest32, SignedLink, UnsignedLink

MAX_SAFE_INTEGER = 2**53 - 1


def _canonical_int(value: int) -> str:
    if abs(value) > MAX_SAFE_INTEGER:
        raise CanonicalizationError(
            f"Integer outside the safe range: {value}",
            details={"value": str(value)},
        )
    return str(value)


def _serialize_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return _canonical_int(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise CanonicalizationError("NaN and Infinity have no canonical form")
        if value != int(value):
            raise CanonicalizationError(
                f"Non-integral number has no canonical form: {value!r}",
                details={"value": repr(value)},
            )
        return _canonical_int(int(value))
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_serialize_value(v) for v in value) + "]"
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise CanonicalizationError(f"Object key is not a string: {key!r}")
        pairs = ",".join(
            f"{json.dumps(k, ensure_ascii=False)}:{_serialize_value(value[k])}"
            for k in sorted(value)
        )
        return "{" + pairs + "}"
    raise CanonicalizationError(
        f"Unsupported type for canonical encoding: {type(value).__name__}"
    )


def canonical_json(data: Mapping[str, Any]) -> str:
    """Return the canonical JSON text of an arbitrary mapping."""
    return _serialize_value(data)


def canonicalize(link: UnsignedLink | SignedLink | Mapping[str, Any]) -> bytes:
    """Return the canonical UTF-8 bytes of *link* without its signature.

    Models are dumped with their wire (camelCase) names; a plain mapping is
    taken as already in wire form.
    """
    if isinstance(link, UnsignedLink):
        data = link.to_wire()
    else:
        data = dict(link)
    data.pop("signature", None)
    return canonical_json(data).encode("utf-8")


def hash_link(link: UnsignedLink | SignedLink | Mapping[str, Any]) -> bytes:
    """Keccak-256 of the canonical encoding of *link* (32 bytes)."""
    return keccak(canonicalize(link))


def keccak_hex(data: bytes) -> Digest32:
    """Keccak-256 of *data* as ``0x``-prefixed lower-case hex."""
    return Digest32("0x" + keccak(data).hex())

"""Content addresses, registry digests and account addresses.

Content addresses are CIDv0 strings: a sha2-256 multihash
(``0x12 0x20 || digest[32]``) rendered in base58btc without a multibase
prefix.  The registry stores only the 32-byte digest, so the pair
:func:`cid_to_digest32` / :func:`digest32_to_cid` must round-trip exactly.
"""
from __future__ import annotations

import hashlib
import re

import base58

from cdl_protocol.core.errors import InvalidAddress
from cdl_protocol.core.types import ZERO_DIGEST, Address, CidV0, Digest32

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MULTIHASH_SHA2_256 = 0x12
MULTIHASH_DIGEST_LENGTH = 0x20
CID_V0_LENGTH = 46

_ADDRESS_RE = re.compile(r"^0x[a-f0-9]{40}$")
_DIGEST_RE = re.compile(r"^0x[0-9a-f]{64}$")


# ---------------------------------------------------------------------------
# Account addresses
# ---------------------------------------------------------------------------

def is_lower_hex_address(value: str) -> bool:
    """Return ``True`` for a lower-case ``0x`` + 40 hex address."""
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def ensure_lower_address(value: str) -> Address:
    """Normalise *value* to a lower-case account address.

    Raises
    ------
    InvalidAddress
        If *value* is not a 20-byte hex address in any letter case.
    """
    lower = value.lower() if isinstance(value, str) else ""
    if not is_lower_hex_address(lower):
        raise InvalidAddress(
            f"Invalid account address: {value!r}",
            details={"address": str(value)},
        )
    return Address(lower)


# ---------------------------------------------------------------------------
# Content addresses
# ---------------------------------------------------------------------------

def is_cid_v0(cid: str) -> bool:
    """Shape check for a CIDv0 string (``Qm`` prefix, 46 characters)."""
    return isinstance(cid, str) and len(cid) == CID_V0_LENGTH and cid.startswith("Qm")


def cid_v0_for_bytes(data: bytes) -> CidV0:
    """Compute the CIDv0 of raw *data* (sha2-256 multihash, base58btc)."""
    digest = hashlib.sha256(data).digest()
    multihash = bytes([MULTIHASH_SHA2_256, MULTIHASH_DIGEST_LENGTH]) + digest
    return CidV0(base58.b58encode(multihash).decode("ascii"))


def cid_to_digest32(cid: str) -> Digest32:
    """Convert a CIDv0 to the registry's fixed-width digest form.

    Raises
    ------
    InvalidAddress
        If *cid* is not a CIDv0 or its multihash is not sha2-256/32 bytes.
    """
    if not is_cid_v0(cid):
        raise InvalidAddress(f"Not a CIDv0: {cid!r}", details={"cid": str(cid)})
    try:
        raw = base58.b58decode(cid)
    except ValueError as exc:
        raise InvalidAddress(
            f"CID is not valid base58: {cid!r}", details={"cid": cid}
        ) from exc
    if (
        len(raw) != 34
        or raw[0] != MULTIHASH_SHA2_256
        or raw[1] != MULTIHASH_DIGEST_LENGTH
    ):
        raise InvalidAddress(
            "Unexpected multihash layout", details={"cid": cid}
        )
    return Digest32("0x" + raw[2:].hex())


def digest32_to_cid(digest: str) -> CidV0:
    """Convert a registry digest (``0x`` + 64 hex) back to its CIDv0.

    Raises
    ------
    InvalidAddress
        If *digest* is not lower-case ``0x``-prefixed 32-byte hex.
    """
    if not isinstance(digest, str) or not _DIGEST_RE.match(digest):
        raise InvalidAddress(
            f"Invalid digest32: {digest!r}", details={"digest": str(digest)}
        )
    multihash = bytes([MULTIHASH_SHA2_256, MULTIHASH_DIGEST_LENGTH]) + bytes.fromhex(
        digest[2:]
    )
    return CidV0(base58.b58encode(multihash).decode("ascii"))


def is_unset_digest(digest: str) -> bool:
    """``True`` if *digest* is the all-zero "no profile yet" sentinel."""
    return digest.lower() == ZERO_DIGEST

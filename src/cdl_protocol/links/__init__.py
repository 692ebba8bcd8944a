"""CDL Protocol links -- canonical encoding, signing and addressing.

* **Canonical encoding** -- deterministic, order-independent bytes of a
  link and their Keccak-256 hash (:mod:`~cdl_protocol.links.canonical`).
* **Signing** -- domain-separated typed-data signing and signer recovery
  (:mod:`~cdl_protocol.links.signing`).
* **Addresses** -- CIDv0 <-> registry digest conversion and account
  address validation (:mod:`~cdl_protocol.links.addresses`).
"""
from __future__ import annotations

from cdl_protocol.links.addresses import (
    cid_to_digest32,
    cid_v0_for_bytes,
    digest32_to_cid,
    ensure_lower_address,
    is_cid_v0,
    is_lower_hex_address,
    is_unset_digest,
)
from cdl_protocol.links.canonical import (
    MAX_SAFE_INTEGER,
    canonical_json,
    canonicalize,
    hash_link,
    keccak_hex,
)
from cdl_protocol.links.signing import (
    domain_separator,
    new_nonce,
    normalize_v,
    now_seconds,
    recover_signer,
    sign_link,
    typed_data_digest,
    verify_link,
)

__all__ = [
    # Addresses
    "cid_to_digest32",
    "cid_v0_for_bytes",
    "digest32_to_cid",
    "ensure_lower_address",
    "is_cid_v0",
    "is_lower_hex_address",
    "is_unset_digest",
    # Canonical encoding
    "MAX_SAFE_INTEGER",
    "canonical_json",
    "canonicalize",
    "hash_link",
    "keccak_hex",
    # Signing
    "domain_separator",
    "new_nonce",
    "normalize_v",
    "now_seconds",
    "recover_signer",
    "sign_link",
    "typed_data_digest",
    "verify_link",
]

"""Domain-separated link signing and signer recovery.

A link is signed in two steps:

1. ``linkHash = keccak256(canonicalize(link))`` (see
   :mod:`~cdl_protocol.links.canonical`).
2. The signing identity signs the typed-data message
   ``LinkHashMessage(bytes32 linkHash)`` under the domain
   ``EIP712Domain(string name,string version,uint256 chainId)``.

Binding the network identifier and the protocol name into the signed digest
means a signature cannot be replayed for an unrelated message or on another
chain.  A raw personal-sign over ``linkHash`` is never used.

Signatures are 65 bytes ``r || s || v`` with ``v`` in ``{27, 28}``.
"""
from __future__ import annotations

import secrets
import time
from typing import TYPE_CHECKING

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from cdl_protocol.core.errors import SignatureInvalid, SigningUnavailable
from cdl_protocol.core.types import Address, SignedLink, UnsignedLink
from cdl_protocol.links.addresses import ensure_lower_address
from cdl_protocol.links.canonical import hash_link

if TYPE_CHECKING:
    from cdl_protocol.core.interfaces import SigningIdentity

# ---------------------------------------------------------------------------
# Typed-data constants
# ---------------------------------------------------------------------------

DEFAULT_DOMAIN_NAME = "CirclesProfiles"
DEFAULT_DOMAIN_VERSION = "1"

EIP712_DOMAIN_TYPE = "EIP712Domain(string name,string version,uint256 chainId)"
LINK_HASH_MESSAGE_TYPE = "LinkHashMessage(bytes32 linkHash)"

_DOMAIN_TYPEHASH = keccak(text=EIP712_DOMAIN_TYPE)
_MESSAGE_TYPEHASH = keccak(text=LINK_HASH_MESSAGE_TYPE)

SIGNATURE_LENGTH = 65


# ---------------------------------------------------------------------------
# Typed-data digest
# ---------------------------------------------------------------------------

def domain_separator(
    domain_id: int,
    *,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> bytes:
    """Return the EIP-712 domain separator for this protocol on *domain_id*."""
    return keccak(
        _DOMAIN_TYPEHASH
        + keccak(text=name)
        + keccak(text=version)
        + domain_id.to_bytes(32, "big")
    )


def typed_data_digest(
    link_hash: bytes,
    domain_id: int,
    *,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> bytes:
    """Return the 32-byte digest a wallet signs for ``LinkHashMessage``.

    Raises
    ------
    ValueError
        If *link_hash* is not exactly 32 bytes.
    """
    if len(link_hash) != 32:
        raise ValueError(f"link hash must be 32 bytes, got {len(link_hash)}")
    struct_hash = keccak(_MESSAGE_TYPEHASH + link_hash)
    return keccak(
        b"\x19\x01"
        + domain_separator(domain_id, name=name, version=version)
        + struct_hash
    )


# ---------------------------------------------------------------------------
# Link construction helpers
# ---------------------------------------------------------------------------

def new_nonce() -> str:
    """Return a fresh 16-byte nonce as ``0x``-prefixed hex."""
    return "0x" + secrets.token_hex(16)


def now_seconds() -> int:
    """Current Unix time in whole seconds."""
    return int(time.time())


def normalize_v(v: int) -> int:
    """Map a recovery id of 0/1 to 27/28; leave 27/28 unchanged."""
    return v + 27 if v in (0, 1) else v


def encode_signature(signature: bytes) -> str:
    """Validate a 65-byte signature, normalise ``v`` and hex-encode it."""
    if len(signature) != SIGNATURE_LENGTH:
        raise SignatureInvalid(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}",
        )
    return "0x" + signature[:64].hex() + f"{normalize_v(signature[64]):02x}"


async def sign_link(
    wallet: SigningIdentity | None,
    owner: Address,
    unsigned: UnsignedLink,
) -> SignedLink:
    """Hash *unsigned*, have *wallet* sign it on behalf of *owner*.

    Raises
    ------
    SigningUnavailable
        If no wallet is bound.
    SigningRejected
        Propagated from the wallet when the identity declines.
    SignatureInvalid
        If the wallet returns something other than 65 bytes.
    """
    if wallet is None:
        raise SigningUnavailable()
    link_hash = hash_link(unsigned)
    signature = await wallet.sign(owner, link_hash)
    return SignedLink(**unsigned.model_dump(), signature=encode_signature(signature))


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

def recover_signer(
    link: SignedLink,
    *,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> Address:
    """Recover the address that produced ``link.signature``.

    Raises
    ------
    SignatureInvalid
        If the signature is malformed or no public key can be recovered.
    """
    try:
        raw = bytes.fromhex(link.signature.removeprefix("0x"))
    except ValueError as exc:
        raise SignatureInvalid(
            "Signature is not hex", details={"name": link.name}
        ) from exc
    if len(raw) != SIGNATURE_LENGTH:
        raise SignatureInvalid(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}",
            details={"name": link.name},
        )
    v = raw[64] - 27 if raw[64] >= 27 else raw[64]
    digest = typed_data_digest(hash_link(link), link.domain_id, name=name, version=version)
    try:
        signature = keys.Signature(signature_bytes=raw[:64] + bytes([v]))
        public_key = signature.recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError) as exc:
        raise SignatureInvalid(
            f"Cannot recover signer: {exc}", details={"name": link.name}
        ) from exc
    return ensure_lower_address(public_key.to_checksum_address())


def verify_link(
    link: SignedLink,
    *,
    name: str = DEFAULT_DOMAIN_NAME,
    version: str = DEFAULT_DOMAIN_VERSION,
) -> bool:
    """Return ``True`` if *link* was signed by ``link.signer_address``."""
    try:
        signer = recover_signer(link, name=name, version=version)
    except SignatureInvalid:
        return False
    return signer == link.signer_address.lower()

"""CDL Protocol shared domain types.

This module defines every value type and Pydantic model shared across the
CDL Protocol implementation: the persisted documents (profile, namespace
index, chunk, link, payload) and the in-memory snapshot a publish works
against.

Key design decisions:
* Python attributes are snake_case; the stored JSON keeps the camelCase
  wire names of the protocol (``chainId``, ``signerAddress`` ...).  Always
  dump with ``by_alias=True``.
* ``CidV0``, ``Address`` and ``Digest32`` are ``NewType`` wrappers around
  ``str`` so they stay JSON-serialisable.
* Persisted documents are decoded leniently (external input); the snapshot
  and change-set types are frozen.
"""
from __future__ import annotations

from typing import Any, NewType

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Value types (NewType wrappers)
# ---------------------------------------------------------------------------

CidV0 = NewType("CidV0", str)
"""Content address: base58btc CIDv0 (``Qm...``, 46 characters)."""

Address = NewType("Address", str)
"""Account address: lower-case ``0x`` + 40 hex characters."""

Digest32 = NewType("Digest32", str)
"""Fixed-width registry digest: lower-case ``0x`` + 64 hex characters."""


# ---------------------------------------------------------------------------
# Protocol constants
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "1.2"
CHUNK_CAPACITY = 100
ZERO_DIGEST = Digest32("0x" + "00" * 32)
"""Registry sentinel meaning "no profile yet"."""

OPERATOR_NAMESPACE = Address("0x1111111111111111111111111111111111111111")
"""Default namespace key used by the reference operator."""


class _WireModel(BaseModel):
    """Base for persisted documents: camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready mapping using wire (alias) names."""
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Links (records)
# ---------------------------------------------------------------------------

class UnsignedLink(_WireModel):
    """A link before signing.  Every field here is covered by the signature."""

    name: str = Field(min_length=1, description="Logical key, e.g. ``snippet-1``.")
    cid: CidV0 = Field(description="Content address of the payload document.")
    encrypted: bool = False
    encryption_algorithm: str | None = None
    encryption_key_fingerprint: str | None = None
    domain_id: int = Field(alias="chainId", description="Network/domain identifier.")
    signer_address: Address
    signed_at: int = Field(description="Unix seconds.")
    nonce: str = Field(description="``0x`` + 16 random bytes in hex.")


class SignedLink(UnsignedLink):
    """A signed link: the record stored in chunks."""

    signature: str = Field(description="``0x`` + 65-byte r||s||v in hex.")

    def unsigned(self) -> UnsignedLink:
        """Return the signed-over portion of this link."""
        return UnsignedLink.model_validate(self.model_dump(exclude={"signature"}))


# ---------------------------------------------------------------------------
# Object graph documents
# ---------------------------------------------------------------------------

class NamespaceChunk(_WireModel):
    """A capacity-bounded, ordered batch of signed links.

    Mutable only while it is the head of its namespace; once pinned as a
    predecessor (``prev``) of a newer head it never changes.
    """

    prev: CidV0 | None = None
    links: list[SignedLink] = Field(default_factory=list)


class NamespaceIndex(_WireModel):
    """Name -> owning-chunk map plus the current head pointer."""

    head: CidV0 | None = None
    entries: dict[str, CidV0] = Field(default_factory=dict)


class Profile(_WireModel):
    """Per-owner profile document referenced by the registry pointer.

    Unknown owner metadata fields are preserved across rewrites.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    schema_version: str = SCHEMA_VERSION
    name: str | None = None
    description: str | None = None
    preview_image_url: str | None = None
    image_url: str | None = None
    namespaces: dict[str, CidV0] = Field(default_factory=dict)
    signing_keys: dict[str, Any] = Field(default_factory=dict)


class SnippetPayload(_WireModel):
    """Payload document written by the reference snippet editor."""

    title: str
    language: str | None = None
    content: str
    created_at: int
    updated_at: int


# ---------------------------------------------------------------------------
# Working state
# ---------------------------------------------------------------------------

class ProfileSnapshot(BaseModel):
    """Everything a publish or lookup needs, as loaded from the registry.

    The three ``*_cid`` fields are the addresses the current documents were
    loaded from (``None`` when the object does not exist yet).
    """

    model_config = ConfigDict(frozen=True)

    owner: Address
    domain_id: int
    namespace_key: str
    profile: Profile = Field(default_factory=Profile)
    index: NamespaceIndex = Field(default_factory=NamespaceIndex)
    head: NamespaceChunk = Field(default_factory=NamespaceChunk)
    profile_cid: CidV0 | None = None
    index_cid: CidV0 | None = None
    head_cid: CidV0 | None = None


class Upsert(BaseModel):
    """One insert-or-replace in a change set."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    payload: dict[str, Any] | SnippetPayload = Field(union_mode="left_to_right")


class ChangeSet(BaseModel):
    """A batch of upserts (ordered) and deletes (set semantics)."""

    model_config = ConfigDict(frozen=True)

    upserts: list[Upsert] = Field(default_factory=list)
    deletes: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.upserts and not self.deletes

    def delete_set(self) -> list[str]:
        """Deletes de-duplicated, first occurrence order preserved."""
        return list(dict.fromkeys(self.deletes))

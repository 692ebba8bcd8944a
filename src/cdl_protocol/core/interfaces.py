"""CDL Protocol abstract interfaces and in-memory implementations.

This module defines the *structural* interfaces (``typing.Protocol``) for
the external collaborators consumed by the protocol core -- the content
store, the on-chain pointer registry, the signing identity and the wallet
event source -- plus lightweight in-memory implementations suitable for
testing and local development.

Every Protocol class is decorated with ``@runtime_checkable`` so that
``isinstance`` checks work at run-time in addition to static analysis.

In-memory implementations are **not** thread-safe.
"""
from __future__ import annotations

import enum
import re
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from cdl_protocol.core.errors import (
    ContentNotFound,
    InvalidAddress,
    TxFailed,
    WrongNetwork,
)
from cdl_protocol.core.types import ZERO_DIGEST, Address, CidV0, Digest32
from cdl_protocol.links.addresses import cid_v0_for_bytes

# ===================================================================
# Shared value types
# ===================================================================

@dataclass(frozen=True, slots=True)
class WalletConnection:
    """Result of connecting a signing identity."""

    address: Address
    domain_id: int


class EventKind(enum.StrEnum):
    """Wallet/provider events that invalidate a loaded snapshot."""

    ACCOUNTS_CHANGED = "accountsChanged"
    CHAIN_CHANGED = "chainChanged"


EventHandler = Callable[[EventKind, Any], None]


# ===================================================================
# Protocol (interface) definitions
# ===================================================================

@runtime_checkable
class ContentStore(Protocol):
    """Content-addressed object store.

    ``put`` is deterministic: identical bytes always yield the identical
    address.  ``get`` enforces a bounded wait.
    """

    async def put(self, data: bytes) -> CidV0:
        """Store *data* (pinned) and return its content address."""
        ...

    async def get(self, cid: CidV0) -> bytes:
        """Return the bytes stored under *cid*.

        Raises :class:`ContentNotFound` if the object does not exist and
        :class:`FetchTimeout` if the bounded wait expires.
        """
        ...


@runtime_checkable
class Registry(Protocol):
    """On-chain registry holding one profile pointer per owner."""

    async def get_pointer(self, owner: Address) -> Digest32:
        """Return the owner's pointer; :data:`ZERO_DIGEST` means unset."""
        ...

    async def set_pointer(self, digest: Digest32) -> None:
        """Commit *digest* as the connected owner's pointer, exactly once.

        Returns only after inclusion is confirmed.  Raises
        :class:`WrongNetwork`, :class:`TxFailed`, or
        :class:`TxOutcomeUnknown` when the transaction was submitted but
        its inclusion could not be confirmed.
        """
        ...


@runtime_checkable
class SigningIdentity(Protocol):
    """External signing identity (wallet)."""

    async def connect(self) -> WalletConnection:
        """Return the bound account address and current domain."""
        ...

    async def sign(self, address: Address, link_hash: bytes) -> bytes:
        """Sign the 32-byte *link_hash* with typed-data signing.

        Returns a 65-byte ``r || s || v`` signature.  Raises
        :class:`SigningRejected` if the identity declines and
        :class:`SigningUnavailable` if no identity is bound.
        """
        ...


@runtime_checkable
class EventSource(Protocol):
    """Subscription interface for account/chain change events."""

    def subscribe(self, kind: EventKind, handler: EventHandler) -> str:
        """Register *handler* for *kind*; return an unsubscribe token."""
        ...

    def unsubscribe(self, token: str) -> None:
        """Remove the subscription identified by *token* (idempotent)."""
        ...


# ===================================================================
# In-memory implementations
# ===================================================================

class InMemoryContentStore:
    """In-memory content store for testing and development.

    Addresses are real CIDv0 values of the stored bytes, so the registry
    digest helpers round-trip against them.  ``puts`` counts every write
    (including duplicates).
    """

    def __init__(self) -> None:
        self._objects: dict[str, bytes] = {}
        self.puts = 0
        self.gets = 0

    async def put(self, data: bytes) -> CidV0:
        """Store *data* and return its CIDv0."""
        cid = cid_v0_for_bytes(data)
        self._objects[cid] = bytes(data)
        self.puts += 1
        return cid

    async def get(self, cid: CidV0) -> bytes:
        """Return the bytes for *cid*."""
        self.gets += 1
        data = self._objects.get(str(cid))
        if data is None:
            raise ContentNotFound(f"CID not found: {cid}", details={"cid": str(cid)})
        return data

    def __contains__(self, cid: object) -> bool:
        return cid in self._objects

    def __len__(self) -> int:
        return len(self._objects)


_DIGEST_RE = re.compile(r"^0x[0-9a-f]{64}$")


class InMemoryRegistry:
    """In-memory pointer registry for testing and development.

    The registry is bound to the owner whose transactions it accepts
    (the connected account) and optionally to the network it lives on.

    Parameters
    ----------
    owner:
        The account whose pointer ``set_pointer`` writes.
    network_id:
        The domain the registry lives on.  When set together with
        ``connected_domain_id`` a mismatch raises :class:`WrongNetwork`.
    connected_domain_id:
        The domain the caller's wallet is currently connected to.
    """

    def __init__(
        self,
        owner: Address | None = None,
        *,
        network_id: int | None = None,
        connected_domain_id: int | None = None,
    ) -> None:
        self._pointers: dict[str, Digest32] = {}
        self._owner = owner
        self.network_id = network_id
        self.connected_domain_id = connected_domain_id
        self.set_calls: list[Digest32] = []
        self.get_calls = 0

    def bind(self, owner: Address) -> None:
        """Switch the account whose pointer ``set_pointer`` writes."""
        self._owner = owner

    async def get_pointer(self, owner: Address) -> Digest32:
        """Return the owner's pointer, or the zero sentinel."""
        self.get_calls += 1
        return self._pointers.get(str(owner).lower(), ZERO_DIGEST)

    async def set_pointer(self, digest: Digest32) -> None:
        """Record *digest* for the bound owner."""
        if (
            self.network_id is not None
            and self.connected_domain_id is not None
            and self.network_id != self.connected_domain_id
        ):
            raise WrongNetwork(
                f"Wrong network: expected {self.network_id}, "
                f"got {self.connected_domain_id}",
                details={
                    "expected": self.network_id,
                    "actual": self.connected_domain_id,
                },
            )
        if self._owner is None:
            raise TxFailed("No owner bound to the registry")
        if not isinstance(digest, str) or not _DIGEST_RE.match(digest):
            raise InvalidAddress(f"Invalid digest32: {digest!r}")
        self.set_calls.append(digest)
        self._pointers[str(self._owner).lower()] = digest


@dataclass(slots=True)
class _Subscription:
    kind: EventKind
    handler: EventHandler


@dataclass(slots=True)
class InMemoryEventBus:
    """Synchronous in-process event source for testing and development."""

    _subscriptions: dict[str, _Subscription] = field(default_factory=dict)

    def subscribe(self, kind: EventKind, handler: EventHandler) -> str:
        """Register *handler* for *kind* and return its token."""
        token = str(uuid.uuid4())
        self._subscriptions[token] = _Subscription(kind, handler)
        return token

    def unsubscribe(self, token: str) -> None:
        """Remove the subscription; unknown tokens are ignored."""
        self._subscriptions.pop(token, None)

    def emit(self, kind: EventKind, payload: Any = None) -> int:
        """Deliver an event to every matching handler; return the count."""
        delivered = 0
        for sub in list(self._subscriptions.values()):
            if sub.kind == kind:
                sub.handler(kind, payload)
                delivered += 1
        return delivered

    def __len__(self) -> int:
        return len(self._subscriptions)

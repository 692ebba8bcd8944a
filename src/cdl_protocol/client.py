"""CDL Protocol client -- the main entry point.

:class:`ProfileClient` composes the snapshot loader, the publish
coordinator and the lookup service around one owner's current snapshot.

Usage
-----
::

    from cdl_protocol.adapters import LocalKeyWallet
    from cdl_protocol.client import ProfileClient
    from cdl_protocol.core.config import CDLConfig
    from cdl_protocol.core.interfaces import InMemoryContentStore, InMemoryRegistry

    wallet = LocalKeyWallet.generate(domain_id=100)
    client = ProfileClient(
        config=CDLConfig(),
        store=InMemoryContentStore(),
        registry=InMemoryRegistry(wallet.address),
        wallet=wallet,
    )
    await client.connect()
    await client.add_or_update("snippet-1", {"title": "x", "content": "y"})
    link = await client.resolve("snippet-1")

Account or chain changes reported through an :class:`EventSource` mark the
snapshot stale; the next call reloads it before doing anything else.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cdl_protocol.core.interfaces import EventKind
from cdl_protocol.core.types import ChangeSet, Upsert
from cdl_protocol.services.loader import SnapshotLoader
from cdl_protocol.services.lookup import LookupService
from cdl_protocol.services.publish import PublishCoordinator

if TYPE_CHECKING:
    from cdl_protocol.core.config import CDLConfig
    from cdl_protocol.core.interfaces import (
        ContentStore,
        EventSource,
        Registry,
        SigningIdentity,
    )
    from cdl_protocol.core.types import ProfileSnapshot, SignedLink, SnippetPayload

logger = logging.getLogger(__name__)


class ProfileClient:
    """Holds one owner's snapshot and routes reads and writes.

    Parameters
    ----------
    config:
        Client configuration.
    store:
        Content store for the object graph.
    registry:
        Registry holding the owner's profile pointer.
    wallet:
        Signing identity; also used to discover the owner and domain.
    events:
        Optional account/chain change event source.
    """

    def __init__(
        self,
        config: CDLConfig,
        store: ContentStore,
        registry: Registry,
        wallet: SigningIdentity | None = None,
        events: EventSource | None = None,
    ) -> None:
        self._config = config
        self._events = events
        self._loader = SnapshotLoader(config, store, registry, wallet)
        self._coordinator = PublishCoordinator(config, store, registry, wallet)
        self._lookup = LookupService.from_config(config, store)
        self._snapshot: ProfileSnapshot | None = None
        self._stale = False
        self._tokens: list[str] = []

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> ProfileSnapshot | None:
        """The currently held snapshot (``None`` before :meth:`connect`)."""
        return self._snapshot

    @property
    def stale(self) -> bool:
        return self._stale

    @property
    def coordinator(self) -> PublishCoordinator:
        return self._coordinator

    async def connect(self) -> ProfileSnapshot:
        """Connect the wallet, load the snapshot and start watching events."""
        self._snapshot = await self._loader.load()
        self._stale = False
        self.watch()
        return self._snapshot

    async def reload(self) -> ProfileSnapshot:
        """Discard the held snapshot and load a fresh one."""
        self._snapshot = await self._loader.load()
        self._stale = False
        return self._snapshot

    async def _current(self) -> ProfileSnapshot:
        if self._snapshot is None or self._stale:
            logger.info("Snapshot missing or stale; reloading")
            return await self.reload()
        return self._snapshot

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def watch(self) -> None:
        """Subscribe to account and chain changes (no-op without events)."""
        if self._events is None or self._tokens:
            return
        for kind in (EventKind.ACCOUNTS_CHANGED, EventKind.CHAIN_CHANGED):
            self._tokens.append(self._events.subscribe(kind, self._on_event))

    def close(self) -> None:
        """Drop all event subscriptions."""
        if self._events is not None:
            for token in self._tokens:
                self._events.unsubscribe(token)
        self._tokens.clear()

    def _on_event(self, kind: EventKind, payload: Any) -> None:
        logger.info("Received %s (%r); snapshot marked stale", kind, payload)
        self._stale = True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def publish(self, changes: ChangeSet) -> ProfileSnapshot:
        """Publish *changes* against the current snapshot."""
        snapshot = await self._current()
        self._snapshot = await self._coordinator.publish(snapshot, changes)
        return self._snapshot

    async def add_or_update(
        self, name: str, payload: dict[str, Any] | SnippetPayload
    ) -> ProfileSnapshot:
        return await self.publish(ChangeSet(upserts=[Upsert(name=name, payload=payload)]))

    async def delete(self, name: str) -> ProfileSnapshot:
        return await self.publish(ChangeSet(deletes=[name]))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def resolve(self, name: str) -> SignedLink | None:
        return await self._lookup.resolve(await self._current(), name)

    async def resolve_payload(self, name: str) -> Any | None:
        return await self._lookup.resolve_payload(await self._current(), name)

    async def list_links(self) -> list[SignedLink]:
        return self._lookup.list_all(await self._current())

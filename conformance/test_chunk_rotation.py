"""Chunk rotation conformance tests.

Verifies the count-triggered segment roll: a full head seals before the
next upsert, the new head chains to it through ``prev``, and the index
keeps pointing sealed names at the sealed chunk.
"""
from __future__ import annotations

from cdl_protocol.adapters.wallet import LocalKeyWallet
from cdl_protocol.core.config import CDLConfig
from cdl_protocol.core.interfaces import InMemoryContentStore, InMemoryRegistry
from cdl_protocol.core.types import CHUNK_CAPACITY, NamespaceChunk, ProfileSnapshot
from cdl_protocol.services.publish import PublishCoordinator
from cdl_protocol.storage.codec import decode_document

from .conftest import DOMAIN_ID, upserts


def _names(start: int, stop: int) -> list[str]:
    return [f"snippet-{i}" for i in range(start, stop)]


class TestRotationAtCapacity:
    """Default capacity is 100; the 101st distinct name seals the head."""

    async def test_MUST_not_rotate_at_capacity(
        self, coordinator: PublishCoordinator, empty: ProfileSnapshot
    ) -> None:
        """100 distinct upserts fill the head without sealing it."""
        assert CHUNK_CAPACITY == 100
        snap = await coordinator.publish(empty, upserts(*_names(1, 101)))
        assert len(snap.head.links) == 100
        assert snap.head.prev is None
        assert set(snap.index.entries.values()) == {snap.head_cid}

    async def test_MUST_rotate_on_101st_upsert(
        self,
        coordinator: PublishCoordinator,
        empty: ProfileSnapshot,
        store: InMemoryContentStore,
    ) -> None:
        """The 101st name seals the head; sealed names point at the sealed chunk."""
        full = await coordinator.publish(empty, upserts(*_names(1, 101)))
        snap = await coordinator.publish(full, upserts("snippet-101"))

        assert snap.head.prev is not None
        assert [link.name for link in snap.head.links] == ["snippet-101"]
        for name in _names(1, 101):
            assert snap.index.entries[name] == snap.head.prev
        assert snap.index.entries["snippet-101"] == snap.head_cid
        assert snap.index.head == snap.head_cid

        sealed = decode_document(await store.get(snap.head.prev), NamespaceChunk)
        assert [link.name for link in sealed.links] == _names(1, 101)
        assert sealed.prev is None

    async def test_MUST_seal_previous_head_content(
        self, coordinator: PublishCoordinator, empty: ProfileSnapshot
    ) -> None:
        """The sealed chunk is byte-for-byte the previously published head."""
        full = await coordinator.publish(empty, upserts(*_names(1, 101)))
        snap = await coordinator.publish(full, upserts("snippet-101"))
        assert snap.head.prev == full.head_cid


class TestRotationWithinBatch:
    """The rotation check runs before every individual upsert."""

    async def test_MUST_roll_multiple_times_in_one_batch(
        self,
        store: InMemoryContentStore,
        registry: InMemoryRegistry,
        wallet: LocalKeyWallet,
        empty: ProfileSnapshot,
    ) -> None:
        """Seven upserts at capacity 3 seal twice and leave one in the head."""
        config = CDLConfig(chunk_capacity=3, expected_domain_id=DOMAIN_ID)
        coordinator = PublishCoordinator(config, store, registry, wallet)
        snap = await coordinator.publish(empty, upserts(*_names(1, 8)))

        assert [link.name for link in snap.head.links] == ["snippet-7"]
        second = decode_document(await store.get(snap.head.prev), NamespaceChunk)
        first = decode_document(await store.get(second.prev), NamespaceChunk)
        assert first.prev is None
        assert [link.name for link in first.links] == _names(1, 4)
        assert [link.name for link in second.links] == _names(4, 7)
        for name in _names(1, 4):
            assert snap.index.entries[name] == second.prev
        for name in _names(4, 7):
            assert snap.index.entries[name] == snap.head.prev

    async def test_MUST_keep_head_within_capacity(
        self,
        store: InMemoryContentStore,
        registry: InMemoryRegistry,
        wallet: LocalKeyWallet,
        empty: ProfileSnapshot,
    ) -> None:
        """Replacing a name in a full head still seals first."""
        config = CDLConfig(chunk_capacity=2, expected_domain_id=DOMAIN_ID)
        coordinator = PublishCoordinator(config, store, registry, wallet)
        snap = await coordinator.publish(empty, upserts("a", "b"))
        snap = await coordinator.publish(snap, upserts("a"))

        assert [link.name for link in snap.head.links] == ["a"]
        assert snap.index.entries["a"] == snap.head_cid
        assert snap.index.entries["b"] == snap.head.prev

"""Capacity-bounded rotating chunk log.

A namespace's links live in a *head* chunk that is mutable until it holds
``capacity`` links.  The next upsert seals it: the head is pinned to the
content store, and a new empty head starts with ``prev`` pointing at the
sealed chunk's address.  Rotation is triggered purely by link count,
independent of payload size, and is checked before every individual upsert.

Sealed chunks form a backward chain through ``prev`` that exists for
provenance only; point lookups go through the namespace index.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cdl_protocol.core.types import CHUNK_CAPACITY, CidV0, NamespaceChunk, SignedLink
from cdl_protocol.storage.codec import put_document

if TYPE_CHECKING:
    from cdl_protocol.core.interfaces import ContentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SealedChunk:
    """A chunk that was pinned during rotation, with the names it holds."""

    cid: CidV0
    names: tuple[str, ...]


class ChunkLog:
    """The head chunk of a namespace, keyed by link name.

    Links are kept in an ordered arena with a ``name -> position`` map, so
    replace and membership checks never scan.  Replacing a name keeps its
    position; new names are appended.

    Parameters
    ----------
    head:
        The current head chunk (copied; the caller's object is not mutated).
    store:
        Content store used to pin the head when it seals.
    capacity:
        Maximum number of links in a head chunk.
    """

    __slots__ = ("_capacity", "_links", "_positions", "_prev", "_sealed", "_store")

    def __init__(
        self,
        head: NamespaceChunk,
        *,
        store: ContentStore,
        capacity: int = CHUNK_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._store = store
        self._capacity = capacity
        self._prev: CidV0 | None = head.prev
        self._links: list[SignedLink] = []
        self._positions: dict[str, int] = {}
        self._sealed: list[SealedChunk] = []
        for link in head.links:
            self._put(link)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def prev(self) -> CidV0 | None:
        """Address of the most recently sealed chunk, if any."""
        return self._prev

    @property
    def sealed(self) -> list[SealedChunk]:
        """Chunks sealed by this instance, oldest first."""
        return list(self._sealed)

    def names(self) -> list[str]:
        return [link.name for link in self._links]

    def is_full(self) -> bool:
        return len(self._links) >= self._capacity

    def snapshot(self) -> NamespaceChunk:
        """Return the head as a standalone :class:`NamespaceChunk`."""
        return NamespaceChunk(prev=self._prev, links=list(self._links))

    def __len__(self) -> int:
        return len(self._links)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _put(self, link: SignedLink) -> None:
        pos = self._positions.get(link.name)
        if pos is None:
            self._positions[link.name] = len(self._links)
            self._links.append(link)
        else:
            self._links[pos] = link

    async def seal(self) -> SealedChunk:
        """Pin the current head and start a new empty head chained to it."""
        cid = await put_document(self._store, self.snapshot())
        sealed = SealedChunk(cid=cid, names=tuple(self.names()))
        logger.info("Sealed chunk %s with %d links", cid, len(sealed.names))
        self._sealed.append(sealed)
        self._prev = cid
        self._links = []
        self._positions = {}
        return sealed

    async def upsert(self, link: SignedLink) -> SealedChunk | None:
        """Insert or replace *link* by name, rotating first if the head is full.

        Returns the :class:`SealedChunk` when this call rotated the log,
        ``None`` otherwise.  Post-condition: ``len(self) <= capacity``.
        """
        sealed = await self.seal() if self.is_full() else None
        self._put(link)
        return sealed

    def remove(self, name: str) -> bool:
        """Drop *name* from the head.  Returns ``False`` if it was absent."""
        pos = self._positions.pop(name, None)
        if pos is None:
            return False
        del self._links[pos]
        for moved in self._links[pos:]:
            self._positions[moved.name] -= 1
        return True

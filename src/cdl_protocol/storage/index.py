"""Namespace index maintenance.

The index maps every visible name to the address of the chunk holding its
latest link, so lookups never walk the ``prev`` chain.  After a successful
publish:

* every name in the head maps to the head's address;
* a name whose latest link lives in a sealed chunk maps to that chunk and
  keeps that entry until the name is touched again;
* deleted names have no entry.

The head's address is a function of its content, so the head must be pinned
before its entries can be written and the index itself pinned.
"""
from __future__ import annotations

from collections.abc import Iterable

from cdl_protocol.core.types import CidV0, NamespaceIndex


class IndexBuilder:
    """Mutable working copy of a :class:`NamespaceIndex`."""

    __slots__ = ("_entries", "_head")

    def __init__(self, index: NamespaceIndex | None = None) -> None:
        index = index or NamespaceIndex()
        self._head: CidV0 | None = index.head
        self._entries: dict[str, CidV0] = dict(index.entries)

    @property
    def head(self) -> CidV0 | None:
        return self._head

    def get(self, name: str) -> CidV0 | None:
        return self._entries.get(name)

    def erase(self, name: str) -> bool:
        """Remove the entry for *name*; ``False`` if there was none."""
        return self._entries.pop(name, None) is not None

    def point(self, names: Iterable[str], cid: CidV0) -> None:
        """Map every name in *names* to the chunk at *cid*."""
        for name in names:
            self._entries[name] = cid

    def set_head(self, cid: CidV0) -> None:
        self._head = cid

    def build(self) -> NamespaceIndex:
        return NamespaceIndex(head=self._head, entries=dict(self._entries))

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

"""CDL Protocol services -- loading, publishing and lookup.

* **Loader** -- registry pointer to snapshot
  (:mod:`~cdl_protocol.services.loader`).
* **Publish** -- the atomic four-stage write
  (:mod:`~cdl_protocol.services.publish`).
* **Lookup** -- name resolution, head first, then index
  (:mod:`~cdl_protocol.services.lookup`).
"""
from __future__ import annotations

from cdl_protocol.services.loader import SnapshotLoader, empty_snapshot
from cdl_protocol.services.lookup import LookupService
from cdl_protocol.services.publish import PublishCoordinator

__all__ = [
    "LookupService",
    "PublishCoordinator",
    "SnapshotLoader",
    "empty_snapshot",
]

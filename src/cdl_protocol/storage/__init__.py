"""CDL Protocol storage layer.

* **Chunk log** -- the capacity-bounded rotating head chunk
  (:mod:`~cdl_protocol.storage.chunks`).
* **Namespace index** -- name -> owning-chunk maintenance
  (:mod:`~cdl_protocol.storage.index`).
* **Codec** -- storage encoding of documents
  (:mod:`~cdl_protocol.storage.codec`).
"""
from __future__ import annotations

from cdl_protocol.storage.chunks import ChunkLog, SealedChunk
from cdl_protocol.storage.codec import (
    decode_document,
    encode_document,
    get_document,
    get_json,
    put_document,
)
from cdl_protocol.storage.index import IndexBuilder

__all__ = [
    # Chunks
    "ChunkLog",
    "SealedChunk",
    # Index
    "IndexBuilder",
    # Codec
    "decode_document",
    "encode_document",
    "get_document",
    "get_json",
    "put_document",
]

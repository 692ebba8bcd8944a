"""Storage encoding of protocol documents.

Documents are stored as compact JSON using their wire (camelCase) names.
This encoding is ordinary structured serialisation; the canonical rules of
:mod:`~cdl_protocol.links.canonical` apply only to signing input.
"""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from cdl_protocol.core.errors import MalformedObject

if TYPE_CHECKING:
    from cdl_protocol.core.interfaces import ContentStore
    from cdl_protocol.core.types import CidV0

M = TypeVar("M", bound=BaseModel)


def encode_document(document: BaseModel | dict[str, Any]) -> bytes:
    """Serialise a model (by alias) or a plain mapping to UTF-8 JSON bytes.

    Raises
    ------
    MalformedObject
        If a plain mapping holds a value JSON cannot represent.
    """
    if isinstance(document, BaseModel):
        data = document.model_dump(mode="json", by_alias=True)
    else:
        data = document
    try:
        text = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise MalformedObject(
            f"Document is not JSON-serialisable: {exc}",
            details={"kind": type(document).__name__},
        ) from exc
    return text.encode("utf-8")


def decode_document(data: bytes, model: type[M], *, cid: str | None = None) -> M:
    """Parse *data* as *model*.

    Raises
    ------
    MalformedObject
        If the bytes are not JSON or do not match the schema.
    """
    try:
        return model.model_validate_json(data)
    except ValidationError as exc:
        raise MalformedObject(
            f"Stored {model.__name__} is malformed: {exc.error_count()} error(s)",
            details={"cid": cid, "kind": model.__name__},
        ) from exc


async def put_document(store: ContentStore, document: BaseModel | dict[str, Any]) -> CidV0:
    """Encode *document* and pin it; return its content address."""
    return await store.put(encode_document(document))


async def get_document(store: ContentStore, cid: CidV0, model: type[M]) -> M:
    """Fetch *cid* and parse it as *model*."""
    return decode_document(await store.get(cid), model, cid=cid)


async def get_json(store: ContentStore, cid: CidV0) -> Any:
    """Fetch *cid* and parse it as arbitrary JSON."""
    data = await store.get(cid)
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedObject(
            f"Stored object is not JSON: {exc}", details={"cid": cid}
        ) from exc

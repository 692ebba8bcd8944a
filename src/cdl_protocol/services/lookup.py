"""Name resolution against a loaded snapshot.

Reads never lock: they walk an immutable content-addressed graph reached
from a locally held snapshot, so they may be stale but never see a torn
state.  The head chunk is authoritative; names not in the head are found
through the namespace index with a single chunk fetch.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cdl_protocol.core.errors import SignatureInvalid
from cdl_protocol.core.types import CidV0, NamespaceChunk, ProfileSnapshot, SignedLink
from cdl_protocol.links.signing import (
    DEFAULT_DOMAIN_NAME,
    DEFAULT_DOMAIN_VERSION,
    verify_link,
)
from cdl_protocol.storage.codec import get_document, get_json

if TYPE_CHECKING:
    from cdl_protocol.core.config import CDLConfig
    from cdl_protocol.core.interfaces import ContentStore

logger = logging.getLogger(__name__)


class LookupService:
    """Resolves names to their current signed links.

    Parameters
    ----------
    store:
        Content store used to fetch sealed chunks and payloads.
    verify_signatures:
        When ``True`` a resolved link must recover to its signer address,
        otherwise :class:`SignatureInvalid` is raised.
    domain_name, domain_version:
        Typed-data domain used for signature recovery.
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        verify_signatures: bool = True,
        domain_name: str = DEFAULT_DOMAIN_NAME,
        domain_version: str = DEFAULT_DOMAIN_VERSION,
    ) -> None:
        self._store = store
        self._verify = verify_signatures
        self._domain_name = domain_name
        self._domain_version = domain_version

    @classmethod
    def from_config(cls, config: CDLConfig, store: ContentStore) -> LookupService:
        return cls(
            store,
            verify_signatures=config.verify_signatures,
            domain_name=config.signing_domain_name,
            domain_version=config.signing_domain_version,
        )

    async def locate(
        self, snapshot: ProfileSnapshot, name: str
    ) -> tuple[SignedLink | None, CidV0 | None]:
        """Return the link for *name* and the address of its owning chunk.

        Store failures propagate; a chunk that no longer holds the name
        yields ``(None, chunk_cid)``.
        """
        for link in snapshot.head.links:
            if link.name == name:
                return link, snapshot.head_cid

        chunk_cid = snapshot.index.entries.get(name)
        if chunk_cid is None:
            return None, None

        chunk = await get_document(self._store, chunk_cid, NamespaceChunk)
        for link in chunk.links:
            if link.name == name:
                return link, chunk_cid
        logger.warning("Index entry for %r points at %s, which does not hold it", name, chunk_cid)
        return None, chunk_cid

    async def resolve(
        self,
        snapshot: ProfileSnapshot,
        name: str,
        *,
        domain_id: int | None = None,
    ) -> SignedLink | None:
        """Resolve *name* to its current link, or ``None`` if absent.

        A link bound to another domain than *domain_id* (default: the
        snapshot's) is treated as absent.

        Raises
        ------
        SignatureInvalid
            If signature verification is on and the link does not verify.
        StorageError
            If a sealed chunk cannot be fetched.
        """
        link, _ = await self.locate(snapshot, name)
        if link is None:
            return None

        current_domain = snapshot.domain_id if domain_id is None else domain_id
        if link.domain_id != current_domain:
            logger.info(
                "Ignoring %r: bound to domain %d, current domain is %d",
                name, link.domain_id, current_domain,
            )
            return None

        if self._verify and not verify_link(
            link, name=self._domain_name, version=self._domain_version
        ):
            raise SignatureInvalid(
                f"Signature of {name!r} does not match {link.signer_address}",
                details={"name": name, "signer": link.signer_address},
            )
        return link

    async def resolve_payload(
        self,
        snapshot: ProfileSnapshot,
        name: str,
        *,
        domain_id: int | None = None,
    ) -> Any | None:
        """Resolve *name* and fetch its payload document."""
        link = await self.resolve(snapshot, name, domain_id=domain_id)
        if link is None:
            return None
        return await get_json(self._store, link.cid)

    def list_all(self, snapshot: ProfileSnapshot) -> list[SignedLink]:
        """Return the head's links, newest ``signed_at`` first.

        Ties keep the later head position first.  Links whose latest
        version lives in a sealed chunk are not included.
        """
        ordered = sorted(
            enumerate(snapshot.head.links),
            key=lambda item: (item[1].signed_at, item[0]),
            reverse=True,
        )
        return [link for _, link in ordered]

"""Snapshot loading: registry pointer -> profile -> index -> head.

The loader resolves the owner's registry pointer and walks the object
graph down to the namespace's head chunk.  The zero sentinel yields an
empty snapshot (no profile yet).  An unreachable or malformed object is
reported as :class:`FetchFailed` carrying its address and kind, so the
caller can offer to start fresh instead of blocking; a bounded-wait expiry
stays a :class:`FetchTimeout` so it can be retried.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from cdl_protocol.core.errors import (
    ContentNotFound,
    FetchFailed,
    MalformedObject,
    SigningUnavailable,
)
from cdl_protocol.core.types import (
    Address,
    CidV0,
    NamespaceChunk,
    NamespaceIndex,
    Profile,
    ProfileSnapshot,
)
from cdl_protocol.links.addresses import digest32_to_cid, ensure_lower_address, is_unset_digest
from cdl_protocol.storage.codec import get_document

if TYPE_CHECKING:
    from cdl_protocol.core.config import CDLConfig
    from cdl_protocol.core.interfaces import ContentStore, Registry, SigningIdentity

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def empty_snapshot(
    owner: Address,
    domain_id: int,
    namespace_key: str,
    *,
    schema_version: str | None = None,
) -> ProfileSnapshot:
    """Return the state of an owner with no published profile."""
    profile = Profile() if schema_version is None else Profile(schema_version=schema_version)
    return ProfileSnapshot(
        owner=ensure_lower_address(owner),
        domain_id=domain_id,
        namespace_key=namespace_key,
        profile=profile,
    )


class SnapshotLoader:
    """Loads a :class:`ProfileSnapshot` for an owner.

    Parameters
    ----------
    config:
        Client configuration (namespace key, schema version).
    store:
        Content store the object graph is read from.
    registry:
        Registry holding the owner's profile pointer.
    wallet:
        Optional signing identity used to discover the owner and domain.
    """

    def __init__(
        self,
        config: CDLConfig,
        store: ContentStore,
        registry: Registry,
        wallet: SigningIdentity | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._registry = registry
        self._wallet = wallet

    async def load(
        self,
        owner: Address | None = None,
        domain_id: int | None = None,
    ) -> ProfileSnapshot:
        """Load the current snapshot for *owner* on *domain_id*.

        Missing arguments are taken from the connected wallet.

        Raises
        ------
        SigningUnavailable
            If the owner or domain is needed from the wallet and none is bound.
        FetchFailed
            If the profile, index or head chunk cannot be loaded.
        FetchTimeout
            If a fetch exceeds the bounded wait.
        """
        if owner is None or domain_id is None:
            if self._wallet is None:
                raise SigningUnavailable("No wallet bound to discover the owner")
            connection = await self._wallet.connect()
            owner = owner or connection.address
            domain_id = connection.domain_id if domain_id is None else domain_id

        owner = ensure_lower_address(owner)
        namespace_key = self._config.namespace_key
        digest = await self._registry.get_pointer(owner)
        if is_unset_digest(digest):
            logger.info("No profile registered for %s; starting empty", owner)
            return empty_snapshot(
                owner,
                domain_id,
                namespace_key,
                schema_version=self._config.schema_version,
            )

        profile_cid = digest32_to_cid(digest.lower())
        profile = await self._fetch(profile_cid, Profile, "profile")

        index = NamespaceIndex()
        head = NamespaceChunk()
        index_cid: CidV0 | None = profile.namespaces.get(namespace_key)
        head_cid: CidV0 | None = None
        if index_cid:
            index = await self._fetch(index_cid, NamespaceIndex, "namespace index")
            if index.head:
                head_cid = index.head
                head = await self._fetch(head_cid, NamespaceChunk, "namespace head")
        else:
            index_cid = None

        logger.debug(
            "Loaded snapshot for %s: profile=%s index=%s head=%s (%d links)",
            owner, profile_cid, index_cid, head_cid, len(head.links),
        )
        return ProfileSnapshot(
            owner=owner,
            domain_id=domain_id,
            namespace_key=namespace_key,
            profile=profile,
            index=index,
            head=head,
            profile_cid=profile_cid,
            index_cid=index_cid,
            head_cid=head_cid,
        )

    async def _fetch(self, cid: CidV0, model: type[M], kind: str) -> M:
        try:
            return await get_document(self._store, cid, model)
        except (ContentNotFound, MalformedObject) as exc:
            logger.warning("Cannot fetch %s %s: %s", kind, cid, exc.message)
            raise FetchFailed(
                f"Cannot fetch {kind} CID {cid}",
                details={"cid": str(cid), "kind": kind},
            ) from exc

"""Atomic multi-object publish.

A publish applies a batch of deletes and upserts to an in-memory copy of a
loaded snapshot, then persists bottom-up and commits with a single registry
pointer update:

1. **No-op** -- an empty change set returns the snapshot unchanged with no
   store writes and no registry calls.
2. **Deletes** -- removed from the head and the index first, so a rename
   (``delete(old) + upsert(new)``) never collides.
3. **Upserts** -- in input order: pin payload, build and sign the link,
   insert into the chunk log (which may seal the head).
4. **Head and index** -- pin the head, point its names at it, pin the index.
5. **Profile** -- point the namespace at the new index, pin the profile.
6. **Commit** -- set the registry pointer to the profile digest.
7. **Return** the refreshed snapshot.

Everything before step 6 is a private, speculative write: if the publish
fails there, the previous pointer is intact and the orphaned objects are
inert.  A pointer update that was submitted but not confirmed is surfaced as
:class:`PublishOutcomeUnknown`; callers must re-read the pointer (see
:meth:`PublishCoordinator.confirm_outcome`) before retrying.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from cdl_protocol.core.errors import (
    PublishOutcomeUnknown,
    SigningUnavailable,
    StaleSnapshot,
    TxOutcomeUnknown,
    WrongNetwork,
)
from cdl_protocol.core.types import (
    ZERO_DIGEST,
    ChangeSet,
    Digest32,
    ProfileSnapshot,
    SignedLink,
    SnippetPayload,
    UnsignedLink,
    Upsert,
)
from cdl_protocol.links.addresses import cid_to_digest32
from cdl_protocol.links.signing import new_nonce, now_seconds, sign_link
from cdl_protocol.storage.chunks import ChunkLog
from cdl_protocol.storage.codec import put_document
from cdl_protocol.storage.index import IndexBuilder

if TYPE_CHECKING:
    from cdl_protocol.core.config import CDLConfig
    from cdl_protocol.core.interfaces import ContentStore, Registry, SigningIdentity
    from cdl_protocol.core.types import Address

logger = logging.getLogger(__name__)


class PublishCoordinator:
    """Commits change sets as a single logical write.

    Parameters
    ----------
    config:
        Client configuration (chunk capacity, domain guard, schema version).
    store:
        Content store the object graph is written to.
    registry:
        Registry whose pointer finalises each publish.
    wallet:
        Signing identity for new links.  Deletes-only publishes work
        without one.
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

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    async def publish(
        self, snapshot: ProfileSnapshot, changes: ChangeSet
    ) -> ProfileSnapshot:
        """Apply *changes* to *snapshot* and commit them.

        Raises
        ------
        WrongNetwork
            If the snapshot's domain is not the registry's, or an upserting
            publish runs on a wallet connected to another domain (before any
            write).
        StaleSnapshot
            If ``check_prior_pointer`` is on and the pointer moved.
        SigningUnavailable, SigningRejected
            If a link cannot be signed.  Nothing is committed.
        StorageError
            On any content-store failure.  Nothing is committed.
        TxFailed
            If the pointer update did not finalise.
        PublishOutcomeUnknown
            If the pointer update was submitted but not confirmed.
        """
        if changes.is_empty:
            logger.debug("Empty change set; nothing to publish")
            return snapshot

        self._check_domain(snapshot)
        if changes.upserts:
            await self._check_wallet_domain(snapshot)
        if self._config.check_prior_pointer:
            await self._check_prior_pointer(snapshot)

        log = ChunkLog(snapshot.head, store=self._store, capacity=self._config.chunk_capacity)
        index = IndexBuilder(snapshot.index)

        for name in changes.delete_set():
            removed = log.remove(name)
            erased = index.erase(name)
            logger.debug("Delete %r (head=%s, index=%s)", name, removed, erased)

        for upsert in changes.upserts:
            link = await self._sign_upsert(snapshot, upsert)
            sealed = await log.upsert(link)
            if sealed is not None:
                index.point(sealed.names, sealed.cid)

        head = log.snapshot()
        head_cid = await put_document(self._store, head)
        index.point(log.names(), head_cid)
        index.set_head(head_cid)
        new_index = index.build()
        index_cid = await put_document(self._store, new_index)

        profile = snapshot.profile.model_copy(deep=True)
        profile.namespaces = {**profile.namespaces, snapshot.namespace_key: index_cid}
        profile.schema_version = self._config.schema_version
        profile_cid = await put_document(self._store, profile)

        digest = cid_to_digest32(profile_cid)
        try:
            await self._registry.set_pointer(digest)
        except TxOutcomeUnknown as exc:
            logger.warning(
                "Registry update for %s submitted but unconfirmed (digest %s)",
                snapshot.owner, digest,
            )
            raise PublishOutcomeUnknown(
                details={
                    "owner": snapshot.owner,
                    "digest": digest,
                    "profile_cid": profile_cid,
                },
            ) from exc

        logger.info(
            "Published %d upsert(s), %d delete(s) for %s: profile=%s head=%s",
            len(changes.upserts), len(changes.delete_set()), snapshot.owner,
            profile_cid, head_cid,
        )
        return snapshot.model_copy(
            update={
                "profile": profile,
                "index": new_index,
                "head": head,
                "profile_cid": profile_cid,
                "index_cid": index_cid,
                "head_cid": head_cid,
            }
        )

    async def add_or_update(
        self,
        snapshot: ProfileSnapshot,
        name: str,
        payload: dict[str, Any] | SnippetPayload,
    ) -> ProfileSnapshot:
        """Publish a single upsert."""
        return await self.publish(
            snapshot, ChangeSet(upserts=[Upsert(name=name, payload=payload)])
        )

    async def delete(self, snapshot: ProfileSnapshot, name: str) -> ProfileSnapshot:
        """Publish a single delete."""
        return await self.publish(snapshot, ChangeSet(deletes=[name]))

    async def confirm_outcome(self, owner: Address, digest: Digest32) -> bool:
        """Return ``True`` if the registry pointer for *owner* equals *digest*."""
        current = await self._registry.get_pointer(owner)
        return current.lower() == digest.lower()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_domain(self, snapshot: ProfileSnapshot) -> None:
        expected = self._config.expected_domain_id
        if expected is not None and snapshot.domain_id != expected:
            raise WrongNetwork(
                f"Wrong network: expected {expected}, got {snapshot.domain_id}",
                details={"expected": expected, "actual": snapshot.domain_id},
            )

    async def _check_wallet_domain(self, snapshot: ProfileSnapshot) -> None:
        if self._wallet is None:
            raise SigningUnavailable("A wallet is required to sign upserts")
        connection = await self._wallet.connect()
        if connection.domain_id != snapshot.domain_id:
            raise WrongNetwork(
                f"Wallet is on domain {connection.domain_id}, "
                f"snapshot is on {snapshot.domain_id}",
                details={
                    "expected": snapshot.domain_id,
                    "actual": connection.domain_id,
                },
            )

    async def _check_prior_pointer(self, snapshot: ProfileSnapshot) -> None:
        current = await self._registry.get_pointer(snapshot.owner)
        expected = (
            cid_to_digest32(snapshot.profile_cid) if snapshot.profile_cid else ZERO_DIGEST
        )
        if current.lower() != expected:
            raise StaleSnapshot(details={"expected": expected, "actual": current})

    async def _sign_upsert(
        self, snapshot: ProfileSnapshot, upsert: Upsert
    ) -> SignedLink:
        payload_cid = await put_document(self._store, upsert.payload)
        unsigned = UnsignedLink(
            name=upsert.name,
            cid=payload_cid,
            encrypted=False,
            encryption_algorithm=None,
            encryption_key_fingerprint=None,
            domain_id=snapshot.domain_id,
            signer_address=snapshot.owner,
            signed_at=now_seconds(),
            nonce=new_nonce(),
        )
        return await sign_link(self._wallet, snapshot.owner, unsigned)

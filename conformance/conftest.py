"""Shared fixtures for CDL Protocol conformance tests.

Provides a deterministic wallet, in-memory collaborators, a configured
client stack and helpers for building links and change sets.
"""
from __future__ import annotations

import pytest

from cdl_protocol.adapters.wallet import LocalKeyWallet
from cdl_protocol.core.config import CDLConfig
from cdl_protocol.core.interfaces import InMemoryContentStore, InMemoryRegistry
from cdl_protocol.core.types import (
    OPERATOR_NAMESPACE,
    ChangeSet,
    ProfileSnapshot,
    SignedLink,
    UnsignedLink,
    Upsert,
)
from cdl_protocol.links.signing import sign_link
from cdl_protocol.services.loader import SnapshotLoader, empty_snapshot
from cdl_protocol.services.lookup import LookupService
from cdl_protocol.services.publish import PublishCoordinator

# ---------------------------------------------------------------------------
# Common keys and domains used across tests
# ---------------------------------------------------------------------------
PRIVATE_KEY = b"\x01" * 32
OTHER_PRIVATE_KEY = b"\x02" * 32
DOMAIN_ID = 100
OTHER_DOMAIN_ID = 10200
PAYLOAD_CID = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def wallet() -> LocalKeyWallet:
    return LocalKeyWallet(PRIVATE_KEY, domain_id=DOMAIN_ID)


@pytest.fixture()
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture()
def registry(wallet: LocalKeyWallet) -> InMemoryRegistry:
    return InMemoryRegistry(wallet.address, network_id=DOMAIN_ID)


@pytest.fixture()
def config() -> CDLConfig:
    return CDLConfig(expected_domain_id=DOMAIN_ID)


# ---------------------------------------------------------------------------
# Service fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def coordinator(
    config: CDLConfig,
    store: InMemoryContentStore,
    registry: InMemoryRegistry,
    wallet: LocalKeyWallet,
) -> PublishCoordinator:
    return PublishCoordinator(config, store, registry, wallet)


@pytest.fixture()
def loader(
    config: CDLConfig,
    store: InMemoryContentStore,
    registry: InMemoryRegistry,
    wallet: LocalKeyWallet,
) -> SnapshotLoader:
    return SnapshotLoader(config, store, registry, wallet)


@pytest.fixture()
def lookup(config: CDLConfig, store: InMemoryContentStore) -> LookupService:
    return LookupService.from_config(config, store)


@pytest.fixture()
def empty(wallet: LocalKeyWallet) -> ProfileSnapshot:
    return empty_snapshot(wallet.address, DOMAIN_ID, OPERATOR_NAMESPACE)


# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------
def make_payload(name: str, content: str = "print('hello')") -> dict[str, object]:
    """Return a snippet-shaped payload for *name*."""
    return {
        "title": name,
        "language": "python",
        "content": content,
        "createdAt": 1_700_000_000,
        "updatedAt": 1_700_000_000,
    }


def make_unsigned(
    signer: str,
    *,
    name: str = "snippet-1",
    cid: str = PAYLOAD_CID,
    domain_id: int = DOMAIN_ID,
    signed_at: int = 1_700_000_000,
    nonce: str = "0x" + "ab" * 16,
) -> UnsignedLink:
    """Build an :class:`UnsignedLink` with sensible defaults."""
    return UnsignedLink(
        name=name,
        cid=cid,
        domain_id=domain_id,
        signer_address=signer,
        signed_at=signed_at,
        nonce=nonce,
    )


async def make_signed(wallet: LocalKeyWallet, **overrides: object) -> SignedLink:
    """Build and sign a link with *wallet*."""
    unsigned = make_unsigned(wallet.address, **overrides)  # type: ignore[arg-type]
    return await sign_link(wallet, wallet.address, unsigned)


def upserts(*names: str) -> ChangeSet:
    """Return a change set upserting a payload for every name."""
    return ChangeSet(upserts=[Upsert(name=n, payload=make_payload(n)) for n in names])

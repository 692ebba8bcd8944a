"""CDL Protocol -- signed, content-addressed link directories.

Each owner publishes a directory of named, signed links by rewriting an
immutable content-addressed object graph (profile -> namespace index ->
chunk log -> payload) and finalising it with one registry pointer update.

Packages
--------
* Core types, errors, config, interfaces (:mod:`cdl_protocol.core`)
* Canonical encoding, signing, addresses (:mod:`cdl_protocol.links`)
* Chunk log and namespace index (:mod:`cdl_protocol.storage`)
* Loader, publish coordinator, lookup (:mod:`cdl_protocol.services`)
* Concrete adapters (:mod:`cdl_protocol.adapters`)
"""
from __future__ import annotations

__version__ = "1.2.0a1"

from cdl_protocol.adapters import HttpContentStore, LocalKeyWallet
from cdl_protocol.client import ProfileClient
from cdl_protocol.core.config import CDLConfig
from cdl_protocol.core.errors import (
    CanonicalizationError,
    CDLProtocolError,
    ContentNotFound,
    FetchFailed,
    FetchTimeout,
    InvalidAddress,
    MalformedObject,
    ProtocolFormatError,
    PublishOutcomeUnknown,
    RegistryError,
    SignatureInvalid,
    SigningError,
    SigningRejected,
    SigningUnavailable,
    StaleSnapshot,
    StorageError,
    StoreWriteFailure,
    TxFailed,
    TxOutcomeUnknown,
    WrongNetwork,
    error_from_code,
)
from cdl_protocol.core.interfaces import (
    ContentStore,
    EventKind,
    EventSource,
    InMemoryContentStore,
    InMemoryEventBus,
    InMemoryRegistry,
    Registry,
    SigningIdentity,
    WalletConnection,
)
from cdl_protocol.core.types import (
    CHUNK_CAPACITY,
    OPERATOR_NAMESPACE,
    SCHEMA_VERSION,
    ZERO_DIGEST,
    Address,
    ChangeSet,
    CidV0,
    Digest32,
    NamespaceChunk,
    NamespaceIndex,
    Profile,
    ProfileSnapshot,
    SignedLink,
    SnippetPayload,
    UnsignedLink,
    Upsert,
)
from cdl_protocol.links import (
    canonicalize,
    cid_to_digest32,
    digest32_to_cid,
    hash_link,
    recover_signer,
    sign_link,
    verify_link,
)
from cdl_protocol.services import (
    LookupService,
    PublishCoordinator,
    SnapshotLoader,
    empty_snapshot,
)
from cdl_protocol.storage import ChunkLog, IndexBuilder, SealedChunk

__all__ = [
    "__version__",
    # Client
    "ProfileClient",
    # Config
    "CDLConfig",
    # Errors
    "CDLProtocolError",
    "CanonicalizationError",
    "ContentNotFound",
    "FetchFailed",
    "FetchTimeout",
    "InvalidAddress",
    "MalformedObject",
    "ProtocolFormatError",
    "PublishOutcomeUnknown",
    "RegistryError",
    "SignatureInvalid",
    "SigningError",
    "SigningRejected",
    "SigningUnavailable",
    "StaleSnapshot",
    "StorageError",
    "StoreWriteFailure",
    "TxFailed",
    "TxOutcomeUnknown",
    "WrongNetwork",
    "error_from_code",
    # Interfaces
    "ContentStore",
    "EventKind",
    "EventSource",
    "InMemoryContentStore",
    "InMemoryEventBus",
    "InMemoryRegistry",
    "Registry",
    "SigningIdentity",
    "WalletConnection",
    # Types
    "CHUNK_CAPACITY",
    "OPERATOR_NAMESPACE",
    "SCHEMA_VERSION",
    "ZERO_DIGEST",
    "Address",
    "ChangeSet",
    "CidV0",
    "Digest32",
    "NamespaceChunk",
    "NamespaceIndex",
    "Profile",
    "ProfileSnapshot",
    "SignedLink",
    "SnippetPayload",
    "UnsignedLink",
    "Upsert",
    # Links
    "canonicalize",
    "cid_to_digest32",
    "digest32_to_cid",
    "hash_link",
    "recover_signer",
    "sign_link",
    "verify_link",
    # Services
    "LookupService",
    "PublishCoordinator",
    "SnapshotLoader",
    "empty_snapshot",
    # Storage
    "ChunkLog",
    "IndexBuilder",
    "SealedChunk",
    # Adapters
    "HttpContentStore",
    "LocalKeyWallet",
]

"""CDL Protocol error-code hierarchy.

Every failure the protocol core can surface is a concrete exception class
carrying a stable error code.

Hierarchy
---------
::

    CDLProtocolError
    +-- StorageError          (CDL-E1xx)  content store reads and writes
    +-- SigningError          (CDL-E2xx)  signing identity, signatures
    +-- RegistryError         (CDL-E3xx)  on-chain pointer registry
    +-- ProtocolFormatError   (CDL-E4xx)  addresses, encodings, documents

Usage
-----
Raise concrete subclasses directly::

    raise FetchTimeout(f"Timed out retrieving {cid}", details={"cid": cid})

Catch by category::

    try:
        snapshot = await coordinator.publish(snapshot, changes)
    except RegistryError:
        # WrongNetwork, TxFailed, PublishOutcomeUnknown, ...
        ...
"""
from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class CDLProtocolError(Exception):
    """Base exception for all CDL Protocol errors.

    Attributes
    ----------
    code : str
        CDL Protocol error code, e.g. ``"CDL-E101"``.
    message : str
        Human-readable description.
    details : dict[str, Any]
        Machine-readable context (content addresses, domains, digests).
    resolution : str
        Suggested action for the caller.
    """

    code: str = "CDL-E000"
    message: str = "Unknown CDL Protocol error"
    resolution: str = ""

    def __init__(
        self,
        message: str | None = None,
        *,
        details: dict[str, Any] | None = None,
        resolution: str | None = None,
    ) -> None:
        self.details: dict[str, Any] = details or {}
        if message is not None:
            self.message = message
        if resolution is not None:
            self.resolution = resolution
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialise the error to a JSON-friendly mapping."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["detail"] = self.details
        if self.resolution:
            payload["resolution"] = self.resolution
        return {"error": payload}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ===================================================================
# Category base classes
# ===================================================================

class StorageError(CDLProtocolError):
    """CDL-E1xx -- Content store errors."""

    code = "CDL-E1XX"


class SigningError(CDLProtocolError):
    """CDL-E2xx -- Signing identity and signature errors."""

    code = "CDL-E2XX"


class RegistryError(CDLProtocolError):
    """CDL-E3xx -- Registry pointer errors."""

    code = "CDL-E3XX"


class ProtocolFormatError(CDLProtocolError):
    """CDL-E4xx -- Malformed addresses, encodings and documents."""

    code = "CDL-E4XX"


# ===================================================================
# CDL-E1xx  Storage Errors
# ===================================================================

class ContentNotFound(StorageError):
    """CDL-E100 -- The content store holds no object for the address."""

    code = "CDL-E100"
    message = "Content address not found in the content store"
    resolution = "Check that the object was pinned and the store is reachable."


class FetchTimeout(StorageError):
    """CDL-E101 -- Retrieval exceeded the bounded wait.

    Distinct from :class:`ContentNotFound`: the object may exist but could
    not be retrieved in time, so the caller may retry.
    """

    code = "CDL-E101"
    message = "Timed out retrieving content"
    resolution = "Retry the fetch; the object may still be propagating."


class FetchFailed(StorageError):
    """CDL-E102 -- A profile, index or chunk could not be loaded.

    ``details`` carries the failing ``cid`` and the object ``kind`` so
    callers can offer a "start fresh" recovery path.
    """

    code = "CDL-E102"
    message = "Failed to fetch a protocol object"
    resolution = (
        "Retry later, or start from an empty profile if the object is lost."
    )

    @property
    def cid(self) -> str | None:
        return self.details.get("cid")


class StoreWriteFailure(StorageError):
    """CDL-E103 -- The content store rejected a write."""

    code = "CDL-E103"
    message = "Content store write failed"
    resolution = "Retry the whole publish from a freshly loaded snapshot."


# ===================================================================
# CDL-E2xx  Signing Errors
# ===================================================================

class SigningRejected(SigningError):
    """CDL-E200 -- The signing identity declined to sign."""

    code = "CDL-E200"
    message = "Signing request was rejected"
    resolution = "Approve the signature request in the wallet and retry."


class SigningUnavailable(SigningError):
    """CDL-E201 -- No signing identity is bound."""

    code = "CDL-E201"
    message = "No signing identity is available"
    resolution = "Connect a wallet before publishing."


class SignatureInvalid(SigningError):
    """CDL-E202 -- A link signature does not match its signer address."""

    code = "CDL-E202"
    message = "Link signature does not validate against its signer"


# ===================================================================
# CDL-E3xx  Registry Errors
# ===================================================================

class WrongNetwork(RegistryError):
    """CDL-E300 -- Registry call attempted on the wrong domain."""

    code = "CDL-E300"
    message = "Registry call attempted on the wrong network"
    resolution = "Switch the wallet to the registry's network and retry."


class TxFailed(RegistryError):
    """CDL-E301 -- The pointer update transaction did not finalise.

    Content-store writes made before the failure are orphaned and safe to
    discard.
    """

    code = "CDL-E301"
    message = "Registry transaction failed"
    resolution = "Retry the whole publish from a freshly loaded snapshot."


class TxOutcomeUnknown(RegistryError):
    """CDL-E302 -- The transaction was submitted but not confirmed."""

    code = "CDL-E302"
    message = "Registry transaction outcome is unknown"
    resolution = "Re-read the registry pointer before retrying."


class PublishOutcomeUnknown(RegistryError):
    """CDL-E303 -- A publish reached the registry with an unknown outcome.

    ``details`` carries the ``owner`` and the intended ``digest`` so the
    caller can confirm via
    :meth:`~cdl_protocol.services.publish.PublishCoordinator.confirm_outcome`.
    """

    code = "CDL-E303"
    message = "Publish outcome is unknown"
    resolution = (
        "Re-fetch the registry pointer to determine the true state; do not "
        "resubmit blindly."
    )


class StaleSnapshot(RegistryError):
    """CDL-E304 -- The registry pointer moved since the snapshot was loaded."""

    code = "CDL-E304"
    message = "Registry pointer no longer matches the loaded snapshot"
    resolution = "Reload the snapshot and re-apply the change set."


# ===================================================================
# CDL-E4xx  Format Errors
# ===================================================================

class InvalidAddress(ProtocolFormatError):
    """CDL-E400 -- Malformed content address, digest or account address."""

    code = "CDL-E400"
    message = "Malformed address"


class CanonicalizationError(ProtocolFormatError):
    """CDL-E401 -- A value has no canonical encoding."""

    code = "CDL-E401"
    message = "Value cannot be canonically encoded"


class MalformedObject(ProtocolFormatError):
    """CDL-E402 -- A stored document does not match its schema."""

    code = "CDL-E402"
    message = "Stored object is malformed"


# ---------------------------------------------------------------------------
# Code registry
# ---------------------------------------------------------------------------

_CODE_MAP: dict[str, type[CDLProtocolError]] = {
    cls.code: cls
    for cls in [
        # E1xx
        ContentNotFound,
        FetchTimeout,
        FetchFailed,
        StoreWriteFailure,
        # E2xx
        SigningRejected,
        SigningUnavailable,
        SignatureInvalid,
        # E3xx
        WrongNetwork,
        TxFailed,
        TxOutcomeUnknown,
        PublishOutcomeUnknown,
        StaleSnapshot,
        # E4xx
        InvalidAddress,
        CanonicalizationError,
        MalformedObject,
    ]
}


def error_from_code(code: str, message: str | None = None) -> CDLProtocolError:
    """Instantiate the correct exception class for a CDL Protocol error code.

    Raises
    ------
    KeyError
        If *code* is not a recognised CDL Protocol error code.
    """
    cls = _CODE_MAP[code]
    return cls(message) if message else cls()

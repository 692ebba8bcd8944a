"""Tests for the CDL Protocol error hierarchy."""
from __future__ import annotations

import pytest

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


class TestHierarchy:
    """Every concrete error belongs to exactly one category."""

    @pytest.mark.parametrize(
        ("cls", "category", "code"),
        [
            (ContentNotFound, StorageError, "CDL-E100"),
            (FetchTimeout, StorageError, "CDL-E101"),
            (FetchFailed, StorageError, "CDL-E102"),
            (StoreWriteFailure, StorageError, "CDL-E103"),
            (SigningRejected, SigningError, "CDL-E200"),
            (SigningUnavailable, SigningError, "CDL-E201"),
            (SignatureInvalid, SigningError, "CDL-E202"),
            (WrongNetwork, RegistryError, "CDL-E300"),
            (TxFailed, RegistryError, "CDL-E301"),
            (TxOutcomeUnknown, RegistryError, "CDL-E302"),
            (PublishOutcomeUnknown, RegistryError, "CDL-E303"),
            (StaleSnapshot, RegistryError, "CDL-E304"),
            (InvalidAddress, ProtocolFormatError, "CDL-E400"),
            (CanonicalizationError, ProtocolFormatError, "CDL-E401"),
            (MalformedObject, ProtocolFormatError, "CDL-E402"),
        ],
    )
    def test_codes_and_categories(
        self, cls: type[CDLProtocolError], category: type[CDLProtocolError], code: str
    ) -> None:
        assert issubclass(cls, category)
        assert issubclass(cls, CDLProtocolError)
        assert cls.code == code
        assert isinstance(error_from_code(code), cls)

    def test_unknown_code(self) -> None:
        with pytest.raises(KeyError):
            error_from_code("CDL-E999")

    def test_fetch_timeout_is_not_not_found(self) -> None:
        """Callers can retry a timeout without treating it as missing."""
        assert not issubclass(FetchTimeout, ContentNotFound)


class TestSerialisation:
    """Tests for to_dict and message handling."""

    def test_to_dict(self) -> None:
        exc = FetchFailed("Cannot fetch profile", details={"cid": "Qm123", "kind": "profile"})
        payload = exc.to_dict()["error"]
        assert payload["code"] == "CDL-E102"
        assert payload["message"] == "Cannot fetch profile"
        assert payload["detail"] == {"cid": "Qm123", "kind": "profile"}
        assert payload["resolution"]
        assert exc.cid == "Qm123"

    def test_default_message(self) -> None:
        exc = SigningUnavailable()
        assert str(exc) == exc.message
        assert exc.details == {}

    def test_custom_resolution(self) -> None:
        exc = TxFailed("reverted", resolution="Top up gas and retry.")
        assert exc.to_dict()["error"]["resolution"] == "Top up gas and retry."

    def test_error_from_code_message(self) -> None:
        exc = error_from_code("CDL-E300", "Switch to chain 100")
        assert isinstance(exc, WrongNetwork)
        assert exc.message == "Switch to chain 100"
        assert "WrongNetwork" in repr(exc)

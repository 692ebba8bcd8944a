"""Tests for the CDL Protocol links package.

Covers:

1. **Account addresses** -- normalisation and rejection.
2. **Typed-data digest** -- domain separation, input validation.
3. **Signing** -- wallet round-trip, failure modes, signature encoding.
4. **Recovery** -- tampering, malformed signatures, domain parameters.
"""
from __future__ import annotations

import pytest
from eth_utils import keccak

from cdl_protocol.adapters.wallet import LocalKeyWallet
from cdl_protocol.core.errors import (
    InvalidAddress,
    SignatureInvalid,
    SigningRejected,
    SigningUnavailable,
)
from cdl_protocol.core.types import SignedLink, UnsignedLink
from cdl_protocol.links import (
    domain_separator,
    ensure_lower_address,
    hash_link,
    is_lower_hex_address,
    is_unset_digest,
    keccak_hex,
    new_nonce,
    normalize_v,
    recover_signer,
    sign_link,
    typed_data_digest,
    verify_link,
)
from cdl_protocol.links.signing import encode_signature

# ---------------------------------------------------------------------------
# Constants used across tests
# ---------------------------------------------------------------------------

PRIVATE_KEY = b"\x07" * 32
DOMAIN_ID = 100
PAYLOAD_CID = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"


def _unsigned(signer: str, **overrides: object) -> UnsignedLink:
    fields: dict[str, object] = {
        "name": "snippet-1",
        "cid": PAYLOAD_CID,
        "domain_id": DOMAIN_ID,
        "signer_address": signer,
        "signed_at": 1_700_000_000,
        "nonce": "0x" + "cd" * 16,
    }
    fields.update(overrides)
    return UnsignedLink(**fields)


class _FixedSignatureWallet:
    """Signing identity that returns a canned signature."""

    def __init__(self, signature: bytes) -> None:
        self.signature = signature

    async def sign(self, address: str, link_hash: bytes) -> bytes:
        return self.signature


@pytest.fixture()
def wallet() -> LocalKeyWallet:
    return LocalKeyWallet(PRIVATE_KEY, domain_id=DOMAIN_ID)


# ===================================================================
# Test: Account addresses
# ===================================================================


class TestAddresses:
    """Tests for account address helpers."""

    def test_lowercases_checksum_address(self) -> None:
        """Mixed-case input normalises to lower case."""
        mixed = "0xA27566fD89162cC3D40Cb59c87AAaA49B85F3474"
        assert ensure_lower_address(mixed) == mixed.lower()
        assert is_lower_hex_address(mixed.lower())
        assert not is_lower_hex_address(mixed)

    @pytest.mark.parametrize(
        "value", ["", "0x", "0x1234", "A27566fD89162cC3D40Cb59c87AAaA49B85F3474", "0x" + "g" * 40]
    )
    def test_rejects_invalid(self, value: str) -> None:
        with pytest.raises(InvalidAddress):
            ensure_lower_address(value)

    def test_unset_digest(self) -> None:
        """Only the all-zero digest is the sentinel."""
        assert is_unset_digest("0x" + "00" * 32)
        assert not is_unset_digest("0x" + "00" * 31 + "01")


# ===================================================================
# Test: Typed-data digest
# ===================================================================


class TestTypedDataDigest:
    """Tests for domain-separated digests."""

    def test_keccak_empty_vector(self) -> None:
        """Keccak-256 of the empty string matches the published vector."""
        assert keccak_hex(b"") == (
            "0xc5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_digest_depends_on_domain_id(self) -> None:
        link_hash = keccak(b"link")
        assert typed_data_digest(link_hash, 100) != typed_data_digest(link_hash, 10200)

    def test_digest_depends_on_domain_name(self) -> None:
        link_hash = keccak(b"link")
        assert typed_data_digest(link_hash, 100) != typed_data_digest(
            link_hash, 100, name="OtherProtocol"
        )

    def test_digest_is_not_raw_hash(self) -> None:
        """The signed digest is never the bare link hash."""
        link_hash = keccak(b"link")
        assert typed_data_digest(link_hash, 100) != link_hash

    def test_domain_separator_is_32_bytes(self) -> None:
        assert len(domain_separator(100)) == 32

    def test_rejects_wrong_hash_length(self) -> None:
        with pytest.raises(ValueError, match="32 bytes"):
            typed_data_digest(b"\x00" * 31, 100)


# ===================================================================
# Test: Signing
# ===================================================================


class TestSignLink:
    """Tests for sign_link and signature encoding."""

    @pytest.mark.asyncio
    async def test_sign_and_recover(self, wallet: LocalKeyWallet) -> None:
        """A wallet signature recovers to the wallet address."""
        link = await sign_link(wallet, wallet.address, _unsigned(wallet.address))
        assert isinstance(link, SignedLink)
        assert link.signature.startswith("0x")
        assert len(link.signature) == 2 + 130
        assert link.signature[-2:] in ("1b", "1c")
        assert recover_signer(link) == wallet.address
        assert verify_link(link)

    @pytest.mark.asyncio
    async def test_signature_preserves_fields(self, wallet: LocalKeyWallet) -> None:
        """The signed link carries the unsigned fields unchanged."""
        unsigned = _unsigned(wallet.address)
        link = await sign_link(wallet, wallet.address, unsigned)
        assert link.unsigned() == unsigned
        assert hash_link(link) == hash_link(unsigned)

    @pytest.mark.asyncio
    async def test_no_wallet_unavailable(self) -> None:
        with pytest.raises(SigningUnavailable):
            await sign_link(None, "0x" + "11" * 20, _unsigned("0x" + "11" * 20))

    @pytest.mark.asyncio
    async def test_rejection_propagates(self, wallet: LocalKeyWallet) -> None:
        wallet.reject_all = True
        with pytest.raises(SigningRejected):
            await sign_link(wallet, wallet.address, _unsigned(wallet.address))

    @pytest.mark.asyncio
    async def test_wrong_account_rejected(self, wallet: LocalKeyWallet) -> None:
        """The wallet refuses to sign for an account it does not hold."""
        other = "0x" + "11" * 20
        with pytest.raises(SigningRejected):
            await sign_link(wallet, other, _unsigned(other))

    @pytest.mark.asyncio
    async def test_short_signature_invalid(self) -> None:
        signer = _FixedSignatureWallet(b"\x01" * 64)
        with pytest.raises(SignatureInvalid):
            await sign_link(signer, "0x" + "11" * 20, _unsigned("0x" + "11" * 20))

    def test_encode_normalises_v(self) -> None:
        """A recovery id of 0/1 is stored as 27/28."""
        assert encode_signature(b"\x00" * 64 + b"\x01").endswith("1c")
        assert encode_signature(b"\x00" * 64 + b"\x1b").endswith("1b")
        assert normalize_v(0) == 27
        assert normalize_v(28) == 28

    def test_nonces_are_unique(self) -> None:
        nonces = {new_nonce() for _ in range(50)}
        assert len(nonces) == 50
        assert all(len(n) == 34 for n in nonces)


# ===================================================================
# Test: Recovery
# ===================================================================


class TestRecoverSigner:
    """Tests for recover_signer and verify_link."""

    @pytest.mark.asyncio
    async def test_tampered_name_fails(self, wallet: LocalKeyWallet) -> None:
        link = await sign_link(wallet, wallet.address, _unsigned(wallet.address))
        tampered = link.model_copy(update={"name": "snippet-2"})
        assert not verify_link(tampered)

    @pytest.mark.asyncio
    async def test_other_domain_name_fails(self, wallet: LocalKeyWallet) -> None:
        """Verification under another protocol domain does not recover the signer."""
        link = await sign_link(wallet, wallet.address, _unsigned(wallet.address))
        assert not verify_link(link, name="OtherProtocol")

    @pytest.mark.asyncio
    async def test_custom_domain_round_trip(self) -> None:
        """Wallet and verifier agreeing on a custom domain verify."""
        wallet = LocalKeyWallet(
            PRIVATE_KEY, domain_id=DOMAIN_ID, domain_name="Test", domain_version="2"
        )
        link = await sign_link(wallet, wallet.address, _unsigned(wallet.address))
        assert verify_link(link, name="Test", version="2")
        assert not verify_link(link)

    @pytest.mark.parametrize(
        "signature", ["0x", "0x1234", "0xzz" + "00" * 64, "0x" + "00" * 66]
    )
    def test_malformed_signature_raises(self, signature: str) -> None:
        link = SignedLink(
            **_unsigned("0x" + "11" * 20).model_dump(), signature=signature
        )
        with pytest.raises(SignatureInvalid):
            recover_signer(link)
        assert not verify_link(link)

    def test_bad_recovery_id_raises(self) -> None:
        link = SignedLink(
            **_unsigned("0x" + "11" * 20).model_dump(),
            signature="0x" + "11" * 64 + "05",
        )
        with pytest.raises(SignatureInvalid):
            recover_signer(link)

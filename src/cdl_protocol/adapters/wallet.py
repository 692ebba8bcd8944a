"""In-process secp256k1 signing identity.

:class:`LocalKeyWallet` holds a private key in memory and signs link hashes
with the same typed-data scheme a browser wallet uses for
``eth_signTypedData_v4``, so signatures it produces recover to its address
under :func:`~cdl_protocol.links.signing.recover_signer`.
"""
from __future__ import annotations

import logging
import secrets

from eth_keys import keys

from cdl_protocol.core.errors import SigningRejected
from cdl_protocol.core.interfaces import WalletConnection
from cdl_protocol.core.types import Address
from cdl_protocol.links.addresses import ensure_lower_address
from cdl_protocol.links.signing import (
    DEFAULT_DOMAIN_NAME,
    DEFAULT_DOMAIN_VERSION,
    normalize_v,
    typed_data_digest,
)

logger = logging.getLogger(__name__)


class LocalKeyWallet:
    """Signing identity backed by a local private key.

    Parameters
    ----------
    private_key:
        32 raw bytes or a ``0x``-prefixed hex string.
    domain_id:
        The network the wallet is connected to; bound into every signature.
    domain_name, domain_version:
        Typed-data domain of the protocol.
    """

    def __init__(
        self,
        private_key: bytes | str,
        *,
        domain_id: int,
        domain_name: str = DEFAULT_DOMAIN_NAME,
        domain_version: str = DEFAULT_DOMAIN_VERSION,
    ) -> None:
        if isinstance(private_key, str):
            private_key = bytes.fromhex(private_key.removeprefix("0x"))
        self._key = keys.PrivateKey(private_key)
        self.address: Address = ensure_lower_address(
            self._key.public_key.to_checksum_address()
        )
        self.domain_id = domain_id
        self.domain_name = domain_name
        self.domain_version = domain_version
        self.reject_all = False
        self.sign_calls = 0

    @classmethod
    def generate(cls, *, domain_id: int, **kwargs: str) -> LocalKeyWallet:
        """Create a wallet with a fresh random key."""
        return cls(secrets.token_bytes(32), domain_id=domain_id, **kwargs)

    async def connect(self) -> WalletConnection:
        """Return the wallet's address and current domain."""
        return WalletConnection(address=self.address, domain_id=self.domain_id)

    async def sign(self, address: Address, link_hash: bytes) -> bytes:
        """Sign *link_hash* as typed data; returns ``r || s || v`` (v = 27/28).

        Raises
        ------
        SigningRejected
            If signing is switched off or *address* is not this wallet's.
        """
        self.sign_calls += 1
        if self.reject_all:
            raise SigningRejected("User rejected the signature request")
        if address.lower() != self.address:
            raise SigningRejected(
                f"Wallet cannot sign for {address}",
                details={"requested": address, "bound": self.address},
            )
        digest = typed_data_digest(
            link_hash,
            self.domain_id,
            name=self.domain_name,
            version=self.domain_version,
        )
        raw = self._key.sign_msg_hash(digest).to_bytes()
        logger.debug("Signed link hash 0x%s for %s", link_hash.hex(), self.address)
        return raw[:64] + bytes([normalize_v(raw[64])])

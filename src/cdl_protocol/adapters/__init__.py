"""Concrete collaborator adapters.

* :class:`~cdl_protocol.adapters.ipfs_http.HttpContentStore` -- IPFS HTTP API
  content store (``httpx``).
* :class:`~cdl_protocol.adapters.wallet.LocalKeyWallet` -- in-process
  secp256k1 signing identity (``eth-keys``).
"""
from __future__ import annotations

from cdl_protocol.adapters.ipfs_http import HttpContentStore
from cdl_protocol.adapters.wallet import LocalKeyWallet

__all__ = [
    "HttpContentStore",
    "LocalKeyWallet",
]

"""IPFS HTTP API content store.

:class:`HttpContentStore` talks to a local IPFS daemon
(``http://127.0.0.1:5001`` by default):

* ``put`` -> ``POST /api/v0/add?cid-version=0&hash=sha2-256&pin=true``,
  returning the CIDv0 the daemon reports.
* ``get`` -> ``POST /api/v0/cat?arg=<cid>`` with a bounded wait
  (``fetch_timeout_seconds``, default 10 s).  An expired wait raises
  :class:`FetchTimeout`, distinct from :class:`ContentNotFound`.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx

from cdl_protocol.core.errors import (
    ContentNotFound,
    FetchFailed,
    FetchTimeout,
    StoreWriteFailure,
)
from cdl_protocol.core.types import CidV0
from cdl_protocol.links.addresses import is_cid_v0

if TYPE_CHECKING:
    from cdl_protocol.core.config import CDLConfig

logger = logging.getLogger(__name__)

_TIMEOUT_MARKERS = ("deadline exceeded", "timeout", "timed out")


class HttpContentStore:
    """Content store backed by the IPFS HTTP RPC API.

    Parameters
    ----------
    base_url:
        Base URL of the IPFS API.
    fetch_timeout:
        Bounded wait in seconds for a single ``get``.
    write_timeout:
        Request timeout in seconds for ``put``.
    transport:
        Optional ``httpx`` transport (used by tests to stub the daemon).
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:5001",
        *,
        fetch_timeout: float = 10.0,
        write_timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._fetch_timeout = fetch_timeout
        self._write_timeout = write_timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls, config: CDLConfig, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> HttpContentStore:
        return cls(
            config.ipfs_api_url,
            fetch_timeout=config.fetch_timeout_seconds,
            transport=transport,
        )

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url, timeout=timeout, transport=self._transport
        )

    async def put(self, data: bytes) -> CidV0:
        """Add and pin *data*; return its CIDv0.

        Raises
        ------
        StoreWriteFailure
            On transport errors, non-200 responses or an unexpected CID.
        """
        params = {
            "cid-version": "0",
            "hash": "sha2-256",
            "pin": "true",
            "raw-leaves": "false",
        }
        try:
            async with self._client(self._write_timeout) as client:
                response = await client.post(
                    "/api/v0/add", params=params, files={"file": ("data", data)}
                )
        except httpx.HTTPError as exc:
            raise StoreWriteFailure(f"IPFS add failed: {exc}") from exc

        if response.status_code != 200:
            raise StoreWriteFailure(
                f"IPFS add returned HTTP {response.status_code}",
                details={"status_code": response.status_code, "body": response.text[:200]},
            )
        try:
            body: dict[str, Any] = response.json()
        except ValueError as exc:
            raise StoreWriteFailure("IPFS add returned invalid JSON") from exc

        cid = body.get("Hash", "")
        if not is_cid_v0(cid):
            raise StoreWriteFailure(
                f"IPFS add returned a non-CIDv0 address: {cid!r}",
                details={"cid": cid},
            )
        logger.debug("Pinned %d bytes as %s", len(data), cid)
        return CidV0(cid)

    async def get(self, cid: CidV0) -> bytes:
        """Retrieve *cid* within the bounded wait.

        Raises
        ------
        FetchTimeout
            If the wait expires (client side or daemon side).
        ContentNotFound
            If the daemon reports an error for the address.
        FetchFailed
            On other transport errors.
        """
        params = {"arg": str(cid), "timeout": f"{self._fetch_timeout:g}s"}
        try:
            async with self._client(self._fetch_timeout) as client:
                response = await client.post("/api/v0/cat", params=params)
        except httpx.TimeoutException as exc:
            logger.warning("Timed out retrieving %s after %ss", cid, self._fetch_timeout)
            raise FetchTimeout(
                f"Timed out retrieving CID {cid} after {self._fetch_timeout:g}s",
                details={"cid": str(cid)},
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchFailed(
                f"IPFS cat failed for {cid}: {exc}", details={"cid": str(cid)}
            ) from exc

        if response.status_code == 200:
            return response.content

        message = _error_message(response)
        if any(marker in message.lower() for marker in _TIMEOUT_MARKERS):
            raise FetchTimeout(
                f"Timed out retrieving CID {cid}: {message}",
                details={"cid": str(cid)},
            )
        raise ContentNotFound(
            f"IPFS cat failed for {cid}: {message}",
            details={"cid": str(cid), "status_code": response.status_code},
        )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("Message", body))
    return str(body)

"""CDL Protocol client configuration.

Defines the validated configuration model consumed by the loader, the
publish coordinator, the lookup service and the concrete adapters.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cdl_protocol.core.types import CHUNK_CAPACITY, OPERATOR_NAMESPACE, SCHEMA_VERSION

GNOSIS_CHAIN_ID = 100


class CDLConfig(BaseModel):
    """Configuration for a CDL Protocol client.

    Every field carries a default so that ``CDLConfig()`` is sufficient for
    local development against the in-memory stores.
    """

    model_config = ConfigDict(strict=True)

    chunk_capacity: int = Field(
        default=CHUNK_CAPACITY,
        ge=1,
        description="Maximum number of links held by a head chunk before it seals.",
    )
    fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Bounded wait for a single content-store fetch.",
    )
    schema_version: str = Field(
        default=SCHEMA_VERSION,
        description="Profile schema version written on publish.",
    )
    signing_domain_name: str = Field(
        default="CirclesProfiles",
        description="Typed-data domain name bound into every link signature.",
    )
    signing_domain_version: str = Field(
        default="1",
        description="Typed-data domain version bound into every link signature.",
    )
    namespace_key: str = Field(
        default=OPERATOR_NAMESPACE,
        description="Namespace the client reads and publishes into.",
    )
    expected_domain_id: int | None = Field(
        default=GNOSIS_CHAIN_ID,
        description=(
            "Network the registry lives on.  Publishes from any other domain "
            "abort with WrongNetwork before writing; None disables the check."
        ),
    )
    ipfs_api_url: str = Field(
        default="http://127.0.0.1:5001",
        description="Base URL of the IPFS HTTP API used by HttpContentStore.",
    )
    verify_signatures: bool = Field(
        default=True,
        description="Reject resolved links whose signature does not recover to the signer.",
    )
    check_prior_pointer: bool = Field(
        default=False,
        description=(
            "Re-read the registry pointer before publishing and abort with "
            "StaleSnapshot if another writer moved it."
        ),
    )

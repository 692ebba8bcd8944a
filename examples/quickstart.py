#!/usr/bin/env python3
"""CDL Protocol quickstart -- publish and resolve one snippet.

Demonstrates the core workflow of a CDL Protocol client:

1. Create a client with in-memory stores and a local wallet.
2. Connect (the registry holds no profile yet).
3. Publish a snippet.
4. Resolve it and verify its signature.
5. Rename it in a single atomic publish.
6. Inspect the registry pointer.

Run:
    python examples/quickstart.py
"""
from __future__ import annotations

import asyncio
import logging

from cdl_protocol import (
    CDLConfig,
    ChangeSet,
    InMemoryContentStore,
    InMemoryEventBus,
    InMemoryRegistry,
    LocalKeyWallet,
    ProfileClient,
    SnippetPayload,
    Upsert,
    digest32_to_cid,
    recover_signer,
)
from cdl_protocol.core.config import GNOSIS_CHAIN_ID


async def main() -> None:
    # -- Step 1: Create the client -------------------------------------------
    wallet = LocalKeyWallet.generate(domain_id=GNOSIS_CHAIN_ID)
    store = InMemoryContentStore()
    registry = InMemoryRegistry(wallet.address, network_id=GNOSIS_CHAIN_ID)
    client = ProfileClient(
        config=CDLConfig(expected_domain_id=GNOSIS_CHAIN_ID),
        store=store,
        registry=registry,
        wallet=wallet,
        events=InMemoryEventBus(),
    )
    print(f"[1] Client created for {wallet.address}")

    # -- Step 2: Connect -----------------------------------------------------
    snapshot = await client.connect()
    print(f"[2] Connected on domain {snapshot.domain_id}; profile: {snapshot.profile_cid}")

    # -- Step 3: Publish a snippet -------------------------------------------
    payload = SnippetPayload(
        title="hello",
        language="python",
        content="print('hello')",
        created_at=1_700_000_000,
        updated_at=1_700_000_000,
    )
    snapshot = await client.add_or_update("snippet-1", payload)
    print(f"[3] Published: profile={snapshot.profile_cid} head={snapshot.head_cid}")

    # -- Step 4: Resolve and verify ------------------------------------------
    link = await client.resolve("snippet-1")
    assert link is not None
    print(f"[4] Resolved {link.name} -> {link.cid}")
    print(f"    signer:  {recover_signer(link)}")
    print(f"    payload: {await client.resolve_payload('snippet-1')}")

    # -- Step 5: Rename atomically -------------------------------------------
    snapshot = await client.publish(
        ChangeSet(upserts=[Upsert(name="greeting", payload=payload)], deletes=["snippet-1"])
    )
    print(f"[5] Renamed; head now holds {[item.name for item in snapshot.head.links]}")

    # -- Step 6: Inspect the registry pointer --------------------------------
    pointer = await registry.get_pointer(wallet.address)
    print(f"[6] Registry pointer {pointer}")
    print(f"    -> {digest32_to_cid(pointer)} ({len(store)} objects stored)")

    client.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())

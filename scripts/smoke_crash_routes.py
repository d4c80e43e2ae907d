#!/usr/bin/env python3
"""
Smoke check: hit every failure route of a running engine.

Run this after starting the engine with: crash-engine (or python -m crash_engine.main)

Usage:
    python scripts/smoke_crash_routes.py
    python scripts/smoke_crash_routes.py --base-url http://127.0.0.1:9000
    python scripts/smoke_crash_routes.py --with-deadlock   # leaves the server deadlocked
"""

import argparse
import asyncio
import sys

import httpx

BASE_URL = "http://127.0.0.1:8080"

DEADLOCK_PATHS = ("/deadlock/one", "/deadlock/two")


async def check_health(client: httpx.AsyncClient) -> bool:
    """Check if engine is running."""
    try:
        resp = await client.get("/health", timeout=5.0)
        if resp.status_code == 200:
            data = resp.json()
            print(f"✓ Engine healthy: {data.get('version', 'unknown')}")
            return True
    except httpx.HTTPError as e:
        print(f"✗ Engine not reachable: {e}")
        return False
    return False


async def fetch_route_table(client: httpx.AsyncClient) -> list[dict]:
    """Get the failure routes the engine advertises."""
    resp = await client.get("/failures", timeout=5.0)
    resp.raise_for_status()
    return resp.json()["routes"]


async def check_route(client: httpx.AsyncClient, path: str, expected: int) -> bool:
    """Request one route and compare its status."""
    try:
        resp = await client.get(path, timeout=10.0)
    except httpx.HTTPError as e:
        print(f"✗ {path}: {e}")
        return False
    ok = resp.status_code == expected
    mark = "✓" if ok else "✗"
    kind = ""
    if resp.headers.get("content-type", "").startswith("application/json"):
        kind = resp.json().get("failure_kind", "") or ""
    print(f"{mark} {path}: {resp.status_code} (expected {expected}) {kind}".rstrip())
    return ok


async def check_deadlock(client: httpx.AsyncClient, wait_s: float) -> bool:
    """Fire both deadlock routes together and confirm neither returns."""
    print(f"  Firing {DEADLOCK_PATHS[0]} and {DEADLOCK_PATHS[1]} concurrently...")
    tasks = [asyncio.create_task(client.get(path, timeout=None)) for path in DEADLOCK_PATHS]
    done, pending = await asyncio.wait(tasks, timeout=wait_s)
    for task in pending:
        task.cancel()

    locks = (await client.get("/diagnostics/locks", timeout=5.0)).json()
    if done:
        print(f"✗ Deadlock: {len(done)} route(s) returned within {wait_s:.0f}s")
        return False
    print(f"✓ Deadlock: both routes blocked, deadlock_suspected={locks['deadlock_suspected']}")
    return True


async def run(base_url: str, with_deadlock: bool, wait_s: float) -> int:
    async with httpx.AsyncClient(base_url=base_url) as client:
        if not await check_health(client):
            return 1

        routes = await fetch_route_table(client)
        results: list[bool] = []
        for route in routes:
            path = route["path"]
            if path in DEADLOCK_PATHS:
                continue
            # Conditional routes advertise one concrete example per branch
            cases = [(o["example"], o["status"]) for o in route.get("outcomes", [])]
            for concrete_path, expected in cases or [(path, route["expected_status"])]:
                results.append(await check_route(client, concrete_path, expected))

        if with_deadlock:
            results.append(await check_deadlock(client, wait_s))

        failures = (await client.get("/diagnostics/failures", timeout=5.0)).json()
        print(f"  Engine recorded {failures['total']} failures")

    passed = sum(results)
    print(f"\n{passed}/{len(results)} checks passed")
    return 0 if passed == len(results) else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Hit every failure route of a running engine")
    parser.add_argument("--base-url", default=BASE_URL)
    parser.add_argument(
        "--with-deadlock",
        action="store_true",
        help="Also trigger the deadlock pair (the server stays deadlocked afterwards)",
    )
    parser.add_argument("--deadlock-wait", type=float, default=10.0)
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.base_url, args.with_deadlock, args.deadlock_wait)))


if __name__ == "__main__":
    main()

"""Tests for InMemoryEntitlementStore."""

import asyncio
from datetime import datetime
from unittest.mock import patch

import pytest

from fuel_vision.domain.analysis.ports import IEntitlementStore
from fuel_vision.domain.entitlement.models import EntitlementState
from fuel_vision.infrastructure.config import EntitlementSettings
from fuel_vision.infrastructure.persistence.in_memory_entitlement_store import (
    InMemoryEntitlementStore,
)


@pytest.fixture
def store(now: datetime) -> InMemoryEntitlementStore:
    return InMemoryEntitlementStore(clock=lambda: now)


def test_implements_port(store: InMemoryEntitlementStore) -> None:
    assert isinstance(store, IEntitlementStore)


@pytest.mark.asyncio
async def test_get_creates_free_state(store: InMemoryEntitlementStore, now: datetime) -> None:
    assert await store.find("user123") is None

    state = await store.get("user123")

    assert state.user_id == "user123"
    assert state.weekly_used == 0
    assert state.tier_limit == 3
    assert state.window_start == now
    assert await store.find("user123") == state


@pytest.mark.asyncio
async def test_configured_free_limit(now: datetime) -> None:
    store = InMemoryEntitlementStore(free_scans_per_week=5, clock=lambda: now)

    state = await store.get("user123")

    assert state.tier_limit == 5


@pytest.mark.asyncio
async def test_save_replaces(store: InMemoryEntitlementStore, now: datetime) -> None:
    await store.save(
        EntitlementState(user_id="user123", weekly_used=2, window_start=now, tier_limit=3)
    )

    state = await store.get("user123")

    assert state.weekly_used == 2


@pytest.mark.asyncio
async def test_users_isolated(store: InMemoryEntitlementStore, now: datetime) -> None:
    await store.save(
        EntitlementState(user_id="alice", weekly_used=3, window_start=now, tier_limit=3)
    )

    bob = await store.get("bob")

    assert bob.weekly_used == 0


@pytest.mark.asyncio
async def test_lock_per_user(store: InMemoryEntitlementStore) -> None:
    alice_lock = store.lock("alice")

    assert store.lock("alice") is alice_lock
    assert store.lock("bob") is not alice_lock

    async with alice_lock:
        assert alice_lock.locked()
        assert not store.lock("bob").locked()


@pytest.mark.asyncio
async def test_lock_serializes_read_modify_write(
    store: InMemoryEntitlementStore,
) -> None:
    async def increment() -> None:
        async with store.lock("user123"):
            state = await store.get("user123")
            await asyncio.sleep(0)
            await store.save(state.model_copy(update={"weekly_used": state.weekly_used + 1}))

    await asyncio.gather(*(increment() for _ in range(10)))

    state = await store.get("user123")
    assert state.weekly_used == 10


@pytest.mark.asyncio
async def test_from_settings_uses_configured_limit(now: datetime) -> None:
    store = InMemoryEntitlementStore.from_settings(
        EntitlementSettings(free_scans_per_week=7), clock=lambda: now
    )

    state = await store.get("user123")

    assert state.tier_limit == 7


@pytest.mark.asyncio
async def test_from_settings_reads_environment(
    monkeypatch: pytest.MonkeyPatch, now: datetime
) -> None:
    monkeypatch.setenv("FUEL_FREE_SCANS_PER_WEEK", "10")

    with patch("fuel_vision.infrastructure.config.load_dotenv"):
        store = InMemoryEntitlementStore.from_settings(clock=lambda: now)

    assert (await store.get("user123")).tier_limit == 10

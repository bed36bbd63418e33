import pytest
from fakes import FakeClock, FakeStore

from changeloghub.services.cache import CacheHandler


def test_production_mode_requires_store() -> None:
    with pytest.raises(ValueError):
        CacheHandler(None, is_dev=False)


# Development mode


@pytest.mark.asyncio
async def test_dev_set_then_get(dev_cache: CacheHandler) -> None:
    await dev_cache.set("repo:sveltejs/svelte:releases", [{"id": 1}], 60)

    assert await dev_cache.get("repo:sveltejs/svelte:releases") == [{"id": 1}]
    assert await dev_cache.exists("repo:sveltejs/svelte:releases")


@pytest.mark.asyncio
async def test_dev_entry_expires(dev_cache: CacheHandler, clock: FakeClock) -> None:
    await dev_cache.set("key", "value", 60)

    clock.advance(59)
    assert await dev_cache.get("key") == "value"

    clock.advance(2)
    assert await dev_cache.get("key") is None
    assert not await dev_cache.exists("key")


@pytest.mark.asyncio
async def test_dev_entry_without_ttl_never_expires(dev_cache: CacheHandler, clock: FakeClock) -> None:
    await dev_cache.set("key", "value")
    clock.advance(10 * 365 * 24 * 3600)

    assert await dev_cache.get("key") == "value"


@pytest.mark.asyncio
async def test_dev_delete(dev_cache: CacheHandler) -> None:
    await dev_cache.set("key", "value", 60)

    assert await dev_cache.delete("key") is True
    assert await dev_cache.delete("key") is False
    assert await dev_cache.get("key") is None


@pytest.mark.asyncio
async def test_clear_mirror(dev_cache: CacheHandler) -> None:
    await dev_cache.set("a", 1)
    await dev_cache.set("b", 2)

    assert dev_cache.clear_mirror() == 2
    assert await dev_cache.get("a") is None


# Production mode


@pytest.fixture
def prod_cache(store: FakeStore, clock: FakeClock) -> CacheHandler:
    return CacheHandler(store, is_dev=False, clock=clock)


@pytest.mark.asyncio
async def test_prod_set_writes_durable_store(prod_cache: CacheHandler, store: FakeStore, clock: FakeClock) -> None:
    await prod_cache.set("key", {"a": 1}, 900)

    assert store.data["key"] == {"a": 1}
    assert store.expiry["key"] == clock() + 900


@pytest.mark.asyncio
async def test_prod_get_served_from_consistent_mirror(
    prod_cache: CacheHandler, store: FakeStore, clock: FakeClock
) -> None:
    await prod_cache.set("key", "value", 900)
    clock.advance(100.5)

    assert await prod_cache.get("key") == "value"
    assert store.calls["ttl"] == 1
    assert store.calls["json_get"] == 0


@pytest.mark.asyncio
async def test_prod_get_populates_mirror_from_store(prod_cache: CacheHandler, store: FakeStore) -> None:
    await store.json_set("key", "from another instance")
    await store.expire("key", 600)

    assert await prod_cache.get("key") == "from another instance"
    assert await prod_cache.get("key") == "from another instance"
    assert store.calls["json_get"] == 1


@pytest.mark.asyncio
async def test_prod_mirror_evicted_when_durable_key_deleted(prod_cache: CacheHandler, store: FakeStore) -> None:
    await prod_cache.set("key", "value", 900)

    # Invalidated by another instance
    await store.delete("key")

    assert await prod_cache.get("key") is None
    assert store.calls["json_get"] == 1


@pytest.mark.asyncio
async def test_prod_mirror_evicted_on_ttl_drift(prod_cache: CacheHandler, store: FakeStore, clock: FakeClock) -> None:
    await prod_cache.set("key", "old", 900)
    clock.advance(300)

    # Rewritten by another instance with a fresh TTL
    await store.json_set("key", "new")
    await store.expire("key", 900)

    assert await prod_cache.get("key") == "new"


@pytest.mark.asyncio
async def test_prod_mirror_without_expiry_matches_persistent_key(prod_cache: CacheHandler, store: FakeStore) -> None:
    await prod_cache.set("key", "value")

    assert await prod_cache.get("key") == "value"
    assert store.calls["json_get"] == 0


@pytest.mark.asyncio
async def test_prod_entry_expires(prod_cache: CacheHandler, clock: FakeClock) -> None:
    await prod_cache.set("key", "value", 60)
    clock.advance(61)

    assert await prod_cache.get("key") is None


@pytest.mark.asyncio
async def test_prod_set_failure_still_served_from_mirror(prod_cache: CacheHandler, store: FakeStore) -> None:
    store.fail()

    await prod_cache.set("key", "value", 60)

    assert "key" not in store.data
    assert await prod_cache.get("key") == "value"


@pytest.mark.asyncio
async def test_prod_get_failure_is_a_miss(prod_cache: CacheHandler, store: FakeStore) -> None:
    await store.json_set("key", "value")
    store.fail("json_get")

    assert await prod_cache.get("key") is None


@pytest.mark.asyncio
async def test_prod_get_without_durable_ttl_is_not_mirrored(prod_cache: CacheHandler, store: FakeStore) -> None:
    await store.json_set("key", "value")
    await store.expire("key", 600)
    store.fail("ttl")

    assert await prod_cache.get("key") == "value"
    assert await prod_cache.get("key") == "value"
    assert store.calls["json_get"] == 2

    # Once the durable key is gone, nothing stale is left behind
    await store.delete("key")
    assert await prod_cache.get("key") is None


@pytest.mark.asyncio
async def test_prod_delete(prod_cache: CacheHandler, store: FakeStore) -> None:
    await prod_cache.set("key", "value", 60)

    assert await prod_cache.delete("key") is True
    assert "key" not in store.data
    assert await prod_cache.delete("key") is False


@pytest.mark.asyncio
async def test_prod_delete_failure_drops_mirror(prod_cache: CacheHandler, store: FakeStore) -> None:
    await prod_cache.set("key", "value", 60)
    store.fail("delete", "json_get")

    assert await prod_cache.delete("key") is False
    assert await prod_cache.get("key") is None


@pytest.mark.asyncio
async def test_prod_exists_uses_store(prod_cache: CacheHandler, store: FakeStore) -> None:
    await store.json_set("key", "value")

    assert await prod_cache.exists("key")
    assert not await prod_cache.exists("other")

import asyncio

import pytest
from pydantic import ValidationError

from fakes import make_event
from services.snippets.SnippetCache import SnippetCache


@pytest.mark.asyncio
async def test_new_cache_is_empty():
    cache = SnippetCache()

    assert len(cache) == 0
    assert cache.snapshot().last_refresh is None
    assert cache.search("python", None, None, 10) == []


@pytest.mark.asyncio
async def test_replace_swaps_events_and_timestamp_together():
    cache = SnippetCache()
    old = cache.snapshot()

    new = await cache.replace([make_event("e1"), make_event("e2")])

    assert cache.snapshot() is new
    assert [event.id for event in new.events] == ["e1", "e2"]
    assert new.last_refresh is not None
    # a reader holding the old snapshot is not affected
    assert old.events == ()


@pytest.mark.asyncio
async def test_snapshot_is_immutable():
    cache = SnippetCache()
    snapshot = await cache.replace([make_event("e1")])

    with pytest.raises(ValidationError):
        snapshot.events = ()


@pytest.mark.asyncio
async def test_readers_never_see_a_mixed_snapshot():
    cache = SnippetCache()
    seen_cycles: list[set[str]] = []

    async def reader():
        for _ in range(200):
            snapshot = cache.snapshot()
            seen_cycles.append({event.content for event in snapshot.events})
            await asyncio.sleep(0)

    async def writer():
        for cycle in range(50):
            await cache.replace([make_event(f"c{cycle}-{n}", content=str(cycle)) for n in range(5)])
            await asyncio.sleep(0)

    await asyncio.gather(reader(), writer())

    assert all(len(cycles) <= 1 for cycles in seen_cycles)


@pytest.mark.asyncio
async def test_search_applies_filters_in_cache_order_up_to_limit():
    cache = SnippetCache()
    await cache.replace(
        [
            make_event("py1", language="python"),
            make_event("js1", language="javascript"),
            make_event("py2", language="Python"),
            make_event("py3", language="python"),
        ]
    )

    assert [event.id for event in cache.search("python", None, None, 2)] == ["py1", "py2"]
    assert [event.id for event in cache.search("javascript", None, None, 10)] == ["js1"]

"""Tests for the startAfter/startAfterId cursor walker."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from oppboard.sync.cursor import fetch_all_opportunities, walk_cursor


def _page(ids, start_after=None, start_after_id=None, **meta):
    resp = {"opportunities": [{"id": i} for i in ids], "meta": dict(meta)}
    if start_after is not None:
        resp["meta"]["startAfter"] = start_after
    if start_after_id is not None:
        resp["meta"]["startAfterId"] = start_after_id
    return resp


class FakePages:
    """Hands out canned pages and records the cursor each call received."""

    def __init__(self, pages):
        self.pages = list(pages)
        self.calls = []

    async def __call__(self, limit, start_after, start_after_id):
        self.calls.append((limit, start_after, start_after_id))
        return self.pages.pop(0)


@pytest.mark.asyncio
async def test_walk_follows_cursor_until_short_page():
    fetch = FakePages([
        _page(["a", "b"], 1000, "b"),
        _page(["c", "d"], 2000, "d"),
        _page(["e"], 3000, "e"),
    ])
    items = await walk_cursor(fetch, "opportunities", page_size=2)

    assert [i["id"] for i in items] == ["a", "b", "c", "d", "e"]
    assert fetch.calls == [(2, None, None), (2, 1000, "b"), (2, 2000, "d")]


@pytest.mark.asyncio
async def test_walk_stops_on_full_page_without_cursor():
    fetch = FakePages([_page(["a", "b"])])
    items = await walk_cursor(fetch, "opportunities", page_size=2)
    assert len(items) == 2
    assert len(fetch.calls) == 1


@pytest.mark.asyncio
async def test_walk_stops_on_next_page_without_cursor(caplog):
    fetch = FakePages([_page(["a", "b"], nextPage=2)])
    with caplog.at_level(logging.WARNING, logger="oppboard.sync.cursor"):
        items = await walk_cursor(fetch, "opportunities", page_size=2)
    assert len(items) == 2
    assert len(fetch.calls) == 1
    assert "nextPage" in caplog.text


@pytest.mark.asyncio
async def test_walk_stops_on_repeated_cursor():
    fetch = FakePages([
        _page(["a", "b"], 1000, "b"),
        _page(["c", "d"], 1000, "b"),
    ])
    items = await walk_cursor(fetch, "opportunities", page_size=2)
    assert [i["id"] for i in items] == ["a", "b", "c", "d"]
    assert len(fetch.calls) == 2


@pytest.mark.asyncio
async def test_walk_respects_max_pages():
    fetch = FakePages([_page([f"a{n}", f"b{n}"], n, f"b{n}") for n in range(1, 10)])
    items = await walk_cursor(fetch, "opportunities", page_size=2, max_pages=3)
    assert [i["id"] for i in items] == ["a1", "b1", "a2", "b2", "a3", "b3"]
    assert len(fetch.calls) == 3


@pytest.mark.asyncio
async def test_walk_dedupes_ids_across_pages():
    fetch = FakePages([
        _page(["a", "b"], 1000, "b"),
        _page(["b"], 2000, "b2"),
    ])
    items = await walk_cursor(fetch, "opportunities", page_size=2)
    assert [i["id"] for i in items] == ["a", "b"]


@pytest.mark.asyncio
async def test_walk_empty_first_page():
    fetch = FakePages([{"opportunities": [], "meta": {}}])
    assert await walk_cursor(fetch, "opportunities", page_size=100) == []


@pytest.mark.asyncio
async def test_fetch_all_opportunities_passes_cursor_to_search():
    ghl = AsyncMock()
    ghl.opportunities.search.side_effect = [
        _page(["a", "b"], 1000, "b"),
        _page(["c"]),
    ]

    items = await fetch_all_opportunities(ghl, pipeline_id="pipe1", page_size=2)

    assert [i["id"] for i in items] == ["a", "b", "c"]
    second = ghl.opportunities.search.call_args_list[1].kwargs
    assert second == {
        "pipeline_id": "pipe1",
        "limit": 2,
        "start_after": 1000,
        "start_after_id": "b",
    }

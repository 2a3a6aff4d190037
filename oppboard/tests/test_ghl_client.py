"""Wire-level tests for the GHL gateway using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from oppboard.ghl.client import GHLClient, GHLConfig, RemoteApiError

LOCATION_ID = "loc_wire"


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(200, json={})

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(recorder: Recorder) -> GHLClient:
    return GHLClient(
        GHLConfig(token="pit-wire", location_id=LOCATION_ID),
        base_url="https://ghl.test",
        transport=httpx.MockTransport(recorder),
    )


def _body(request: httpx.Request) -> dict:
    return json.loads(request.content)


@pytest.mark.asyncio
async def test_auth_and_version_headers():
    rec = Recorder(httpx.Response(200, json={"pipelines": []}))
    async with make_client(rec) as ghl:
        resp = await ghl.opportunities.pipelines()

    assert resp == {"pipelines": []}
    req = rec.last
    assert req.method == "GET"
    assert req.url.path == "/opportunities/pipelines"
    assert req.url.params["locationId"] == LOCATION_ID
    assert req.headers["Authorization"] == "Bearer pit-wire"
    assert req.headers["Version"] == "2021-07-28"


@pytest.mark.asyncio
async def test_search_sends_cursor_and_drops_empty_filters():
    rec = Recorder()
    async with make_client(rec) as ghl:
        await ghl.opportunities.search(limit=100, start_after=1700000000000, start_after_id="opp_9")

    params = rec.last.url.params
    assert params["location_id"] == LOCATION_ID
    assert params["limit"] == "100"
    assert params["startAfter"] == "1700000000000"
    assert params["startAfterId"] == "opp_9"
    assert "pipeline_id" not in params
    assert "status" not in params


@pytest.mark.asyncio
async def test_create_adds_location_id():
    rec = Recorder(httpx.Response(201, json={"opportunity": {"id": "new1"}}))
    async with make_client(rec) as ghl:
        resp = await ghl.opportunities.create({"name": "Deal", "pipelineId": "P1"})

    assert resp["opportunity"]["id"] == "new1"
    assert rec.last.method == "POST"
    assert _body(rec.last) == {"locationId": LOCATION_ID, "name": "Deal", "pipelineId": "P1"}


@pytest.mark.asyncio
async def test_update_status_route():
    rec = Recorder()
    async with make_client(rec) as ghl:
        await ghl.opportunities.update_status("opp1", "lost")
        with pytest.raises(ValueError):
            await ghl.opportunities.update_status("opp1", "closed")

    assert len(rec.requests) == 1
    assert rec.last.method == "PUT"
    assert rec.last.url.path == "/opportunities/opp1/status"
    assert _body(rec.last) == {"status": "lost"}


@pytest.mark.asyncio
async def test_remove_followers_sends_delete_body():
    rec = Recorder()
    async with make_client(rec) as ghl:
        await ghl.opportunities.remove_followers("opp1", ["u1", "u2"])
        await ghl.opportunities.remove_followers("opp1", [], remove_all=True)

    first, second = rec.requests
    assert first.method == "DELETE"
    assert first.url.path == "/opportunities/opp1/followers"
    assert _body(first) == {"followers": ["u1", "u2"]}
    assert "isRemoveAllFollowers" not in first.url.params
    assert second.url.params["isRemoveAllFollowers"] == "true"


@pytest.mark.asyncio
async def test_custom_field_routes_are_location_scoped():
    rec = Recorder()
    async with make_client(rec) as ghl:
        await ghl.custom_fields.list("contact")
        await ghl.custom_fields.get("folder_1")

    listed, fetched = rec.requests
    assert listed.url.path == f"/locations/{LOCATION_ID}/customFields"
    assert listed.url.params["model"] == "contact"
    assert fetched.url.path == f"/locations/{LOCATION_ID}/customFields/folder_1"


@pytest.mark.asyncio
async def test_directory_routes():
    rec = Recorder()
    async with make_client(rec) as ghl:
        await ghl.contacts.list(query="jane")
        await ghl.users.list()
        await ghl.tags.list()

    contacts, users, tags = rec.requests
    assert contacts.url.path == "/contacts/"
    assert contacts.url.params["query"] == "jane"
    assert users.url.params["locationId"] == LOCATION_ID
    assert tags.url.path == f"/locations/{LOCATION_ID}/tags"


@pytest.mark.asyncio
async def test_non_2xx_raises_remote_api_error():
    rec = Recorder(httpx.Response(401, json={"message": "Invalid JWT"}))
    async with make_client(rec) as ghl:
        with pytest.raises(RemoteApiError) as exc_info:
            await ghl.opportunities.get("opp1")

    err = exc_info.value
    assert err.status_code == 401
    assert "Invalid JWT" in err.body
    assert err.method == "GET"
    assert err.path == "/opportunities/opp1"


@pytest.mark.asyncio
async def test_empty_response_body_is_empty_dict():
    rec = Recorder(httpx.Response(204))
    async with make_client(rec) as ghl:
        assert await ghl.opportunities.delete("opp1") == {}


@pytest.mark.asyncio
async def test_client_requires_context():
    ghl = GHLClient(GHLConfig(token="t", location_id=LOCATION_ID))
    with pytest.raises(RuntimeError):
        ghl.opportunities

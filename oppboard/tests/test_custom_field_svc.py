"""Tests for the custom field cache and folder resolution."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from oppboard.ghl.client import RemoteApiError
from oppboard.models.custom_field import CustomField
from oppboard.models.location import Location
from oppboard.services import custom_field_svc
from oppboard.services.errors import GHLNotLinkedError
from oppboard.sync.folders import Folder, resolve_folders, unique_parent_ids

LOCATION_ID = "loc_test_123"

FIELDS = [
    {"id": "cf_b", "name": "Budget", "fieldKey": "opportunity.budget", "dataType": "MONETORY", "position": 1, "parentId": "folder_1"},
    {"id": "cf_a", "name": "Tier", "fieldKey": "opportunity.tier", "dataType": "SINGLE_OPTIONS", "position": 0,
     "picklistOptions": ["gold", "silver"], "parentId": "folder_1"},
    {"id": "cf_c", "name": "Notes", "fieldKey": "opportunity.notes", "dataType": "TEXT", "position": 2},
]


def _folder_resp(folder_id, name, position=0, document_type="folder"):
    return {"customField": {"id": folder_id, "name": name, "position": position, "documentType": document_type}}


def factory_for(ghl):
    return lambda config: ghl


def test_unique_parent_ids_sorted():
    fields = [{"parentId": "b"}, {"parentId": "a"}, {"parentId": "b"}, {"parentId": ""}, {}]
    assert unique_parent_ids(fields) == ["a", "b"]


@pytest.mark.asyncio
async def test_resolve_folders_skips_failures_and_non_folders(ghl):
    responses = {
        "f_ok": _folder_resp("f_ok", "Deal Info", 3),
        "f_field": _folder_resp("f_field", "Not a folder", document_type="field"),
    }

    async def get(field_id):
        if field_id == "f_err":
            raise RemoteApiError(404, "not found")
        return responses[field_id]

    ghl.custom_fields.get.side_effect = get
    fields = [{"parentId": "f_ok"}, {"parentId": "f_err"}, {"parentId": "f_field"}]

    folders = await resolve_folders(ghl, fields)

    assert folders == {"f_ok": Folder(id="f_ok", name="Deal Info", position=3)}
    assert ghl.custom_fields.get.await_count == 3


@pytest.mark.asyncio
async def test_resolve_folders_propagates_programming_errors(ghl):
    ghl.custom_fields.get.side_effect = TypeError("unexpected argument")

    with pytest.raises(TypeError):
        await resolve_folders(ghl, [{"parentId": "f_ok"}])


@pytest.mark.asyncio
async def test_cache_miss_fetches_and_persists(db: AsyncSession, location: Location, ghl):
    ghl.custom_fields.list.return_value = {"customFields": FIELDS}
    ghl.custom_fields.get.return_value = _folder_resp("folder_1", "Deal Info", 5)

    view = await custom_field_svc.get_custom_fields(
        db, LOCATION_ID, "opportunity", client_factory=factory_for(ghl)
    )

    ghl.custom_fields.list.assert_awaited_once_with("opportunity")
    assert [f.id for f in view.custom_fields] == ["cf_a", "cf_b", "cf_c"]
    tier = view.custom_fields[0]
    assert tier.parent_id == "folder_1"
    assert tier.parent_name == "Deal Info"
    assert tier.picklist_options == ["gold", "silver"]
    assert view.custom_fields[2].parent_id == ""
    assert [(f.id, f.name) for f in view.folders] == [("folder_1", "Deal Info")]


@pytest.mark.asyncio
async def test_usable_cache_skips_remote(db: AsyncSession, location: Location, ghl):
    ghl.custom_fields.list.return_value = {"customFields": FIELDS}
    ghl.custom_fields.get.return_value = _folder_resp("folder_1", "Deal Info")
    factory = factory_for(ghl)

    first = await custom_field_svc.get_custom_fields(db, LOCATION_ID, client_factory=factory)
    second = await custom_field_svc.get_custom_fields(db, LOCATION_ID, client_factory=factory)

    assert ghl.custom_fields.list.await_count == 1
    assert second == first


@pytest.mark.asyncio
async def test_force_refresh_sweeps_deleted_fields(db: AsyncSession, location: Location, ghl):
    ghl.custom_fields.list.return_value = {"customFields": FIELDS}
    ghl.custom_fields.get.return_value = _folder_resp("folder_1", "Deal Info")
    factory = factory_for(ghl)
    await custom_field_svc.get_custom_fields(db, LOCATION_ID, client_factory=factory)

    ghl.custom_fields.list.return_value = {"customFields": [FIELDS[2]]}
    view = await custom_field_svc.get_custom_fields(
        db, LOCATION_ID, force_refresh=True, client_factory=factory
    )

    assert [f.id for f in view.custom_fields] == ["cf_c"]
    assert view.folders == []
    cached = await custom_field_svc.list_cached(db, LOCATION_ID, "opportunity")
    assert [c.ghl_id for c in cached] == ["cf_c"]


@pytest.mark.asyncio
async def test_sweep_leaves_other_model_alone(db: AsyncSession, location: Location, ghl):
    db.add(CustomField(location_id=LOCATION_ID, ghl_id="contact_cf", name="Birthday", field_model="contact"))
    await db.commit()
    ghl.custom_fields.list.return_value = {"customFields": [FIELDS[2]]}

    await custom_field_svc.get_custom_fields(
        db, LOCATION_ID, "opportunity", force_refresh=True, client_factory=factory_for(ghl)
    )

    contact_fields = await custom_field_svc.list_cached(db, LOCATION_ID, "contact")
    assert [c.ghl_id for c in contact_fields] == ["contact_cf"]


@pytest.mark.asyncio
async def test_unresolvable_parent_becomes_top_level(db: AsyncSession, location: Location, ghl):
    ghl.custom_fields.list.return_value = {"customFields": FIELDS[:2]}
    ghl.custom_fields.get.side_effect = RemoteApiError(500, "boom")

    view = await custom_field_svc.get_custom_fields(
        db, LOCATION_ID, client_factory=factory_for(ghl)
    )

    assert {f.parent_id for f in view.custom_fields} == {""}
    assert {f.parent_name for f in view.custom_fields} == {""}
    assert view.folders == []
    # The remote parentId stays stored, so the cache is not trusted yet
    cached = await custom_field_svc.list_cached(db, LOCATION_ID, "opportunity")
    assert {c.parent_id for c in cached} == {"folder_1"}
    assert not custom_field_svc.cache_is_usable(cached)


@pytest.mark.asyncio
async def test_failed_folder_fetch_is_retried_on_next_read(db: AsyncSession, location: Location, ghl):
    ghl.custom_fields.list.return_value = {"customFields": FIELDS}
    ghl.custom_fields.get.side_effect = [
        RemoteApiError(503, "Service Unavailable"),
        _folder_resp("folder_1", "Deal Info"),
    ]
    factory = factory_for(ghl)

    first = await custom_field_svc.get_custom_fields(db, LOCATION_ID, client_factory=factory)
    second = await custom_field_svc.get_custom_fields(db, LOCATION_ID, client_factory=factory)

    assert first.folders == []
    assert ghl.custom_fields.list.await_count == 2
    assert [(f.id, f.name) for f in second.folders] == [("folder_1", "Deal Info")]
    tier = next(f for f in second.custom_fields if f.id == "cf_a")
    assert (tier.parent_id, tier.parent_name) == ("folder_1", "Deal Info")

    # Folders resolved, so a third read is served from the cache
    await custom_field_svc.get_custom_fields(db, LOCATION_ID, client_factory=factory)
    assert ghl.custom_fields.list.await_count == 2


@pytest.mark.asyncio
async def test_refresh_is_deterministic_across_orderings(db: AsyncSession, location: Location, ghl):
    ghl.custom_fields.get.return_value = _folder_resp("folder_1", "Deal Info")
    factory = factory_for(ghl)

    ghl.custom_fields.list.return_value = {"customFields": FIELDS}
    first = await custom_field_svc.get_custom_fields(db, LOCATION_ID, force_refresh=True, client_factory=factory)
    ghl.custom_fields.list.return_value = {"customFields": list(reversed(FIELDS))}
    second = await custom_field_svc.get_custom_fields(db, LOCATION_ID, force_refresh=True, client_factory=factory)

    assert first == second


def test_cache_is_usable_rules():
    field = CustomField(ghl_id="cf", parent_id="", is_folder=False)
    foldered = CustomField(ghl_id="cf2", parent_id="f1", is_folder=False)
    folder = CustomField(ghl_id="f1", parent_id="", is_folder=True)

    assert not custom_field_svc.cache_is_usable([])
    assert not custom_field_svc.cache_is_usable([folder])
    assert custom_field_svc.cache_is_usable([field])
    assert not custom_field_svc.cache_is_usable([foldered])
    assert custom_field_svc.cache_is_usable([foldered, folder])


@pytest.mark.asyncio
async def test_cache_miss_without_credential(db: AsyncSession, ghl):
    with pytest.raises(GHLNotLinkedError):
        await custom_field_svc.get_custom_fields(db, "unlinked_loc", client_factory=factory_for(ghl))
    ghl.custom_fields.list.assert_not_awaited()

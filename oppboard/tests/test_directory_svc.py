"""Tests for the contact/user/tag lookups."""

from __future__ import annotations

import pytest

from oppboard.services import directory_svc


@pytest.mark.asyncio
async def test_list_contacts_display_names(ghl):
    ghl.contacts.list.return_value = {
        "contacts": [
            {"id": "c1", "contactName": "Preferred", "firstName": "A", "lastName": "B"},
            {"id": "c2", "firstName": "Only"},
            {"id": "c3"},
            "junk",
        ],
    }
    result = await directory_svc.list_contacts(ghl, query=None)

    assert [c.name for c in result.contacts] == ["Preferred", "Only", "Unnamed Contact"]
    assert result.total == 3


@pytest.mark.asyncio
async def test_list_users(ghl):
    ghl.users.list.return_value = {"users": [{"id": "u1", "firstName": "Sam", "lastName": "Lee", "email": "s@example.com"}]}
    users = await directory_svc.list_users(ghl)
    assert users[0].id == "u1"
    assert users[0].name == "Sam Lee"
    assert users[0].email == "s@example.com"


@pytest.mark.asyncio
async def test_list_tags_handles_missing_key(ghl):
    ghl.tags.list.return_value = {}
    assert await directory_svc.list_tags(ghl) == []

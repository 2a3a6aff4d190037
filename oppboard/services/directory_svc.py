"""Pass-through lookups for the board's contact, user and tag pickers."""

from __future__ import annotations

from ..schemas.directory import ContactList, ContactSummary, UserSummary
from ..sync.field_mapper import contact_display_name, user_display_name


async def list_contacts(ghl, query: str | None = None) -> ContactList:
    resp = await ghl.contacts.list(query=query)
    raw = [c for c in resp.get("contacts") or [] if isinstance(c, dict)]
    contacts = [
        ContactSummary(
            id=c.get("id") or "",
            name=contact_display_name(c),
            email=c.get("email") or "",
            phone=c.get("phone") or "",
        )
        for c in raw
    ]
    return ContactList(contacts=contacts, total=resp.get("total") or len(contacts))


async def list_users(ghl) -> list[UserSummary]:
    resp = await ghl.users.list()
    return [
        UserSummary(
            id=u.get("id") or "",
            name=user_display_name(u),
            email=u.get("email") or "",
            phone=u.get("phone") or "",
        )
        for u in resp.get("users") or []
        if isinstance(u, dict)
    ]


async def list_tags(ghl) -> list[str]:
    resp = await ghl.tags.list()
    return [t["name"] for t in resp.get("tags") or [] if isinstance(t, dict) and t.get("name")]

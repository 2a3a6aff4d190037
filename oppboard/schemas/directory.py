"""Contact, user and tag lookups shown in board pickers."""

from __future__ import annotations

from pydantic import BaseModel


class ContactSummary(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: str = ""


class ContactList(BaseModel):
    contacts: list[ContactSummary]
    total: int


class UserSummary(BaseModel):
    id: str
    name: str
    email: str = ""
    phone: str = ""

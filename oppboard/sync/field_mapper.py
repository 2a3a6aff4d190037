"""Field mapping between GHL payloads and local rows.

GHL returns the same logical value in several shapes depending on the
endpoint. Everything here collapses those shapes at the boundary so the rest
of the code only ever sees the canonical one.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

# GHL opportunity key -> (local column, default when missing or null)
OPPORTUNITY_FIELD_MAP: dict[str, tuple[str, Any]] = {
    "name": ("name", ""),
    "monetaryValue": ("monetary_value", 0),
    "pipelineId": ("pipeline_id", None),
    "pipelineStageId": ("pipeline_stage_id", None),
    "assignedTo": ("assigned_to", ""),
    "status": ("status", "open"),
    "source": ("source", ""),
    "contactId": ("contact_id", ""),
    "followers": ("followers", []),
    "lastStatusChangeAt": ("last_status_change_at", ""),
    "lastStageChangeAt": ("last_stage_change_at", ""),
    "lastActionDate": ("last_action_date", ""),
    "isAttribute": ("is_attribute", False),
    "internalSource": ("internal_source", {}),
    "lostReasonId": ("lost_reason_id", None),
    "createdAt": ("ghl_created_at", ""),
    "updatedAt": ("ghl_updated_at", ""),
}

CONTACT_SNAPSHOT_DEFAULTS: dict[str, Any] = {
    "id": "",
    "name": "",
    "companyName": "",
    "email": "",
    "phone": "",
    "tags": [],
    "followers": [],
}

# Nested contact key -> legacy flat column on old rows
LEGACY_CONTACT_COLUMNS: dict[str, str] = {
    "id": "contact_id",
    "name": "contact_name",
    "companyName": "contact_company_name",
    "email": "contact_email",
    "phone": "contact_phone",
    "tags": "contact_tags",
    "followers": "contact_followers",
}

CustomFieldShape = Literal["canonical", "echoed", "unknown"]


# ── Custom field values ──────────────────────────────────────────────────

def custom_field_shape(item: dict[str, Any]) -> CustomFieldShape:
    """Tell which representation a custom field value entry uses.

    ``canonical`` is ``{id, key, field_value}`` (what we write);
    ``echoed`` is ``{id, fieldValueString|fieldValueArray, type}`` (what
    search/get return).
    """
    if "field_value" in item:
        return "canonical"
    if "fieldValueArray" in item or "fieldValueString" in item:
        return "echoed"
    return "unknown"


def _first_present(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def normalize_custom_field_value(item: dict[str, Any]) -> dict[str, Any]:
    """Collapse any custom field value entry to ``{id, key, field_value}``.

    Normalizing a canonical entry returns an equal entry.
    """
    field_value = _first_present(item, "field_value", "fieldValueArray", "fieldValueString")
    return {
        "id": item.get("id") or "",
        "key": item.get("key") or item.get("fieldKey") or "",
        "field_value": "" if field_value is None else field_value,
    }


def normalize_custom_fields(payload: Any) -> list[dict[str, Any]]:
    if not payload or not isinstance(payload, list):
        return []
    return [normalize_custom_field_value(item) for item in payload if isinstance(item, dict)]


# ── Contact snapshot ─────────────────────────────────────────────────────

def _flat_contact(row: Any) -> dict[str, Any]:
    """Read the legacy flat contact columns off a stored row."""
    return {key: getattr(row, column, None) for key, column in LEGACY_CONTACT_COLUMNS.items()}


def build_contact_snapshot(
    *,
    nested: dict[str, Any] | None = None,
    flat: dict[str, Any] | None = None,
    override: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build ``{id, name, companyName, email, phone, tags, followers}``.

    Per key: an explicit override (key present, even if empty) wins, then a
    non-empty nested value, then a non-empty legacy flat value.
    """
    nested = nested if isinstance(nested, dict) else {}
    flat = flat or {}
    override = override or {}

    snapshot: dict[str, Any] = {}
    for key, default in CONTACT_SNAPSHOT_DEFAULTS.items():
        if key in override and override[key] is not None:
            value = override[key]
        else:
            value = nested.get(key) or flat.get(key) or default
        snapshot[key] = list(value) if isinstance(value, list) else value
    return snapshot


def normalize_stored_contact(row: Any) -> dict[str, Any]:
    """Contact snapshot for a stored row, folding in legacy flat columns.

    The row itself is not modified.
    """
    return build_contact_snapshot(nested=row.contact, flat=_flat_contact(row))


def contact_from_remote(ghl_opp: dict[str, Any]) -> dict[str, Any]:
    """Contact snapshot from a GHL opportunity payload."""
    nested = ghl_opp.get("contact") if isinstance(ghl_opp.get("contact"), dict) else {}
    return build_contact_snapshot(nested=nested, flat={"id": ghl_opp.get("contactId")})


def form_contact_override(form: Any) -> dict[str, Any]:
    """Contact keys explicitly submitted on an opportunity form."""
    override: dict[str, Any] = {}
    if form.has("contact_name"):
        override["name"] = form.contact_name
    if form.has("contact_email"):
        override["email"] = form.contact_email
    if form.has("contact_phone"):
        override["phone"] = form.contact_phone
    if form.has("contact_tags"):
        override["tags"] = form.contact_tags
    return override


def split_contact_name(name: str) -> tuple[str, str]:
    parts = name.strip().split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def contact_update_payload(form: Any) -> dict[str, Any]:
    """GHL contact update body for the contact fields present on a form."""
    payload: dict[str, Any] = {}
    if form.contact_name:
        first, last = split_contact_name(form.contact_name)
        payload["firstName"] = first
        payload["lastName"] = last
        payload["name"] = form.contact_name
    if form.has("contact_email") and form.contact_email is not None:
        payload["email"] = form.contact_email
    if form.has("contact_phone") and form.contact_phone is not None:
        payload["phone"] = form.contact_phone
    if form.has("contact_tags") and form.contact_tags is not None:
        payload["tags"] = form.contact_tags
    return payload


# ── Opportunities ────────────────────────────────────────────────────────

def ghl_opportunity_to_local(ghl_data: dict[str, Any]) -> dict[str, Any]:
    """Convert a GHL opportunity payload to local column values."""
    result: dict[str, Any] = {}
    for ghl_key, (local_key, default) in OPPORTUNITY_FIELD_MAP.items():
        value = ghl_data.get(ghl_key)
        if value is None:
            value = default
        if isinstance(value, (list, dict)):
            value = type(value)(value)
        result[local_key] = value
    result["contact"] = contact_from_remote(ghl_data)
    result["custom_fields"] = normalize_custom_fields(ghl_data.get("customFields"))
    return result


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def opportunity_to_dict(opp: Any) -> dict[str, Any]:
    """Serialize a stored Opportunity for the board, contact normalized."""
    return {
        "id": opp.ghl_id,
        "ghlId": opp.ghl_id,
        "locationId": opp.location_id,
        "name": opp.name,
        "monetaryValue": opp.monetary_value,
        "pipelineId": opp.pipeline_id,
        "pipelineStageId": opp.pipeline_stage_id,
        "assignedTo": opp.assigned_to,
        "status": opp.status,
        "source": opp.source,
        "contactId": opp.contact_id or (opp.contact or {}).get("id", ""),
        "contact": normalize_stored_contact(opp),
        "followers": list(opp.followers or []),
        "additionalContacts": list(opp.additional_contacts or []),
        "customFields": normalize_custom_fields(opp.custom_fields),
        "lastStatusChangeAt": opp.last_status_change_at,
        "lastStageChangeAt": opp.last_stage_change_at,
        "lastActionDate": opp.last_action_date,
        "isAttribute": opp.is_attribute,
        "internalSource": opp.internal_source or {},
        "lostReasonId": opp.lost_reason_id,
        "ghlCreatedAt": opp.ghl_created_at,
        "ghlUpdatedAt": opp.ghl_updated_at,
        "syncedAt": _iso(opp.synced_at),
    }


# ── Pipelines ────────────────────────────────────────────────────────────

def ghl_stage_to_local(stage: dict[str, Any], index: int) -> dict[str, Any]:
    position = stage.get("position")
    return {
        "id": stage.get("id") or "",
        "name": stage.get("name") or "",
        "position": position if isinstance(position, int) else index,
        "showInFunnel": stage.get("showInFunnel", True),
        "showInPieChart": stage.get("showInPieChart", True),
    }


def ghl_pipeline_to_local(ghl_data: dict[str, Any]) -> dict[str, Any]:
    stages = ghl_data.get("stages") or []
    return {
        "name": ghl_data.get("name") or "",
        "stages": [
            ghl_stage_to_local(stage, i)
            for i, stage in enumerate(stages)
            if isinstance(stage, dict)
        ],
    }


# ── Custom field definitions ─────────────────────────────────────────────

def ghl_custom_field_to_local(cf: dict[str, Any], model: str) -> dict[str, Any]:
    position = cf.get("position")
    return {
        "name": cf.get("name") or "",
        "field_key": cf.get("fieldKey") or "",
        "data_type": cf.get("dataType") or "",
        "placeholder": cf.get("placeholder") or "",
        "position": position if isinstance(position, int) else 0,
        "picklist_options": list(cf.get("picklistOptions") or []),
        "picklist_image_options": list(cf.get("picklistImageOptions") or []),
        "allow_custom_option": bool(cf.get("allowCustomOption")),
        "is_multi_file_allowed": bool(cf.get("isMultiFileAllowed")),
        "max_file_limit": cf.get("maxFileLimit") or 0,
        "is_required": bool(cf.get("isRequired")),
        "field_model": model,
        "parent_id": cf.get("parentId") or "",
        "parent_name": "",
        "is_folder": False,
    }


# ── Directory lookups ────────────────────────────────────────────────────

def contact_display_name(contact: dict[str, Any]) -> str:
    full = f"{contact.get('firstName') or ''} {contact.get('lastName') or ''}".strip()
    return contact.get("contactName") or full or "Unnamed Contact"


def user_display_name(user: dict[str, Any]) -> str:
    full = f"{user.get('firstName') or ''} {user.get('lastName') or ''}".strip()
    return user.get("name") or full or user.get("email") or "Unknown"

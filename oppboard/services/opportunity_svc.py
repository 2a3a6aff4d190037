"""Opportunity service - local listing plus GHL-first create/update/delete.

Writes go to GHL first and are then reconciled into the local mirror. Only
the primary remote call of each write is fatal; the follow-up steps (contact
update, follower sync, re-fetch) degrade to warnings.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..ghl.opportunities import VALID_STATUSES
from ..models.location import Location
from ..models.opportunity import Opportunity
from ..schemas.opportunity import (
    OpportunityFilters,
    OpportunityForm,
    OpportunityPage,
    PageMeta,
    Pagination,
    StagePages,
    WriteOutcome,
)
from ..sync.field_mapper import (
    build_contact_snapshot,
    contact_update_payload,
    form_contact_override,
    ghl_opportunity_to_local,
    normalize_custom_fields,
    normalize_stored_contact,
    opportunity_to_dict,
)
from ..sync.merge import MergeContext, merge_update
from ..sync.upsert import upsert_rows
from .errors import REMOTE_ERRORS, RecordNotFound, classify_remote_error
from .pipeline_svc import get_pipeline

log = logging.getLogger(__name__)

# UI sort key -> Opportunity column
SORT_FIELD_ALIASES: dict[str, str] = {
    "updatedOn": "ghl_updated_at",
    "createdOn": "ghl_created_at",
    "lastStageChangeDate": "last_stage_change_at",
    "lastStatusChangeDate": "last_status_change_at",
    "opportunityName": "name",
    "stage": "pipeline_stage_id",
    "status": "status",
    "opportunitySource": "source",
    "opportunityValue": "monetary_value",
}
DEFAULT_SORT_COLUMN = "ghl_updated_at"


async def _get_row(db: AsyncSession, location_id: str, ghl_id: str) -> Opportunity | None:
    stmt = (
        select(Opportunity)
        .where(Opportunity.location_id == location_id, Opportunity.ghl_id == ghl_id)
        .execution_options(populate_existing=True)
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def _require_row(db: AsyncSession, location_id: str, ghl_id: str) -> Opportunity:
    row = await _get_row(db, location_id, ghl_id)
    if row is None:
        raise RecordNotFound("Opportunity", ghl_id)
    return row


# ── Listing ────────────────────────────────────────────────────────────────

def resolve_sort_column(sort_field: str | None):
    """Map a UI sort key (or a raw column name) to a sortable column."""
    columns = Opportunity.__table__.c
    name = SORT_FIELD_ALIASES.get(sort_field or "", sort_field or DEFAULT_SORT_COLUMN)
    if name not in columns:
        name = DEFAULT_SORT_COLUMN
    return columns[name]


def _filter_clauses(location_id: str, filters: OpportunityFilters) -> list:
    clauses = [Opportunity.location_id == location_id]
    if filters.pipeline_id:
        clauses.append(Opportunity.pipeline_id == filters.pipeline_id)
    if filters.pipeline_stage_id:
        clauses.append(Opportunity.pipeline_stage_id == filters.pipeline_stage_id)
    if filters.status and filters.status != "all":
        clauses.append(Opportunity.status == filters.status)
    if filters.search:
        term = filters.search
        clauses.append(
            or_(
                Opportunity.name.icontains(term, autoescape=True),
                Opportunity.contact["name"].as_string().icontains(term, autoescape=True),
                Opportunity.contact["email"].as_string().icontains(term, autoescape=True),
                # Rows written before the nested contact existed
                Opportunity.contact_name.icontains(term, autoescape=True),
                Opportunity.contact_email.icontains(term, autoescape=True),
            )
        )
    return clauses


async def _query_page(
    db: AsyncSession,
    clauses: list,
    *,
    page: int,
    limit: int,
    sort_column,
    descending: bool,
) -> OpportunityPage:
    total = (
        await db.execute(select(func.count()).select_from(Opportunity).where(*clauses))
    ).scalar_one()

    order = sort_column.desc() if descending else sort_column.asc()
    stmt = (
        select(Opportunity)
        .where(*clauses)
        .order_by(order, Opportunity.ghl_id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = (await db.execute(stmt)).scalars().all()
    return OpportunityPage(
        opportunities=[opportunity_to_dict(r) for r in rows],
        meta=PageMeta(total=total, page=page, limit=limit, total_pages=math.ceil(total / limit)),
    )


async def list_opportunities(
    db: AsyncSession,
    location: Location,
    filters: OpportunityFilters,
    pagination: Pagination,
) -> OpportunityPage | StagePages:
    """List mirrored opportunities; never calls GHL.

    Per-stage mode (a location preference) needs a pipeline filter and runs
    one query per stage of that pipeline; otherwise a single global page is
    returned.
    """
    limit = pagination.limit or location.page_size or settings.default_page_size
    sort_column = resolve_sort_column(pagination.sort_field or location.sort_field)
    descending = (pagination.sort_order or location.sort_order or "desc") != "asc"

    pipeline = None
    if location.pagination_per_stage and filters.pipeline_id and not filters.pipeline_stage_id:
        pipeline = await get_pipeline(db, location.location_id, filters.pipeline_id)

    if pipeline is None:
        return await _query_page(
            db,
            _filter_clauses(location.location_id, filters),
            page=pagination.page,
            limit=limit,
            sort_column=sort_column,
            descending=descending,
        )

    # Stage queries are not issued concurrently: one AsyncSession runs one
    # statement at a time, so stages go in sequence.
    stages: dict[str, OpportunityPage] = {}
    for stage_id in pipeline.stage_ids():
        stage_filters = filters.model_copy(update={"pipeline_stage_id": stage_id})
        stages[stage_id] = await _query_page(
            db,
            _filter_clauses(location.location_id, stage_filters),
            page=max(1, pagination.stage_pages.get(stage_id, 1)),
            limit=limit,
            sort_column=sort_column,
            descending=descending,
        )
    return StagePages(stages=stages)


async def get_opportunity(db: AsyncSession, location_id: str, ghl_id: str) -> dict[str, Any]:
    return opportunity_to_dict(await _require_row(db, location_id, ghl_id))


# ── Create ─────────────────────────────────────────────────────────────────

def build_create_payload(location_id: str, form: OpportunityForm) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "locationId": location_id,
        "pipelineId": form.pipeline_id,
        "name": form.name,
        "status": form.status or "open",
        "contactId": form.contact_id,
    }
    if form.pipeline_stage_id:
        payload["pipelineStageId"] = form.pipeline_stage_id
    if form.monetary_value is not None:
        payload["monetaryValue"] = form.monetary_value
    if form.assigned_to:
        payload["assignedTo"] = form.assigned_to
    if form.source:
        payload["source"] = form.source
    if form.custom_fields:
        payload["customFields"] = normalize_custom_fields(form.custom_fields)
    return payload


async def create_opportunity(
    db: AsyncSession, ghl, location_id: str, form: OpportunityForm
) -> WriteOutcome:
    """Create in GHL, then best-effort contact/follower updates, then mirror locally."""
    if not form.name or not form.pipeline_id:
        raise ValueError("name and pipelineId are required")

    try:
        resp = await ghl.opportunities.create(build_create_payload(location_id, form))
    except REMOTE_ERRORS as exc:
        raise classify_remote_error(exc, location_id) from exc
    created = resp.get("opportunity") or {}
    ghl_id = created.get("id")
    if not ghl_id:
        raise ValueError("GHL create response did not include an opportunity id")

    warnings: list[str] = []

    contact_id = created.get("contactId") or form.contact_id
    contact_payload = contact_update_payload(form)
    if contact_id and contact_payload:
        try:
            await ghl.contacts.update(contact_id, contact_payload)
        except REMOTE_ERRORS as exc:
            log.error("Contact update failed after creating opportunity %s: %s", ghl_id, exc)
            warnings.append(f"Contact update failed: {exc}")

    if form.followers:
        try:
            await ghl.opportunities.add_followers(ghl_id, form.followers)
        except REMOTE_ERRORS as exc:
            log.error("Adding followers failed for opportunity %s: %s", ghl_id, exc)
            warnings.append(f"Adding followers failed: {exc}")

    row = {
        "location_id": location_id,
        "ghl_id": ghl_id,
        **ghl_opportunity_to_local(created),
        "synced_at": datetime.now(timezone.utc),
    }
    override = form_contact_override(form)
    override["id"] = contact_id or ""
    row["contact"] = build_contact_snapshot(nested=row["contact"], override=override)
    row["contact_id"] = contact_id or ""
    row["followers"] = list(form.followers or [])
    row["additional_contacts"] = list(form.additional_contacts or [])
    if form.custom_fields:
        row["custom_fields"] = normalize_custom_fields(form.custom_fields)

    await upsert_rows(db, Opportunity, [row])
    await db.commit()

    stored = await _require_row(db, location_id, ghl_id)
    log.info("Created opportunity %s for location %s", ghl_id, location_id)
    return WriteOutcome(opportunity=opportunity_to_dict(stored), warnings=warnings)


# ── Update ─────────────────────────────────────────────────────────────────

def build_update_payload(
    form: OpportunityForm, prefetched: dict[str, Any] | None
) -> dict[str, Any]:
    """GHL update body from the submitted keys only.

    Pipeline and stage come from the form when submitted, otherwise from the
    remote copy fetched just before the update, never from the local mirror.
    """
    payload: dict[str, Any] = {}
    if form.has("name"):
        payload["name"] = form.name
    if form.has("contact_id"):
        payload["contactId"] = form.contact_id
    if form.has("status"):
        payload["status"] = form.status
    if form.has("monetary_value"):
        payload["monetaryValue"] = form.monetary_value
    if form.has("assigned_to"):
        payload["assignedTo"] = form.assigned_to
    if form.has("custom_fields"):
        payload["customFields"] = normalize_custom_fields(form.custom_fields)

    remote = prefetched or {}
    if form.has("pipeline_id"):
        payload["pipelineId"] = form.pipeline_id
    elif remote.get("pipelineId"):
        payload["pipelineId"] = remote["pipelineId"]
    if form.has("pipeline_stage_id"):
        payload["pipelineStageId"] = form.pipeline_stage_id
    elif remote.get("pipelineStageId"):
        payload["pipelineStageId"] = remote["pipelineStageId"]
    return payload


def diff_followers(current: list[str], submitted: list[str]) -> tuple[list[str], list[str]]:
    """Return (to_add, to_remove), each in the order of its source list."""
    current_set = set(current)
    submitted_set = set(submitted)
    to_add = [f for f in dict.fromkeys(submitted) if f not in current_set]
    to_remove = [f for f in dict.fromkeys(current) if f not in submitted_set]
    return to_add, to_remove


async def _fetch_remote(ghl, ghl_id: str, step: str) -> dict[str, Any] | None:
    try:
        resp = await ghl.opportunities.get(ghl_id)
    except REMOTE_ERRORS as exc:
        log.warning("Could not %s GHL opportunity %s: %s", step, ghl_id, exc)
        return None
    opp = resp.get("opportunity") if isinstance(resp, dict) else None
    return opp if isinstance(opp, dict) else None


async def sync_followers(
    ghl, ghl_id: str, current: list[str], submitted: list[str]
) -> list[str]:
    """Issue add/remove calls for the follower delta only; returns warnings."""
    warnings: list[str] = []
    to_add, to_remove = diff_followers(current, submitted)
    if to_remove:
        try:
            await ghl.opportunities.remove_followers(ghl_id, to_remove)
        except REMOTE_ERRORS as exc:
            log.error("Removing followers %s from %s failed: %s", to_remove, ghl_id, exc)
            warnings.append(f"Removing followers failed: {exc}")
    if to_add:
        try:
            await ghl.opportunities.add_followers(ghl_id, to_add)
        except REMOTE_ERRORS as exc:
            log.error("Adding followers %s to %s failed: %s", to_add, ghl_id, exc)
            warnings.append(f"Adding followers failed: {exc}")
    return warnings


async def update_opportunity(
    db: AsyncSession, ghl, location_id: str, ghl_id: str, form: OpportunityForm
) -> WriteOutcome:
    """Update one opportunity in GHL and reconcile the result locally.

    Steps: pre-fetch (best-effort), opportunity update (fatal), contact
    update and follower delta (warnings), re-fetch (falls back to the
    pre-fetch), then a merge into the stored row.
    """
    row = await _require_row(db, location_id, ghl_id)
    warnings: list[str] = []

    prefetched = await _fetch_remote(ghl, ghl_id, "pre-fetch")

    payload = build_update_payload(form, prefetched)
    try:
        await ghl.opportunities.update(ghl_id, payload)
    except REMOTE_ERRORS as exc:
        raise classify_remote_error(exc, location_id) from exc

    contact_payload = contact_update_payload(form)
    if form.contact_id and contact_payload:
        try:
            await ghl.contacts.update(form.contact_id, contact_payload)
        except REMOTE_ERRORS as exc:
            log.error("Contact update failed for opportunity %s: %s", ghl_id, exc)
            warnings.append(f"Contact update failed: {exc}")

    if form.has("followers") and form.followers is not None:
        if prefetched is not None:
            current = list(prefetched.get("followers") or [])
        else:
            current = list(row.followers or [])
        warnings.extend(await sync_followers(ghl, ghl_id, current, form.followers))

    remote = await _fetch_remote(ghl, ghl_id, "re-fetch")
    if remote is None:
        remote = prefetched

    values = merge_update(
        MergeContext(form=form, remote=remote, stored_contact=normalize_stored_contact(row))
    )
    for column, value in values.items():
        setattr(row, column, value)
    await db.commit()
    await db.refresh(row)

    return WriteOutcome(opportunity=opportunity_to_dict(row), warnings=warnings)


# ── Delete / status ────────────────────────────────────────────────────────

async def delete_opportunity(db: AsyncSession, ghl, location_id: str, ghl_id: str) -> None:
    """Delete in GHL first; the local row is only removed once that succeeds."""
    try:
        await ghl.opportunities.delete(ghl_id)
    except REMOTE_ERRORS as exc:
        raise classify_remote_error(exc, location_id) from exc

    await db.execute(
        delete(Opportunity).where(
            Opportunity.location_id == location_id, Opportunity.ghl_id == ghl_id
        )
    )
    await db.commit()
    log.info("Deleted opportunity %s for location %s", ghl_id, location_id)


async def update_opportunity_status(
    db: AsyncSession, ghl, location_id: str, ghl_id: str, status: str
) -> dict[str, Any]:
    if status not in VALID_STATUSES:
        raise ValueError(f"Invalid status: {status!r}")
    row = await _require_row(db, location_id, ghl_id)

    try:
        await ghl.opportunities.update_status(ghl_id, status)
    except REMOTE_ERRORS as exc:
        raise classify_remote_error(exc, location_id) from exc

    row.status = status
    row.synced_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(row)
    return opportunity_to_dict(row)

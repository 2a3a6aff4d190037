"""Merge table for reconciling an opportunity update into the local store.

Each local column lists the sources it may be taken from, in priority
order. The first source holding a value wins; a column with no winning
source is left out of the update so the stored value survives.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from .field_mapper import build_contact_snapshot, form_contact_override, normalize_custom_fields


class _Omit:
    def __repr__(self) -> str:
        return "OMIT"


OMIT: Any = _Omit()


@dataclass
class MergeContext:
    """The three views of one opportunity during an update."""

    form: Any
    remote: dict[str, Any] | None
    stored_contact: dict[str, Any] = field(default_factory=dict)
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _copy(value: Any) -> Any:
    if isinstance(value, (list, dict)):
        return type(value)(value)
    return value


@dataclass(frozen=True)
class Remote:
    """Value the remote returned after the update (or before, as fallback)."""

    key: str
    name: str = "remote"

    def resolve(self, ctx: MergeContext) -> Any:
        if not ctx.remote or ctx.remote.get(self.key) is None:
            return OMIT
        return _copy(ctx.remote[self.key])


@dataclass(frozen=True)
class Form:
    """Value explicitly submitted on the form."""

    attr: str
    non_empty: bool = False
    transform: Callable[[Any], Any] | None = None
    name: str = "form"

    def resolve(self, ctx: MergeContext) -> Any:
        if not ctx.form.has(self.attr):
            return OMIT
        value = getattr(ctx.form, self.attr)
        if self.non_empty and not value:
            return OMIT
        if value is None:
            return OMIT
        return self.transform(value) if self.transform else _copy(value)


@dataclass(frozen=True)
class Computed:
    fn: Callable[[MergeContext], Any]
    name: str = "computed"

    def resolve(self, ctx: MergeContext) -> Any:
        return self.fn(ctx)


@dataclass(frozen=True)
class FieldRule:
    column: str
    sources: tuple[Any, ...]

    def resolve(self, ctx: MergeContext) -> Any:
        for source in self.sources:
            value = source.resolve(ctx)
            if value is not OMIT:
                return value
        return OMIT


def _contact_snapshot(ctx: MergeContext) -> dict[str, Any]:
    override = form_contact_override(ctx.form)
    if ctx.form.contact_id:
        override["id"] = ctx.form.contact_id
    remote = ctx.remote or {}
    nested = dict(remote.get("contact") or {})
    if remote.get("contactId") and not nested.get("id"):
        nested["id"] = remote["contactId"]
    return build_contact_snapshot(nested=nested, flat=ctx.stored_contact, override=override)


def _now(ctx: MergeContext) -> datetime:
    return ctx.now


UPDATE_MERGE_TABLE: tuple[FieldRule, ...] = (
    # Opportunity core: the remote is authoritative, the form only fills gaps
    FieldRule("name", (Remote("name"), Form("name"))),
    FieldRule("monetary_value", (Remote("monetaryValue"), Form("monetary_value"))),
    FieldRule("pipeline_id", (Remote("pipelineId"), Form("pipeline_id"))),
    FieldRule("pipeline_stage_id", (Remote("pipelineStageId"), Form("pipeline_stage_id"))),
    FieldRule("status", (Remote("status"), Form("status"))),
    FieldRule("source", (Remote("source"), Form("source"))),
    FieldRule("assigned_to", (Form("assigned_to"), Remote("assignedTo"))),
    # Echoed custom field shapes can't be rendered; only the form's are kept
    FieldRule(
        "custom_fields",
        (Form("custom_fields", non_empty=True, transform=normalize_custom_fields),),
    ),
    FieldRule("contact_id", (Form("contact_id", non_empty=True), Remote("contactId"))),
    FieldRule("contact", (Computed(_contact_snapshot),)),
    # The remote does not reliably echo these back
    FieldRule("followers", (Form("followers"), Remote("followers"))),
    FieldRule("additional_contacts", (Form("additional_contacts"),)),
    # Server-computed
    FieldRule("last_status_change_at", (Remote("lastStatusChangeAt"),)),
    FieldRule("last_stage_change_at", (Remote("lastStageChangeAt"),)),
    FieldRule("last_action_date", (Remote("lastActionDate"),)),
    FieldRule("is_attribute", (Remote("isAttribute"),)),
    FieldRule("internal_source", (Remote("internalSource"),)),
    FieldRule("lost_reason_id", (Remote("lostReasonId"),)),
    FieldRule("ghl_updated_at", (Remote("updatedAt"),)),
    FieldRule("synced_at", (Computed(_now),)),
)


def merge_update(
    ctx: MergeContext,
    table: tuple[FieldRule, ...] = UPDATE_MERGE_TABLE,
) -> dict[str, Any]:
    """Resolve every rule; columns with no winning source are left out."""
    values: dict[str, Any] = {}
    for rule in table:
        value = rule.resolve(ctx)
        if value is not OMIT:
            values[rule.column] = value
    return values


def winning_source(rule: FieldRule, ctx: MergeContext) -> str | None:
    """Name of the source that decides ``rule`` (None when omitted)."""
    for source in rule.sources:
        if source.resolve(ctx) is not OMIT:
            return source.name
    return None

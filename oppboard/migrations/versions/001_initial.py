"""Initial oppboard schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa

revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _mirror_columns() -> list[sa.Column]:
    return [
        sa.Column("location_id", sa.String(100), nullable=False),
        sa.Column("ghl_id", sa.String(100), nullable=False),
        sa.Column("synced_at", sa.DateTime(timezone=True)),
    ]


def upgrade() -> None:
    # Location (tenant root)
    op.create_table(
        "location",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("location_id", sa.String(100), nullable=False),
        sa.Column("api_key", sa.String(500), nullable=False, server_default=""),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("pagination_enabled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("page_size", sa.Integer, nullable=False, server_default="100"),
        sa.Column("pagination_per_stage", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("sort_field", sa.String(100)),
        sa.Column("sort_order", sa.String(4), nullable=False, server_default="desc"),
        sa.Column("card_field_settings", sa.JSON, nullable=False),
        sa.Column("quick_actions", sa.JSON, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_location_location_id", "location", ["location_id"], unique=True)

    # Pipeline
    op.create_table(
        "pipeline",
        sa.Column("id", sa.Uuid, primary_key=True),
        *_mirror_columns(),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("stages", sa.JSON, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("location_id", "ghl_id", name="uq_pipeline_location_ghl"),
    )
    op.create_index("ix_pipeline_location_id", "pipeline", ["location_id"])
    op.create_index("ix_pipeline_ghl_id", "pipeline", ["ghl_id"])

    # Opportunity
    op.create_table(
        "opportunity",
        sa.Column("id", sa.Uuid, primary_key=True),
        *_mirror_columns(),
        sa.Column("name", sa.String(300), nullable=False, server_default=""),
        sa.Column("monetary_value", sa.Float, nullable=False, server_default="0"),
        sa.Column("pipeline_id", sa.String(100)),
        sa.Column("pipeline_stage_id", sa.String(100)),
        sa.Column("assigned_to", sa.String(100), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("source", sa.String(200), nullable=False, server_default=""),
        sa.Column("contact_id", sa.String(100), nullable=False, server_default=""),
        sa.Column("contact", sa.JSON),
        sa.Column("contact_name", sa.String(300)),
        sa.Column("contact_company_name", sa.String(300)),
        sa.Column("contact_email", sa.String(300)),
        sa.Column("contact_phone", sa.String(50)),
        sa.Column("contact_tags", sa.JSON),
        sa.Column("contact_followers", sa.JSON),
        sa.Column("additional_contacts", sa.JSON, nullable=False),
        sa.Column("followers", sa.JSON, nullable=False),
        sa.Column("custom_fields", sa.JSON, nullable=False),
        sa.Column("last_status_change_at", sa.String(40), nullable=False, server_default=""),
        sa.Column("last_stage_change_at", sa.String(40), nullable=False, server_default=""),
        sa.Column("last_action_date", sa.String(40), nullable=False, server_default=""),
        sa.Column("is_attribute", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("internal_source", sa.JSON, nullable=False),
        sa.Column("lost_reason_id", sa.String(100)),
        sa.Column("ghl_created_at", sa.String(40), nullable=False, server_default=""),
        sa.Column("ghl_updated_at", sa.String(40), nullable=False, server_default=""),
        *_timestamps(),
        sa.UniqueConstraint("location_id", "ghl_id", name="uq_opportunity_location_ghl"),
    )
    op.create_index("ix_opportunity_location_id", "opportunity", ["location_id"])
    op.create_index("ix_opportunity_ghl_id", "opportunity", ["ghl_id"])
    op.create_index("ix_opportunity_location_pipeline", "opportunity", ["location_id", "pipeline_id"])
    op.create_index("ix_opportunity_location_stage", "opportunity", ["location_id", "pipeline_stage_id"])
    op.create_index("ix_opportunity_location_status", "opportunity", ["location_id", "status"])

    # Custom field definitions and folders
    op.create_table(
        "custom_field",
        sa.Column("id", sa.Uuid, primary_key=True),
        *_mirror_columns(),
        sa.Column("name", sa.String(200), nullable=False, server_default=""),
        sa.Column("field_key", sa.String(200), nullable=False, server_default=""),
        sa.Column("data_type", sa.String(50), nullable=False, server_default=""),
        sa.Column("placeholder", sa.String(500), nullable=False, server_default=""),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("picklist_options", sa.JSON, nullable=False),
        sa.Column("picklist_image_options", sa.JSON, nullable=False),
        sa.Column("allow_custom_option", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_multi_file_allowed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("max_file_limit", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("field_model", sa.String(20), nullable=False, server_default="opportunity"),
        sa.Column("parent_id", sa.String(100), nullable=False, server_default=""),
        sa.Column("parent_name", sa.String(200), nullable=False, server_default=""),
        sa.Column("is_folder", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("location_id", "ghl_id", name="uq_custom_field_location_ghl"),
    )
    op.create_index("ix_custom_field_location_id", "custom_field", ["location_id"])
    op.create_index("ix_custom_field_ghl_id", "custom_field", ["ghl_id"])
    op.create_index("ix_custom_field_field_model", "custom_field", ["field_model"])


def downgrade() -> None:
    op.drop_table("custom_field")
    op.drop_table("opportunity")
    op.drop_table("pipeline")
    op.drop_table("location")

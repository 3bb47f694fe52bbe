"""Initial schema — companies, identity, singleton sub-records, collections, platform settings.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SINGLETON_TABLES = (
    "company_strategy",
    "company_branding",
    "company_schedule_config",
    "company_communication_settings",
    "company_email_config",
)


def _record_columns() -> list[sa.Column]:
    return [
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _tenant_columns() -> list[sa.Column]:
    return _record_columns() + [
        sa.Column(
            "company_id", UUID(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "companies",
        *_record_columns(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("industry_sector", sa.String(120), nullable=True),
        sa.Column("company_size", sa.String(50), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("website_url", sa.String(500), nullable=True),
        sa.Column("logo_url", sa.String(500), nullable=True),
        sa.Column("instagram_url", sa.String(500), nullable=True),
        sa.Column("facebook_url", sa.String(500), nullable=True),
        sa.Column("linkedin_url", sa.String(500), nullable=True),
        sa.Column("tiktok_url", sa.String(500), nullable=True),
        sa.Column("twitter_url", sa.String(500), nullable=True),
        sa.Column("youtube_url", sa.String(500), nullable=True),
        sa.Column("primary_color", sa.String(20), nullable=True),
        sa.Column("secondary_color", sa.String(20), nullable=True),
    )

    op.create_table(
        "profiles",
        *_record_columns(),
        sa.Column("user_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column(
            "primary_company_id", UUID(as_uuid=True),
            sa.ForeignKey("companies.id", ondelete="SET NULL"), nullable=True,
        ),
    )

    op.create_table(
        "company_members",
        *_tenant_columns(),
        sa.Column("user_id", UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("role", sa.String(30), nullable=False, server_default="member"),
        sa.Column("is_primary", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("company_id", "user_id", name="uq_company_members_company_user"),
    )

    op.create_table(
        "company_strategy",
        *_tenant_columns(),
        sa.Column("mision", sa.Text, nullable=True),
        sa.Column("vision", sa.Text, nullable=True),
        sa.Column("propuesta_valor", sa.Text, nullable=True),
        sa.Column("generated_with_ai", sa.Boolean, nullable=False, server_default=sa.false()),
    )

    op.create_table(
        "company_branding",
        *_tenant_columns(),
        sa.Column("primary_color", sa.String(20), nullable=True),
        sa.Column("secondary_color", sa.String(20), nullable=True),
        sa.Column("complementary_color_1", sa.String(20), nullable=True),
        sa.Column("complementary_color_2", sa.String(20), nullable=True),
        sa.Column("visual_identity", sa.Text, nullable=True),
        sa.Column("brand_voice", sa.Text, nullable=True),
        sa.Column("logo_url", sa.String(500), nullable=True),
        sa.Column("brand_manual_url", sa.String(500), nullable=True),
    )

    op.create_table(
        "company_schedule_config",
        *_tenant_columns(),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="America/Mexico_City"),
        sa.Column("business_hours_start", sa.String(5), nullable=False, server_default="09:00"),
        sa.Column("business_hours_end", sa.String(5), nullable=False, server_default="18:00"),
        sa.Column("working_days", sa.JSON, nullable=False),
        sa.Column("preferred_posting_times", sa.JSON, nullable=False),
        sa.Column("content_frequency", sa.JSON, nullable=False),
    )

    op.create_table(
        "company_communication_settings",
        *_tenant_columns(),
        sa.Column("brand_voice", sa.Text, nullable=True),
        sa.Column("emoji_usage", sa.String(20), nullable=False, server_default="moderate"),
        sa.Column("language_formality", sa.String(20), nullable=False, server_default="formal"),
        sa.Column("brand_hashtags", sa.JSON, nullable=False),
        sa.Column("forbidden_words", sa.JSON, nullable=False),
        sa.Column("content_pillars", sa.JSON, nullable=False),
        sa.Column("tone_by_platform", sa.JSON, nullable=False),
    )

    op.create_table(
        "company_email_config",
        *_tenant_columns(),
        sa.Column("smtp_host", sa.String(255), nullable=True),
        sa.Column("smtp_port", sa.Integer, nullable=False, server_default="587"),
        sa.Column("smtp_user", sa.String(255), nullable=True),
        sa.Column("smtp_password", sa.String(255), nullable=True),
        sa.Column("smtp_secure", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("billing_email", sa.String(255), nullable=True),
        sa.Column("notifications_email", sa.String(255), nullable=True),
        sa.Column("support_email", sa.String(255), nullable=True),
        sa.Column("marketing_email", sa.String(255), nullable=True),
        sa.Column("general_email", sa.String(255), nullable=True),
        sa.Column("from_name", sa.String(255), nullable=True),
        sa.Column("from_email", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.false()),
    )

    # One row per company: concurrent lazy creation resolves to a single survivor
    for table in SINGLETON_TABLES:
        op.create_unique_constraint(f"uq_{table}_company", table, ["company_id"])

    op.create_table(
        "company_objectives",
        *_tenant_columns(),
        sa.Column("title", sa.String(255), nullable=False, server_default=""),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("objective_type", sa.String(30), nullable=False, server_default="short_term"),
        sa.Column("priority", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("target_date", sa.Date, nullable=True),
    )

    op.create_table(
        "company_products",
        *_tenant_columns(),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(120), nullable=True),
        sa.Column("price", sa.Float, nullable=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("landing_url", sa.String(500), nullable=True),
        sa.Column("featured", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
    )

    op.create_table(
        "company_competitors",
        *_tenant_columns(),
        sa.Column("competitor_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("website_url", sa.String(500), nullable=True),
        sa.Column("instagram_url", sa.String(500), nullable=True),
        sa.Column("facebook_url", sa.String(500), nullable=True),
        sa.Column("linkedin_url", sa.String(500), nullable=True),
        sa.Column("twitter_url", sa.String(500), nullable=True),
        sa.Column("tiktok_url", sa.String(500), nullable=True),
        sa.Column("is_direct_competitor", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("priority_level", sa.String(20), nullable=False, server_default="medium"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("monitor_pricing", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("monitor_content", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("monitor_campaigns", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("ai_analysis", sa.JSON, nullable=True),
        sa.Column("last_analyzed_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "platform_settings",
        *_tenant_columns(),
        sa.Column("platform", sa.String(20), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("max_posts_per_day", sa.Integer, nullable=False, server_default="3"),
        sa.Column("hashtag_limit", sa.Integer, nullable=False, server_default="10"),
        sa.Column("auto_publish", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("require_approval", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("analytics_tracking", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("company_id", "platform", name="uq_platform_settings_company_platform"),
    )


def downgrade() -> None:
    for table in (
        "platform_settings",
        "company_competitors",
        "company_products",
        "company_objectives",
        *reversed(SINGLETON_TABLES),
        "company_members",
        "profiles",
        "companies",
    ):
        op.drop_table(table)

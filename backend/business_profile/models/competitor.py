"""CompanyCompetitor ORM — tracked competitors, what to monitor, and the last analysis."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin


class CompanyCompetitor(TenantOwnedMixin, Base):
    __tablename__ = "company_competitors"

    competitor_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    website_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    instagram_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    facebook_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    twitter_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    tiktok_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_direct_competitor: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority_level: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    monitor_pricing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    monitor_content: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    monitor_campaigns: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Whole analysis document; replaced on each re-analysis
    ai_analysis: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    last_analyzed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

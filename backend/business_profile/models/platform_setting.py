"""PlatformSetting ORM — per-platform publishing switches.

Invariants:
    - At most one row per (company, platform); the channel view upserts against it
"""

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin


class PlatformSetting(TenantOwnedMixin, Base):
    __tablename__ = "platform_settings"
    __table_args__ = (
        UniqueConstraint("company_id", "platform", name="uq_platform_settings_company_platform"),
    )

    platform: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    max_posts_per_day: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    hashtag_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    auto_publish: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    require_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    analytics_tracking: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

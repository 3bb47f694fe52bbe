"""CompanyScheduleConfig ORM — business hours plus per-platform posting cadence.

Invariants:
    - One row per company
    - preferred_posting_times and content_frequency are maps keyed by platform name;
      the channel view owns their per-platform keys

Design Decisions:
    - JSON columns for the keyed maps: written whole, so no partial JSON update is needed
"""

from sqlalchemy import JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin


class CompanyScheduleConfig(TenantOwnedMixin, Base):
    __tablename__ = "company_schedule_config"
    __table_args__ = (
        UniqueConstraint("company_id", name="uq_company_schedule_config_company"),
    )

    timezone: Mapped[str] = mapped_column(
        String(64), nullable=False, default="America/Mexico_City",
    )
    business_hours_start: Mapped[str] = mapped_column(
        String(5), nullable=False, default="09:00",
    )
    business_hours_end: Mapped[str] = mapped_column(
        String(5), nullable=False, default="18:00",
    )
    working_days: Mapped[list] = mapped_column(
        JSON, nullable=False, default=lambda: [1, 2, 3, 4, 5],
    )
    preferred_posting_times: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict,
    )
    content_frequency: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

"""CompanyMember ORM — links a user to a company.

Invariants:
    - At most one membership per (company, user)
    - joined_at drives the deterministic tie-break when no membership is primary
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin, utcnow


class CompanyMember(TenantOwnedMixin, Base):
    __tablename__ = "company_members"
    __table_args__ = (
        UniqueConstraint("company_id", "user_id", name="uq_company_members_company_user"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), nullable=False, index=True,
    )
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="member")
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow,
    )

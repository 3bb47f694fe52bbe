"""CompanyObjective ORM — user-managed goals, listed by priority."""

from datetime import date

from sqlalchemy import Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin


class CompanyObjective(TenantOwnedMixin, Base):
    __tablename__ = "company_objectives"

    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    objective_type: Mapped[str] = mapped_column(
        String(30), nullable=False, default="short_term",
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    target_date: Mapped[date | None] = mapped_column(Date, nullable=True)

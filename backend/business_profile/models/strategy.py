"""CompanyStrategy ORM — mission, vision and value proposition (one row per company)."""

from sqlalchemy import Boolean, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin


class CompanyStrategy(TenantOwnedMixin, Base):
    __tablename__ = "company_strategy"
    __table_args__ = (
        UniqueConstraint("company_id", name="uq_company_strategy_company"),
    )

    mision: Mapped[str | None] = mapped_column(Text, nullable=True)
    vision: Mapped[str | None] = mapped_column(Text, nullable=True)
    propuesta_valor: Mapped[str | None] = mapped_column(Text, nullable=True)
    generated_with_ai: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )

"""CompanyBranding ORM — palette and visual identity (one row per company)."""

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin


class CompanyBranding(TenantOwnedMixin, Base):
    __tablename__ = "company_branding"
    __table_args__ = (
        UniqueConstraint("company_id", name="uq_company_branding_company"),
    )

    primary_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    secondary_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    complementary_color_1: Mapped[str | None] = mapped_column(String(20), nullable=True)
    complementary_color_2: Mapped[str | None] = mapped_column(String(20), nullable=True)
    visual_identity: Mapped[str | None] = mapped_column(Text, nullable=True)
    brand_voice: Mapped[str | None] = mapped_column(Text, nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    brand_manual_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

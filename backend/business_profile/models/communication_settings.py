"""CompanyCommunicationSettings ORM — voice rules and the per-platform tone map."""

from sqlalchemy import JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin


class CompanyCommunicationSettings(TenantOwnedMixin, Base):
    __tablename__ = "company_communication_settings"
    __table_args__ = (
        UniqueConstraint("company_id", name="uq_company_communication_settings_company"),
    )

    brand_voice: Mapped[str | None] = mapped_column(Text, nullable=True)
    emoji_usage: Mapped[str] = mapped_column(String(20), nullable=False, default="moderate")
    language_formality: Mapped[str] = mapped_column(
        String(20), nullable=False, default="formal",
    )
    brand_hashtags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    forbidden_words: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    content_pillars: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    tone_by_platform: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

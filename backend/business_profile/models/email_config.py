"""CompanyEmailConfig ORM — outbound SMTP settings and role mailboxes (one row per company)."""

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from business_profile.db.base import Base, TenantOwnedMixin


class CompanyEmailConfig(TenantOwnedMixin, Base):
    __tablename__ = "company_email_config"
    __table_args__ = (
        UniqueConstraint("company_id", name="uq_company_email_config_company"),
    )

    smtp_host: Mapped[str | None] = mapped_column(String(255), nullable=True)
    smtp_port: Mapped[int] = mapped_column(Integer, nullable=False, default=587)
    smtp_user: Mapped[str | None] = mapped_column(String(255), nullable=True)
    smtp_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    smtp_secure: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    billing_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notifications_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    support_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    marketing_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    general_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    from_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    from_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

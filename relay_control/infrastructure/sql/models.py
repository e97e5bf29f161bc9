#relay_control\infrastructure\sql\models.py
"""SQLAlchemy ORM models for database tables."""

from sqlalchemy import (
    Column, String, Integer, DateTime, Enum as SQLEnum, Text, Boolean, ForeignKey,
    UniqueConstraint
)
from sqlalchemy.orm import relationship

from relay_control.core.models import WarmupPlan
from relay_control.infrastructure.sql.database import Base


# ============================================
# APP SETTINGS
# ============================================

class SettingsORM(Base):
    """Global settings - a single row is expected."""

    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    main_hostname = Column(String(255), nullable=False, default="")
    main_server_ip = Column(String(64), nullable=False, default="")
    relay_ips = Column(Text, nullable=False, default="")
    smtp_listen_addr = Column(String(255), nullable=False, default="")

    ai_provider = Column(String(50), nullable=False, default="")
    ai_api_key = Column(Text, nullable=False, default="")

    webhook_url = Column(String(500), nullable=False, default="")
    webhook_enabled = Column(Boolean, nullable=False, default=False)


# ============================================
# DOMAINS
# ============================================

class DomainORM(Base):
    """Sending domain table."""

    __tablename__ = "domains"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, unique=True)

    mail_host = Column(String(255), nullable=False, default="")
    bounce_host = Column(String(255), nullable=False, default="")

    dmarc_policy = Column(String(20), nullable=False, default="")
    dmarc_rua = Column(String(255), nullable=False, default="")
    dmarc_ruf = Column(String(255), nullable=False, default="")
    dmarc_percentage = Column(Integer, nullable=False, default=100)

    # Relationships
    senders = relationship(
        "SenderORM",
        back_populates="domain",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SenderORM.local_part",
    )

    def __repr__(self) -> str:
        return f"<DomainORM(id={self.id}, name={self.name})>"


# ============================================
# SENDERS
# ============================================

class SenderORM(Base):
    """Sender identity table."""

    __tablename__ = "senders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    domain_id = Column(
        Integer,
        ForeignKey("domains.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    local_part = Column(String(64), nullable=False)
    email = Column(String(320), nullable=False)
    ip = Column(String(64), nullable=False, default="")

    # Warmup
    warmup_enabled = Column(Boolean, nullable=False, default=False)
    warmup_plan = Column(
        SQLEnum(WarmupPlan, name="warmup_plan"),
        nullable=False,
        default=WarmupPlan.STANDARD,
    )
    warmup_day = Column(Integer, nullable=False, default=0)
    warmup_last_update = Column(DateTime(timezone=True), nullable=True)

    domain = relationship("DomainORM", back_populates="senders")

    __table_args__ = (
        UniqueConstraint("domain_id", "local_part", name="uq_senders_domain_local_part"),
    )

    def __repr__(self) -> str:
        return f"<SenderORM(id={self.id}, email={self.email})>"

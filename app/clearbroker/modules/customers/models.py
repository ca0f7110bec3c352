from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.clearbroker.models import Base, new_id


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        Index("idx_customers_broker_id", "broker_id", "created_at"),
        Index("idx_customers_status", "status"),
        CheckConstraint("status IN ('active', 'pending', 'inactive')", name="ck_customers_status"),
        CheckConstraint("type IN ('exporter', 'importer')", name="ck_customers_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    gstin: Mapped[str] = mapped_column(String(15), nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")

    broker_id: Mapped[str] = mapped_column(ForeignKey("brokers.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


"""SQLAlchemy ORM model for visitors.

A visitor row is created either by a flat owner's pre-approval (with a QR
code) or by security logging a walk-in at the gate. Its status only ever moves
from `pending` to `approved` or `denied`; rows are never deleted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from gatepass.db.base import Base
from gatepass.domain.enums import VisitorSource, VisitorStatus
from gatepass.domain.flat import Flat
from gatepass.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin, _now


class Visitor(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "visitors"
    __table_args__ = (Index("ix_visitors_name_type", "name", "type"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # "Guest" | "Delivery" | "Service" | "Cab"
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    # "pending" | "approved" | "denied"
    status: Mapped[str] = mapped_column(
        String(20), default=VisitorStatus.PENDING.value, nullable=False, index=True
    )
    # "pre_approval" | "gate_entry"; never changes after insert
    source: Mapped[str] = mapped_column(
        String(20), default=VisitorSource.GATE_ENTRY.value, nullable=False
    )
    # data:image/png;base64,... of the gate pass
    qr_code: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    flat_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("flats.id"), index=True, nullable=True
    )
    registered_by: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("profiles.id"), index=True, nullable=True
    )
    arrival_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), default=_now, server_default=func.now(), nullable=True
    )

    flat: Mapped[Optional[Flat]] = relationship(lazy="selectin")

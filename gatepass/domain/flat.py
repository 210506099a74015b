"""SQLAlchemy ORM model for flats (residential units)."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gatepass.db.base import Base
from gatepass.domain.mixins import TimestampMixin, UUIDPrimaryKeyMixin


class Flat(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "flats"
    __table_args__ = (UniqueConstraint("wing", "floor", "unit", name="uq_flats_wing_floor_unit"),)

    # "A" | "B"
    wing: Mapped[str] = mapped_column(String(1), nullable=False)
    floor: Mapped[int] = mapped_column(Integer, nullable=False)
    unit: Mapped[int] = mapped_column(Integer, nullable=False)
    flat_number: Mapped[Optional[str]] = mapped_column(String(20), index=True, nullable=True)

    @staticmethod
    def format_number(wing: str, floor: int, unit: int) -> str:
        """`A`, 1, 1 -> `A-101`"""
        return f"{wing}-{floor}{unit:02d}"

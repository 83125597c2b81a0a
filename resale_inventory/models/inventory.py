from __future__ import annotations

import enum
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, String, Text

from ..db.session import Base


class InventoryStatus(str, enum.Enum):
    PENDING = "pending"
    SOLD = "sold"
    COMPLETED = "completed"


def utcnow() -> datetime:
    """Naive UTC timestamp, the convention for every stored datetime."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return uuid4().hex


class InventoryItem(Base):
    """A physical good tracked from intake to shipment.

    ``status`` moves along pending <-> sold <-> completed. ``sold_at`` is
    stamped by the service layer when the item is first sold, and
    ``ship_by_date``/``shipper_qr_code`` only mean something while the item is
    sold or completed.
    """

    __tablename__ = "inventory_items"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=False)
    bin_number = Column(Text, nullable=False, default="")
    rack_number = Column(Text, nullable=False, default="")
    platform = Column(Text, nullable=False, default="")
    status = Column(String(16), nullable=False, default=InventoryStatus.PENDING.value, index=True)
    sold_at = Column(DateTime, nullable=True)
    sold_price = Column(Float, nullable=True)
    ship_by_date = Column(DateTime, nullable=True)
    shipper_qr_code = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name!r} status={self.status}>"

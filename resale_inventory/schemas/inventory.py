from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel

from ..models.inventory import InventoryStatus


def iso_timestamp(value: datetime) -> str:
    """Serialize a stored naive-UTC datetime as ``2024-01-10T05:00:00.000Z``."""

    return value.isoformat(timespec="milliseconds") + "Z"


IsoTimestamp = Annotated[datetime, PlainSerializer(iso_timestamp, return_type=str)]


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code keeps snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class InventoryItemCreate(CamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    image_url: str
    bin_number: Optional[str] = None
    rack_number: Optional[str] = None
    platform: Optional[str] = None
    status: Optional[InventoryStatus] = None


class InventoryItemUpdate(CamelModel):
    """Sparse patch. Keys left out are untouched, ``null`` clears nullable fields."""

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    image_url: Optional[str] = None
    bin_number: Optional[str] = Field(default=None, min_length=1)
    rack_number: Optional[str] = Field(default=None, min_length=1)
    platform: Optional[str] = Field(default=None, min_length=1)
    status: Optional[InventoryStatus] = None
    sold_price: Optional[float] = Field(default=None, allow_inf_nan=False)
    ship_by_date: Optional[str] = None
    shipper_qr_code: Optional[str] = None

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> "InventoryItemUpdate":
        for field in ("name", "image_url", "bin_number", "rack_number", "platform", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{to_camel(field)} cannot be null")
        return self


class InventoryItemOut(CamelModel):
    id: str
    name: str
    description: Optional[str]
    image_url: str
    bin_number: str
    rack_number: str
    platform: str
    status: InventoryStatus
    sold_at: Optional[IsoTimestamp]
    sold_price: Optional[float]
    ship_by_date: Optional[IsoTimestamp]
    shipper_qr_code: Optional[str]
    created_at: IsoTimestamp
    updated_at: IsoTimestamp


class InventoryStats(CamelModel):
    total: int
    pending: int
    completed: int
    sold: int


class InventoryListOut(CamelModel):
    items: list[InventoryItemOut]
    stats: InventoryStats


class DeleteResponse(CamelModel):
    success: bool
    message: str


class SearchRequest(CamelModel):
    query: Optional[str] = None
    status: Optional[InventoryStatus] = None


class PhotoSearchRequest(CamelModel):
    image: str
    item_ids: list[str]


class PhotoSearchResponse(CamelModel):
    matching_item_ids: list[str]


class UrgencyOut(CamelModel):
    label: str
    urgent: bool
    days_until: Optional[int]


class ReadyToShipEntry(CamelModel):
    item: InventoryItemOut
    urgency: UrgencyOut


class ReadyToShipOut(CamelModel):
    items: list[ReadyToShipEntry]
    urgent_count: int


class SoldSummaryOut(CamelModel):
    items: list[InventoryItemOut]
    total_revenue: float

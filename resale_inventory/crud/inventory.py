"""Inventory item lifecycle and query helpers.

Writes go through :func:`create_item`, :func:`apply_update` and
:func:`delete_item`, which enforce the status side effects a blind
field-by-field merge would miss. Reads are plain filtered selects ordered by
``created_at`` descending.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Any, Sequence

from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import InvalidArgument, NotFound, StorageFailure
from ..models.inventory import InventoryItem, InventoryStatus, utcnow
from ..services.platforms import join_platforms, split_platforms
from ..services.shipping import Urgency, classify_urgency, count_urgent, parse_iso_datetime, sort_for_shipping

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "description", "bin_number", "rack_number", "platform")
NULLABLE_FIELDS = {"description", "sold_price", "ship_by_date", "shipper_qr_code"}
NON_EMPTY_FIELDS = {"name", "image_url", "bin_number", "rack_number", "platform"}
UPDATABLE_FIELDS = NULLABLE_FIELDS | NON_EMPTY_FIELDS | {"status"}

# Adjacent states only: an item is never shipped without first being sold.
ALLOWED_TRANSITIONS: dict[InventoryStatus, set[InventoryStatus]] = {
    InventoryStatus.PENDING: {InventoryStatus.PENDING, InventoryStatus.SOLD},
    InventoryStatus.SOLD: {InventoryStatus.PENDING, InventoryStatus.SOLD, InventoryStatus.COMPLETED},
    InventoryStatus.COMPLETED: {InventoryStatus.SOLD, InventoryStatus.COMPLETED},
}


def _log(event: str, level: int = logging.INFO, **data: Any) -> None:
    logger.log(level, event, extra={"extra_data": data})


def _commit(db: Session, operation: str, item_id: str | None, message: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "inventory.storage_failure",
            extra={"extra_data": {"operation": operation, "item_id": item_id}},
        )
        raise StorageFailure(message) from exc


def _coerce_status(value: object) -> InventoryStatus:
    try:
        return InventoryStatus(value)
    except ValueError:
        allowed = ", ".join(status.value for status in InventoryStatus)
        raise InvalidArgument("status", f"must be one of {allowed}") from None


def _clean_text(field: str, value: object, *, required: bool) -> str | None:
    if value is None:
        if required:
            raise InvalidArgument(field, "cannot be null")
        return None
    if not isinstance(value, str):
        raise InvalidArgument(field, "must be a string")
    if required and not value.strip():
        raise InvalidArgument(field, "must not be empty")
    return value


def _clean_price(value: object) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument("sold_price", "must be a number")
    price = float(value)
    if not math.isfinite(price):
        raise InvalidArgument("sold_price", "must be a finite number")
    return price


def _clean_ship_by(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            raise InvalidArgument("ship_by_date", "must be an ISO-8601 date") from None
    raise InvalidArgument("ship_by_date", "must be an ISO-8601 date")


def get_item(db: Session, item_id: str) -> InventoryItem:
    try:
        item = db.get(InventoryItem, item_id)
    except SQLAlchemyError as exc:
        logger.exception("inventory.storage_failure", extra={"extra_data": {"operation": "get", "item_id": item_id}})
        raise StorageFailure("Failed to fetch inventory item") from exc
    if item is None:
        _log("inventory.item.not_found", operation="get", item_id=item_id)
        raise NotFound("Item not found")
    return item


def create_item(db: Session, payload: dict) -> InventoryItem:
    """Persist a new item; optional labels default to empty strings."""

    name = _clean_text("name", payload.get("name"), required=True)
    image_url = _clean_text("image_url", payload.get("image_url"), required=True)
    status = _coerce_status(payload.get("status") or InventoryStatus.PENDING)

    now = utcnow()
    item = InventoryItem(
        name=name,
        description=_clean_text("description", payload.get("description"), required=False),
        image_url=image_url,
        bin_number=payload.get("bin_number") or "",
        rack_number=payload.get("rack_number") or "",
        platform=join_platforms(split_platforms(payload.get("platform"))),
        status=status.value,
        sold_at=now if status is InventoryStatus.SOLD else None,
        created_at=now,
        updated_at=now,
    )
    db.add(item)
    _commit(db, "create", None, "Failed to create inventory item")
    db.refresh(item)
    _log("inventory.item.created", item_id=item.id, status=item.status)
    return item


def apply_update(db: Session, item_id: str, patch: dict) -> InventoryItem:
    """Merge a sparse patch into an item and apply status side effects.

    Entering ``sold`` stamps ``sold_at`` unless one is already recorded;
    returning to ``pending`` clears it. ``ship_by_date`` and
    ``shipper_qr_code`` are left to the caller to clear on the way back to
    ``pending``.
    """

    item = get_item(db, item_id)
    changes: dict[str, Any] = {}

    for field, value in patch.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if field == "status":
            if value is None:
                raise InvalidArgument("status", "cannot be null")
            changes[field] = _coerce_status(value)
        elif field == "sold_price":
            changes[field] = _clean_price(value)
        elif field == "ship_by_date":
            changes[field] = _clean_ship_by(value)
        elif field == "platform":
            names = split_platforms(_clean_text(field, value, required=True))
            if not names:
                raise InvalidArgument(field, "must name at least one platform")
            changes[field] = join_platforms(names)
        else:
            changes[field] = _clean_text(field, value, required=field in NON_EMPTY_FIELDS)

    current = InventoryStatus(item.status)
    target = changes.pop("status", None)
    if target is not None:
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidArgument("status", f"cannot move from {current.value} to {target.value}")
        if target is InventoryStatus.SOLD and current is not InventoryStatus.SOLD and item.sold_at is None:
            item.sold_at = utcnow()
        elif target is InventoryStatus.PENDING:
            item.sold_at = None
        item.status = target.value

    for field, value in changes.items():
        setattr(item, field, value)

    if target is InventoryStatus.PENDING and current is not InventoryStatus.PENDING:
        if item.ship_by_date is not None or item.shipper_qr_code is not None:
            _log(
                "inventory.item.stale_shipping_fields",
                logging.WARNING,
                item_id=item.id,
                ship_by_date=item.ship_by_date,
                shipper_qr_code=item.shipper_qr_code,
            )

    item.updated_at = utcnow()
    _commit(db, "update", item.id, "Failed to update inventory item")
    db.refresh(item)
    _log("inventory.item.updated", item_id=item.id, status=item.status, fields=sorted(patch))
    return item


def delete_item(db: Session, item_id: str) -> None:
    item = get_item(db, item_id)
    db.delete(item)
    _commit(db, "delete", item_id, "Failed to delete inventory item")
    _log("inventory.item.deleted", item_id=item_id)


def list_items(db: Session) -> list[InventoryItem]:
    stmt = select(InventoryItem).order_by(desc(InventoryItem.created_at))
    try:
        return list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as exc:
        logger.exception("inventory.storage_failure", extra={"extra_data": {"operation": "list"}})
        raise StorageFailure("Failed to fetch inventory items") from exc


def inventory_stats(db: Session) -> dict[str, int]:
    stmt = select(InventoryItem.status, func.count(InventoryItem.id)).group_by(InventoryItem.status)
    try:
        rows = db.execute(stmt).all()
    except SQLAlchemyError as exc:
        logger.exception("inventory.storage_failure", extra={"extra_data": {"operation": "stats"}})
        raise StorageFailure("Failed to fetch inventory items") from exc
    counts = {status.value: 0 for status in InventoryStatus}
    for status, count in rows:
        counts[status] = counts.get(status, 0) + int(count)
    stats = {
        "pending": counts[InventoryStatus.PENDING.value],
        "completed": counts[InventoryStatus.COMPLETED.value],
        "sold": counts[InventoryStatus.SOLD.value],
    }
    stats["total"] = sum(stats.values())
    return stats


def list_inventory(db: Session) -> tuple[list[InventoryItem], dict[str, int]]:
    items = list_items(db)
    stats = inventory_stats(db)
    _log("inventory.listed", count=len(items))
    return items, stats


def search_items(db: Session, query: str | None = None, status: object | None = None) -> list[InventoryItem]:
    """Filter items by status and/or a substring in any searchable field.

    Both filters are ANDed; either may be omitted. This is a filter, not a
    ranked search.
    """

    stmt = select(InventoryItem)
    status_value = _coerce_status(status).value if status else None
    if status_value:
        stmt = stmt.where(InventoryItem.status == status_value)
    if query:
        stmt = stmt.where(or_(*(getattr(InventoryItem, field).contains(query) for field in SEARCH_FIELDS)))
    stmt = stmt.order_by(desc(InventoryItem.created_at))
    try:
        items = list(db.execute(stmt).scalars().all())
    except SQLAlchemyError as exc:
        logger.exception("inventory.storage_failure", extra={"extra_data": {"operation": "search"}})
        raise StorageFailure("Failed to search inventory items") from exc
    _log("inventory.searched", query=query, status=status_value, count=len(items))
    return items


def match_photo(image: str, candidates: Sequence[InventoryItem]) -> list[InventoryItem]:
    """Narrow candidates to those that look like ``image``.

    No visual comparison is implemented: every candidate is returned so the
    user picks their item by eye.
    """

    return list(candidates)


def search_by_photo(db: Session, image: str, item_ids: Sequence[str]) -> list[str]:
    if not item_ids:
        return []
    stmt = (
        select(InventoryItem)
        .where(InventoryItem.id.in_(list(item_ids)))
        .order_by(desc(InventoryItem.created_at))
    )
    try:
        candidates = db.execute(stmt).scalars().all()
    except SQLAlchemyError as exc:
        logger.exception("inventory.storage_failure", extra={"extra_data": {"operation": "search_by_photo"}})
        raise StorageFailure("Failed to search by photo") from exc
    matches = [item.id for item in match_photo(image, candidates)]
    _log("inventory.photo_searched", candidates=len(item_ids), matches=len(matches), image_bytes=len(image or ""))
    return matches


def list_ready_to_ship(db: Session, today: date | None = None) -> tuple[list[tuple[InventoryItem, Urgency]], int]:
    """Sold items in shipping order, each paired with its urgency."""

    items = sort_for_shipping(search_items(db, status=InventoryStatus.SOLD))
    entries = [(item, classify_urgency(item.ship_by_date, today)) for item in items]
    urgent_count = count_urgent([urgency for _, urgency in entries])
    return entries, urgent_count


def sold_summary(db: Session) -> tuple[list[InventoryItem], float]:
    items = search_items(db, status=InventoryStatus.COMPLETED)
    revenue = sum(item.sold_price or 0.0 for item in items)
    return items, revenue

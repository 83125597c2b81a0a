from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..crud.inventory import (
    apply_update,
    create_item,
    delete_item,
    get_item,
    list_inventory,
    list_ready_to_ship,
    search_by_photo,
    search_items,
    sold_summary,
)
from ..db.session import get_db
from ..deps.auth import require_api_key
from ..schemas.inventory import (
    DeleteResponse,
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventoryListOut,
    PhotoSearchRequest,
    PhotoSearchResponse,
    ReadyToShipEntry,
    ReadyToShipOut,
    SearchRequest,
    SoldSummaryOut,
    UrgencyOut,
)

router = APIRouter(prefix="/api/inventory", tags=["inventory"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=InventoryListOut)
def api_list(db: Session = Depends(get_db)):
    items, stats = list_inventory(db)
    return {"items": items, "stats": stats}


@router.get("/ready-to-ship", response_model=ReadyToShipOut)
def api_ready_to_ship(db: Session = Depends(get_db)):
    entries, urgent_count = list_ready_to_ship(db)
    return ReadyToShipOut(
        items=[
            ReadyToShipEntry(
                item=InventoryItemOut.model_validate(item),
                urgency=UrgencyOut.model_validate(urgency),
            )
            for item, urgency in entries
        ],
        urgent_count=urgent_count,
    )


@router.get("/sold", response_model=SoldSummaryOut)
def api_sold(db: Session = Depends(get_db)):
    items, revenue = sold_summary(db)
    return {"items": items, "total_revenue": revenue}


@router.get("/{item_id}", response_model=InventoryItemOut)
def api_get(item_id: str, db: Session = Depends(get_db)):
    return get_item(db, item_id)


@router.post("", response_model=InventoryItemOut, status_code=201)
def api_create(payload: InventoryItemCreate, db: Session = Depends(get_db)):
    return create_item(db, payload.model_dump(exclude_none=True))


@router.patch("/{item_id}", response_model=InventoryItemOut)
def api_update(item_id: str, payload: InventoryItemUpdate, db: Session = Depends(get_db)):
    return apply_update(db, item_id, payload.model_dump(exclude_unset=True))


@router.delete("/{item_id}", response_model=DeleteResponse)
def api_delete(item_id: str, db: Session = Depends(get_db)):
    delete_item(db, item_id)
    return {"success": True, "message": "Item deleted successfully"}


@router.post("/search", response_model=list[InventoryItemOut])
def api_search(payload: SearchRequest, db: Session = Depends(get_db)):
    return search_items(db, query=payload.query, status=payload.status)


@router.post("/search-by-photo", response_model=PhotoSearchResponse)
def api_search_by_photo(payload: PhotoSearchRequest, db: Session = Depends(get_db)):
    return {"matching_item_ids": search_by_photo(db, payload.image, payload.item_ids)}

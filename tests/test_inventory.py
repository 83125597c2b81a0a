import logging
from datetime import date, datetime

import pytest
from sqlalchemy.exc import OperationalError

from resale_inventory.core.errors import InvalidArgument, NotFound, StorageFailure
from resale_inventory.crud.inventory import (
    apply_update,
    create_item,
    delete_item,
    get_item,
    inventory_stats,
    list_inventory,
    list_ready_to_ship,
    search_by_photo,
    search_items,
    sold_summary,
)
from resale_inventory.db.session import Base, build_engine, session_factory
from resale_inventory.models.inventory import utcnow

# Ensure models are imported so metadata is populated
from resale_inventory.models import inventory as inventory_model  # noqa: F401


@pytest.fixture()
def db_session():
    engine = build_engine("sqlite://")
    TestingSessionLocal = session_factory(engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _make(db, name, created_at=None, **fields):
    item = create_item(db, {"name": name, "image_url": f"/uploads/{name}.jpg", **fields})
    if created_at is not None:
        item.created_at = created_at
        db.commit()
        db.refresh(item)
    return item


def test_create_item_round_trip_defaults(db_session):
    item = create_item(db_session, {"name": "Mug", "image_url": "u"})

    fetched = get_item(db_session, item.id)
    assert fetched.status == "pending"
    assert fetched.bin_number == ""
    assert fetched.rack_number == ""
    assert fetched.platform == ""
    assert fetched.description is None
    assert fetched.sold_at is None
    assert fetched.created_at is not None
    assert fetched.updated_at is not None


def test_create_item_requires_name_and_image(db_session):
    with pytest.raises(InvalidArgument) as exc:
        create_item(db_session, {"name": "", "image_url": "u"})
    assert exc.value.field == "name"

    with pytest.raises(InvalidArgument):
        create_item(db_session, {"name": "   ", "image_url": "u"})

    with pytest.raises(InvalidArgument) as exc:
        create_item(db_session, {"name": "Mug"})
    assert exc.value.field == "image_url"


def test_create_item_rejects_unknown_status(db_session):
    with pytest.raises(InvalidArgument) as exc:
        create_item(db_session, {"name": "Mug", "image_url": "u", "status": "lost"})
    assert exc.value.field == "status"


def test_create_item_normalizes_platform_list(db_session):
    item = create_item(db_session, {"name": "Lamp", "image_url": "u", "platform": "eBay,Etsy , "})
    assert item.platform == "eBay, Etsy"


def test_create_item_directly_sold_stamps_sold_at(db_session):
    item = create_item(db_session, {"name": "Vase", "image_url": "u", "status": "sold"})
    assert item.status == "sold"
    assert item.sold_at is not None


def test_status_transition_sets_sold_at_once(db_session):
    item = _make(db_session, "Mug")
    before = utcnow()

    sold = apply_update(db_session, item.id, {"status": "sold"})
    assert sold.status == "sold"
    assert sold.sold_at is not None
    assert sold.sold_at >= before
    first_sold_at = sold.sold_at

    again = apply_update(db_session, item.id, {"status": "sold"})
    assert again.sold_at == first_sold_at


def test_completed_back_to_sold_keeps_sold_at(db_session):
    item = _make(db_session, "Hat")
    first_sold_at = apply_update(db_session, item.id, {"status": "sold"}).sold_at

    apply_update(db_session, item.id, {"status": "completed"})
    back = apply_update(db_session, item.id, {"status": "sold"})

    assert back.status == "sold"
    assert back.sold_at == first_sold_at


def test_status_cannot_skip_a_stage(db_session):
    item = _make(db_session, "Scarf")

    with pytest.raises(InvalidArgument) as exc:
        apply_update(db_session, item.id, {"status": "completed"})
    assert exc.value.field == "status"
    assert get_item(db_session, item.id).status == "pending"

    apply_update(db_session, item.id, {"status": "sold"})
    apply_update(db_session, item.id, {"status": "completed"})
    with pytest.raises(InvalidArgument):
        apply_update(db_session, item.id, {"status": "pending"})


def test_back_to_pending_clears_sold_at_and_leaves_shipping_fields_to_caller(db_session, caplog):
    item = _make(db_session, "Boots")
    apply_update(
        db_session,
        item.id,
        {"status": "sold", "sold_price": 40, "ship_by_date": "2024-01-12T12:00:00.000Z"},
    )
    apply_update(db_session, item.id, {"shipper_qr_code": "/uploads/label.png"})

    with caplog.at_level(logging.WARNING, logger="resale_inventory.crud.inventory"):
        pending = apply_update(db_session, item.id, {"status": "pending"})

    assert pending.status == "pending"
    assert pending.sold_at is None
    assert pending.ship_by_date == datetime(2024, 1, 12, 12, 0)
    assert pending.shipper_qr_code == "/uploads/label.png"
    assert any(r.getMessage() == "inventory.item.stale_shipping_fields" for r in caplog.records)

    apply_update(db_session, item.id, {"status": "sold"})
    cleared = apply_update(
        db_session,
        item.id,
        {"status": "pending", "ship_by_date": None, "shipper_qr_code": None},
    )
    assert cleared.ship_by_date is None
    assert cleared.shipper_qr_code is None
    assert cleared.sold_at is None


def test_ship_by_date_parsing(db_session):
    item = _make(db_session, "Camera")

    updated = apply_update(db_session, item.id, {"ship_by_date": "2024-01-10T05:30:00.000Z"})
    assert updated.ship_by_date == datetime(2024, 1, 10, 5, 30)

    offset = apply_update(db_session, item.id, {"ship_by_date": "2024-01-10T00:00:00-06:00"})
    assert offset.ship_by_date == datetime(2024, 1, 10, 6, 0)

    cleared = apply_update(db_session, item.id, {"ship_by_date": None})
    assert cleared.ship_by_date is None

    with pytest.raises(InvalidArgument) as exc:
        apply_update(db_session, item.id, {"ship_by_date": "next tuesday"})
    assert exc.value.field == "ship_by_date"


def test_update_validates_fields(db_session):
    item = _make(db_session, "Radio")

    for patch, field in (
        ({"name": ""}, "name"),
        ({"name": None}, "name"),
        ({"bin_number": "  "}, "bin_number"),
        ({"platform": " , "}, "platform"),
        ({"sold_price": float("inf")}, "sold_price"),
        ({"sold_price": "12"}, "sold_price"),
        ({"status": "lost"}, "status"),
        ({"status": None}, "status"),
    ):
        with pytest.raises(InvalidArgument) as exc:
            apply_update(db_session, item.id, patch)
        assert exc.value.field == field

    assert get_item(db_session, item.id).name == "Radio"


def test_update_merges_sparse_patch(db_session):
    item = _make(db_session, "Radio", description="Works", bin_number="B1", rack_number="R2")

    updated = apply_update(
        db_session,
        item.id,
        {"name": "Vintage Radio", "description": None, "platform": "eBay,Mercari", "sold_price": 19.5},
    )

    assert updated.name == "Vintage Radio"
    assert updated.description is None
    assert updated.bin_number == "B1"
    assert updated.rack_number == "R2"
    assert updated.platform == "eBay, Mercari"
    assert updated.sold_price == pytest.approx(19.5)


def test_update_ignores_unknown_and_server_managed_fields(db_session):
    item = _make(db_session, "Clock")
    original_id = item.id

    updated = apply_update(
        db_session,
        item.id,
        {"id": "other", "sold_at": datetime(2020, 1, 1), "color": "red"},
    )

    assert updated.id == original_id
    assert updated.sold_at is None


def test_update_missing_item_is_not_found(db_session):
    with pytest.raises(NotFound):
        apply_update(db_session, "does-not-exist", {"name": "x"})


def test_deletion_is_terminal(db_session):
    item = _make(db_session, "Lamp")

    delete_item(db_session, item.id)

    with pytest.raises(NotFound):
        get_item(db_session, item.id)
    with pytest.raises(NotFound):
        delete_item(db_session, item.id)


def test_list_inventory_orders_newest_first_with_stats(db_session):
    old = _make(db_session, "Old", created_at=datetime(2024, 1, 1, 9))
    new = _make(db_session, "New", created_at=datetime(2024, 1, 3, 9))
    mid = _make(db_session, "Mid", created_at=datetime(2024, 1, 2, 9))
    apply_update(db_session, mid.id, {"status": "sold"})
    apply_update(db_session, new.id, {"status": "sold"})
    apply_update(db_session, new.id, {"status": "completed"})

    items, stats = list_inventory(db_session)

    assert [i.id for i in items] == [new.id, mid.id, old.id]
    assert stats == {"total": 3, "pending": 1, "completed": 1, "sold": 1}


def test_stats_sum_to_total(db_session):
    for index in range(7):
        item = _make(db_session, f"Item {index}")
        if index % 2:
            apply_update(db_session, item.id, {"status": "sold"})
        if index % 3 == 0 and index:
            apply_update(db_session, item.id, {"status": "sold"})
            apply_update(db_session, item.id, {"status": "completed"})

    stats = inventory_stats(db_session)
    assert stats["pending"] + stats["completed"] + stats["sold"] == stats["total"] == 7


def test_stats_for_empty_store(db_session):
    assert inventory_stats(db_session) == {"total": 0, "pending": 0, "completed": 0, "sold": 0}


def test_search_is_conjunctive(db_session):
    a = _make(db_session, "Red Mug", created_at=datetime(2024, 1, 1))
    b = _make(db_session, "Red Hat", created_at=datetime(2024, 1, 2))
    apply_update(db_session, b.id, {"status": "sold"})

    assert [i.id for i in search_items(db_session, "Red", "pending")] == [a.id]
    assert [i.id for i in search_items(db_session, "Red")] == [b.id, a.id]
    assert [i.id for i in search_items(db_session, None, "sold")] == [b.id]
    assert [i.id for i in search_items(db_session)] == [b.id, a.id]


def test_search_matches_any_text_field(db_session):
    by_desc = _make(db_session, "Jacket", description="denim, size M")
    by_bin = _make(db_session, "Shoes", bin_number="BIN-42")
    by_rack = _make(db_session, "Belt", rack_number="RACK-7")
    by_platform = _make(db_session, "Bag", platform="Poshmark")

    assert [i.id for i in search_items(db_session, "denim")] == [by_desc.id]
    assert [i.id for i in search_items(db_session, "BIN-4")] == [by_bin.id]
    assert [i.id for i in search_items(db_session, "RACK")] == [by_rack.id]
    assert [i.id for i in search_items(db_session, "Posh")] == [by_platform.id]
    assert search_items(db_session, "nothing-matches") == []


def test_search_rejects_unknown_status(db_session):
    with pytest.raises(InvalidArgument):
        search_items(db_session, status="lost")


def test_photo_search_is_a_pass_through(db_session):
    x = _make(db_session, "x", created_at=datetime(2024, 1, 1))
    y = _make(db_session, "y", created_at=datetime(2024, 1, 3))
    z = _make(db_session, "z", created_at=datetime(2024, 1, 2))

    matches = search_by_photo(db_session, "aGVsbG8=", [x.id, y.id, z.id])
    assert matches == [y.id, z.id, x.id]

    assert search_by_photo(db_session, "anything else", [x.id, "missing"]) == [x.id]
    assert search_by_photo(db_session, "aGVsbG8=", []) == []


def test_ready_to_ship_orders_by_deadline_and_flags_urgency(db_session):
    today = date(2024, 1, 10)
    soon = _make(db_session, "Soon")
    undated = _make(db_session, "Undated")
    overdue = _make(db_session, "Overdue")
    later = _make(db_session, "Later")
    _make(db_session, "Still pending")

    apply_update(db_session, soon.id, {"status": "sold", "ship_by_date": "2024-01-13T12:00:00Z"})
    apply_update(db_session, undated.id, {"status": "sold"})
    apply_update(db_session, overdue.id, {"status": "sold", "ship_by_date": "2024-01-09T12:00:00Z"})
    apply_update(db_session, later.id, {"status": "sold", "ship_by_date": "2024-01-20T12:00:00Z"})

    entries, urgent_count = list_ready_to_ship(db_session, today)

    assert [item.id for item, _ in entries] == [overdue.id, soon.id, later.id, undated.id]
    assert [u.label for _, u in entries] == ["Overdue", "3 days", "10 days", "No date"]
    assert urgent_count == 2


def test_sold_summary_sums_completed_prices(db_session):
    shipped = _make(db_session, "Shipped")
    unpriced = _make(db_session, "Unpriced")
    waiting = _make(db_session, "Waiting")
    for item, price in ((shipped, 30.25), (unpriced, None), (waiting, 99.0)):
        patch = {"status": "sold"}
        if price is not None:
            patch["sold_price"] = price
        apply_update(db_session, item.id, patch)
    apply_update(db_session, shipped.id, {"status": "completed"})
    apply_update(db_session, unpriced.id, {"status": "completed"})

    items, revenue = sold_summary(db_session)

    assert {i.id for i in items} == {shipped.id, unpriced.id}
    assert revenue == pytest.approx(30.25)


def test_commit_failure_surfaces_as_storage_failure(db_session, monkeypatch):
    item = _make(db_session, "Fragile")

    def boom():
        raise OperationalError("UPDATE inventory_items", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", boom)

    with pytest.raises(StorageFailure) as exc:
        apply_update(db_session, item.id, {"name": "Broken"})
    assert exc.value.message == "Failed to update inventory item"

    monkeypatch.undo()
    assert get_item(db_session, item.id).name == "Fragile"

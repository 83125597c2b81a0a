import json
import logging
from datetime import datetime

from resale_inventory.core.logging import JsonLogFormatter
from resale_inventory.middlewares import request_id_ctx_var


def test_json_formatter_merges_extra_data_and_request_id():
    record = logging.LogRecord("resale_inventory.crud.inventory", logging.INFO, __file__, 1, "inventory.item.created", None, None)
    record.extra_data = {"item_id": "abc", "ship_by_date": datetime(2024, 1, 10, 5)}
    token = request_id_ctx_var.set("req-1")
    try:
        payload = json.loads(JsonLogFormatter().format(record))
    finally:
        request_id_ctx_var.reset(token)

    assert payload["message"] == "inventory.item.created"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["item_id"] == "abc"
    assert payload["ship_by_date"] == "2024-01-10 05:00:00"
    assert payload["timestamp"].endswith("Z")

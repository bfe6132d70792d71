from __future__ import annotations

import json
import logging

from scar_server.core.context import bind_request_id
from scar_server.core.logger import JsonFormatter, get_logger


def test_json_formatter_includes_request_id() -> None:
    bind_request_id("req-1")
    record = logging.LogRecord("scar.sync", logging.INFO, __file__, 1, "Synced %s", ("memory",), None)
    line = json.loads(JsonFormatter().format(record))
    assert line["message"] == "Synced memory"
    assert line["category"] == "scar.sync"
    assert line["request_id"] == "req-1"


def test_get_logger_is_cached() -> None:
    assert get_logger("sync") is get_logger("sync")
    assert get_logger("sync").name == "scar.sync"

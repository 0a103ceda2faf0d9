"""
Тесты маскирования токенов в логах
"""

import json
import logging

from flitcar_admin.logging_config import JSONFormatter, SensitiveDataFilter, mask_secrets, setup_logging


def test_mask_bearer_header():
    assert mask_secrets("Authorization: Bearer eyJhbGciOi.abc.def") == "Authorization: Bearer ***"


def test_mask_refresh_token_in_body():
    masked = mask_secrets('sending {"refreshToken": "R1-secret-value"}')

    assert "R1-secret-value" not in masked
    assert '"refreshToken": "***"' in masked


def test_plain_message_is_untouched():
    assert mask_secrets("[REFRESH] Starting token refresh") == "[REFRESH] Starting token refresh"


def test_filter_masks_formatted_arguments():
    record = logging.LogRecord(
        "test", logging.INFO, __file__, 1, "header was %s", ("Bearer A1-long-token",), None
    )

    assert SensitiveDataFilter().filter(record)
    assert record.getMessage() == "header was Bearer ***"


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("flitcar_admin.api_client", logging.WARNING, __file__, 10, "boom", None, None)
    record.reason = "refresh_failed"

    data = json.loads(JSONFormatter().format(record))

    assert data["level"] == "WARNING"
    assert data["message"] == "boom"
    assert data["reason"] == "refresh_failed"


def test_setup_logging_installs_single_masked_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging(level="DEBUG", json_logs=True)
        setup_logging(level="DEBUG", json_logs=True)

        assert len(root.handlers) == 1
        handler = root.handlers[0]
        assert isinstance(handler.formatter, JSONFormatter)
        assert any(isinstance(f, SensitiveDataFilter) for f in handler.filters)
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)

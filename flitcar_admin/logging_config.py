"""
Конфигурация структурированного логирования
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Стандартные атрибуты LogRecord, которые не попадают в extra
_RESERVED_ATTRS = frozenset(
    [
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    ]
)

_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE)
_TOKEN_FIELD_RE = re.compile(
    r"""(["']?(?:refresh_?token|refreshToken|access_?token|token)["']?\s*[:=]\s*["']?)[^"',\s}]+""",
    re.IGNORECASE,
)
MASK = "***"


def mask_secrets(text: str) -> str:
    """Замаскировать bearer и refresh токены в строке."""
    text = _BEARER_RE.sub(rf"\g<1>{MASK}", text)
    return _TOKEN_FIELD_RE.sub(rf"\g<1>{MASK}", text)


class SensitiveDataFilter(logging.Filter):
    """
    Фильтр, который вырезает токены из сообщений логов.

    Сообщение форматируется заранее, чтобы маскирование работало
    и для аргументов %-форматирования.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """JSON строка на запись, поля из extra добавляются как есть."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_data.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        )
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Цветной уровень для консоли при локальном запуске."""

    COLORS = {"DEBUG": "\033[36m", "WARNING": "\033[33m", "ERROR": "\033[31m", "CRITICAL": "\033[35m"}
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """
    Настройка логирования для приложения.

    Args:
        level: Уровень логирования (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Использовать JSON формат (для production)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Streamlit перезапускает скрипт, старые handlers не нужны
    root_logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SensitiveDataFilter())
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            ColoredFormatter(
                "[ADMIN] %(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    root_logger.addHandler(handler)

    # httpx логирует каждый запрос на INFO
    for name in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info("Logging configured", extra={"level": level, "json_logs": json_logs})

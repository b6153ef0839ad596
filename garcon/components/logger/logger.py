import json
import logging
import sys
from typing import Any

from garcon.components.logger.logger_interface import LoggerInterface

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log collectors in production."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


class Logger(LoggerInterface):
    _HANDLER_NAME = "garcon"

    def __init__(self, log_format: str = "text", log_level: str = "INFO") -> None:
        self.log_format = (log_format or "text").lower()
        self.log_level = (log_level or "INFO").upper()

        root = logging.getLogger()
        root.setLevel(self.log_level)

        handler = next(
            (h for h in root.handlers if h.get_name() == self._HANDLER_NAME), None
        )
        if handler is None:
            handler = logging.StreamHandler(sys.stdout)
            handler.set_name(self._HANDLER_NAME)
            root.addHandler(handler)

        if self.log_format == "json":
            handler.setFormatter(JsonFormatter())
        else:
            handler.setFormatter(logging.Formatter(TEXT_FORMAT, DATE_FORMAT))

    def get_logger(self, name: str) -> logging.Logger:
        return logging.getLogger(name)

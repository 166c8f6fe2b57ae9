# storefront/utils/logging.py
import json
import logging
import sys
import traceback
from datetime import datetime, timezone

from storefront.utils.settings import LOG_LEVEL, LOG_FORMAT

SERVICE_NAME = "storefront-checkout"

_configured = False


class JSONFormatter(logging.Formatter):
    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": self.service_name,
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "func": record.funcName,
            "line": record.lineno,
        }

        # pola z extra=...
        for key in ("owner_key", "order_id", "product_id", "state"):
            if hasattr(record, key):
                log_obj[key] = getattr(record, key)

        if record.exc_info:
            log_obj["exception"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(log_obj, default=str)


def _configure_root():
    global _configured
    if _configured:
        return

    root = logging.getLogger("storefront")
    root.setLevel(LOG_LEVEL.upper())

    handler = logging.StreamHandler(sys.stdout)
    if LOG_FORMAT.lower() == "json":
        handler.setFormatter(JSONFormatter(SERVICE_NAME))
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    _configure_root()
    return logging.getLogger(name)

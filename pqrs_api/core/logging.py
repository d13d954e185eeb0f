import json
import logging
import sys

from pqrs_api.core.config import settings


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_obj = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        # extra={"props": {...}}
        if hasattr(record, "props"):
            log_obj.update(record.props)

        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


def setup_logging() -> None:
    """
    Configure the root logger once.
    Calling it again (tests build several apps) does not stack handlers.
    """
    root = logging.getLogger()
    if any(getattr(h, "_pqrs_handler", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    if settings.log_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    handler._pqrs_handler = True

    root.addHandler(handler)
    root.setLevel(settings.log_level.upper())

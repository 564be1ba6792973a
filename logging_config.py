# logging_config.py
from __future__ import annotations

import logging
import sys

class RequestIdFilter(logging.Filter):
    """Inject a default request_id if not provided in log 'extra'."""
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = "-"
        return True

def setup_logging(level: int | str = logging.INFO) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    # Reuse an existing stream handler (uvicorn installs one) rather than doubling output
    handler = None
    for h in root.handlers:
        if isinstance(h, logging.StreamHandler):
            handler = h
            break

    fmt = "%(asctime)s %(levelname)s %(name)s [%(process)d] [rid=%(request_id)s] %(message)s"

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        root.addHandler(handler)
    handler.setFormatter(logging.Formatter(fmt))
    if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
        handler.addFilter(RequestIdFilter())

    for name in ("app", "parser", "llm", "security"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.propagate = True

    logging.getLogger("uvicorn.error").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)

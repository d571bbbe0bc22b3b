"""
Structured logging configuration for the Nok RFP builder.
Import and call setup_logging() once at app startup.

Records logged inside a Flask request pick up route/method/sid from
RequestContextFilter, so a wizard's requests can be followed across lines
without every call site passing them in `extra=`.
"""
import logging
import logging.handlers
import os
import json
from datetime import datetime, timezone

from flask import has_request_context, request, session

from nokrfp.core.paths import LOG_DIR

# Keys callers may pass in extra= (plus what RequestContextFilter adds)
CONTEXT_KEYS = ("route", "method", "sid")
EXTRA_KEYS = ("step", "status", "duration_ms", "rfp_file", "pages", "level_name")


def _extras(record) -> dict:
    return {k: getattr(record, k) for k in CONTEXT_KEYS + EXTRA_KEYS
            if getattr(record, k, None) is not None}


class RequestContextFilter(logging.Filter):
    """Stamp route, method and wizard sid on records from inside a request."""
    def filter(self, record):
        if has_request_context():
            record.route = getattr(record, "route", None) or request.path
            record.method = getattr(record, "method", None) or request.method
            record.sid = getattr(record, "sid", None) or session.get("sid")
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line; extras flattened in beside the message."""
    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc)
                          .strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(_extras(record))
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Colored console line with extras appended as key=value."""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record):
        ts = datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S")
        line = f"{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}"
        # route/method are already in the request log message itself
        tail = {k: v for k, v in _extras(record).items() if k not in ("route", "method")}
        if tail:
            line += "  " + " ".join(f"{k}={v}" for k, v in tail.items())
        if self.color:
            line = f"{self.COLORS.get(record.levelname, '')}{line}{self.RESET}"
        if record.exc_info and record.exc_info[0]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level=None, json_logs=None, log_dir=None):
    """
    Configure logging for the full application.

    Args:
        level: Override log level (default: from LOG_LEVEL env or INFO)
        json_logs: Force JSON console format (default: JSON_LOGS env, else human)
        log_dir: Where the rotating log file goes (default: DATA_DIR/logs)
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if json_logs is None:
        json_logs = os.environ.get("JSON_LOGS", "").lower() in ("1", "true", "yes")
    log_dir = log_dir or LOG_DIR

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    root.handlers.clear()
    context = RequestContextFilter()

    console = logging.StreamHandler()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter())
    console.addFilter(context)
    root.addHandler(console)

    # File is always JSON; rotates at 5MB, keeps 5 backups
    try:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, "nokrfp.log"),
            maxBytes=5_000_000, backupCount=5,
        )
        fh.setFormatter(JSONFormatter())
        fh.addFilter(context)
        root.addHandler(fh)
    except OSError as e:
        root.warning("File logging disabled (%s not writable): %s", log_dir, e)

    for name in ("urllib3", "werkzeug", "PIL", "reportlab"):
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("nokrfp").info("Logging initialized", extra={"level_name": level})

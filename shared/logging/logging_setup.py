from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger

LOGGER_NAME = "nips_rag_bridge"

debug_mode = os.getenv("LOG_LEVEL", "info").lower() == "debug"
loglevel = logging.INFO if not debug_mode else logging.DEBUG

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}

_LEVEL_PREFIX: dict[int, str] = {
    logging.CRITICAL: "⛔ ",
    logging.ERROR: "⛔ ",
    logging.WARNING: "⚠️ ",
}

# client libraries that log every request or websocket frame on INFO
_NOISY_LOGGERS = ("httpx", "httpcore", "aiohttp.access", "aiohttp.client", "markdown_it")


class CustomFormatter(logging.Formatter):
    """Timestamps in the configured TIMEZONE, level marker in front of warnings and errors."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # broken format args from a third party logger
            message = str(record.msg)

        # work on a copy, both handlers format the same record
        record = logging.makeLogRecord(record.__dict__)
        record.msg = _LEVEL_PREFIX.get(record.levelno, "") + message
        record.args = ()
        return super().format(record)


class ColoredFormatter(CustomFormatter):
    """Console formatter that colors a line when the record carries a ``color`` attribute."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "", "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Wraps :class:`logging.Logger` and adds a ``color=`` keyword to the log methods.

    Usage::

        logger.info("cache refreshed", color="green")
        logger.warning("relay unreachable", color="yellow")

    Only the console output is colored.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    @staticmethod
    def _with_color(kwargs: dict, color: str | None) -> dict:
        if color is None:
            return kwargs
        extra = dict(kwargs.get("extra") or {})
        extra["color"] = color
        return {**kwargs, "extra": extra}

    def log(self, level: int, msg, *args, color: str | None = None, **kwargs):
        self._logger.log(level, msg, *args, **self._with_color(kwargs, color))

    def debug(self, msg, *args, **kwargs):
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self.log(logging.ERROR, msg, *args, **kwargs)

    def critical(self, msg, *args, **kwargs):
        self.log(logging.CRITICAL, msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        kwargs.setdefault("exc_info", True)
        self.log(logging.ERROR, msg, *args, **kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def build_logging_config(tz_name: str, log_file: str | None) -> dict:
    """Build the dictConfig for a colored console handler and an optional plain file handler."""
    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "colored",
            "level": loglevel,
            "stream": "ext://sys.stdout",
        },
    }
    if log_file:
        handlers["file"] = {
            "class": "logging.FileHandler",
            "formatter": "standard",
            "level": loglevel,
            "filename": log_file,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"()": CustomFormatter, "format": LOG_FORMAT, "datefmt": LOG_DATEFMT, "tz_name": tz_name},
            "colored": {"()": ColoredFormatter, "format": LOG_FORMAT, "datefmt": LOG_DATEFMT, "tz_name": tz_name},
        },
        "handlers": handlers,
        "root": {"handlers": list(handlers), "level": loglevel},
    }


def setup_logging() -> ColorLogger:
    """Configure logging from LOG_LEVEL, TIMEZONE, LOG_TO_FILE and ROOT_DIR.

    The file handler writes to <ROOT_DIR>/logs/app.log unless LOG_TO_FILE is false.
    """
    tz_name = os.getenv("TIMEZONE", "Europe/Berlin")
    log_file = None
    if os.getenv("LOG_TO_FILE", "true").lower() in ("true", "1", "yes"):
        log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, "app.log")

    logging.config.dictConfig(build_logging_config(tz_name, log_file))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))

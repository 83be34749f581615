import json
import logging
import os
import sys

_DATEFMT = "%Y-%m-%d %H:%M:%S"
_STDERR_FORMAT = "[%(levelname)s] %(message)s"
_FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"

# Chatty dependencies that only log usefully at DEBUG
_QUIET_LOGGERS = ("urllib3", "charset_normalizer")


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ``ts``, ``level``, ``logger``, ``msg``.

    A record carrying exception info gets an ``exc`` field with the
    formatted traceback.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = dict(
            ts=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            msg=record.getMessage(),
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _formatter(debug_format: str, text_format: str) -> logging.Formatter:
    if debug_format == "json":
        return JsonFormatter(datefmt=_DATEFMT)
    return logging.Formatter(text_format, datefmt=_DATEFMT)


def _resolve_level(debug: bool, verbose: bool, level: str | None) -> int:
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    name = (os.getenv("LOG_LEVEL") or level or "WARNING").upper()
    return getattr(logging, name, logging.WARNING)


def setup_logging(
    debug: bool = False,
    verbose: bool = False,
    log_file: str | None = None,
    debug_format: str = "text",
    level: str | None = None,
) -> None:
    """
    Configure logging for a CLI run.

    Logs go to stderr so stdout stays clean for the sync report (and
    ``--json`` output). When a log_file is given, records are also appended
    there.

    Args:
        debug: If True, log at DEBUG (overrides everything else).
        verbose: If True, log at INFO so per-page actions are shown.
        log_file: Optional log file path.
        debug_format: "text" (default) or "json" for structured output.
        level: Level name from the config file, used when LOG_LEVEL is unset.

    Environment variables:
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR) used when
                   neither debug nor verbose is set. Default: WARNING.
    """
    log_level = _resolve_level(debug, verbose, level)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_formatter(debug_format, _STDERR_FORMAT))
    handlers: list[logging.Handler] = [stderr_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(_formatter(debug_format, _FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    if log_level != logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

"""Logging for pipeline runs.

Every component logs through structlog under the ``parallel_accounts``
namespace. Records end up as JSON lines in ``pipeline.log`` (everything at the
run level) and ``error.log`` (errors only); the console only shows warnings
unless ``--verbose`` is given. Records carry the thread name so paginator and
detail-worker output can be told apart.
"""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Any

import structlog

LOGGER_NAME = "parallel_accounts"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s"
LOG_FILES = ("pipeline", "error")

_LOGGING_INITIALISED = False


def _default_log_dir() -> Path:
    env_root = os.environ.get("PARALLEL_ACCOUNTS_HOME")
    if env_root:
        return Path(env_root).expanduser().resolve() / "logs"
    return Path(__file__).resolve().parents[1] / "logs"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "formatter": "json",
        "encoding": "utf-8",
    }


def _dict_config(log_dir: Path, verbose: bool) -> dict[str, Any]:
    run_level = "DEBUG" if verbose else "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
                "fmt": LOG_FORMAT,
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                # per-id warnings would drown the result table
                "level": run_level if verbose else "WARNING",
                "formatter": "json",
            },
            "pipeline_file": _file_handler(log_dir / "pipeline.log", run_level),
            "error_file": _file_handler(log_dir / "error.log", "ERROR"),
        },
        "loggers": {
            LOGGER_NAME: {
                "handlers": ["console", "pipeline_file", "error_file"],
                "level": run_level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False, log_dir: Path | None = None) -> structlog.BoundLogger:
    """Create the log files and route structlog through the JSON handlers.

    Only the first call installs handlers; later calls just make sure the log
    files exist so ``log tail`` has something to read.
    """

    global _LOGGING_INITIALISED
    log_dir = log_dir or _default_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    for name in LOG_FILES:
        (log_dir / f"{name}.log").touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        logging.config.dictConfig(_dict_config(log_dir, verbose))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger(LOGGER_NAME)


def component_logger(component: str) -> structlog.BoundLogger:
    """Return a logger under the application namespace bound to ``component``."""

    return structlog.get_logger(f"{LOGGER_NAME}.{component}").bind(component=component)


def log_path(name: str = "pipeline", log_dir: Path | None = None) -> Path:
    return (log_dir or _default_log_dir()) / f"{name}.log"


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


def available_logs(log_dir: Path | None = None) -> list[Path]:
    directory = log_dir or _default_log_dir()
    if not directory.exists():
        return []
    return sorted(directory.glob("*.log"))


__all__ = [
    "available_logs",
    "component_logger",
    "configure_logging",
    "log_path",
    "tail_log",
]

"""Logging setup for the aihub CLI and embedding applications.

Records go to a rotating file under the project root. The HTTP client
libraries behind the backends log every request, so their loggers are held
at the levels listed in settings["logging"]["quiet"]. With verbose=True the
router's backend choices (logged at DEBUG under "aihub") are echoed to stderr.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Any, Mapping

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers that are too chatty at INFO for a CLI run.
DEFAULT_QUIET: dict[str, str] = {
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "openai": "WARNING",
}


def _to_level(value: Any, default: int = logging.INFO) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value).upper())
    return level if isinstance(level, int) else default


def _rotating_file(project_root: Path, cfg: Mapping[str, Any]) -> logging.Handler:
    log_path = project_root / cfg.get("file", "logs/aihub.log")
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=int(cfg.get("max_bytes", 10 * 1024 * 1024)),
        backupCount=int(cfg.get("backup_count", 3)),
        encoding="utf-8",
    )


def _handlers(
    project_root: Path, cfg: Mapping[str, Any], level: int, verbose: bool
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    file_handler = _rotating_file(project_root, cfg)
    file_handler.setLevel(level)
    handlers.append(file_handler)
    if verbose or cfg.get("log_to_console", False):
        console = logging.StreamHandler()
        console.setLevel(logging.DEBUG if verbose else level)
        handlers.append(console)
    return handlers


def setup_logging(
    project_root: Path, settings: Mapping[str, Any], *, verbose: bool = False
) -> None:
    """Replace the root logger's handlers according to settings["logging"].

    Keys: level, file, max_bytes, backup_count, log_to_console, quiet
    (logger name -> minimum level). Quiet levels never go below the root level.
    """
    cfg = settings.get("logging") or {}
    level = _to_level(cfg.get("level", "INFO"))
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)
    for h in root.handlers[:]:
        root.removeHandler(h)
    for handler in _handlers(project_root, cfg, level, verbose):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logging.getLogger("aihub").setLevel(logging.DEBUG if verbose else logging.NOTSET)
    quiet = {**DEFAULT_QUIET, **(cfg.get("quiet") or {})}
    for name, minimum in quiet.items():
        logging.getLogger(name).setLevel(max(level, _to_level(minimum, logging.WARNING)))

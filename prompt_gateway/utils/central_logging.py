"""
Central logging for the gateway.

Console output goes to stderr by default so that the stdio MCP transport keeps
stdout free for protocol frames. When a log directory is configured, rotating
``all.log`` and ``errors.log`` files are written there as well.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO

FMT = "%(asctime)s|%(levelname)-8s|%(name)-28s|%(message)s"
FMT_DETAIL = "%(asctime)s|%(levelname)-8s|%(name)-28s|%(filename)s:%(lineno)d|%(message)s"
DATE_FMT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES, BACKUP = 10 * 1024 * 1024, 5

_init = {"central": False}


class ColorFormatter(logging.Formatter):
    """Formatter with ANSI colors for console."""
    C = {10: '\033[36m', 20: '\033[32m', 30: '\033[33m', 40: '\033[31m', 50: '\033[35m'}
    R = '\033[0m'

    def format(self, r):
        return f"{self.C.get(r.levelno, '')}{super().format(r)}{self.R}"


def _handler(path: Path, level: int = logging.DEBUG) -> RotatingFileHandler:
    h = RotatingFileHandler(path, maxBytes=MAX_BYTES, backupCount=BACKUP, encoding='utf-8')
    h.setLevel(level)
    h.setFormatter(logging.Formatter(FMT_DETAIL, DATE_FMT))
    return h


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    level: int | str = logging.INFO,
    stream: TextIO = sys.stderr,
    log_dir: Optional[str] = None,
    force: bool = False,
) -> None:
    """Initialize logging. Call once at startup; later calls are no-ops unless ``force``."""
    if _init["central"] and not force:
        return

    console_level = _resolve_level(level)
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if log_dir else console_level)
    root.handlers.clear()

    console = logging.StreamHandler(stream)
    console.setLevel(console_level)
    formatter = ColorFormatter(FMT, DATE_FMT) if stream.isatty() else logging.Formatter(FMT, DATE_FMT)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir:
        target = Path(log_dir)
        target.mkdir(parents=True, exist_ok=True)
        root.addHandler(_handler(target / "all.log"))
        root.addHandler(_handler(target / "errors.log", logging.ERROR))

    # Uvicorn installs its own handlers; route everything through the root logger
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)

    _init["central"] = True
    logging.getLogger("prompt_gateway.system").debug(
        "Logging initialized level=%s log_dir=%s", logging.getLevelName(console_level), log_dir or "-"
    )

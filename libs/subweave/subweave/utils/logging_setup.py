"""Logging initialization for library hosts and the local runner."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from subweave.config import LoggingSettings, Settings

ROOT_LOGGER = "subweave"
# HTTP client loggers log every request at INFO.
_HTTP_LOGGERS = ("httpx", "httpcore")


def _resolve_level(name: str | None, default: int = logging.INFO) -> int:
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


def _file_handler(cfg: LoggingSettings, log_dir: str) -> RotatingFileHandler:
    path = Path(str(cfg.file))
    if not path.is_absolute():
        path = Path(log_dir) / path
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(cfg.max_bytes),
        backupCount=int(cfg.backup_count),
        encoding="utf-8",
    )


def setup_logging(settings: Settings, *, force: bool = False) -> logging.Logger:
    """Attach handlers to the `subweave` logger tree only.

    Host application loggers are left alone. Repeated calls are no-ops unless
    `force` is set.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if getattr(logger, "_subweave_configured", False) and not force:
        return logger

    cfg = settings.logging
    level = _resolve_level(cfg.level)
    formatter = logging.Formatter(fmt=str(cfg.format), datefmt=str(cfg.datefmt))

    handlers: list[logging.Handler] = []
    if cfg.console:
        handlers.append(logging.StreamHandler())
    if cfg.file:
        handlers.append(_file_handler(cfg, settings.log_dir))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    for old in logger.handlers:
        old.close()
    logger.setLevel(level)
    logger.handlers = handlers
    logger.propagate = not handlers

    http_level = _resolve_level(cfg.http_level, logging.WARNING)
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    setattr(logger, "_subweave_configured", True)
    return logger

# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

from __future__ import annotations

import logging

import structlog

from reqtrace.config import Settings, get_settings

TEXT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def json_formatter() -> structlog.stdlib.ProcessorFormatter:
    """Render standard-library records as one JSON object per line."""
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
    )


def configure_logging(settings: Settings | None = None) -> None:
    """Install a root handler using ``log_level`` and ``log_format`` from settings."""
    settings = settings or get_settings()
    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(json_formatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logging.basicConfig(level=settings.log_level.upper(), handlers=[handler], force=True)

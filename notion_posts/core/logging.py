"""Loguru setup for the retrieval pipeline.

Every record carries the component ``name`` and the root ``page`` of the
assembly run it belongs to, so interleaved retry and batch lines from
concurrent requests can be told apart. Terminal failures are mirrored to
Slack when a webhook is configured.
"""

import logging
import sys
from pathlib import Path
from typing import Any, ContextManager

import httpx
from loguru import logger

from notion_posts.core.config import settings

NO_PAGE = "-"

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {extra[name]}:{function}:{line} | page={extra[page]} | {message}"

_VALID_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}

_logging_configured = False


class InterceptHandler(logging.Handler):
    """Redirect stdlib logs (uvicorn, httpx) to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_name == "emit":
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def slack_text(record: dict) -> str:
    extra = record["extra"]
    where = f"{extra.get('name', 'notion_posts')}:{record['function']}:{record['line']}"
    page = extra.get("page", NO_PAGE)
    if page != NO_PAGE:
        where = f"{where} (page {page})"
    return f"[{record['level'].name}] {where}\n{record['message']}"


def _slack_sink(message: Any) -> None:
    if not settings.SLACK_WEBHOOK_URL:
        return

    try:
        httpx.post(settings.SLACK_WEBHOOK_URL, json={"text": slack_text(message.record)}, timeout=5.0)
    except httpx.HTTPError:
        # Logging here would feed straight back into this sink
        pass


def _resolve_level(raw: str | None) -> str:
    level = (raw or "INFO").strip().upper()
    level = {"WARN": "WARNING", "FATAL": "CRITICAL"}.get(level, level)
    return level if level in _VALID_LEVELS else "INFO"


def configure_logging() -> None:
    global _logging_configured

    if _logging_configured:
        return
    _logging_configured = True

    level = _resolve_level(settings.effective_log_level)

    logger.remove()
    logger.configure(extra={"name": "notion_posts", "page": NO_PAGE})
    logger.add(sys.stdout, level=level, format=LOG_FORMAT, backtrace=False, diagnose=False)

    if settings.LOG_TO_FILE:
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "app.log",
            level=level,
            format=LOG_FORMAT,
            rotation="10 MB",
            retention="14 days",
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )

    if settings.SLACK_WEBHOOK_URL:
        logger.add(_slack_sink, level="ERROR", enqueue=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]
        logging.getLogger(logger_name).propagate = False

    # httpx logs every request at INFO; keep that out of the retry trail
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str, **context: Any) -> logger.__class__:
    return logger.bind(name=name, **context)


def page_context(page_id: Any) -> ContextManager[None]:
    """Tag every record emitted inside the block (including awaited tasks) with ``page_id``."""
    return logger.contextualize(page=page_id if isinstance(page_id, str) and page_id.strip() else NO_PAGE)


configure_logging()

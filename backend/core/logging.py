from __future__ import annotations

import logging
import logging.handlers

from core.config import Settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_FILE_NAME = "timetable.log"

# Library loggers that drown out the app at DEBUG.
_QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "httpx")


def resolve_log_level(app_settings: Settings) -> int:
    if app_settings.log_level:
        return logging.getLevelName(app_settings.log_level)
    return logging.INFO if app_settings.is_production else logging.DEBUG


def setup_logging(app_settings: Settings) -> None:
    """Install console logging, plus a rotating file under LOG_DIR in production.

    Calling it again is a no-op once the root logger has handlers.
    """

    root = logging.getLogger()
    if root.handlers:
        return

    level = resolve_log_level(app_settings)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if app_settings.is_production:
        app_settings.log_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                app_settings.log_dir / LOG_FILE_NAME,
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logging.getLogger(__name__).debug(
        "Logging configured level=%s environment=%s", logging.getLevelName(level), app_settings.environment
    )

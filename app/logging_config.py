# app/logging_config.py
import logging
import logging.config
from pathlib import Path

from app.config import Settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def build_logging_config(log_dir: str, level: str = "INFO") -> dict:
    """
    Console + one rotating mailer.log. Everything (app.*, uvicorn.*) flows up
    to root, so each record is written once per handler.
    """
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "standard",
                "filename": str(path / "mailer.log"),
                "maxBytes": 5 * 1024 * 1024,  # 5 MB
                "backupCount": 5,
                "encoding": "utf-8",
            },
        },
        "loggers": {
            # uvicorn installs its own handlers; hand its records to root instead
            "uvicorn": {"handlers": [], "level": "INFO", "propagate": True},
            "uvicorn.error": {"handlers": [], "propagate": True},
            "uvicorn.access": {"handlers": [], "level": "WARNING", "propagate": True},
            "app": {"level": level, "propagate": True},
            # httpx request lines only when debugging delivery
            "httpx": {"level": "DEBUG" if level == "DEBUG" else "WARNING"},
        },
        "root": {
            "handlers": ["console", "file"],
            "level": level,
        },
    }


def setup_logging(settings: Settings) -> None:
    logging.config.dictConfig(build_logging_config(settings.LOG_DIR, settings.LOG_LEVEL))
    logging.getLogger("app").info("✅ Logging initialized (level=%s, dir=%s)", settings.LOG_LEVEL, settings.LOG_DIR)

import logging

from app.config import Settings
from app.logging_config import build_logging_config, setup_logging


def test_single_rotating_file_under_log_dir(tmp_path):
    cfg = build_logging_config(str(tmp_path / "logs"), "INFO")

    assert (tmp_path / "logs").is_dir()
    assert set(cfg["handlers"]) == {"console", "file"}
    assert cfg["handlers"]["file"]["filename"].endswith("mailer.log")
    assert cfg["root"]["handlers"] == ["console", "file"]


def test_named_loggers_hand_records_to_root(tmp_path):
    loggers = build_logging_config(str(tmp_path), "INFO")["loggers"]

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        assert loggers[name]["handlers"] == []
        assert loggers[name]["propagate"] is True
    assert loggers["app"] == {"level": "INFO", "propagate": True}
    assert loggers["httpx"]["level"] == "WARNING"


def test_httpx_follows_debug_level(tmp_path):
    loggers = build_logging_config(str(tmp_path), "DEBUG")["loggers"]

    assert loggers["httpx"]["level"] == "DEBUG"
    assert loggers["app"]["level"] == "DEBUG"


def test_setup_logging_writes_mailer_log(tmp_path):
    settings = Settings(LOG_DIR=str(tmp_path), LOG_LEVEL="INFO", EMAIL_DRY_RUN=True)
    root = logging.getLogger()
    before, level = list(root.handlers), root.level
    try:
        setup_logging(settings)
        for handler in root.handlers:
            handler.flush()

        assert "Logging initialized" in (tmp_path / "mailer.log").read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            if handler not in before:
                handler.close()
        root.handlers[:] = before
        root.setLevel(level)

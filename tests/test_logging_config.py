from pathlib import Path

from logging_config import QUIET_LOGGERS, build_logging_config


def test_console_only_by_default():
    config = build_logging_config("debug")
    assert list(config["handlers"]) == ["console"]
    assert config["root"] == {"level": "DEBUG", "handlers": ["console"]}


def test_log_file_adds_file_handler(tmp_path):
    config = build_logging_config("INFO", str(tmp_path / "app.log"))

    file_handler = config["handlers"]["file"]
    assert file_handler["class"] == "logging.FileHandler"
    assert Path(file_handler["filename"]) == (tmp_path / "app.log").resolve()
    assert config["root"]["handlers"] == ["console", "file"]


def test_unknown_level_falls_back_to_info():
    assert build_logging_config("chatty")["root"]["level"] == "INFO"


def test_driver_and_access_logs_are_quiet():
    config = build_logging_config("DEBUG")
    for name in QUIET_LOGGERS:
        assert config["loggers"][name] == {"level": "WARNING"}
    assert config["disable_existing_loggers"] is False

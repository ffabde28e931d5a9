import logging

from crudkit.config.settings import Settings
from crudkit.core.logging.builder import make_dict_config, setup_logging


def make_settings(**overrides) -> Settings:
    values = {"LOG_FORMAT": "json", "LOG_LEVEL": "INFO", "LOG_TO_STDOUT": True, "ENV": "testing"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_console_only_by_default():
    cfg = make_dict_config(make_settings())

    assert list(cfg["handlers"]) == ["console"]
    assert cfg["handlers"]["console"]["formatter"] == "json"
    assert cfg["disable_existing_loggers"] is False
    assert cfg["loggers"]["crudkit"]["propagate"] is True


def test_file_handlers_when_logging_to_directory(tmp_path):
    cfg = make_dict_config(make_settings(LOG_TO_STDOUT=False, LOG_DIR=tmp_path))

    assert {"console", "file", "error_file"} <= set(cfg["handlers"])
    assert cfg["handlers"]["error_file"]["formatter"] == "json"
    assert cfg["handlers"]["error_file"]["level"] == "ERROR"
    assert cfg["handlers"]["file"]["filename"].endswith("crudkit.log")


def test_text_format_uses_standard_formatter():
    cfg = make_dict_config(make_settings(LOG_FORMAT="text"))

    assert cfg["handlers"]["console"]["formatter"] == "standard"


def test_sql_logging_toggle():
    assert make_dict_config(make_settings())["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert make_dict_config(make_settings(ENABLE_SQL_LOGGING=True))["loggers"]["sqlalchemy.engine"]["level"] == "INFO"


def test_setup_logging_creates_log_dir(tmp_path):
    settings = make_settings(LOG_TO_STDOUT=False, LOG_DIR=tmp_path / "logs")
    assert not settings.LOG_DIR.exists()

    setup_logging(settings)
    try:
        assert settings.LOG_DIR.exists()
        logging.getLogger("crudkit.test").error("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "written to file" in (settings.LOG_DIR / "errors.log").read_text(encoding="utf-8")
    finally:
        # back to the session-wide console configuration
        setup_logging(make_settings())

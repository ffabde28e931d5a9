from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import ValidationInfo, field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from string import Formatter

# Number of positional arguments each log message template receives
TEMPLATE_ARITY = {
    "not_found": 2,        # model name, id
    "create_failed": 2,    # model name, caller
    "update_failed": 3,    # model name, id, caller
    "delete_failed": 2,    # model name, id
    "retrieval_error": 0,
}


def check_template(template: str, arity: int) -> str:
    """
    Return `template` if it can be rendered with `arity` positional arguments.

    Raises:
        ValueError: malformed braces, named placeholders ("{name}"), or more
            placeholders than arguments.
    """
    needed = 0
    auto = 0
    manual = False
    try:
        fields = [field for _, field, _, _ in Formatter().parse(template) if field is not None]
    except ValueError as exc:
        raise ValueError(f"Malformed message template {template!r}: {exc}") from exc

    for field in fields:
        # "{0.attr}" / "{0[key]}" address the argument before the first "." or "["
        head = field.split(".", 1)[0].split("[", 1)[0]
        if head == "":
            auto += 1
            needed = max(needed, auto)
        elif head.isdigit():
            manual = True
            needed = max(needed, int(head) + 1)
        else:
            raise ValueError(f"Message template {template!r} uses named placeholder {{{head}}}; use {{}}")

    if auto and manual:
        raise ValueError(f"Message template {template!r} mixes {{}} and {{0}} style placeholders")

    if needed > arity:
        raise ValueError(f"Message template {template!r} expects {needed} argument(s), at most {arity} are supplied")
    return template


class Settings(BaseSettings):
    """
    Settings loaded from the environment (or a `.env` file in the working directory).

    Every field has a default, so the service works out of the box; deployments
    override only what they need, e.g. `LOG_FORMAT=text` or `LOG_NOT_FOUND_MESSAGE=...`.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path | None = None
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False
    # Attach full stack traces to error-level storage fault logs
    LOG_INCLUDE_TRACE: bool = True

    # Log message templates, positional "{}" placeholders:
    #   not_found:       model name, id
    #   create_failed:   model name, caller
    #   update_failed:   model name, id, caller
    #   delete_failed:   model name, id
    #   retrieval_error: (none)
    LOG_NOT_FOUND_MESSAGE: str = "{} with id {} could not be found"
    LOG_CREATE_FAILED_MESSAGE: str = "{} could not be created in {}"
    LOG_UPDATE_FAILED_MESSAGE: str = "{} with id {} could not be updated in {}"
    LOG_DELETE_FAILED_MESSAGE: str = "{} with id {} could not be deleted"
    LOG_RETRIEVAL_ERROR_MESSAGE: str = "There was an error retrieving the records"

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        """Logging expects upper-case level names ("debug" -> "DEBUG")."""
        return v.upper() if isinstance(v, str) else v

    @field_validator("LOG_FORMAT", mode="before")
    @classmethod
    def normalize_log_format(cls, v: str | None) -> str | None:
        return v.lower() if isinstance(v, str) else v

    @field_validator(
        "LOG_NOT_FOUND_MESSAGE",
        "LOG_CREATE_FAILED_MESSAGE",
        "LOG_UPDATE_FAILED_MESSAGE",
        "LOG_DELETE_FAILED_MESSAGE",
        "LOG_RETRIEVAL_ERROR_MESSAGE",
    )
    @classmethod
    def validate_message_template(cls, v: str, info: ValidationInfo) -> str:
        """A template with more placeholders than arguments fails at startup, not at log time."""
        key = info.field_name.removeprefix("LOG_").removesuffix("_MESSAGE").lower()
        return check_template(v, TEMPLATE_ARITY[key])

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# get_settings() takes no arguments and always returns the same settings from the environment,
# so caching it with @lru_cache() avoids re-reading the environment on every service construction.
@lru_cache()
def get_settings() -> Settings:
    return Settings()

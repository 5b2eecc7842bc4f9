"""
Browser driver data models.
"""
import os
import sys
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_BASE_URL = "http://localhost:3000"


class LogLevel(IntEnum):
    """Browser console capture levels, ordered by severity."""
    ALL = 0
    DEBUG = 700
    INFO = 800
    WARNING = 900
    SEVERE = 1000
    OFF = sys.maxsize

    @classmethod
    def for_console_type(cls, console_type: str) -> "LogLevel":
        return CONSOLE_TYPE_LEVELS.get(console_type, cls.INFO)


CONSOLE_TYPE_LEVELS = {
    "error": LogLevel.SEVERE,
    "assert": LogLevel.SEVERE,
    "warning": LogLevel.WARNING,
    "info": LogLevel.INFO,
    "log": LogLevel.INFO,
    "debug": LogLevel.DEBUG,
    "trace": LogLevel.DEBUG,
}


class BrowserType(Enum):
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"

    @classmethod
    def from_name(cls, name: str) -> "BrowserType":
        try:
            return BROWSER_ALIASES[name.lower()]
        except KeyError:
            raise ValueError(f"Unsupported browser: {name}") from None


BROWSER_ALIASES = {
    "chrome": BrowserType.CHROMIUM,
    "chromium": BrowserType.CHROMIUM,
    "edge": BrowserType.CHROMIUM,
    "firefox": BrowserType.FIREFOX,
    "webkit": BrowserType.WEBKIT,
    "safari": BrowserType.WEBKIT,
}


class FailureKind(Enum):
    TIMEOUT = "timeout"
    INTERACTION = "interaction"
    SESSION_CLOSED = "session_closed"


def _default_base_url() -> str:
    return os.environ.get("BASE_URL") or DEFAULT_BASE_URL


class DriverOptions(BaseModel):
    """Options for a BrowserDriver, resolved once and immutable afterwards.

    Fields left unset or passed as ``None`` take their defaults. An unknown
    ``log_level`` falls back to ``SEVERE``.
    """
    model_config = ConfigDict(frozen=True)

    timeout: int = Field(1000, gt=0)
    browser: str = Field("chrome", min_length=1, max_length=20)
    base_url: str = Field(default_factory=_default_base_url)
    log_level: LogLevel = LogLevel.SEVERE
    home_page_path: str = "/"
    debug_directory: Path = Path("tmp/selenium-debug")
    headless: bool = True
    viewport_width: int = Field(1280, ge=320, le=3840)
    viewport_height: int = Field(720, ge=240, le=2160)

    @model_validator(mode="before")
    @classmethod
    def _drop_unset(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("log_level", mode="before")
    @classmethod
    def _known_log_level(cls, value: Any) -> LogLevel:
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, str) and value in LogLevel.__members__:
            return LogLevel[value]
        return LogLevel.SEVERE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeout": self.timeout,
            "browser": self.browser,
            "base_url": self.base_url,
            "log_level": self.log_level.name,
            "home_page_path": self.home_page_path,
            "debug_directory": str(self.debug_directory),
            "headless": self.headless,
            "viewport_width": self.viewport_width,
            "viewport_height": self.viewport_height,
        }


@dataclass
class ConsoleLogEntry:
    """A browser console log entry."""
    level: LogLevel
    message: str
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def format(self) -> str:
        return f"[{self.timestamp}] ({self.level.name}) - {self.message}"

    def to_dict(self) -> dict:
        return {
            "level": self.level.name,
            "message": self.message,
            "timestamp": self.timestamp,
        }

"""
Browser driver for end-to-end tests.

Provides a Playwright-based session facade with:
- Navigation relative to a configured base URL
- Wait-and-act helpers for elements, titles and URLs bounded by one timeout
- Click, fill-in and select helpers for form controls
- Console log and screenshot capture into a debug directory on failure
"""
from .driver import BrowserDriver, DriverError
from .matching import MatchTarget, Pattern, Text
from .models import DriverOptions, FailureKind, LogLevel

__all__ = [
    "BrowserDriver",
    "DriverError",
    "DriverOptions",
    "FailureKind",
    "LogLevel",
    "MatchTarget",
    "Pattern",
    "Text",
]

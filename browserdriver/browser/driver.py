"""
BrowserDriver - helper facade over a Playwright browser session for E2E tests.

Owns one browser session and offers wait-and-act helpers bounded by a single
timeout. Every failure goes through ``error()``, which saves the browser console
log and a screenshot to a debug directory before raising ``DriverError``.
"""
import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, List, NoReturn, Optional, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from ..logging_config import get_logger, log_with_fields
from .artifacts import DebugArtifactWriter
from .matching import MatchTarget, as_target, compose_selector, page_path, slugify
from .models import BrowserType, ConsoleLogEntry, DriverOptions, FailureKind, LogLevel

logger = get_logger("browserdriver.browser.driver")

POLL_INTERVAL = 0.05


class DriverError(Exception):
    """Raised by every failing driver operation."""

    def __init__(self, message: str, kind: FailureKind, debug_dir: Optional[Path] = None):
        super().__init__(message)
        self.kind = kind
        self.debug_dir = debug_dir


class BrowserDriver:
    """Owns one Playwright browser session and wraps it for E2E tests.

    Usage:
        async with BrowserDriver(base_url="http://localhost:8000") as driver:
            await driver.start()
            await driver.fill_in("#search", "kittens", enter=True)
            await driver.expect_element(".results", "kittens")
    """

    def __init__(
        self,
        options: Optional[DriverOptions] = None,
        artifact_writer: Optional[DebugArtifactWriter] = None,
        **overrides: Any,
    ):
        if options is not None and overrides:
            options = DriverOptions(**{**options.model_dump(), **overrides})
        self.options = options or DriverOptions(**overrides)
        self.timeout = self.options.timeout
        self.artifacts = artifact_writer or DebugArtifactWriter()
        self._playwright = None
        self._browser = None
        self._context = None
        self._page = None
        self._console_logs: List[ConsoleLogEntry] = []

    @classmethod
    async def create(
        cls,
        options: Optional[DriverOptions] = None,
        artifact_writer: Optional[DebugArtifactWriter] = None,
        **overrides: Any,
    ) -> "BrowserDriver":
        """Create a driver and open its browser session."""
        driver = cls(options, artifact_writer=artifact_writer, **overrides)
        await driver.launch()
        return driver

    async def __aenter__(self) -> "BrowserDriver":
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self.is_open:
            await self.quit()

    @property
    def is_open(self) -> bool:
        return self._page is not None

    # ==================== Session Lifecycle ====================

    async def launch(self):
        """Open the browser session with console capture enabled."""
        if self.is_open:
            return
        browser_type = BrowserType.from_name(self.options.browser)

        try:
            self._playwright = await async_playwright().start()
            launcher = {
                BrowserType.CHROMIUM: self._playwright.chromium,
                BrowserType.FIREFOX: self._playwright.firefox,
                BrowserType.WEBKIT: self._playwright.webkit,
            }[browser_type]

            self._browser = await launcher.launch(headless=self.options.headless)
            self._context = await self._browser.new_context(
                viewport={
                    "width": self.options.viewport_width,
                    "height": self.options.viewport_height,
                },
            )
            page = await self._context.new_page()
            page.set_default_timeout(self.timeout)
            page.on("console", self._on_console)
            page.on("pageerror", self._on_page_error)
            self._page = page
        except Exception as e:
            logger.error(f"Failed to open browser session ({self.options.browser}): {e}")
            await self._release()
            raise

        logger.info(
            f"Opened {browser_type.value} session against {self.options.base_url} "
            f"(console level {self.options.log_level.name})"
        )

    async def start(self):
        """Delete cookies and visit the home page."""
        await self._get_context().clear_cookies()
        await self.visit(self.options.home_page_path)

    async def quit(self):
        """Close the browser session."""
        if not self.is_open:
            raise DriverError("Browser session is already closed", FailureKind.SESSION_CLOSED)
        await self.artifacts.drain()
        await self._release()
        logger.info("Closed browser session")

    async def _release(self):
        self._page = None
        for name in ("_context", "_browser"):
            resource = getattr(self, name)
            setattr(self, name, None)
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                logger.error(f"Error closing browser{name.replace('_', ' ')}: {e}")
        if self._playwright is not None:
            playwright, self._playwright = self._playwright, None
            await playwright.stop()

    # ==================== Navigation ====================

    async def visit(self, page: str):
        """Visit ``page`` relative to the base URL."""
        url = self.options.base_url + page_path(page)
        logger.debug(f"Visiting {url}")
        await self._get_page().goto(url)

    # ==================== Interaction ====================

    async def click(self, selector: str):
        element = await self.expect_element(selector)

        try:
            await element.click()
        except Exception:
            await self.error(f"Unable to click selector: '{selector}'", FailureKind.INTERACTION)

    async def fill_in(self, selector: str, value: str, enter: bool = False):
        """Type ``value`` into the element, optionally followed by Enter."""
        element = await self.expect_element(selector)

        try:
            await element.type(value)
            if enter:
                await element.press("Enter")
        except Exception:
            await self.error(f"Unable to send keys to selector: '{selector}'", FailureKind.INTERACTION)

    async def select(self, selector: str, value: str):
        """Select the first ``<option>`` whose value or visible text is ``value``."""
        element = await self.expect_element(selector)

        try:
            await element.click()
            options = await element.query_selector_all("option")
            matches = await asyncio.gather(*(self._option_matches(opt, value) for opt in options))
            if True not in matches:
                raise LookupError(f"No option with value or text {value!r}")
            option = options[matches.index(True)]

            await element.select_option(element=option)
            await self._wait_until(lambda: option.evaluate("el => el.selected"))
        except Exception:
            await self.error(
                f"Unable to select value/text: '{value}' from selector: '{selector}'",
                FailureKind.INTERACTION,
            )

    async def scroll_to(self, selector: str):
        element = await self.expect_element(selector)

        try:
            await element.evaluate("el => el.scrollIntoView()")
        except Exception:
            await self.error(f"Unable to scroll to selector: '{selector}'", FailureKind.INTERACTION)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Run ``expression`` in the page context and return its result."""
        page = self._get_page()

        try:
            return await page.evaluate(expression, arg)
        except Exception:
            await self.error(f"Unable to evaluate script: '{expression}'", FailureKind.INTERACTION)

    # ==================== Expectations ====================

    async def expect_element(
        self,
        selector: str,
        content: Union[str, MatchTarget, None] = None,
        exact: bool = False,
    ):
        """Wait for a visible element matching ``selector`` and return it.

        When ``content`` is given, also wait for the element's visible text to
        contain it (or equal it with ``exact``, or match it for a ``Pattern``).
        """
        page = self._get_page()
        target = as_target(content, exact) if content else None

        try:
            element = await page.wait_for_selector(selector, state="attached", timeout=self.timeout)
            await element.wait_for_element_state("visible", timeout=self.timeout)

            if target is not None:
                await self._wait_until(lambda: self._text_satisfies(element, target))

            return element
        except Exception:
            msg = f"No element with selector: '{selector}'"
            if target is not None:
                msg += f" and text that {target.describe()}"
            await self.error(msg)

    async def expect_title(self, title: Union[str, MatchTarget], exact: bool = False):
        page = self._get_page()
        target = as_target(title, exact)

        async def title_satisfies():
            return target.test(await page.title())

        try:
            await self._wait_until(title_satisfies)
        except Exception:
            await self.error(f"Title {target.describe_negative()}")

    async def expect_page(self, page: Union[str, MatchTarget], exact: bool = False):
        """Wait for the current URL to contain, equal or match ``page``.

        An exact comparison is made against the full URL built from the base URL.
        """
        current = self._get_page()
        target = as_target(page, exact)
        url_target = target.for_url(self.options.base_url)

        async def url_satisfies():
            return url_target.test(current.url)

        try:
            await self._wait_until(url_satisfies)
        except Exception:
            await self.error(f"Page {target.describe_negative()}")

    async def expect_stale(self, element):
        """Wait for ``element`` to be detached from the document."""
        self._get_page()

        try:
            await self._wait_until(lambda: self._is_stale(element))
        except Exception:
            await self.error(f"Element is not stale: '{await self.element_selector(element)}'")

    async def element_selector(self, element) -> str:
        element_id = await element.get_attribute("id")
        class_name = await element.get_attribute("class")
        tag = await element.evaluate("el => el.tagName.toLowerCase()")
        return compose_selector(tag, element_id, class_name)

    # ==================== Failure Handling ====================

    async def error(self, msg: str, kind: FailureKind = FailureKind.TIMEOUT) -> NoReturn:
        """Save browser logs and a screenshot for ``msg``, then raise ``DriverError``."""
        page = self._get_page()
        debug_dir = Path(self.options.debug_directory) / f"{int(time.time() * 1000)}-{slugify(msg)}"

        try:
            await self.artifacts.write_log(debug_dir, self.get_browser_logs())
        except OSError as e:
            logger.error(f"Failed to write debug log to {debug_dir}: {e}")
        self.artifacts.schedule_screenshot(debug_dir, page.screenshot)

        log_with_fields(
            logger, logging.ERROR, "Browser driver failure",
            kind=kind.value, debug_dir=str(debug_dir), failure=msg,
        )

        msg += f"\n\nDebug files created in: {debug_dir}\n"
        msg += self.artifacts.describe_directory(debug_dir)

        raise DriverError(msg, kind, debug_dir=debug_dir)

    # ==================== Log Access ====================

    def get_browser_logs(self) -> List[ConsoleLogEntry]:
        """Return and clear the buffered browser console entries."""
        logs, self._console_logs = self._console_logs, []
        return logs

    # ==================== Internal Helpers ====================

    def _get_page(self):
        if self._page is None:
            raise DriverError("Browser session is not open", FailureKind.SESSION_CLOSED)
        return self._page

    def _get_context(self):
        self._get_page()
        return self._context

    async def _wait_until(self, condition: Callable[[], Awaitable[Any]]) -> Any:
        """Poll ``condition`` until it returns a truthy value or the timeout elapses.

        The condition is always checked once before the timeout applies.
        """
        result = await condition()
        if result:
            return result

        async def poll():
            while True:
                result = await condition()
                if result:
                    return result
                await asyncio.sleep(POLL_INTERVAL)

        return await asyncio.wait_for(poll(), timeout=self.timeout / 1000)

    @staticmethod
    async def _text_satisfies(element, target: MatchTarget) -> bool:
        return target.test(await element.inner_text())

    @staticmethod
    async def _option_matches(option, value: str) -> bool:
        if await option.get_attribute("value") == value:
            return True
        return await option.inner_text() == value

    @staticmethod
    async def _is_stale(element) -> bool:
        try:
            return await element.evaluate("el => !el.isConnected")
        except PlaywrightError:
            return True

    def _record(self, level: LogLevel, message: str):
        if self.options.log_level != LogLevel.OFF and level >= self.options.log_level:
            self._console_logs.append(ConsoleLogEntry(level=level, message=message))

    def _on_console(self, msg):
        self._record(LogLevel.for_console_type(msg.type), msg.text)

    def _on_page_error(self, error):
        self._record(LogLevel.SEVERE, str(error))

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from browserdriver.browser.models import DriverOptions

BASE_URL = "http://localhost:3000"


@pytest.fixture
def pw():
    """Mocked Playwright object graph, patched into the driver module."""
    page = MagicMock()
    page.url = f"{BASE_URL}/"
    page.goto = AsyncMock()
    page.title = AsyncMock(return_value="")
    page.wait_for_selector = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"\x89PNG\r\n")
    page.evaluate = AsyncMock()

    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.clear_cookies = AsyncMock()
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()

    playwright = MagicMock()
    for launcher in (playwright.chromium, playwright.firefox, playwright.webkit):
        launcher.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()

    starter = MagicMock()
    starter.start = AsyncMock(return_value=playwright)

    with patch("browserdriver.browser.driver.async_playwright", return_value=starter):
        yield SimpleNamespace(
            starter=starter,
            playwright=playwright,
            browser=browser,
            context=context,
            page=page,
        )


@pytest.fixture
def options(tmp_path):
    return DriverOptions(
        timeout=50,
        base_url=BASE_URL,
        debug_directory=tmp_path / "debug",
    )


def make_element(text="", tag="div", element_id=None, class_name=None, connected=True):
    """Build a mocked ElementHandle."""
    element = MagicMock()
    element.wait_for_element_state = AsyncMock()
    element.inner_text = AsyncMock(return_value=text)
    element.click = AsyncMock()
    element.type = AsyncMock()
    element.press = AsyncMock()
    element.select_option = AsyncMock()
    element.query_selector_all = AsyncMock(return_value=[])

    attributes = {"id": element_id, "class": class_name}
    element.get_attribute = AsyncMock(side_effect=lambda name: attributes.get(name))

    async def evaluate(script, *args):
        if "tagName" in script:
            return tag
        if "isConnected" in script:
            return not connected
        return None

    element.evaluate = AsyncMock(side_effect=evaluate)
    return element


def make_option(value, text, selected=True):
    option = MagicMock()
    option.get_attribute = AsyncMock(side_effect=lambda name: value if name == "value" else None)
    option.inner_text = AsyncMock(return_value=text)
    option.evaluate = AsyncMock(return_value=selected)
    return option

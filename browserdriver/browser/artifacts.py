"""
Debug artifact writing for driver failures.

Each failure gets its own directory holding the captured browser console log
and a screenshot. The screenshot is captured and written by a background task
whose errors are logged and never raised to the caller.
"""
import asyncio
from pathlib import Path
from typing import Awaitable, Callable, List, Set

import aiofiles

from ..logging_config import get_logger
from .models import ConsoleLogEntry

logger = get_logger("browserdriver.browser.artifacts")

LOG_FILENAME = "browser.log"
SCREENSHOT_FILENAME = "screenshot.png"


class DebugArtifactWriter:
    """Writes debug bundles into failure directories."""

    def __init__(self):
        self._pending: Set[asyncio.Task] = set()

    async def write_log(self, directory: Path, entries: List[ConsoleLogEntry]) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        log_path = directory / LOG_FILENAME
        async with aiofiles.open(log_path, "a", encoding="utf-8") as f:
            await f.write("\n".join(entry.format() for entry in entries))
        return log_path

    def schedule_screenshot(
        self,
        directory: Path,
        capture: Callable[[], Awaitable[bytes]],
    ) -> asyncio.Task:
        """Capture and save a screenshot in the background (best effort)."""
        task = asyncio.create_task(self._save_screenshot(directory / SCREENSHOT_FILENAME, capture))
        self._pending.add(task)
        task.add_done_callback(self._on_screenshot_done)
        return task

    async def _save_screenshot(self, path: Path, capture: Callable[[], Awaitable[bytes]]):
        data = await capture()
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)
        logger.debug(f"Saved screenshot to {path}")

    def _on_screenshot_done(self, task: asyncio.Task):
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Failed to save debug screenshot: {error}")

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self):
        """Wait for every scheduled screenshot write to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def describe_directory(self, directory: Path) -> str:
        """List the files of ``directory`` with their sizes."""
        lines = []
        try:
            if not directory.is_dir():
                return ""
            for path in sorted(directory.iterdir()):
                lines.append(f"{path.stat().st_size:>10} {path.name}")
        except OSError as e:
            logger.error(f"Failed to list debug directory {directory}: {e}")
            return ""
        return "\n".join(lines) + ("\n" if lines else "")

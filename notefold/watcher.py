"""
Change-triggered rescans.

Watchdog callbacks run on observer threads, not the event loop, so they only
set an asyncio.Event through loop.call_soon_threadsafe(). The loop waits for
a quiet period, then runs one pass. A pass that writes triggers one more
event; that pass computes zero changes and the loop goes quiet again.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


class VaultChangeHandler(FileSystemEventHandler):
    """Forwards relevant markdown changes to a thread-safe callback."""

    RELEVANT_EXTENSIONS = {".md"}

    def __init__(self, vault_path: Path, on_change: Callable[[str], None]):
        super().__init__()
        self.vault_path = vault_path
        self.on_change = on_change

    def _is_relevant(self, path: str) -> bool:
        p = Path(path)
        try:
            rel = p.relative_to(self.vault_path)
        except ValueError:
            return False

        # Skip hidden files and directories
        if any(part.startswith(".") for part in rel.parts):
            return False
        return p.suffix.lower() in self.RELEVANT_EXTENSIONS

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        paths = [str(event.src_path)]
        dest = getattr(event, "dest_path", None)
        if dest:
            paths.append(str(dest))
        for path in paths:
            if self._is_relevant(path):
                logger.debug(f"File event: {event.event_type} - {path}")
                self.on_change(path)
                return


class RescanLoop:
    """Runs `on_pass` once at start and again after each burst of changes."""

    DEBOUNCE_SECONDS = 1.0

    def __init__(
        self,
        vault_path: Path,
        on_pass: Callable[[], Awaitable[None]],
        debounce_seconds: float | None = None,
    ):
        self.vault_path = vault_path
        self.on_pass = on_pass
        self.debounce_seconds = self.DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self._changed = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self.passes = 0

    def notify(self, path: str = "") -> None:
        """Thread-safe: mark the vault as changed."""
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._changed.set)

    async def run_pass(self) -> None:
        self.passes += 1
        try:
            await self.on_pass()
        except Exception:
            # A failed pass must not stop the watcher
            logger.exception("Rescan pass failed")

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Watch until `stop` is set (or forever)."""
        self._loop = asyncio.get_running_loop()
        stop = stop or asyncio.Event()

        handler = VaultChangeHandler(self.vault_path, self.notify)
        observer = Observer()
        observer.schedule(handler, str(self.vault_path), recursive=True)
        observer.start()
        logger.info(f"Watching {self.vault_path}")

        try:
            await self.run_pass()
            while not stop.is_set():
                changed = asyncio.create_task(self._changed.wait())
                stopped = asyncio.create_task(stop.wait())
                done, pending = await asyncio.wait({changed, stopped}, return_when=asyncio.FIRST_COMPLETED)
                for task in pending:
                    task.cancel()
                if stopped in done:
                    break
                # Quiet period: absorb editor save bursts
                while True:
                    self._changed.clear()
                    await asyncio.sleep(self.debounce_seconds)
                    if not self._changed.is_set():
                        break
                await self.run_pass()
        finally:
            observer.stop()
            observer.join()

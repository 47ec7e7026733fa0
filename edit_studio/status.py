"""Rotating status messages shown while an edit is pending."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Callable, Sequence

LOADING_MESSAGES = (
    "Gemini is working its magic...",
    "Analyzing your image...",
    "Getting creative with your prompt...",
    "This might take a moment...",
    "Generating new pixels...",
    "Almost there...",
)


class StatusRotation:
    """Async context manager owning one task that cycles through ``messages``.

    The first message is reported as soon as the task runs, then the next one
    every ``interval_s`` seconds, wrapping after the last. Leaving the block
    cancels and awaits the task whatever the exit path.
    """

    def __init__(
        self,
        on_message: Callable[[str], None] | None,
        messages: Sequence[str] = LOADING_MESSAGES,
        interval_s: float = 2.0,
    ) -> None:
        if not messages:
            raise ValueError("messages must not be empty")
        self.on_message = on_message
        self.messages = tuple(messages)
        self.interval_s = max(0.01, interval_s)
        self._task: asyncio.Task[None] | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def __aenter__(self) -> "StatusRotation":
        self._task = asyncio.create_task(self._run())
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def stop(self) -> None:
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        index = 0
        while True:
            if self.on_message is not None:
                self.on_message(self.messages[index])
            await asyncio.sleep(self.interval_s)
            index = (index + 1) % len(self.messages)

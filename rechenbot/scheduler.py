"""Turn scheduling: user message now, reply after a short thinking delay."""

import asyncio
import logging

from rechenbot.models import Message, Speaker
from rechenbot.resolver import ResponseResolver
from rechenbot.transcript import TranscriptStore

logger = logging.getLogger(__name__)


class TurnScheduler:
    """Queue turns and resolve them one at a time, in arrival order.

    A single worker task owns resolution, so replies land in the transcript
    in the same order the inputs were submitted, whatever the delay.
    """

    def __init__(
        self,
        resolver: ResponseResolver,
        transcript: TranscriptStore,
        delay_sec: float = 0.5,
    ) -> None:
        self._resolver = resolver
        self._transcript = transcript
        self._delay_sec = delay_sec
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self._worker: asyncio.Task | None = None

    def start(self) -> None:
        """Start the worker. Must be called from inside a running loop."""
        if self._worker is None:
            self._worker = asyncio.create_task(self._run())

    def submit(self, text: str) -> Message | None:
        """Record the user's input and queue its reply.

        Returns the appended user message, or None when text is blank.
        """
        text = text.strip()
        if not text:
            return None
        message = self._transcript.append(Speaker.USER, text)
        self._queue.put_nowait(text)
        self.start()
        return message

    async def drain(self) -> None:
        """Wait until every queued turn has its reply."""
        await self._queue.join()

    async def close(self) -> None:
        """Finish queued turns, then stop the worker."""
        await self.drain()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    async def _run(self) -> None:
        while True:
            text = await self._queue.get()
            try:
                await asyncio.sleep(self._delay_sec)
                self._transcript.append(Speaker.ASSISTANT, self._reply_for(text))
            finally:
                self._queue.task_done()

    def _reply_for(self, text: str) -> str:
        try:
            return self._resolver.resolve(text)
        except Exception as exc:
            logger.error("Resolver failed on %r: %s", text, exc)
            return self._resolver.fallback

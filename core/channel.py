"""Bounded event queue from the capture thread into the asyncio loop"""
import asyncio
import concurrent.futures
import logging

LOG = logging.getLogger("yokebridge.channel")

_CLOSED = object()


class EventChannel:
    """Single-producer (thread) / single-consumer (task) FIFO.

    The producer blocks while the queue is full, stalling input sampling
    instead of dropping events. The consumer gets None once the producer has
    closed the channel and every queued event has been drained.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int = 128):
        self._loop = loop
        self._queue = asyncio.Queue(maxsize)
        self._closing = False
        self._closed = False

    def put_blocking(self, event, shutdown, poll: float = 0.05) -> bool:
        """Push from a foreign thread. Returns False if shutdown interrupted the push."""
        fut = asyncio.run_coroutine_threadsafe(self._queue.put(event), self._loop)
        while True:
            try:
                fut.result(timeout=poll)
                return True
            except concurrent.futures.TimeoutError:
                if shutdown.is_set():
                    fut.cancel()
                    return False

    def close(self):
        """Mark the end of the stream; safe to call from the producer thread."""
        try:
            self._loop.call_soon_threadsafe(self._close_nowait)
        except RuntimeError:
            LOG.debug("event loop already closed")

    def _close_nowait(self):
        self._closing = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # get() reports the end once the backlog is drained
            pass

    async def get(self):
        if self._closed:
            return None
        if self._closing and self._queue.empty():
            self._closed = True
            return None
        event = await self._queue.get()
        if event is _CLOSED:
            self._closed = True
            return None
        return event

"""Shutdown broadcast shared by the capture thread and the asyncio tasks

Any party may trigger it (hardware failure, Ctrl+C, remote disconnect, send
failure); every other party observes it within one poll/select cycle.
"""
import asyncio
import logging
import threading

LOG = logging.getLogger("yokebridge.shutdown")

# returned by ShutdownSignal.race when shutdown won or the timeout elapsed
SHUTDOWN = object()
TIMEOUT = object()


class ShutdownSignal:
    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._waiters = []  # (loop, asyncio.Event)
        self.reason = None

    def trigger(self, reason: str = "requested") -> bool:
        """Broadcast shutdown. Returns False if it was already triggered."""
        with self._lock:
            if self._event.is_set():
                return False
            self.reason = reason
            self._event.set()
            waiters = list(self._waiters)
        LOG.info("shutdown: %s", reason)
        for loop, ev in waiters:
            try:
                loop.call_soon_threadsafe(ev.set)
            except RuntimeError:
                # loop already closed; nobody left to wake
                LOG.debug("shutdown waiter loop is closed")
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout=None) -> bool:
        """Blocking wait for threads; returns True once shutdown is triggered."""
        return self._event.wait(timeout)

    async def wait_async(self):
        ev = asyncio.Event()
        waiter = (asyncio.get_running_loop(), ev)
        with self._lock:
            if self._event.is_set():
                return
            self._waiters.append(waiter)
        try:
            await ev.wait()
        finally:
            with self._lock:
                self._waiters.remove(waiter)

    async def race(self, awaitable, timeout=None):
        """Await `awaitable` unless shutdown or `timeout` comes first.

        Returns the awaitable's result, SHUTDOWN, or TIMEOUT. The losing side
        is cancelled.
        """
        work = asyncio.ensure_future(awaitable)
        stop = asyncio.ensure_future(self.wait_async())
        try:
            await asyncio.wait({work, stop}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
            if stop.done():
                return SHUTDOWN
            if work.done():
                return work.result()
            return TIMEOUT
        finally:
            for task in (work, stop):
                if not task.done():
                    task.cancel()

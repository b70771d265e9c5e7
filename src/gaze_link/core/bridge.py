import asyncio
import concurrent.futures
import logging
import threading
from typing import Coroutine

logger = logging.getLogger(__name__)


class BackgroundLoop:
    """
    Runs an asyncio event loop on a daemon thread.

    The host application keeps its own thread (a UI loop, a sketch's draw
    loop) and hands coroutines over with `submit()`. Being a daemon, the
    thread never keeps the process alive on exit.
    """

    def __init__(self, name: str = "GazeLinkLoop"):
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop,
            name=name,
            daemon=True
        )
        self._is_running = False
        self._lock = threading.Lock()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()
            logger.debug("Background event loop closed.")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def start(self) -> None:
        with self._lock:
            if self._is_running:
                return
            logger.debug("Starting background event loop thread.")
            self._is_running = True
            self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stops the loop and waits for the thread to finish."""
        with self._lock:
            if not self._is_running:
                return
            self._is_running = False

        logger.debug("Stopping background event loop...")
        self._loop.call_soon_threadsafe(self._loop.stop)
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def submit(self, coro: Coroutine) -> concurrent.futures.Future:
        """
        Schedules `coro` on the loop from any thread.

        Starts the loop on first use. The returned future is the task handle:
        cancelling it cancels the coroutine.
        """
        self.start()
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

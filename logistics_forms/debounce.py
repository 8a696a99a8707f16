"""
Single-shot cancellable timer used to debounce snapshot emission.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DebounceTimer:
    """
    Runs ``callback`` once, ``delay`` seconds after the last ``arm()``.

    Arming cancels any pending run first. Both operations run synchronously on
    the event loop thread, so there is no window between cancel and re-arm.
    """

    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def arm(self) -> None:
        """Cancel the pending run (if any) and schedule a new one."""
        loop = asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Debounced callback failed: {e}", exc_info=True)

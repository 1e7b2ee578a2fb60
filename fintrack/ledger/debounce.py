"""
Debounced Actions

Coalesces bursts of triggers into a single call of an async action,
made once no further trigger has arrived for `delay` seconds.

Each trigger cancels and restarts the timer. Once the timer has
fired the action is detached from it, so a trigger that arrives
while the action is running schedules a new call instead of
cancelling the one in flight.
"""

import asyncio
from typing import Awaitable, Callable, Optional


class Debouncer:
    """Restartable quiescence timer for one async action."""

    def __init__(self, delay: float, action: Callable[[], Awaitable[None]]):
        self._delay = delay
        self._action = action
        self._timer: Optional[asyncio.Task] = None
        self._pending = False

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        """True when a trigger has not been followed by the action yet."""
        return self._pending

    def trigger(self) -> None:
        """Schedule the action, restarting the quiescence window."""
        self._pending = True
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: the action waits for flush()
            return
        self._timer = loop.create_task(self._wait_then_fire())

    async def flush(self) -> None:
        """Run the action now if a trigger is outstanding."""
        self._cancel_timer()
        if self._pending:
            await self._fire()

    def cancel(self) -> None:
        """Drop any outstanding trigger without running the action."""
        self._cancel_timer()
        self._pending = False

    async def _wait_then_fire(self) -> None:
        await asyncio.sleep(self._delay)
        self._timer = None
        await self._fire()

    async def _fire(self) -> None:
        self._pending = False
        await self._action()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

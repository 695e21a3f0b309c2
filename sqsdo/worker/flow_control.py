"""
In-flight accounting and the fetch loop's backpressure gate.

A message counts as in flight from the moment it is admitted by the fetch
loop until the completion sink has resolved it. The fetch loop only polls
while the count is below the limit.
"""

import asyncio
import logging

logger = logging.getLogger(__name__)


class FlowControl:
    """
    Counter of in-flight messages guarded by an asyncio condition.

    The count only changes through :meth:`acquire` (fetch loop) and
    :meth:`release` (completion sink).
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._in_flight = 0
        self._condition = asyncio.Condition()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def headroom(self) -> int:
        """How many more messages may be admitted right now."""
        return max(0, self.limit - self._in_flight)

    async def wait_for_capacity(self) -> int:
        """
        Block until at least one more message may be admitted.

        Returns:
            The remaining headroom at the moment the gate opened.
        """
        async with self._condition:
            await self._condition.wait_for(lambda: self._in_flight < self.limit)
            return self.limit - self._in_flight

    async def wait_for_drain(self) -> None:
        """Block until no message is in flight."""
        async with self._condition:
            await self._condition.wait_for(lambda: self._in_flight == 0)

    def acquire(self) -> None:
        """
        Admit one message.

        Never blocks: the gate was checked before the poll. A transport that
        returns more messages than requested overshoots the limit once.
        """
        self._in_flight += 1
        if self._in_flight > self.limit:
            logger.warning(
                "In-flight limit exceeded by a single poll",
                extra={"in_flight": self._in_flight, "limit": self.limit},
            )

    async def release(self) -> None:
        """Resolve one message and wake the gate."""
        async with self._condition:
            if self._in_flight == 0:
                raise RuntimeError("release() called with nothing in flight")
            self._in_flight -= 1
            self._condition.notify_all()

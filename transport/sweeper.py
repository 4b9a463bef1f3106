"""Background task that evicts expired assembly buffers."""

import asyncio
import logging
from typing import Optional

from common.config import SWEEP_INTERVAL_SECONDS
from transport.assembler import ChunkAssembler

logger = logging.getLogger(__name__)


class BufferSweeper:
    """
    Periodically calls ChunkAssembler.sweep_expired so that messages that
    never complete do not linger until the next fragment arrives.
    """

    def __init__(self, assembler: ChunkAssembler, interval_seconds: float = SWEEP_INTERVAL_SECONDS):
        """
        Initialize sweeper task.

        Args:
            assembler: Assembler whose buffers are swept
            interval_seconds: Time between sweeps
        """
        self.assembler = assembler
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the background sweep task."""
        if self._running:
            logger.warning("Buffer sweeper already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started buffer sweeper (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the background sweep task."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Stopped buffer sweeper")

    @property
    def running(self) -> bool:
        return self._running

    async def _run(self) -> None:
        """Main loop for sweep task."""
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)

                if not self._running:
                    break

                removed = self.assembler.sweep_expired()
                if removed:
                    logger.info(f"Swept {removed} expired assembly buffers")

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in buffer sweeper: {e}", exc_info=True)

"""
Channel abstraction for the wireless link, plus an in-process loopback.

A channel is one logical connection handle (connection setup and pairing
happen elsewhere). It offers a monitor for inbound notifications and a
write for outbound, channel-encoded fragments.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from common.exceptions import ChannelError

logger = logging.getLogger(__name__)

NotifyCallback = Callable[[Optional[Exception], Optional[str]], None]


class Subscription:
    """Handle returned by Channel.monitor; remove() stops notifications."""

    def __init__(self, on_remove: Optional[Callable[[], None]] = None):
        self._on_remove = on_remove
        self.active = True

    def remove(self) -> None:
        if not self.active:
            return
        self.active = False
        if self._on_remove:
            self._on_remove()


class Channel(ABC):
    """Abstract base class for a notify/write channel."""

    @abstractmethod
    async def write(self, encoded_fragment: str) -> None:
        """
        Write one channel-encoded fragment.

        Raises:
            Exception: Implementation-specific write failure
        """
        raise NotImplementedError

    @abstractmethod
    def monitor(self, callback: NotifyCallback) -> Subscription:
        """
        Subscribe to inbound notifications.

        The callback receives (error, value): an error on channel failure,
        otherwise the raw notification text (possibly None or empty).
        """
        raise NotImplementedError


class LoopbackChannel(Channel):
    """
    In-process channel: every write is delivered to every active monitor.

    Usage:
        channel = LoopbackChannel()
        channel.monitor(on_notification)
        await channel.write(encoded)

    Args:
        fail_on_write: 1-based write number that raises, for failure tests
    """

    def __init__(self, fail_on_write: Optional[int] = None):
        self._callbacks: List[NotifyCallback] = []
        self.written: List[str] = []
        self.fail_on_write = fail_on_write
        self.connected = True

    async def write(self, encoded_fragment: str) -> None:
        if not self.connected:
            raise ChannelError("Channel disconnected", operation="write")

        if self.fail_on_write is not None and len(self.written) + 1 == self.fail_on_write:
            raise ChannelError(f"Simulated failure on write {self.fail_on_write}", operation="write")

        self.written.append(encoded_fragment)
        for callback in list(self._callbacks):
            callback(None, encoded_fragment)

    def monitor(self, callback: NotifyCallback) -> Subscription:
        self._callbacks.append(callback)
        logger.debug(f"Loopback monitor added ({len(self._callbacks)} active)")
        return Subscription(on_remove=lambda: self._callbacks.remove(callback))

    def notify(self, value: Optional[str]) -> None:
        """Deliver a raw notification to all monitors, as a peer device would."""
        for callback in list(self._callbacks):
            callback(None, value)

    def disconnect(self, reason: str = "Device disconnected") -> None:
        """Report a channel failure to all monitors and refuse further writes."""
        self.connected = False
        error = ChannelError(reason, operation="monitor")
        for callback in list(self._callbacks):
            callback(error, None)

    @property
    def monitor_count(self) -> int:
        return len(self._callbacks)

"""Binds one ChunkAssembler to one channel subscription."""

import logging
from typing import Callable, Optional

from common.config import ASSEMBLY_TTL_SECONDS
from common.exceptions import ChannelError, MalformedFragmentError, PayloadDecodeError
from transport.assembler import ChunkAssembler
from transport.channel import Channel, Subscription

logger = logging.getLogger(__name__)

PayloadCallback = Callable[[Optional[Exception], Optional[str]], None]


class PayloadSubscription:
    """
    Monitors a channel and reports each fully reassembled payload.

    The assembler and its buffers live exactly as long as this
    subscription. Malformed fragments are logged and dropped; channel
    errors and undecodable messages are passed to the callback.
    """

    def __init__(
        self,
        channel: Channel,
        callback: PayloadCallback,
        buffer_ttl: float = ASSEMBLY_TTL_SECONDS,
        assembler: Optional[ChunkAssembler] = None,
    ):
        """
        Subscribe to the channel.

        Args:
            channel: Connected channel handle
            callback: Called as callback(error, payload)
            buffer_ttl: Idle lifetime of incomplete messages
            assembler: Pre-built assembler (tests); one is created otherwise
        """
        self.assembler = assembler or ChunkAssembler(buffer_ttl=buffer_ttl)
        self._callback = callback
        try:
            self._subscription: Optional[Subscription] = channel.monitor(self._on_notification)
        except Exception as e:
            raise ChannelError(f"Failed to setup channel monitoring: {e}", operation="monitor") from e

    def _on_notification(self, error: Optional[Exception], value: Optional[str]) -> None:
        if error is not None:
            wrapped = ChannelError(f"Channel notification failed: {error}", operation="monitor")
            wrapped.__cause__ = error
            self._callback(wrapped, None)
            return

        if not value:
            logger.debug("Ignoring empty notification")
            return

        try:
            payload = self.assembler.receive(value)
        except MalformedFragmentError as e:
            logger.warning(f"Dropped malformed fragment: {e}")
            return
        except PayloadDecodeError as e:
            self._callback(e, None)
            return

        if payload is not None:
            self._callback(None, payload)

    @property
    def active(self) -> bool:
        return self._subscription is not None

    def close(self) -> None:
        """Stop monitoring and discard incomplete messages."""
        if self._subscription is None:
            return
        self._subscription.remove()
        self._subscription = None
        self.assembler.clear()
        logger.debug("Payload subscription closed")

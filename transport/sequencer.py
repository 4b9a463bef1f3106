"""Drives split payloads across a channel, one paced fragment at a time."""

import asyncio
import logging
from typing import Optional

from common.config import BLE_CHUNK_SIZE, BLE_PACING_SECONDS, MAX_FRAGMENT_COUNT
from common.exceptions import ChannelError, ChunkSendError
from common.protocol import encode_fragment
from common.types import Fragment
from common.utils import generate_message_id
from transport.channel import Channel
from transport.splitter import split_payload

logger = logging.getLogger(__name__)


class TransmissionSequencer:
    """
    Sends payloads as ordered, enveloped fragments.

    Fragments go out strictly in index order with a fixed pause between
    them; the first failed write aborts the send. Nothing is retried or
    rolled back.
    """

    def __init__(
        self,
        max_chunk_size: int = BLE_CHUNK_SIZE,
        pacing_interval: float = BLE_PACING_SECONDS,
    ):
        """
        Initialize sequencer.

        Args:
            max_chunk_size: Default maximum payload characters per fragment
            pacing_interval: Seconds to wait between consecutive fragments
        """
        if max_chunk_size < 1:
            raise ValueError(f"max_chunk_size must be at least 1, got {max_chunk_size}")
        self.max_chunk_size = max_chunk_size
        self.pacing_interval = pacing_interval

    async def send(
        self,
        channel: Optional[Channel],
        payload: str,
        max_chunk_size: Optional[int] = None,
    ) -> None:
        """
        Split payload and write every fragment to the channel.

        Args:
            channel: Connected channel handle
            payload: Payload text
            max_chunk_size: Override for the default fragment size

        Raises:
            ChannelError: If no channel is given
            ValueError: If max_chunk_size is below 1, or the payload needs more
                than MAX_FRAGMENT_COUNT fragments
            ChunkSendError: If a fragment write fails; names the failing index
        """
        if channel is None:
            raise ChannelError("No device connected", operation="send")

        if max_chunk_size is None:
            max_chunk_size = self.max_chunk_size

        split = split_payload(payload, max_chunk_size)
        total_count = split.total_count
        if total_count > MAX_FRAGMENT_COUNT:
            raise ValueError(
                f"Payload needs {total_count} fragments, limit is {MAX_FRAGMENT_COUNT}"
            )
        message_id = generate_message_id()

        logger.info(
            f"Sending message {message_id}: {total_count} fragments "
            f"({split.encoding}, {sum(len(c) for c in split.chunks)} characters)"
        )

        for index, chunk in enumerate(split.chunks):
            fragment = Fragment(
                index=index,
                total_count=total_count,
                message_id=message_id,
                encoding=split.encoding,
                data=chunk,
            )

            try:
                await channel.write(encode_fragment(fragment))
            except Exception as e:
                logger.error(f"Message {message_id}: fragment {index + 1}/{total_count} failed: {e}")
                raise ChunkSendError(index, total_count, e) from e

            if not fragment.is_last:
                await asyncio.sleep(self.pacing_interval)

        logger.debug(f"Message {message_id} sent")

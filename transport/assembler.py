"""
Reassembles transport messages from fragments arriving in any order.

Buffers are keyed by the message id carried in every fragment, and owned
by one assembler instance. A buffer is dropped as soon as its message
completes, or once it has been idle for longer than the configured TTL.

Not thread-safe: one assembler is fed by one channel subscription, which
delivers notifications one at a time.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from common.config import ASSEMBLY_TTL_SECONDS, MAX_FRAGMENT_COUNT
from common.exceptions import MalformedFragmentError, PayloadDecodeError
from common.protocol import decode_fragment, from_transport_encoding
from common.types import Fragment

logger = logging.getLogger(__name__)


@dataclass
class AssemblyBuffer:
    """In-flight state of one message. A slot is None until its fragment arrives."""
    message_id: str
    total_count: int
    encoding: str
    slots: List[Optional[str]]
    filled_count: int
    created_at: float
    updated_at: float

    @classmethod
    def allocate(cls, fragment: Fragment, now: float) -> 'AssemblyBuffer':
        return cls(
            message_id=fragment.message_id,
            total_count=fragment.total_count,
            encoding=fragment.encoding,
            slots=[None] * fragment.total_count,
            filled_count=0,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_complete(self) -> bool:
        return self.filled_count == self.total_count

    def write(self, index: int, data: str) -> bool:
        """
        Store data in a slot, last write wins.

        Returns:
            True if the slot was already filled
        """
        duplicate = self.slots[index] is not None
        if not duplicate:
            self.filled_count += 1
        self.slots[index] = data
        return duplicate

    def join(self) -> str:
        return "".join(self.slots)


class ChunkAssembler:
    """
    Collects fragments per message id and yields the payload once complete.

    Usage:
        assembler = ChunkAssembler()
        payload = assembler.receive(notification_text)
        if payload is not None:
            handle(payload)
    """

    def __init__(
        self,
        buffer_ttl: float = ASSEMBLY_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        max_fragment_count: int = MAX_FRAGMENT_COUNT,
    ):
        """
        Initialize assembler.

        Args:
            buffer_ttl: Seconds a buffer may stay idle before it is evicted
            clock: Monotonic time source (injectable for tests)
            max_fragment_count: Largest message a peer may announce; bounds
                the slots allocated per buffer
        """
        self._ttl = buffer_ttl
        self._clock = clock
        self._max_fragment_count = max_fragment_count
        self._buffers: Dict[str, AssemblyBuffer] = {}

        self._received = 0
        self._completed = 0
        self._duplicates = 0
        self._malformed = 0
        self._expired = 0

    def receive(self, raw_fragment: str) -> Optional[str]:
        """
        Apply one channel notification.

        Args:
            raw_fragment: Channel-encoded fragment text

        Returns:
            The reconstructed payload if this fragment completed its message,
            None otherwise

        Raises:
            MalformedFragmentError: If the fragment is invalid; no buffer is touched
            PayloadDecodeError: If the completed message cannot be decoded
        """
        now = self._clock()
        self._evict_expired(now)

        try:
            fragment = decode_fragment(raw_fragment, self._max_fragment_count)
            buffer = self._buffers.get(fragment.message_id)
            if buffer is not None:
                self._check_consistent(buffer, fragment)
        except MalformedFragmentError:
            self._malformed += 1
            raise

        if buffer is None:
            buffer = AssemblyBuffer.allocate(fragment, now)
            self._buffers[fragment.message_id] = buffer
            logger.debug(
                f"Started message {fragment.message_id} ({fragment.total_count} fragments)"
            )

        self._received += 1
        if buffer.write(fragment.index, fragment.data):
            self._duplicates += 1
            logger.debug(f"Duplicate fragment {fragment.index} for message {fragment.message_id}")
        buffer.updated_at = now

        if not buffer.is_complete:
            return None

        del self._buffers[buffer.message_id]

        try:
            payload = from_transport_encoding(buffer.join(), buffer.encoding)
        except ValueError as e:
            logger.error(f"Discarding message {buffer.message_id}: {e}")
            raise PayloadDecodeError(buffer.message_id, str(e)) from e

        self._completed += 1
        logger.info(f"Reassembled message {buffer.message_id} from {buffer.total_count} fragments")
        return payload

    def _check_consistent(self, buffer: AssemblyBuffer, fragment: Fragment) -> None:
        if fragment.total_count != buffer.total_count:
            raise MalformedFragmentError(
                f"Fragment for message {fragment.message_id} declares {fragment.total_count} "
                f"fragments, buffer expects {buffer.total_count}"
            )
        if fragment.encoding != buffer.encoding:
            raise MalformedFragmentError(
                f"Fragment for message {fragment.message_id} uses encoding "
                f"{fragment.encoding!r}, buffer uses {buffer.encoding!r}"
            )

    def _evict_expired(self, now: float) -> int:
        expired = [
            message_id
            for message_id, buffer in self._buffers.items()
            if now - buffer.updated_at > self._ttl
        ]

        for message_id in expired:
            buffer = self._buffers.pop(message_id)
            self._expired += 1
            logger.warning(
                f"Evicted incomplete message {message_id} "
                f"({buffer.filled_count}/{buffer.total_count} fragments received)"
            )

        return len(expired)

    def sweep_expired(self) -> int:
        """
        Remove buffers idle for longer than the TTL.

        Returns:
            Number of buffers removed
        """
        return self._evict_expired(self._clock())

    def has_pending(self, message_id: str) -> bool:
        """Check if a message is partially received."""
        return message_id in self._buffers

    @property
    def pending_count(self) -> int:
        return len(self._buffers)

    def clear(self) -> None:
        """Discard all in-flight buffers."""
        if self._buffers:
            logger.info(f"Discarding {len(self._buffers)} incomplete messages")
        self._buffers.clear()

    def get_stats(self) -> dict:
        """
        Get assembler statistics.

        Returns:
            dict: pending buffers and fragment/message counters
        """
        return {
            "pending": len(self._buffers),
            "ttl_seconds": self._ttl,
            "max_fragment_count": self._max_fragment_count,
            "received": self._received,
            "completed": self._completed,
            "duplicates": self._duplicates,
            "malformed": self._malformed,
            "expired": self._expired,
        }

    def __len__(self) -> int:
        return len(self._buffers)

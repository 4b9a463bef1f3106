"""Utility helper functions shared by transport and storage."""

import time
import uuid

from common.constants import MESSAGE_ID_LENGTH


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def generate_message_id() -> str:
    """
    Generate a short random identifier for one outbound transport message.

    Every fragment of the message carries it, so the receiver can group
    fragments of concurrent messages apart.

    Returns:
        Lowercase hex string of MESSAGE_ID_LENGTH characters
    """
    return uuid.uuid4().hex[:MESSAGE_ID_LENGTH]


def unix_timestamp() -> int:
    """Current time in whole seconds since the epoch."""
    return int(time.time())

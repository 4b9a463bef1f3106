"""Wire formats shared by sender and receiver: fragment envelope and transport encoding.

A fragment travels as

    base64("<index>:<totalCount>:<messageId>:<encoding>:<data>")

`encoding` records whether the sender base64'd the payload before splitting
("b64") or passed it through because it already was in the channel alphabet
("raw"), so the receiver undoes exactly what the sender did.
"""

import base64
import re
from typing import Tuple

from common.config import MAX_FRAGMENT_COUNT
from common.constants import (
    ENCODING_BASE64,
    ENCODING_RAW,
    ENVELOPE_DELIMITER,
    ENVELOPE_FIELD_COUNT,
    TRANSPORT_ENCODINGS,
)
from common.exceptions import MalformedFragmentError
from common.types import Fragment

_BASE64_TEXT = re.compile(r'[A-Za-z0-9+/]*={0,2}')
_UNSIGNED_INT = re.compile(r'[0-9]+')
_WHITESPACE = re.compile(r'\s')


def is_transport_encoded(payload: str) -> bool:
    """Check if payload text is already restricted to the base64 alphabet."""
    return _BASE64_TEXT.fullmatch(payload) is not None


def to_transport_encoding(payload: str) -> Tuple[str, str]:
    """
    Transcode payload into the channel's binary-safe alphabet.

    Args:
        payload: Printable payload text

    Returns:
        (encoded text, encoding flag)
    """
    if is_transport_encoded(payload):
        return payload, ENCODING_RAW
    encoded = base64.b64encode(payload.encode('utf-8')).decode('ascii')
    return encoded, ENCODING_BASE64


def from_transport_encoding(text: str, encoding: str) -> str:
    """
    Undo to_transport_encoding.

    Raises:
        ValueError: If text is not valid for the given encoding
    """
    if encoding == ENCODING_RAW:
        return text
    if encoding == ENCODING_BASE64:
        return base64.b64decode(text, validate=True).decode('utf-8')
    raise ValueError(f"Unknown transport encoding: {encoding}")


def format_envelope(fragment: Fragment) -> str:
    """Render the plain-text envelope for a fragment."""
    if not fragment.message_id or ENVELOPE_DELIMITER in fragment.message_id:
        raise ValueError(f"Invalid message id: {fragment.message_id!r}")
    return ENVELOPE_DELIMITER.join((
        str(fragment.index),
        str(fragment.total_count),
        fragment.message_id,
        fragment.encoding,
        fragment.data,
    ))


def encode_fragment(fragment: Fragment) -> str:
    """Envelope a fragment and wrap it in base64 for the channel."""
    envelope = format_envelope(fragment)
    return base64.b64encode(envelope.encode('utf-8')).decode('ascii')


def parse_envelope(envelope: str, max_fragment_count: int = MAX_FRAGMENT_COUNT) -> Fragment:
    """
    Parse a plain-text envelope into a Fragment.

    Args:
        envelope: Decoded envelope text
        max_fragment_count: Largest total count a peer may announce

    Raises:
        MalformedFragmentError: If any field is missing or out of range
    """
    parts = envelope.split(ENVELOPE_DELIMITER, ENVELOPE_FIELD_COUNT - 1)
    if len(parts) != ENVELOPE_FIELD_COUNT:
        raise MalformedFragmentError(
            f"Expected {ENVELOPE_FIELD_COUNT} envelope fields, got {len(parts)}"
        )

    index_str, total_str, message_id, encoding, data = parts

    if not _UNSIGNED_INT.fullmatch(index_str) or not _UNSIGNED_INT.fullmatch(total_str):
        raise MalformedFragmentError(f"Non-numeric index or total: {index_str!r}/{total_str!r}")

    try:
        index = int(index_str)
        total_count = int(total_str)
    except ValueError as e:
        raise MalformedFragmentError(f"Index or total too long: {e}") from e

    if total_count < 1:
        raise MalformedFragmentError(f"Total count must be at least 1, got {total_count}")
    if total_count > max_fragment_count:
        raise MalformedFragmentError(
            f"Total count {total_count} exceeds the limit of {max_fragment_count} fragments"
        )
    if index >= total_count:
        raise MalformedFragmentError(f"Index {index} out of range for {total_count} fragments")
    if not message_id:
        raise MalformedFragmentError("Missing message id")
    if encoding not in TRANSPORT_ENCODINGS:
        raise MalformedFragmentError(f"Unknown transport encoding: {encoding!r}")

    return Fragment(
        index=index,
        total_count=total_count,
        message_id=message_id,
        encoding=encoding,
        data=data,
    )


def decode_fragment(raw: str, max_fragment_count: int = MAX_FRAGMENT_COUNT) -> Fragment:
    """
    Decode a channel notification into a Fragment.

    Args:
        raw: Base64 text as delivered by the channel (whitespace tolerated)
        max_fragment_count: Largest total count a peer may announce

    Raises:
        MalformedFragmentError: If the text is not base64 or the envelope is invalid
    """
    clean = _WHITESPACE.sub('', raw)
    try:
        envelope = base64.b64decode(clean, validate=True).decode('utf-8')
    except ValueError as e:
        raise MalformedFragmentError(f"Fragment is not valid channel encoding: {e}") from e
    return parse_envelope(envelope, max_fragment_count)

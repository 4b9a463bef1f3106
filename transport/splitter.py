"""Splits payloads into ordered, size-bounded pieces for transmission."""

from typing import List

from common.protocol import to_transport_encoding
from common.types import SplitPayload


def split_text(text: str, max_chunk_size: int) -> List[str]:
    """
    Cut text into consecutive pieces of at most max_chunk_size characters.

    Args:
        text: Text to split
        max_chunk_size: Maximum piece length, at least 1

    Returns:
        Pieces whose concatenation equals text. An empty text yields
        exactly one empty piece.

    Raises:
        ValueError: If max_chunk_size is less than 1
    """
    if max_chunk_size < 1:
        raise ValueError(f"max_chunk_size must be at least 1, got {max_chunk_size}")

    if not text:
        return [""]

    return [text[start:start + max_chunk_size] for start in range(0, len(text), max_chunk_size)]


def split_payload(payload: str, max_chunk_size: int) -> SplitPayload:
    """
    Transcode payload into the channel alphabet, then split it.

    Piece lengths and counts refer to the transcoded text.
    """
    encoded, encoding = to_transport_encoding(payload)
    return SplitPayload(encoding=encoding, chunks=split_text(encoded, max_chunk_size))

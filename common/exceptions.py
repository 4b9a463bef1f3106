"""Custom exception classes for transport and storage."""

from typing import Optional


class WalletError(Exception):
    """
    Base exception class for all wallet transport/storage errors.
    """
    pass


class ChunkProtocolError(WalletError):
    """
    Raised for fragment-level protocol violations on the receiving side.
    """
    pass


class MalformedFragmentError(ChunkProtocolError):
    """
    Raised when a fragment envelope cannot be parsed or its index is out of range.
    The offending fragment is not applied to any assembly buffer.
    """
    pass


class PayloadDecodeError(ChunkProtocolError):
    """
    Raised when a completed message cannot be decoded back to its payload.
    """

    def __init__(self, message_id: str, message: str):
        super().__init__(f"Failed to decode message {message_id}: {message}")
        self.message_id = message_id


class ChannelError(WalletError):
    """
    Raised when the underlying channel fails (disconnect, write failure).
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class ChunkSendError(ChannelError):
    """
    Raised when writing one fragment fails. Identifies the first failing fragment;
    fragments before it were already delivered and are not rolled back.
    """

    def __init__(self, index: int, total_count: int, cause: BaseException):
        super().__init__(
            f"Failed to send chunk {index + 1}/{total_count}: {cause}",
            operation="write",
        )
        self.index = index
        self.total_count = total_count
        self.cause = cause


class PresentationError(WalletError):
    """
    Raised when building or sending a presentation fails.
    """
    pass


class RecordStoreError(WalletError):
    """
    Raised when the storage backend fails during a record operation.
    """

    def __init__(self, message: str, record_id: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id
        self.operation = operation


class IncompleteRecordError(RecordStoreError):
    """
    Raised when a record's metadata exists but one of its chunk entries is missing.
    """

    def __init__(self, record_id: str, index: int):
        super().__init__(
            f"Failed to load chunk {index} of record {record_id}",
            record_id=record_id,
            operation="load",
        )
        self.index = index


class CorruptRecordError(RecordStoreError):
    """
    Raised when stored metadata or chunk data is inconsistent or unparseable.
    """
    pass


class UnsupportedFormatError(RecordStoreError):
    """
    Raised when a stored record carries a format tag no decoder is registered for.
    """

    def __init__(self, format_tag: str, record_id: Optional[str] = None):
        super().__init__(
            f"Unsupported format: {format_tag}",
            record_id=record_id,
            operation="list",
        )
        self.format_tag = format_tag


class ValueTooLargeError(RecordStoreError):
    """
    Raised by a backend when a value exceeds its per-value size cap.
    """

    def __init__(self, key: str, size: int, limit: int):
        super().__init__(f"Value for {key} is {size} characters, limit is {limit}", operation="set")
        self.key = key
        self.size = size
        self.limit = limit

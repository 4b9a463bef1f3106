"""
Stores serialized credentials in a size-capped key-value backend.

A record is persisted as one metadata entry plus an ordered set of chunk
entries:

    credential.<id>        {"id", "format", "totalChunks", "totalSize"}
    chunk.<id>_<index>     slice of the serialized record

Nothing is cached between calls; every operation reads the backend.
"""

import asyncio
import logging
import weakref
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from pydantic import ValidationError

from common.config import STORAGE_CHUNK_SIZE
from common.constants import CHUNK_KEY_PREFIX, METADATA_KEY_PREFIX
from common.exceptions import CorruptRecordError, IncompleteRecordError, RecordStoreError
from common.types import CredentialRecord, StoredCredential
from credstore.backend import StorageBackend
from credstore.formats import decode_claims
from credstore.matcher import Candidate, QueryMatcher
from credstore.models import StoredRecordMetadata
from transport.splitter import split_text

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChunkedRecordStore:
    """
    Chunked credential persistence on top of a StorageBackend.

    Usage:
        store = ChunkedRecordStore(InMemoryStorage(max_value_size=2048))
        record_id = await store.save_credential(sd_jwt, "dc+sd-jwt")
        record = await store.load_by_id(record_id)
    """

    def __init__(
        self,
        backend: StorageBackend,
        max_chunk_size: int = STORAGE_CHUNK_SIZE,
        matcher: Optional[QueryMatcher] = None,
    ):
        """
        Initialize record store.

        Args:
            backend: Key-value backend
            max_chunk_size: Maximum characters per chunk entry
            matcher: Default query matcher used by list_records

        Raises:
            ValueError: If max_chunk_size is below 1 or above the backend's value cap
        """
        if max_chunk_size < 1:
            raise ValueError(f"max_chunk_size must be at least 1, got {max_chunk_size}")
        if backend.max_value_size is not None and max_chunk_size > backend.max_value_size:
            raise ValueError(
                f"max_chunk_size {max_chunk_size} exceeds backend value cap {backend.max_value_size}"
            )

        self.backend = backend
        self.max_chunk_size = max_chunk_size
        self.matcher = matcher
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def _metadata_key(self, record_id: str) -> str:
        return f"{METADATA_KEY_PREFIX}{record_id}"

    def _chunk_key(self, record_id: str, index: int) -> str:
        return f"{CHUNK_KEY_PREFIX}{record_id}_{index}"

    def _lock_for(self, record_id: str) -> asyncio.Lock:
        lock = self._locks.get(record_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[record_id] = lock
        return lock

    async def _call(
        self,
        operation: str,
        record_id: Optional[str],
        func: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> T:
        """Run one backend call, wrapping foreign errors with context."""
        try:
            return await func(*args)
        except (RecordStoreError, NotImplementedError):
            raise
        except Exception as e:
            raise RecordStoreError(
                f"Failed to {operation} credential {record_id}: {e}",
                record_id=record_id,
                operation=operation,
            ) from e

    async def save(self, record: CredentialRecord) -> str:
        """
        Persist a record: metadata entry first, then each chunk in order.

        Args:
            record: Credential payload and format tag

        Returns:
            Newly generated record id

        Raises:
            RecordStoreError: If a backend write fails; entries already
                written for this record are removed before raising
        """
        record_id = self.backend.generate_id()
        serialized = record.to_json()
        chunks = split_text(serialized, self.max_chunk_size)

        metadata = StoredRecordMetadata(
            id=record_id,
            format=record.format,
            total_chunks=len(chunks),
            total_size=len(serialized),
        )

        written: List[str] = []
        try:
            metadata_key = self._metadata_key(record_id)
            await self._call("save", record_id, self.backend.set, metadata_key, metadata.to_json())
            written.append(metadata_key)

            for index, chunk in enumerate(chunks):
                chunk_key = self._chunk_key(record_id, index)
                await self._call("save", record_id, self.backend.set, chunk_key, chunk)
                written.append(chunk_key)
        except RecordStoreError as e:
            logger.error(f"Save failed for record {record_id}: {e}")
            if written:
                logger.info(f"Cleaning up {len(written)} entries of record {record_id}")
                await self._remove_keys(written)
            raise

        logger.info(
            f"Saved record {record_id} ({record.format}, {metadata.total_size} characters, "
            f"{metadata.total_chunks} chunks)"
        )
        return record_id

    async def save_credential(self, credential: str, format: str) -> str:
        """Convenience wrapper around save()."""
        return await self.save(CredentialRecord(credential=credential, format=format))

    async def _remove_keys(self, keys: List[str]) -> None:
        for key in reversed(keys):
            try:
                await self.backend.remove(key)
            except Exception as e:
                logger.warning(f"Failed to remove {key}: {e}")

    def _parse_metadata(self, record_id: str, text: str) -> StoredRecordMetadata:
        try:
            metadata = StoredRecordMetadata.model_validate_json(text)
        except ValidationError as e:
            raise CorruptRecordError(
                f"Invalid metadata for record {record_id}: {e}",
                record_id=record_id,
                operation="load",
            ) from e

        if metadata.id != record_id:
            raise CorruptRecordError(
                f"Metadata under {record_id} belongs to record {metadata.id}",
                record_id=record_id,
                operation="load",
            )
        return metadata

    async def _read_serialized(self, record_id: str) -> Optional[str]:
        metadata_text = await self._call("load", record_id, self.backend.get, self._metadata_key(record_id))
        if metadata_text is None:
            return None

        metadata = self._parse_metadata(record_id, metadata_text)

        parts = []
        for index in range(metadata.total_chunks):
            chunk = await self._call("load", record_id, self.backend.get, self._chunk_key(record_id, index))
            if chunk is None:
                raise IncompleteRecordError(record_id, index)
            parts.append(chunk)

        serialized = "".join(parts)
        if len(serialized) != metadata.total_size:
            raise CorruptRecordError(
                f"Record {record_id} has {len(serialized)} characters, metadata says {metadata.total_size}",
                record_id=record_id,
                operation="load",
            )
        return serialized

    def _parse_record(self, record_id: str, serialized: str) -> CredentialRecord:
        try:
            return CredentialRecord.from_json(serialized)
        except (ValueError, KeyError, TypeError) as e:
            raise CorruptRecordError(
                f"Failed to parse record {record_id}: {e}",
                record_id=record_id,
                operation="load",
            ) from e

    async def load_raw(self, record_id: str) -> Optional[str]:
        """
        Reassemble the exact serialized record.

        Returns:
            Serialized JSON string, or None if no metadata exists for record_id

        Raises:
            IncompleteRecordError: If a chunk entry is missing
            CorruptRecordError: If metadata is invalid or sizes disagree
        """
        async with self._lock_for(record_id):
            return await self._read_serialized(record_id)

    async def load_by_id(self, record_id: str) -> Optional[CredentialRecord]:
        """
        Load and parse a record.

        Returns:
            CredentialRecord, or None if the record does not exist
        """
        serialized = await self.load_raw(record_id)
        if serialized is None:
            return None
        return self._parse_record(record_id, serialized)

    async def delete(self, record_id: str) -> None:
        """
        Remove a record's chunk entries, then its metadata entry.
        Deleting an absent record is a no-op.
        """
        async with self._lock_for(record_id):
            metadata_key = self._metadata_key(record_id)
            metadata_text = await self._call("delete", record_id, self.backend.get, metadata_key)
            if metadata_text is None:
                return

            try:
                metadata = self._parse_metadata(record_id, metadata_text)
                chunk_keys = [self._chunk_key(record_id, i) for i in range(metadata.total_chunks)]
            except CorruptRecordError as e:
                logger.warning(f"{e}; removing chunk entries found by prefix")
                chunk_keys = await self._find_chunk_keys(record_id)

            for chunk_key in chunk_keys:
                await self._call("delete", record_id, self.backend.remove, chunk_key)
            await self._call("delete", record_id, self.backend.remove, metadata_key)

        logger.info(f"Deleted record {record_id} ({len(chunk_keys)} chunks)")

    async def _find_chunk_keys(self, record_id: str) -> List[str]:
        prefix = f"{CHUNK_KEY_PREFIX}{record_id}_"
        try:
            keys = await self.backend.keys()
        except NotImplementedError:
            return []
        return [key for key in keys if key.startswith(prefix)]

    async def list_records(
        self,
        query: Optional[Any] = None,
        matcher: Optional[QueryMatcher] = None,
    ) -> List[StoredCredential]:
        """
        Reconstruct every stored record, optionally filtered by a query.

        Any unreadable record or unsupported format aborts the whole listing.

        Args:
            query: Structured query handed to the matcher
            matcher: Overrides the store's default matcher

        Returns:
            All records, or the matched records in matcher order

        Raises:
            ValueError: If a query is given but no matcher is available, or
                the matcher returns a candidate it was not given
            UnsupportedFormatError: If a record's format has no decoder
            IncompleteRecordError: If a record is missing a chunk entry
            CorruptRecordError: If a record cannot be parsed
        """
        matcher = matcher or self.matcher
        if query is not None and matcher is None:
            raise ValueError("A query matcher is required to filter by query")

        try:
            keys = await self._call("list", None, self.backend.keys)
        except NotImplementedError:
            logger.warning("Backend cannot enumerate keys; listing is empty")
            keys = []

        records: List[StoredCredential] = []
        for key in keys:
            if not key.startswith(METADATA_KEY_PREFIX):
                continue
            record_id = key[len(METADATA_KEY_PREFIX):]

            async with self._lock_for(record_id):
                serialized = await self._read_serialized(record_id)
            if serialized is None:
                continue

            record = self._parse_record(record_id, serialized)
            claims = decode_claims(record.format, record.credential, record_id=record_id)
            records.append(StoredCredential(
                id=record_id,
                format=record.format,
                credential=record.credential,
                claims=claims,
            ))

        logger.debug(f"Listed {len(records)} records")

        if query is None:
            return records

        candidates = [record.as_candidate() for record in records]
        result = matcher.match(query, candidates)
        if not result.matched:
            return []
        return self._matched_records(records, candidates, result.matched_candidates)

    def _matched_records(
        self,
        records: List[StoredCredential],
        candidates: List[Candidate],
        matched: List[Candidate],
    ) -> List[StoredCredential]:
        """
        Map candidates returned by a matcher back to their records.

        Raises:
            ValueError: If the matcher returned a candidate it was not given
        """
        by_identity = {id(candidate): record for candidate, record in zip(candidates, records)}
        selected = []
        for candidate in matched:
            record = by_identity.get(id(candidate))
            if record is None:
                # matcher handed back a copy
                try:
                    record = records[candidates.index(candidate)]
                except ValueError:
                    raise ValueError("Matcher returned a candidate that was not offered") from None
            selected.append(record)
        return selected

    async def clear(self) -> None:
        """
        Best-effort removal of every entry in this store's key namespace.
        Backend errors are logged, not raised.
        """
        try:
            keys = await self.backend.keys()
        except NotImplementedError:
            try:
                await self.backend.clear()
            except Exception as e:
                logger.warning(f"Failed to clear backend: {e}")
            return
        except Exception as e:
            logger.warning(f"Failed to enumerate keys for clear: {e}")
            return

        owned = [k for k in keys if k.startswith((METADATA_KEY_PREFIX, CHUNK_KEY_PREFIX))]
        await self._remove_keys(owned)
        logger.info(f"Cleared {len(owned)} entries")

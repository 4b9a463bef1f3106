"""Command handler functions for CLI operations."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from cli.config import Config
from cli.models import (
    DeleteCommand,
    ListCommand,
    LoadCommand,
    SaveCommand,
    SplitCommand,
    WipeCommand,
)
from common.exceptions import WalletError
from common.protocol import format_envelope
from common.types import CredentialRecord, Fragment
from credstore.record_store import ChunkedRecordStore
from credstore.sqlite_backend import SqliteStorage
from transport.splitter import split_payload, split_text

logger = logging.getLogger(__name__)

SUMMARY_CLAIMS = ("vct", "iss", "sub", "name")

_store: Optional[ChunkedRecordStore] = None
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global Config instance."""
    global _config
    if _config is None:
        _config = Config(Path.home() / '.walletctl' / 'config.json')
    return _config


def get_store() -> ChunkedRecordStore:
    """
    Get or create global record store backed by SQLite.

    Returns:
        ChunkedRecordStore instance
    """
    global _store
    if _store is None:
        config = get_config()
        logger.debug(f"Opening wallet database at {config.get_db_path()}")
        backend = SqliteStorage(config.get_db_path(), max_value_size=config.get_max_value_size())
        _store = ChunkedRecordStore(backend, max_chunk_size=config.get_storage_chunk_size())
    return _store


def handle_save(cmd: SaveCommand, store: Optional[ChunkedRecordStore] = None) -> str:
    """
    Handle 'save' command.

    Args:
        cmd: SaveCommand with file path and format
        store: Optional ChunkedRecordStore for dependency injection (testing)

    Returns:
        Success or error message
    """
    path = Path(cmd.file_path)
    if not path.is_file():
        return f"Error: file not found: {cmd.file_path}"

    if store is None:
        store = get_store()

    credential = path.read_text(encoding='utf-8').strip()
    record = CredentialRecord(credential=credential, format=cmd.format)
    try:
        record_id = asyncio.run(store.save(record))
    except WalletError as e:
        return f"Error: {e}"

    size = len(record.to_json())
    chunks = len(split_text(record.to_json(), store.max_chunk_size))
    return f"Saved: {record_id} ({cmd.format}, {size} characters, {chunks} chunk(s))"


def handle_load(cmd: LoadCommand, store: Optional[ChunkedRecordStore] = None) -> str:
    """
    Handle 'load' command.

    Returns:
        Serialized record or error message
    """
    if store is None:
        store = get_store()

    try:
        raw = asyncio.run(store.load_raw(cmd.record_id))
    except WalletError as e:
        return f"Error: {e}"

    if raw is None:
        return f"Record not found: {cmd.record_id}"
    return raw


def handle_list(cmd: ListCommand, store: Optional[ChunkedRecordStore] = None) -> str:
    """
    Handle 'list' command.

    Returns:
        Formatted list of records
    """
    if store is None:
        store = get_store()

    try:
        records = asyncio.run(store.list_records())
    except WalletError as e:
        return f"Error: {e}"

    if not records:
        return "No credentials stored"

    lines = [f"Found {len(records)} credential(s)"]
    for record in records:
        summary = ", ".join(
            f"{name}={record.claims[name]}" for name in SUMMARY_CLAIMS if name in record.claims
        )
        lines.append(f"  {record.id}  [{record.format}]  {summary}".rstrip())
    return "\n".join(lines)


def handle_delete(cmd: DeleteCommand, store: Optional[ChunkedRecordStore] = None) -> str:
    """
    Handle 'delete' command.

    Returns:
        Success or error message
    """
    if store is None:
        store = get_store()

    try:
        asyncio.run(store.delete(cmd.record_id))
    except WalletError as e:
        return f"Error: {e}"
    return f"Deleted: {cmd.record_id}"


def handle_wipe(cmd: WipeCommand, store: Optional[ChunkedRecordStore] = None) -> str:
    """Handle 'wipe' command."""
    if store is None:
        store = get_store()

    asyncio.run(store.clear())
    return "Removed all stored credentials"


def handle_split(cmd: SplitCommand, max_chunk_size: Optional[int] = None) -> str:
    """
    Handle 'split' command: show the plain envelopes a payload would be sent as.

    Args:
        cmd: SplitCommand with text and optional size
        max_chunk_size: Fallback size when the command gives none
    """
    size = cmd.max_chunk_size or max_chunk_size or get_config().get_transport_chunk_size()
    split = split_payload(cmd.text, size)

    lines = [f"{split.total_count} fragment(s), encoding={split.encoding}"]
    for index, chunk in enumerate(split.chunks):
        fragment = Fragment(
            index=index,
            total_count=split.total_count,
            message_id="preview",
            encoding=split.encoding,
            data=chunk,
        )
        lines.append(f"  {format_envelope(fragment)}")
    return "\n".join(lines)

"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal, Optional, Union

from common.constants import SD_JWT_FORMAT


@dataclass(frozen=True)
class SaveCommand:
    """Save a credential read from a file."""

    file_path: str
    format: str = SD_JWT_FORMAT
    command: Literal["save"] = "save"


@dataclass(frozen=True)
class LoadCommand:
    """Load a stored credential by id."""

    record_id: str
    command: Literal["load"] = "load"


@dataclass(frozen=True)
class ListCommand:
    """List stored credentials."""

    command: Literal["list"] = "list"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a stored credential by id."""

    record_id: str
    command: Literal["delete"] = "delete"


@dataclass(frozen=True)
class WipeCommand:
    """Remove every stored credential."""

    command: Literal["wipe"] = "wipe"


@dataclass(frozen=True)
class SplitCommand:
    """Show how a payload would be fragmented for the link."""

    text: str
    max_chunk_size: Optional[int] = None
    command: Literal["split"] = "split"


CommandRequest = Union[
    SaveCommand,
    LoadCommand,
    ListCommand,
    DeleteCommand,
    WipeCommand,
    SplitCommand,
]

"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
    DeleteCommand,
    ListCommand,
    LoadCommand,
    SaveCommand,
    SplitCommand,
    WipeCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Save/Load/List/Delete/Wipe/Split)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "save":
        return _parse_save(tokens[1:])
    elif command_name == "load":
        return LoadCommand(record_id=_single_id("load", tokens[1:]))
    elif command_name == "list":
        return _parse_no_args("list", tokens[1:], ListCommand)
    elif command_name == "delete":
        return DeleteCommand(record_id=_single_id("delete", tokens[1:]))
    elif command_name == "wipe":
        return _parse_no_args("wipe", tokens[1:], WipeCommand)
    elif command_name == "split":
        return _parse_split(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_save(args: list) -> SaveCommand:
    """Parse 'save <file> [format]' command."""
    if len(args) not in (1, 2):
        raise ParseError("save requires a file and an optional format")

    if len(args) == 2:
        return SaveCommand(file_path=args[0], format=args[1])
    return SaveCommand(file_path=args[0])


def _single_id(command: str, args: list) -> str:
    if len(args) != 1:
        raise ParseError(f"{command} requires exactly 1 argument: <id>")
    return args[0]


def _parse_no_args(command: str, args: list, factory):
    if args:
        raise ParseError(f"{command} takes no arguments")
    return factory()


def _parse_split(args: list) -> SplitCommand:
    """Parse 'split <text> [size]' command."""
    if len(args) not in (1, 2):
        raise ParseError("split requires text and an optional chunk size")

    if len(args) == 1:
        return SplitCommand(text=args[0])

    try:
        size = int(args[1])
    except ValueError:
        raise ParseError(f"Invalid chunk size: {args[1]}")
    if size < 1:
        raise ParseError("Chunk size must be at least 1")

    return SplitCommand(text=args[0], max_chunk_size=size)

"""Tests for CLI command parsing."""

import pytest

from cli.models import (
    DeleteCommand,
    ListCommand,
    LoadCommand,
    SaveCommand,
    SplitCommand,
    WipeCommand,
)
from cli.parser import ParseError, parse_command


class TestParseCommand:
    """Tests for well-formed commands."""

    def test_save_default_format(self):
        assert parse_command("save credentials/pid.sdjwt") == SaveCommand(file_path="credentials/pid.sdjwt")

    def test_save_with_format(self):
        cmd = parse_command("save pid.json mso_mdoc")

        assert cmd == SaveCommand(file_path="pid.json", format="mso_mdoc")

    def test_load(self):
        assert parse_command("load abc-123") == LoadCommand(record_id="abc-123")

    def test_delete(self):
        assert parse_command("delete abc-123") == DeleteCommand(record_id="abc-123")

    def test_list_and_wipe(self):
        assert parse_command("list") == ListCommand()
        assert parse_command("wipe") == WipeCommand()

    def test_split_quoted_text(self):
        cmd = parse_command('split "hello wallet" 8')

        assert cmd == SplitCommand(text="hello wallet", max_chunk_size=8)

    def test_split_default_size(self):
        assert parse_command("split ABCDE").max_chunk_size is None


class TestParseErrors:
    """Tests for rejected input."""

    @pytest.mark.parametrize("line", ["", "   "])
    def test_empty(self, line):
        with pytest.raises(ParseError, match="Empty command"):
            parse_command(line)

    def test_unknown_command(self):
        with pytest.raises(ParseError, match="Unknown command: upload"):
            parse_command("upload file.txt")

    def test_unbalanced_quotes(self):
        with pytest.raises(ParseError, match="Invalid syntax"):
            parse_command('split "open')

    @pytest.mark.parametrize("line", ["load", "load a b", "delete", "delete a b"])
    def test_id_commands_need_one_argument(self, line):
        with pytest.raises(ParseError, match="requires exactly 1 argument"):
            parse_command(line)

    @pytest.mark.parametrize("line", ["list all", "wipe now"])
    def test_no_argument_commands(self, line):
        with pytest.raises(ParseError, match="takes no arguments"):
            parse_command(line)

    @pytest.mark.parametrize("line", ["save", "save a b c"])
    def test_save_arity(self, line):
        with pytest.raises(ParseError):
            parse_command(line)

    def test_split_invalid_size(self):
        with pytest.raises(ParseError, match="Invalid chunk size: big"):
            parse_command("split ABC big")

    def test_split_size_below_one(self):
        with pytest.raises(ParseError, match="at least 1"):
            parse_command("split ABC 0")

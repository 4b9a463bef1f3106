"""Custom completer for walletctl with credential file autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, CREDENTIALS_DIR, SUPPORTED_FILE_EXTENSIONS


class WalletCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - File path completion for the 'save' command from credentials/ directory
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command != "save":
            return

        # save takes a single file argument
        file_arg_count = len(tokens) - 1 if not is_typing_new_token else len(tokens)
        if file_arg_count > 1:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        yield from self._complete_credential_files(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_credential_files(self, partial: str) -> Iterable[Completion]:
        """
        Complete file paths from the credentials/ directory.

        Only includes files with supported extensions in the root of credentials/.
        """
        credentials_path = Path.cwd() / CREDENTIALS_DIR

        if not credentials_path.is_dir():
            if not partial or CREDENTIALS_DIR.startswith(partial):
                yield Completion(
                    "",
                    start_position=0,
                    display=f"(no files found - {CREDENTIALS_DIR}/ directory missing)",
                )
            return

        available_files = [
            f"{CREDENTIALS_DIR}/{item.name}"
            for item in credentials_path.iterdir()
            if item.is_file() and item.name.lower().endswith(SUPPORTED_FILE_EXTENSIONS)
        ]

        if not available_files:
            yield Completion("", start_position=0, display=f"(no files found in {CREDENTIALS_DIR}/)")
            return

        partial_lower = partial.lower()
        for file_path in sorted(available_files):
            if file_path.lower().startswith(partial_lower):
                yield Completion(file_path, start_position=-len(partial))

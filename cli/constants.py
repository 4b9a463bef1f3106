"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["save", "load", "list", "delete", "wipe", "split", "clear", "exit", "help"]

STYLE = Style.from_dict(
    {
        "prompt": "#3FA7D6 bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;63;167;214m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
 __      __        .__  .__          __         __  .__
/  \\    /  \\_____  |  | |  |   _____/  |_  _____/  |_|  |
\\   \\/\\/   /\\__  \\ |  | |  | _/ __ \\   __\\/ ___\\   __\\  |
 \\        /  / __ \\|  |_|  |_\\  ___/|  | \\  \\___|  | |  |__
  \\__/\\  /  (____  /____/____/\\___  >__|  \\___  >__| |____/
       \\/        \\/               \\/          \\/
{RESET}"""

WELCOME_TITLE = "walletctl - Chunked credential store"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "wallet> "

HELP_TEXT = """Available commands:
  save <file> [format]      Store the credential in <file> (default format dc+sd-jwt)
  load <id>                 Print the stored record for <id>
  list                      List stored credentials with their main claims
  delete <id>               Delete a stored credential
  wipe                      Remove every stored credential
  split <text> [size]       Show the fragments <text> would be sent as
  clear                     Clear screen and redisplay welcome message
  help                      Show this help
  exit                      Exit REPL

Examples:
  save credentials/pid.sdjwt
  list
  load 3f2b6c1e-8d4a-4a2f-9a51-0c7e5d8b1f20
  split "hello wallet" 8"""

CREDENTIALS_DIR = "credentials"

SUPPORTED_FILE_EXTENSIONS = (".sdjwt", ".jwt", ".json", ".txt")

"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = ["push", "status", "list", "delete", "clear", "exit", "help"]

# commands whose first argument is a local file path
PATH_COMMANDS = ("push", "status")

STYLE = Style.from_dict(
    {
        "prompt": "#2E9E6B bold",
        "command": "#0088ff bold",
    }
)

GREEN = "\033[38;2;46;158;107m"
RESET = "\033[0m"

LOGO = f"""{GREEN}
  ██████╗██╗  ██╗██╗   ██╗███╗   ██╗██╗  ██╗██╗   ██╗██████╗
 ██╔════╝██║  ██║██║   ██║████╗  ██║██║ ██╔╝██║   ██║██╔══██╗
 ██║     ███████║██║   ██║██╔██╗ ██║█████╔╝ ██║   ██║██████╔╝
 ██║     ██╔══██║██║   ██║██║╚██╗██║██╔═██╗ ██║   ██║██╔═══╝
 ╚██████╗██║  ██║╚██████╔╝██║ ╚████║██║  ██╗╚██████╔╝██║
  ╚═════╝╚═╝  ╚═╝ ╚═════╝ ╚═╝  ╚═══╝╚═╝  ╚═╝ ╚═════╝ ╚═╝
{RESET}"""

WELCOME_TITLE = "Chunkup CLI - Resumable chunked uploads"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "chunkup> "

HELP_TEXT = """Available commands:
  push <file> [--chunk-size N]   Upload a file in chunks, resuming any earlier attempt
  status <file>                  Show whether a file is stored and how many chunks are uploaded
  list [page]                    List stored files (newest first)
  delete <file_id>               Delete a stored file by id
  clear                          Clear screen and redisplay welcome message
  help                           Show this help
  exit                           Exit REPL

Chunk sizes accept plain bytes or k/M/G suffixes.
Examples:
  push videos/holiday.mp4
  push backup.tar --chunk-size 8M
  status backup.tar
  list 2
  delete 17"""

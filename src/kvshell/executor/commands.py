"""Command line parsing for the executor.

Hides the textual command grammar: ``<command> <args>`` where the argument
string is split per command into names, configuration and comma-separated
column lists.
"""

# Usage line per command, in the order `help` lists them
USAGE = {
    "open": "open <home> [config]",
    "close": "close",
    "open-session": "open-session [config]",
    "close-session": "close-session",
    "create": "create <table:name> [config]",
    "drop": "drop <table:name> [config]",
    "open-cursor": "open-cursor <table:name> [config]",
    "close-cursor": "close-cursor",
    "insert": "insert <key,...> <value,...>",
    "remove": "remove <key,...>",
    "reset": "reset",
    "set-key": "set-key <key,...>",
    "set-value": "set-value <value,...>",
    "search": "search [key,...]",
    "search-all-next": "search-all-next",
    "help": "help",
    "quit": "quit",
}

# Alternative spellings
ALIASES = {
    "connect": "open",
    "disconnect": "close",
}


class CommandError(Exception):
    """A command could not be parsed or executed."""


def split_command(line: str) -> tuple[str, str]:
    """Split a command line into its command word and argument string."""
    name, _, args = line.strip().partition(" ")
    return ALIASES.get(name, name), args.strip()


def split_target(args: str, command: str) -> tuple[str, str]:
    """Split ``<target> [config]`` arguments.

    Raises:
        CommandError: If the target is missing
    """
    target, _, config = args.partition(" ")
    if not target:
        raise CommandError(f"parse: {USAGE[command]}")
    return target, config.strip()


def split_columns(args: str) -> tuple[str, ...]:
    """Split a comma-separated column list."""
    return tuple(args.split(","))

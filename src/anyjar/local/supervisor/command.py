from pathlib import Path
from typing import List

from anyjar.local.config import ServerConfig

_QUOTE_CHARS = ('"', "'")


def parse_command(command: str) -> List[str]:
    """
    Splits a command line into arguments, keeping quoted substrings together.

    Single and double quotes group text into one argument; a quote of the
    other kind inside a quoted section is kept literally. A backslash right
    before a quote disables that quote but is itself kept in the output.
    An unterminated quote runs to the end of the string.

    :param command: The raw command line.
    :return list: The command arguments.
    """
    args: List[str] = []
    current: List[str] = []
    in_quotes = False
    quote_char = '"'

    for i, c in enumerate(command):
        if c in _QUOTE_CHARS and (i == 0 or command[i - 1] != '\\'):
            if not in_quotes:
                in_quotes = True
                quote_char = c
            elif c == quote_char:
                in_quotes = False
            else:
                current.append(c)
        elif c == ' ' and not in_quotes:
            if current:
                args.append(''.join(current))
                current = []
        else:
            current.append(c)

    if current:
        args.append(''.join(current))
    return args


def build_command(config: ServerConfig) -> List[str]:
    """
    Determines the command to run from the configuration.

    With `use_options` the target is classified by its extension
    (case-insensitive); otherwise the manual startup command is tokenized.

    :param config: The server configuration.
    :return list: The program followed by its arguments.
    """
    if not config.use_options:
        return parse_command(config.manual_startup_command)

    target = config.server_target
    file_name = Path(target).name.lower()

    if file_name.endswith(".jar"):
        return ["java", f"-Xmx{config.ram_max}", f"-Xms{config.ram_min}", "-jar", target, "nogui"]
    if file_name.endswith(".sh"):
        return ["bash", target]
    if file_name.endswith((".bat", ".cmd")):
        return ["cmd", "/c", target]
    # .exe and unknown file types are executed directly
    return [target]


def is_java_target(config: ServerConfig) -> bool:
    """True when the command is derived from options and targets a .jar file."""
    return config.use_options and Path(config.server_target).name.lower().endswith(".jar")

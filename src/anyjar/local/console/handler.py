import sys
import logging
import threading
from typing import Optional, TextIO

from anyjar import settings

log = logging.getLogger(__name__)


class ConsoleSink:
    """
    Writes lines to the operator's terminal.

    Relayed child output is tagged with the console prefix. A lock keeps lines
    from the stdout and stderr relays from interleaving mid-line.
    """

    def __init__(
        self,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        prefix: str = settings.CONSOLE_PREFIX,
    ) -> None:
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.prefix = prefix
        self._lock = threading.Lock()

    def _write(self, stream: TextIO, text: str) -> None:
        with self._lock:
            print(text, file=stream, flush=True)

    def out(self, line: str) -> None:
        """Echoes a line of child stdout."""
        self._write(self.stdout, f"{self.prefix}{line}")

    def err(self, line: str) -> None:
        """Echoes a line of child stderr."""
        self._write(self.stderr, f"{self.prefix}{line}")

    def notice(self, message: str) -> None:
        """Prints a message addressed to the operator, without the prefix."""
        self._write(self.stdout, message)


def wait_for_enter(console: ConsoleSink) -> None:
    """Blocks until the operator presses Enter, or stdin is closed."""
    console.notice("\nPress Enter to exit...")
    try:
        input()
    except EOFError:
        log.debug("Operator input closed while waiting for Enter.")


def print_welcome(console: ConsoleSink, config_name: str) -> None:
    """Greets a first-time user after the default config file was created."""
    console.notice("Hello there! It seems you're new here.")
    console.notice(f"I've created a `{config_name}` file for you. It's like a magic scroll with instructions.")
    console.notice("Go ahead and open it, and you'll find some fun options to play with.")
    console.notice("Once you're done, come back here and run me again!")

import os
import sys
import logging
from pathlib import Path

from anyjar.local.config import ServerConfig
from anyjar.local.console import ConsoleSink
from anyjar.local.supervisor.command import parse_command

log = logging.getLogger(__name__)


def resolve_target(config: ServerConfig, cwd: Path) -> Path:
    """Returns the target file path, resolving relative paths against `cwd`."""
    target = Path(config.server_target)
    return target if target.is_absolute() else cwd / target


def validate_configuration(config: ServerConfig, cwd: Path, console: ConsoleSink, platform: str = sys.platform) -> bool:
    """
    Validates the configuration and target file before anything is spawned.

    A missing target file or a manual command that tokenizes to nothing (blank,
    or only empty quotes) fails validation. A target without execute permission
    only produces a warning (not checked on Windows).

    :param config: The server configuration.
    :param cwd: The directory the child will run in.
    :param console: Where operator-facing messages are printed.
    :param platform: The platform identifier, as in sys.platform.
    :return: True if the configuration is valid, otherwise False.
    """
    if not config.use_options:
        manual_command = config.manual_startup_command
        if not manual_command or not parse_command(manual_command):
            log.error("Manual startup command is empty")
            console.notice("Error: Manual startup command cannot be empty when use-options is false.")
            return False
        return True

    target = config.server_target
    target_path = resolve_target(config, cwd)
    if not target or not target_path.exists():
        log.error(f"Target file not found: {target}")
        console.notice(f"Oh no! I couldn't find the target file: {target}")
        console.notice("Please make sure the file exists and the name is correct in your server.yml.")
        return False

    if platform != "win32" and not os.access(target_path, os.X_OK):
        log.warning(f"Target file is not executable: {target}")
        console.notice(f"Warning: Target file is not executable: {target}")
        console.notice(f"You may need to run: chmod +x {target}")

    return True

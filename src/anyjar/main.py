import sys
import logging
from pathlib import Path
from typing import List, Optional

import setproctitle

from anyjar import settings
from anyjar.log import setup_logging, shutdown_logging
from anyjar.local.config import ConfigError, create_default_config, load_config
from anyjar.local.console import ConsoleSink, print_welcome, wait_for_enter
from anyjar.local.supervisor import ProcessSupervisor, RunOutcome

log = logging.getLogger("anyjar")


def _bootstrap_config(config_path: Path, console: ConsoleSink) -> int:
    """Creates the default config on first run and asks the operator to review it."""
    try:
        create_default_config(config_path)
    except OSError as e:
        log.critical(f"Could not create default config: {e}", exc_info=True)
        console.notice(f"Error: could not create {config_path}: {e}")
        return 1

    log.info(f"Created default {config_path.name}.")
    print_welcome(console, config_path.name)
    wait_for_enter(console)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    The main entry point for the launcher.

    :param argv: Command-line arguments without the program name.
        `--verbose` shows INFO logs on the console; a positional argument
        overrides the configuration file path.
    :return int: The launcher's exit status.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    console_level = logging.WARNING
    if "--verbose" in args:
        console_level = logging.INFO
        args.remove("--verbose")
    config_path = Path(args[0]) if args else settings.CONFIG_FILE_PATH

    setproctitle.setproctitle(settings.PROCESS_TITLE)
    setup_logging(console_level)
    log.info("AnyJar started.")
    console = ConsoleSink()

    try:
        if not config_path.exists():
            return _bootstrap_config(config_path, console)

        log.info(f"Loading config from {config_path}.")
        try:
            config = load_config(config_path)
        except ConfigError as e:
            log.critical(str(e))
            console.notice(f"Error: {e}")
            return 1

        result = ProcessSupervisor(config, console=console).run()
        if result.outcome is RunOutcome.INVALID_CONFIG:
            wait_for_enter(console)

        log.info("AnyJar finished.")
        return result.exit_status
    finally:
        shutdown_logging()


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()

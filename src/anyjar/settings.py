"""
This module contains the runtime settings for the AnyJar launcher.
It defines paths, supervisor timings, console/log formatting and the
default configuration template written on first run.
Values can be overridden through environment variables or a `.env` file.
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Core Paths ---
# Relative paths resolve against the supervisor's working directory.
CONFIG_FILE_PATH = pathlib.Path(os.getenv("ANYJAR_CONFIG_FILE", "server.yml"))
LOGS_DIR = pathlib.Path(os.getenv("ANYJAR_LOG_DIR", "Anyjar/logs"))
LOG_FILE_NAME_FORMAT = "Anyjar-log-%Y-%m-%d_%H-%M-%S.txt"

#* --- Supervisor Settings ---
PROCESS_TITLE = "AnyJar - Supervisor"
TASK_GRACE_PERIOD = 5.0  # seconds to wait for relay/forwarder threads
SHUTDOWN_WAIT_TIMEOUT = float(os.getenv("ANYJAR_SHUTDOWN_TIMEOUT", "30"))
WAIT_POLL_INTERVAL = 0.5
STOP_COMMAND = "stop"

#* --- Console & Logging ---
CONSOLE_PREFIX = "[AnyJar] "
LOG_FILE_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_BUFFER_SIZE = 100
LOG_BUFFER_FLUSH_INTERVAL = 2

#* --- Configuration Templates ---
DEFAULT_CONFIG_TEMPLATE = """\
# Welcome to the AnyJar configuration file! Here you can customize how your server starts up.
# It's like a secret control panel for your server. How cool is that?

# ram-max: The maximum amount of RAM your server can use. Don't get too greedy!
# You can't use more than the amout given to the JVM.
# So you can't use this app to get more resources than you have!
ram-max: 1G

# ram-min: The minimum amount of RAM your server will use. It's good to have a baseline.
ram-min: 1G

# server-jar: The name of the actual server file you want to run. Make sure it's in the same folder!
# If it's not in the same folder, you'll need to provide the full path to the file.
# This can be a .jar, .sh, .bat, or other executable file.
server-jar: actual-server.jar

# use-options: Set this to true to use the RAM options above and automatic file type detection.
# If you just want to change the target file, keep this true and modify server-jar.
# If you set it to false, you can use your own custom command below for full control.
use-options: true

# manual-startup-command: If you're feeling adventurous, you can write your own startup command here. Just make sure to set use-options to false!
# This gives you complete control over how your server or application starts.
# Example: java -Xmx2G -Xms1G -jar my_server.jar nogui
# Example: bash startup.sh
# Example: python server.py
manual-startup-command: java -jar actual-server.jar nogui
"""

"""
Logging module for the launcher.
This module provides functionality to set up and tear down logging
to the console and the per-run log file.
"""

from .setup import setup_logging, shutdown_logging
from .handler import BufferedFileHandler

__all__ = ["setup_logging", "shutdown_logging", "BufferedFileHandler"]

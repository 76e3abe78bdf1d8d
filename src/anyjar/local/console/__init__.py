"""
This module initializes the console package, exposing the console sink used
for relayed child output and the operator prompts of the first-run flow.
"""

from .handler import ConsoleSink, print_welcome, wait_for_enter

__all__ = ["ConsoleSink", "print_welcome", "wait_for_enter"]

"""
AnyJar - launches and supervises a single server process.

The launcher derives a startup command from `server.yml`, relays the child's
output to the console and a log file, forwards operator input to it, and
sends it a cooperative stop command when the launcher is asked to terminate.
"""

__version__ = "1.0.0"

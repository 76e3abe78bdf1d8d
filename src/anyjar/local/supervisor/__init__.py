"""
The Supervisor package.
Manages the lifecycle of the launcher's single child process.

This package contains the central ProcessSupervisor class and its helper
modules, which together derive the startup command, validate the
configuration, relay the child's standard streams and coordinate shutdown.
"""
from .command import build_command, parse_command
from .supervisor import ProcessSupervisor, RunOutcome, RunResult, SupervisorState

__all__ = [
    'ProcessSupervisor',
    'RunOutcome',
    'RunResult',
    'SupervisorState',
    'build_command',
    'parse_command',
]

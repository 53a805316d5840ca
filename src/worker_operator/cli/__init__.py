"""
CLI commands for the worker operator.
"""

from worker_operator.cli.commands import jobs_command, reconcile_command, render_command

__all__ = ["jobs_command", "reconcile_command", "render_command"]

from __future__ import annotations

from .executor import CommandExecutor, CommandResult, Gcloud, format_command

__all__ = ["CommandExecutor", "CommandResult", "Gcloud", "format_command"]

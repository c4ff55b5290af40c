from __future__ import annotations

from enum import IntEnum
from typing import Sequence


class ExitCode(IntEnum):
    OK = 0
    CONFIG_ERROR = 2
    PRECONDITION_ERROR = 3
    AUTH_ERROR = 4
    GCLOUD_ERROR = 5
    RUNTIME_ERROR = 6
    ABORTED = 130


class ProvisionError(Exception):
    """Base error for the provisioning pipeline."""


class ConfigError(ProvisionError):
    """Raised for configuration or argument issues."""


class PreconditionMissing(ProvisionError):
    """Raised before any cloud mutation when the local environment is unusable."""


class ExecutionFailed(ProvisionError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, command: Sequence[str], exit_code: int, stderr: str = "") -> None:
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr
        summary = " ".join(self.command[:4])
        detail = _last_line(stderr)
        message = f"`{summary}` failed with exit code {exit_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedResponse(ProvisionError):
    """Raised when a command's structured output cannot be decoded."""


class AuthError(ProvisionError):
    """Raised when the authenticated environment cannot be used."""


class NoActiveAccount(AuthError):
    """Raised when gcloud has no active account."""


class NoBillingAccount(AuthError):
    """Raised when the active account cannot see an open billing account."""


def _last_line(text: str) -> str:
    lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
    return lines[-1] if lines else ""


def as_exit_code(exc: BaseException) -> int:
    if isinstance(exc, KeyboardInterrupt):
        return int(ExitCode.ABORTED)
    if isinstance(exc, (ConfigError, ValueError)):
        return int(ExitCode.CONFIG_ERROR)
    if isinstance(exc, PreconditionMissing):
        return int(ExitCode.PRECONDITION_ERROR)
    if isinstance(exc, AuthError):
        return int(ExitCode.AUTH_ERROR)
    if isinstance(exc, (ExecutionFailed, MalformedResponse)):
        return int(ExitCode.GCLOUD_ERROR)
    if isinstance(exc, ProvisionError):
        return int(ExitCode.RUNTIME_ERROR)
    return 1

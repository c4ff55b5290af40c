from __future__ import annotations

import json
import shutil
import subprocess
from dataclasses import dataclass
from shlex import quote
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..util.errors import ExecutionFailed, MalformedResponse
from ..util.redact import redact_args

LOG = get_logger(__name__)


def format_command(args: Iterable[str]) -> str:
    return " ".join(quote(str(a)) for a in args)


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    exit_code: int
    data: Any = None


class CommandExecutor:
    """Run one external command at a time and hand back its output.

    There is no timeout: some cloud operations (SQL instance creation) take
    minutes and the pipeline simply waits for them.
    """

    def execute(
        self,
        command: str,
        args: Sequence[str],
        *,
        quiet: bool = False,
        stdin: Optional[str] = None,
        parse_json: bool = False,
        interactive: bool = False,
    ) -> CommandResult:
        argv = [command, *[str(a) for a in args]]
        if not quiet:
            LOG.info("$ %s", format_command(redact_args(argv)), extra={"command": argv[:4]})

        exit_code, stdout, stderr = self._spawn(argv, stdin=stdin, interactive=interactive)
        if exit_code != 0:
            raise ExecutionFailed(argv, exit_code, stderr)

        data = None
        if parse_json:
            data = decode_json(stdout, context=format_command(argv[:4]))
        return CommandResult(stdout=stdout, exit_code=exit_code, data=data)

    def which(self, command: str) -> Optional[str]:
        return shutil.which(command)

    def _spawn(self, argv: List[str], *, stdin: Optional[str], interactive: bool) -> Tuple[int, str, str]:
        try:
            if interactive:
                # The child owns the terminal (browser-based login flows).
                proc = subprocess.run(argv, check=False)
                return proc.returncode, "", ""
            proc = subprocess.run(
                argv,
                input=stdin,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExecutionFailed(argv, 127, str(e)) from e
        return proc.returncode, proc.stdout or "", proc.stderr or ""


def decode_json(text: str, *, context: str) -> Any:
    raw = (text or "").strip()
    if not raw:
        # gcloud prints nothing for an empty list in some releases.
        return []
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"{context}: output is not valid JSON ({e.msg})") from e


class Gcloud:
    """The gcloud CLI bound to a CommandExecutor."""

    def __init__(self, executor: CommandExecutor, binary: str = "gcloud") -> None:
        self.executor = executor
        self.binary = binary

    def is_installed(self) -> bool:
        return self.executor.which(self.binary) is not None

    def run(
        self,
        *args: str,
        quiet: bool = False,
        stdin: Optional[str] = None,
        interactive: bool = False,
    ) -> CommandResult:
        return self.executor.execute(self.binary, args, quiet=quiet, stdin=stdin, interactive=interactive)

    def json(self, *args: str, quiet: bool = True, stdin: Optional[str] = None) -> Any:
        result = self.executor.execute(
            self.binary,
            [*args, "--format=json"],
            quiet=quiet,
            stdin=stdin,
            parse_json=True,
        )
        return result.data

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from gcp_provision.config import RunConfig
from gcp_provision.gcloud import CommandExecutor, Gcloud
from gcp_provision.prompts import Prompter
from gcp_provision.state import ProvisioningState
from gcp_provision.steps import StepContext

Response = Tuple[int, str, str]


@dataclass
class Call:
    argv: List[str]
    stdin: Optional[str]
    interactive: bool

    @property
    def args(self) -> List[str]:
        return self.argv[1:]


class FakeExecutor(CommandExecutor):
    """Answers commands by longest matching argument prefix and records every call.

    Registering the same prefix more than once queues the responses; the last
    one keeps answering. Unscripted commands succeed with empty output.
    """

    def __init__(self, installed: bool = True) -> None:
        self.installed = installed
        self.calls: List[Call] = []
        self._responses: Dict[Tuple[str, ...], List[Response]] = {}

    def on(
        self,
        *prefix: str,
        data: Any = None,
        stdout: str = "",
        exit_code: int = 0,
        stderr: str = "",
    ) -> "FakeExecutor":
        if data is not None:
            stdout = json.dumps(data)
        self._responses.setdefault(tuple(prefix), []).append((exit_code, stdout, stderr))
        return self

    def which(self, command: str) -> Optional[str]:
        return f"/usr/bin/{command}" if self.installed else None

    def _spawn(self, argv: List[str], *, stdin: Optional[str], interactive: bool) -> Response:
        self.calls.append(Call(list(argv), stdin, interactive))
        args = tuple(argv[1:])
        matches = [p for p in self._responses if args[: len(p)] == p]
        if not matches:
            return 0, "", ""
        queue = self._responses[max(matches, key=len)]
        return queue.pop(0) if len(queue) > 1 else queue[0]

    def commands(self, *prefix: str) -> List[List[str]]:
        return [c.args for c in self.calls if tuple(c.args[: len(prefix)]) == prefix]


class ScriptedPrompter(Prompter):
    """Answers prompts by exact message from per-message queues.

    Once a queue is empty (or a message was never scripted) the prompt's
    default is taken. `select` answers may be an index or an option label.
    """

    def __init__(self, answers: Optional[Dict[str, Any]] = None) -> None:
        self._answers: Dict[str, List[Any]] = {}
        for message, value in (answers or {}).items():
            self._answers[message] = list(value) if isinstance(value, list) else [value]
        self.asked: List[Tuple[str, str, Any]] = []

    def _next(self, message: str) -> Tuple[bool, Any]:
        queue = self._answers.get(message)
        if queue:
            return True, queue.pop(0)
        return False, None

    def messages(self, kind: Optional[str] = None) -> List[str]:
        return [m for k, m, _ in self.asked if kind is None or k == kind]

    def select(self, message: str, options: Sequence[str], default: int = 0) -> int:
        self.asked.append(("select", message, default))
        found, answer = self._next(message)
        if not found:
            return default
        if isinstance(answer, str):
            return list(options).index(answer)
        return int(answer)

    def text(
        self,
        message: str,
        default: Optional[str] = None,
        *,
        password: bool = False,
        allow_blank: bool = False,
    ) -> str:
        self.asked.append(("text", message, default))
        found, answer = self._next(message)
        return str(answer) if found else (default or "")

    def confirm(self, message: str, default: bool = False) -> bool:
        self.asked.append(("confirm", message, default))
        found, answer = self._next(message)
        return bool(answer) if found else default


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / ".env").write_text("APP_NAME=demo\nAPP_SECRET=s3cr3t\n", encoding="utf-8")
    (tmp_path / "Dockerfile").write_text("FROM node:20\n", encoding="utf-8")
    return tmp_path


def make_ctx(
    executor: FakeExecutor,
    prompter: Prompter,
    cwd: Optional[Path] = None,
    **overrides: Any,
) -> StepContext:
    cfg = replace(RunConfig(), **overrides)
    return StepContext(
        cfg=cfg,
        gcloud=Gcloud(executor, binary=cfg.gcloud),
        prompter=prompter,
        cwd=cwd or Path.cwd(),
    )


def make_state(project_id: str = "demo-app", number: str = "123") -> ProvisioningState:
    state = ProvisioningState()
    state.project.id = project_id
    state.project.display_name = "Demo"
    state.project.number = number
    state.project.account = "me@example.com"
    return state

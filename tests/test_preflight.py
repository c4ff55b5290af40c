from __future__ import annotations

from pathlib import Path

import pytest

from conftest import FakeExecutor, ScriptedPrompter, make_ctx, make_state

from gcp_provision.steps.preflight import preflight
from gcp_provision.util.errors import PreconditionMissing


def test_passes_with_cli_template_and_descriptor(workspace: Path, executor: FakeExecutor) -> None:
    preflight(make_ctx(executor, ScriptedPrompter(), cwd=workspace), make_state())
    assert executor.calls == []


def test_missing_cli_fails_first(workspace: Path) -> None:
    fake = FakeExecutor(installed=False)
    with pytest.raises(PreconditionMissing, match="not installed"):
        preflight(make_ctx(fake, ScriptedPrompter(), cwd=workspace), make_state())
    assert fake.calls == []


def test_missing_template_runs_no_command(workspace: Path, executor: FakeExecutor) -> None:
    (workspace / ".env").unlink()
    with pytest.raises(PreconditionMissing, match=r"No \.env file"):
        preflight(make_ctx(executor, ScriptedPrompter(), cwd=workspace), make_state())
    assert executor.calls == []


def test_template_without_entries_is_empty(workspace: Path, executor: FakeExecutor) -> None:
    (workspace / ".env").write_text("# nothing here\n\n", encoding="utf-8")
    with pytest.raises(PreconditionMissing, match="looks empty"):
        preflight(make_ctx(executor, ScriptedPrompter(), cwd=workspace), make_state())
    assert executor.calls == []


def test_missing_descriptor(workspace: Path, executor: FakeExecutor) -> None:
    (workspace / "Dockerfile").unlink()
    with pytest.raises(PreconditionMissing, match="Dockerfile"):
        preflight(make_ctx(executor, ScriptedPrompter(), cwd=workspace), make_state())
    assert executor.calls == []


def test_custom_template_name(workspace: Path, executor: FakeExecutor) -> None:
    (workspace / ".env.example").write_text("APP_NAME=demo\n", encoding="utf-8")
    (workspace / ".env").unlink()
    preflight(make_ctx(executor, ScriptedPrompter(), cwd=workspace, env_file=".env.example"), make_state())


def test_template_that_is_not_utf8(workspace: Path, executor: FakeExecutor) -> None:
    (workspace / ".env").write_bytes(b"APP_NAME=\xff\xfe\n")
    with pytest.raises(PreconditionMissing, match="UTF-8"):
        preflight(make_ctx(executor, ScriptedPrompter(), cwd=workspace), make_state())
    assert executor.calls == []

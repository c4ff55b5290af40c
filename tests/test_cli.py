from __future__ import annotations

import pytest

from gcp_provision import cli
from gcp_provision.util.errors import (
    ConfigError,
    ExecutionFailed,
    ExitCode,
    MalformedResponse,
    NoActiveAccount,
    NoBillingAccount,
    PreconditionMissing,
    ProvisionError,
    as_exit_code,
)


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)


def _exit_code(monkeypatch, raised: BaseException) -> int:
    def _boom(cfg, *args, **kwargs):
        raise raised

    monkeypatch.setattr(cli, "cmd_provision", _boom)
    with pytest.raises(SystemExit) as info:
        cli.main([])
    return info.value.code


def test_success_exits_zero(monkeypatch) -> None:
    monkeypatch.setattr(cli, "cmd_provision", lambda cfg, *a, **k: 0)
    with pytest.raises(SystemExit) as info:
        cli.main(["--skip-auth"])
    assert info.value.code == 0


@pytest.mark.parametrize(
    "raised, code",
    [
        (PreconditionMissing("no .env"), ExitCode.PRECONDITION_ERROR),
        (NoActiveAccount("no account"), ExitCode.AUTH_ERROR),
        (ExecutionFailed(["gcloud", "projects", "create"], 1, "taken"), ExitCode.GCLOUD_ERROR),
        (KeyboardInterrupt(), ExitCode.ABORTED),
    ],
)
def test_errors_map_to_exit_codes(monkeypatch, raised: BaseException, code: ExitCode) -> None:
    assert _exit_code(monkeypatch, raised) == int(code)


def test_error_message_is_logged(monkeypatch, caplog) -> None:
    _exit_code(monkeypatch, PreconditionMissing("No Dockerfile found in /srv/app"))
    assert "No Dockerfile found in /srv/app" in caplog.text


def test_help_exits_cleanly(capsys) -> None:
    with pytest.raises(SystemExit) as info:
        cli.main(["--help"])
    assert info.value.code == 0
    assert "--skip-auth" in capsys.readouterr().out


def test_as_exit_code() -> None:
    assert as_exit_code(ConfigError("x")) == ExitCode.CONFIG_ERROR
    assert as_exit_code(NoBillingAccount("x")) == ExitCode.AUTH_ERROR
    assert as_exit_code(MalformedResponse("x")) == ExitCode.GCLOUD_ERROR
    assert as_exit_code(ProvisionError("x")) == ExitCode.RUNTIME_ERROR
    assert as_exit_code(RuntimeError("x")) == 1

from __future__ import annotations

import io

from rich.console import Console

from conftest import make_state

from gcp_provision.config import RunConfig
from gcp_provision.gcloud.schemas import SqlInstance
from gcp_provision.report import print_report, report_sections
from gcp_provision.state import EnvPair


def _render(state) -> str:
    buf = io.StringIO()
    print_report(state, RunConfig(), console=Console(file=buf, width=200))
    return buf.getvalue()


def test_project_block_only_by_default() -> None:
    sections = report_sections(make_state(), RunConfig())
    assert [title for title, _ in sections] == ["Project"]
    assert ("region", "europe-west1") in sections[0][1]
    assert ("zone", "europe-west1-d") in sections[0][1]


def test_database_block_when_instance_bound() -> None:
    state = make_state()
    state.database.bind_instance(
        SqlInstance.from_json({"name": "db", "connectionName": "demo-app:europe-west1:db"}),
        password="root-pw",
    )
    titles = [title for title, _ in report_sections(state, RunConfig())]
    assert "Database" in titles
    assert "root-pw" not in _render(state)


def test_secret_values_are_never_printed() -> None:
    state = make_state()
    state.secrets = [EnvPair("APP_KEY", "super-secret-value")]
    state.env_vars = [EnvPair("APP_NAME", "demo")]
    out = _render(state)

    assert "APP_KEY" in out
    assert "super-secret-value" not in out


def test_deferred_command_is_printed_verbatim() -> None:
    state = make_state()
    state.deferred_command = "gcloud run deploy api \\\n  --source . \\\n  --set-secrets=APP_KEY=APP_KEY:1"
    out = _render(state)

    assert state.deferred_command in out


def test_load_balancer_dns_hint() -> None:
    state = make_state()
    state.load_balancer.service = "web"
    state.load_balancer.domain = "app.example.com"
    state.load_balancer.address = "34.120.0.1"
    out = _render(state)

    assert "app.example.com" in out
    assert "34.120.0.1" in out

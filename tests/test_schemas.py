from __future__ import annotations

import pytest

from gcp_provision.gcloud.schemas import (
    BillingAccount,
    BuildConnection,
    ComputeResource,
    EnabledService,
    GcloudConfiguration,
    Project,
    RunService,
    Secret,
    SqlInstance,
    decode_list,
    decode_one,
)
from gcp_provision.util.errors import MalformedResponse


def test_project_requires_project_id() -> None:
    with pytest.raises(MalformedResponse):
        Project.from_json({"name": "Demo", "projectNumber": "1"})


def test_project_display_name_falls_back_to_id() -> None:
    project = Project.from_json({"projectId": "demo-app", "projectNumber": 42})
    assert project.display_name == "demo-app"
    assert project.project_id == "demo-app"
    assert project.number == "42"


def test_configuration_reads_core_properties() -> None:
    config = GcloudConfiguration.from_json(
        {"name": "default", "is_active": True, "properties": {"core": {"project": "p1", "account": "a@b.c"}}}
    )
    assert config.is_active
    assert config.project == "p1"
    assert config.account == "a@b.c"


def test_configuration_without_properties() -> None:
    config = GcloudConfiguration.from_json({"name": "empty"})
    assert not config.is_active
    assert config.project == ""


def test_billing_account_id_is_short_name() -> None:
    billing = BillingAccount.from_json({"name": "billingAccounts/01AB-CD", "displayName": "Main", "open": True})
    assert billing.native_id == "01AB-CD"
    assert billing.display_name == "Main"
    assert billing.is_open


def test_sql_instance_reads_first_address() -> None:
    instance = SqlInstance.from_json(
        {
            "name": "db",
            "connectionName": "demo-app:europe-west1:db",
            "ipAddresses": [{"ipAddress": "10.0.0.3"}, {"ipAddress": "10.0.0.4"}],
            "databaseVersion": "POSTGRES_15",
        }
    )
    assert instance.address == "10.0.0.3"
    assert instance.connection_name == "demo-app:europe-west1:db"


def test_sql_instance_requires_connection_name() -> None:
    with pytest.raises(MalformedResponse):
        SqlInstance.from_json({"name": "db"})


def test_secret_key_is_short_name() -> None:
    secret = Secret.from_json({"name": "projects/123/secrets/APP_KEY"})
    assert secret.key == "APP_KEY"
    assert secret.native_id == "projects/123/secrets/APP_KEY"


def test_enabled_service_uses_config_name() -> None:
    service = EnabledService.from_json(
        {"name": "projects/123/services/run.googleapis.com", "config": {"name": "run.googleapis.com"}}
    )
    assert service.native_id == "run.googleapis.com"


def test_build_connection_readiness() -> None:
    pending = BuildConnection.from_json(
        {"name": "projects/p/locations/r/connections/github", "installationState": {"stage": "PENDING_USER_OAUTH"}}
    )
    assert pending.display_name == "github"
    assert not pending.is_ready


def test_run_service_needs_metadata_name() -> None:
    with pytest.raises(MalformedResponse):
        RunService.from_json({"status": {"url": "https://x"}})


def test_decode_list_rejects_objects() -> None:
    with pytest.raises(MalformedResponse):
        decode_list({"name": "x"}, Project.from_json, "project")


def test_decode_list_treats_none_as_empty() -> None:
    assert decode_list(None, Project.from_json, "project") == []


def test_decode_one_unwraps_compute_lists() -> None:
    resource = decode_one([{"name": "web-ip", "address": "34.1.2.3"}], ComputeResource.from_json, "address")
    assert resource.address == "34.1.2.3"
    with pytest.raises(MalformedResponse):
        decode_one([], ComputeResource.from_json, "address")

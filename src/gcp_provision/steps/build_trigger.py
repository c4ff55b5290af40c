from __future__ import annotations

import re
from enum import Enum
from typing import List, Optional

from ..gcloud import iam
from ..gcloud.schemas import BuildConnection, BuildRepository, BuildTrigger, decode_list
from ..logging import get_logger
from ..select import ResourceKind, select_or_create
from ..state import ProvisioningState
from ..util.errors import PreconditionMissing
from .base import StepContext

LOG = get_logger(__name__)


class TriggerEvent(Enum):
    PUSH_BRANCH = ("Push to a branch", "--branch-pattern", "^main$", "push")
    PUSH_TAG = ("Push a new tag", "--tag-pattern", "^v.*$", "tag")
    PULL_REQUEST = ("Pull request", "--pull-request-pattern", "^main$", "pr")

    def __init__(self, label: str, flag: str, default_pattern: str, suffix: str) -> None:
        self.label = label
        self.flag = flag
        self.default_pattern = default_pattern
        self.suffix = suffix


def _region_flag(ctx: StepContext) -> str:
    return f"--region={ctx.cfg.region}"


def list_connections(ctx: StepContext) -> List[BuildConnection]:
    data = ctx.gcloud.json("builds", "connections", "list", _region_flag(ctx))
    return decode_list(data, BuildConnection.from_json, "build connection")


def describe_connection(ctx: StepContext, name: str) -> BuildConnection:
    data = ctx.gcloud.json("builds", "connections", "describe", name, _region_flag(ctx))
    return BuildConnection.from_json(data)


def create_connection(ctx: StepContext, state: ProvisioningState) -> BuildConnection:
    name = ctx.cfg.build_connection
    number = state.project.number
    LOG.info("Creating a connection to github")
    # The Cloud Build service agent stores the connection token as a secret.
    iam.grant_project_role(ctx.gcloud, state.project.id, iam.cloudbuild_service_agent(number), iam.SECRET_ADMIN)
    builder = iam.cloudbuild_service_account(number)
    iam.grant_project_role(ctx.gcloud, state.project.id, builder, iam.CLOUDSQL_CLIENT)
    iam.grant_project_role(ctx.gcloud, state.project.id, builder, iam.SECRET_ACCESSOR)

    # Prints an authorization link; the operator completes it in a browser.
    ctx.gcloud.run(
        "builds",
        "connections",
        "create",
        "github",
        name,
        f"--project={state.project.id}",
        _region_flag(ctx),
        interactive=True,
    )
    return describe_connection(ctx, name)


def wait_until_authorized(ctx: StepContext, connection: BuildConnection) -> BuildConnection:
    while not connection.is_ready:
        action = (connection.raw.get("installationState") or {}).get("actionUri")
        if action:
            LOG.warning("Connection %s needs authorization: %s", connection.display_name, action)
        if not ctx.prompter.confirm("Have you completed the authorization?", default=True):
            raise PreconditionMissing(f"Build connection {connection.display_name} is not authorized.")
        connection = describe_connection(ctx, connection.display_name)
    return connection


def select_or_create_connection(ctx: StepContext, state: ProvisioningState) -> BuildConnection:
    kind: ResourceKind[BuildConnection] = ResourceKind(
        name="build connection",
        message="Select an existing connection or create a new one",
        create_label="Create a new github connection",
        list=lambda: list_connections(ctx),
        create=lambda: create_connection(ctx, state),
        label=lambda c: f"{c.display_name} ({c.installation_stage or 'unknown'})",
    )
    connection = select_or_create(kind, ctx.prompter)
    if connection is None:
        raise PreconditionMissing("A build connection is required to create a trigger.")
    connection = wait_until_authorized(ctx, connection)
    state.build.connection = connection.display_name
    return connection


def repository_name_from_uri(uri: str) -> str:
    tail = uri.rstrip("/").rsplit("/", 1)[-1]
    if tail.endswith(".git"):
        tail = tail[: -len(".git")]
    return re.sub(r"[^a-z0-9-]+", "-", tail.lower()).strip("-")


def list_repositories(ctx: StepContext, connection: str) -> List[BuildRepository]:
    data = ctx.gcloud.json("builds", "repositories", "list", f"--connection={connection}", _region_flag(ctx))
    return decode_list(data, BuildRepository.from_json, "build repository")


def create_repository(ctx: StepContext, connection: str) -> BuildRepository:
    uri = ctx.prompter.text("Repository clone url (https://github.com/<owner>/<repo>.git)")
    name = ctx.prompter.text("Repository name", default=repository_name_from_uri(uri) or None)
    data = ctx.gcloud.json(
        "builds",
        "repositories",
        "create",
        name,
        f"--remote-uri={uri}",
        f"--connection={connection}",
        _region_flag(ctx),
        quiet=False,
    )
    repository = BuildRepository.from_json(data)
    LOG.info("✓ repository %s linked", repository.display_name)
    return repository


def select_or_create_repository(
    ctx: StepContext, state: ProvisioningState, connection: BuildConnection
) -> BuildRepository:
    kind: ResourceKind[BuildRepository] = ResourceKind(
        name="build repository",
        message="Select an existing repository or link a new one",
        create_label="Link a new repository",
        list=lambda: list_repositories(ctx, connection.display_name),
        create=lambda: create_repository(ctx, connection.display_name),
        label=lambda r: r.remote_uri or r.display_name,
    )
    repository = select_or_create(kind, ctx.prompter)
    if repository is None:
        raise PreconditionMissing("A repository is required to create a trigger.")
    state.build.repository = repository.display_name
    return repository


def list_triggers(ctx: StepContext) -> List[BuildTrigger]:
    data = ctx.gcloud.json("builds", "triggers", "list", _region_flag(ctx))
    return decode_list(data, BuildTrigger.from_json, "build trigger")


def create_trigger(ctx: StepContext, state: ProvisioningState, repository: BuildRepository) -> BuildTrigger:
    events = list(TriggerEvent)
    event = events[ctx.prompter.select("What should start a build?", [e.label for e in events])]
    name = ctx.prompter.text("Trigger name", default=f"{repository.display_name}-{event.suffix}")
    pattern = ctx.prompter.text("Pattern", default=event.default_pattern)
    build_config = ctx.prompter.text("Build config file", default=ctx.cfg.build_config)

    builder = iam.cloudbuild_service_account(state.project.number)
    data = ctx.gcloud.json(
        "builds",
        "triggers",
        "create",
        "github",
        f"--name={name}",
        f"--repository={repository.native_id}",
        f"{event.flag}={pattern}",
        f"--build-config={build_config}",
        f"--service-account=projects/{state.project.id}/serviceAccounts/{builder}",
        _region_flag(ctx),
        quiet=False,
    )
    trigger = BuildTrigger.from_json(data)
    LOG.info("✓ trigger %s created", trigger.display_name)
    return trigger


def create_build_trigger(ctx: StepContext, state: ProvisioningState) -> None:
    LOG.info("Creating a Cloud Build trigger")
    connection = select_or_create_connection(ctx, state)
    repository = select_or_create_repository(ctx, state, connection)

    kind: ResourceKind[BuildTrigger] = ResourceKind(
        name="build trigger",
        message="Select an existing trigger or create a new one",
        create_label="Create a new trigger",
        list=lambda: list_triggers(ctx),
        create=lambda: create_trigger(ctx, state, repository),
        label=lambda t: t.display_name,
    )
    trigger: Optional[BuildTrigger] = select_or_create(kind, ctx.prompter)
    if trigger is not None:
        state.build.trigger = trigger.display_name

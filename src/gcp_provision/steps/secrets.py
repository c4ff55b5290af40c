from __future__ import annotations

from typing import List, Set

from ..gcloud import iam
from ..gcloud.schemas import Secret, decode_list
from ..logging import get_logger
from ..state import EnvPair, ProvisioningState
from .base import StepContext

LOG = get_logger(__name__)


def secret_resource_name(project_number: str, key: str) -> str:
    return f"projects/{project_number}/secrets/{key}"


def list_secrets(ctx: StepContext) -> List[Secret]:
    return decode_list(ctx.gcloud.json("secrets", "list"), Secret.from_json, "secret")


def create_secret(ctx: StepContext, key: str, value: str) -> None:
    # The payload goes over stdin so it never shows up in argv or shell history.
    ctx.gcloud.run(
        "secrets",
        "create",
        key,
        "--data-file=-",
        "--replication-policy=automatic",
        stdin=value,
    )


def add_secret_version(ctx: StepContext, key: str, value: str) -> None:
    ctx.gcloud.run("secrets", "versions", "add", key, "--data-file=-", stdin=value)


def grant_runtime_access(ctx: StepContext, state: ProvisioningState, key: str) -> None:
    number = state.project.number
    for account in (iam.compute_service_account(number), iam.cloudbuild_service_account(number)):
        iam.grant_secret_role(ctx.gcloud, key, account)


def create_secrets(ctx: StepContext, state: ProvisioningState) -> None:
    """Create the collected secrets that do not exist yet and let Cloud Run and Cloud Build read them."""
    LOG.info("Creating secrets")
    LOG.info("fetching secrets")
    existing: Set[str] = {s.native_id for s in list_secrets(ctx)}

    for secret in state.secrets:
        name = secret_resource_name(state.project.number, secret.key)
        if name in existing:
            LOG.info("✓ %s already exists", secret.key)
            continue
        LOG.info("creating %s ...", secret.key)
        create_secret(ctx, secret.key, secret.value)
        grant_runtime_access(ctx, state, secret.key)
        existing.add(name)
        LOG.info("✓ %s created", secret.key)


def create_adhoc_secrets(ctx: StepContext, state: ProvisioningState) -> None:
    LOG.info("Fetching existing secrets")
    existing = {s.key for s in list_secrets(ctx)}
    for key in sorted(existing):
        LOG.info("  %s", key)

    LOG.info("Create new secrets. Enter an empty key to stop.")
    while True:
        key = ctx.prompter.text("key", allow_blank=True)
        if not key:
            break
        value = ctx.prompter.text("value", password=True, allow_blank=True)
        if not value:
            break

        if key in existing:
            if not ctx.prompter.confirm(f"{key} already exists. Add a new version?", default=False):
                continue
            add_secret_version(ctx, key, value)
            LOG.info("✓ new version of %s added", key)
        else:
            LOG.info("creating %s ...", key)
            create_secret(ctx, key, value)
            grant_runtime_access(ctx, state, key)
            existing.add(key)
            LOG.info("✓ %s created", key)
        state.secrets.append(EnvPair(key, value))

from __future__ import annotations

import re
from typing import List, Optional

from ..gcloud.schemas import Account, BillingAccount, GcloudConfiguration, Project, decode_list
from ..logging import get_logger
from ..select import ResourceKind, select_or_create
from ..state import ProvisioningState
from ..util.errors import AuthError, ExecutionFailed, NoActiveAccount, NoBillingAccount
from .base import StepContext

LOG = get_logger(__name__)

# 6-30 chars, lowercase letter first, lowercase letters/digits/hyphens, no trailing hyphen.
PROJECT_ID_RE = re.compile(r"^[a-z][a-z0-9-]{4,28}[a-z0-9]$")


def slugify_project_id(name: str) -> str:
    slug = re.sub(r"[^a-z0-9-]+", "-", name.strip().lower())
    slug = re.sub(r"-+", "-", slug).strip("-")
    if slug and not slug[0].isalpha():
        slug = f"p-{slug}"
    return slug[:30].rstrip("-")


def ask_project_identity(ctx: StepContext, state: ProvisioningState) -> None:
    """Prompt for display name and id of a project that does not exist yet."""
    name = ctx.prompter.text(
        "Project name",
        default=state.project.display_name or ctx.cfg.default_project_name,
    )
    default_id = state.project.id or slugify_project_id(name)
    while True:
        project_id = ctx.prompter.text("Project id (6-30 characters)", default=default_id or None)
        if PROJECT_ID_RE.match(project_id):
            break
        LOG.warning(
            "Invalid project id %r: use 6-30 lowercase letters, digits or hyphens, starting with a letter",
            project_id,
        )
    state.project.display_name = name
    state.project.id = project_id
    state.project.identity_confirmed = True


def list_configurations(ctx: StepContext) -> List[GcloudConfiguration]:
    data = ctx.gcloud.json("config", "configurations", "list")
    return decode_list(data, GcloudConfiguration.from_json, "configuration")


def authenticate(ctx: StepContext, state: ProvisioningState) -> None:
    LOG.info("Log in with your partner services account")
    try:
        ctx.gcloud.run("auth", "login", interactive=True)
    except ExecutionFailed as e:
        raise AuthError("Failed to authenticate with gcloud.") from e
    check_account_and_billing(ctx, state)


def check_account_and_billing(ctx: StepContext, state: ProvisioningState) -> None:
    LOG.info("Checking the account and billing")
    accounts = decode_list(ctx.gcloud.json("auth", "list"), Account.from_json, "account")
    active = next((a for a in accounts if a.is_active), None)
    if active is None:
        raise NoActiveAccount("No active account found. Please log in with gcloud.")
    state.project.account = active.native_id
    LOG.info("✓ account %s is active", active.native_id)

    billing = decode_list(ctx.gcloud.json("billing", "accounts", "list"), BillingAccount.from_json, "billing account")
    usable = [b for b in billing if b.is_open]
    if not usable:
        raise NoBillingAccount("No billing account found. Please set up billing for your account.")
    chosen = usable[0]
    if len(usable) > 1:
        idx = ctx.prompter.select(
            "Select the billing account for new projects",
            [f"{b.display_name} ({b.native_id})" for b in usable],
        )
        chosen = usable[idx]
    state.project.billing_account = chosen.native_id
    LOG.info("✓ billing is set")


def select_or_create_config(ctx: StepContext, state: ProvisioningState) -> Optional[GcloudConfiguration]:
    def _create() -> GcloudConfiguration:
        LOG.info("Creating a new configuration")
        ask_project_identity(ctx, state)
        # `create` also activates the new configuration.
        ctx.gcloud.run("config", "configurations", "create", state.project.id, quiet=True)
        return GcloudConfiguration(display_name=state.project.id, native_id=state.project.id, is_active=True)

    kind: ResourceKind[GcloudConfiguration] = ResourceKind(
        name="configuration",
        message="Select an existing configuration or create a new one",
        create_label="Create a new configuration",
        list=lambda: list_configurations(ctx),
        create=_create,
        label=lambda c: c.display_name,
        preferred=lambda c: c.is_active,
    )
    config = select_or_create(kind, ctx.prompter)
    if config is not None and not config.is_active:
        ctx.gcloud.run("config", "configurations", "activate", config.native_id, quiet=True)
    if config is not None and not config.account and state.project.account:
        # Login wrote the account into the previously active configuration.
        ctx.gcloud.run("config", "set", "account", state.project.account, quiet=True)
        LOG.info("✓ account set to %s", state.project.account)
    if config is not None and config.project and not state.project.id:
        # Preselects the configuration's project in the next step.
        state.project.id = config.project
    return config


def use_active_configuration(ctx: StepContext, state: ProvisioningState) -> None:
    """Take the project context from the active gcloud configuration (--skip-auth)."""
    LOG.info("Setting the active project")
    active = next((c for c in list_configurations(ctx) if c.is_active), None)
    if active is None:
        raise AuthError("No active gcloud configuration found.")
    if not active.project:
        raise AuthError(f"The active configuration {active.native_id!r} has no project set.")
    if not active.account:
        raise NoActiveAccount(f"The active configuration {active.native_id!r} has no account set.")

    state.project.id = active.project
    state.project.account = active.account
    LOG.info("fetching %s", active.project)
    projects = decode_list(ctx.gcloud.json("projects", "list"), Project.from_json, "project")
    selected = next((p for p in projects if p.project_id == active.project), None)
    if selected is None:
        raise AuthError(f"Project {active.project} is not visible to {active.account}.")
    state.project.bind(selected)
    LOG.info("using %s", selected.display_name)

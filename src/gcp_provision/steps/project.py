from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..gcloud.schemas import Project, decode_list
from ..logging import get_logger
from ..select import ResourceKind, select_or_create
from ..state import ProvisioningState
from ..util.errors import MalformedResponse
from .auth import ask_project_identity
from .base import StepContext

LOG = get_logger(__name__)


def list_projects(ctx: StepContext) -> List[Project]:
    return decode_list(ctx.gcloud.json("projects", "list"), Project.from_json, "project")


def create_project(ctx: StepContext, state: ProvisioningState) -> Project:
    # https://cloud.google.com/sdk/gcloud/reference/projects/create
    if not state.project.identity_confirmed:
        ask_project_identity(ctx, state)
    LOG.info("Creating project %s", state.project.id)
    data = ctx.gcloud.json(
        "projects",
        "create",
        state.project.id,
        f"--name={state.project.display_name}",
        quiet=False,
    )
    project = Project.from_json(data)
    if not project.number:
        raise MalformedResponse(f"projects create returned no projectNumber for {project.project_id}")
    LOG.info("✓ project %s created", project.project_id)

    if state.project.billing_account:
        ctx.gcloud.run(
            "billing",
            "projects",
            "link",
            project.project_id,
            f"--billing-account={state.project.billing_account}",
            quiet=True,
        )
        LOG.info("✓ billing account %s linked", state.project.billing_account)
    return project


def select_or_create_project(ctx: StepContext, state: ProvisioningState) -> Optional[Project]:
    wanted = state.project.id
    kind: ResourceKind[Project] = ResourceKind(
        name="project",
        message="Select an existing project or create a new one",
        create_label="Create a new project",
        list=lambda: list_projects(ctx),
        create=lambda: create_project(ctx, state),
        label=lambda p: f"{p.display_name} ({p.project_id})",
        preferred=(lambda p: p.project_id == wanted) if wanted else None,
    )
    project = select_or_create(kind, ctx.prompter)
    if project is not None:
        state.project.bind(project)
    return project


def _get(data: Dict[str, Any], section: str, key: str) -> Optional[str]:
    value = (data.get(section) or {}).get(key)
    return str(value) if value else None


def configure_cli(ctx: StepContext, state: ProvisioningState) -> None:
    """Point the active gcloud configuration at the project, account, region and zone."""
    LOG.info("Setting up the cli configuration")
    active = ctx.gcloud.json("config", "list")
    if not isinstance(active, dict):
        raise MalformedResponse("config list did not return an object")

    wanted = [
        ("core", "project", "project", state.project.id),
        ("core", "account", "account", state.project.account),
        ("compute", "region", "compute/region", ctx.cfg.region),
        ("compute", "zone", "compute/zone", ctx.cfg.zone),
    ]
    for section, key, prop, value in wanted:
        if not value or _get(active, section, key) == value:
            continue
        ctx.gcloud.run("config", "set", prop, value, quiet=True)
        LOG.info("✓ %s set to %s", prop, value)

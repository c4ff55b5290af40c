from __future__ import annotations

from typing import Iterable, List, Set

from ..gcloud import iam
from ..gcloud.schemas import EnabledService, decode_list
from ..logging import get_logger
from ..state import ProvisioningState
from .base import StepContext

LOG = get_logger(__name__)

COMPUTE_API = "compute.googleapis.com"
SQL_APIS = ("sql-component.googleapis.com", "sqladmin.googleapis.com")


def list_enabled_services(ctx: StepContext) -> Set[str]:
    data = ctx.gcloud.json("services", "list", "--enabled")
    return {s.native_id for s in decode_list(data, EnabledService.from_json, "service")}


def ensure_services(ctx: StepContext, state: ProvisioningState, apis: Iterable[str]) -> List[str]:
    """Enable every api not already in `state.enabled_apis`; return the newly enabled ones."""
    enabled_now: List[str] = []
    for api in apis:
        if api in state.enabled_apis:
            LOG.info("✓ %s is enabled", api)
            continue
        ctx.gcloud.run("services", "enable", api)
        state.enabled_apis.add(api)
        enabled_now.append(api)
        LOG.info("✓ %s enabled", api)
    return enabled_now


def enable_apis(ctx: StepContext, state: ProvisioningState) -> None:
    LOG.info("Enabling necessary APIs")
    LOG.info("checking enabled services ...")
    state.enabled_apis = list_enabled_services(ctx)

    if ensure_services(ctx, state, [COMPUTE_API]):
        # First enablement creates the default compute identity Cloud Run runs as.
        iam.grant_project_role(
            ctx.gcloud,
            state.project.id,
            iam.compute_service_account(state.project.number),
            iam.SECRET_ACCESSOR,
        )

    ensure_services(ctx, state, ctx.cfg.needed_apis)

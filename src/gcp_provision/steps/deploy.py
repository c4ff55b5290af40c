from __future__ import annotations

from shlex import quote
from typing import List, Optional, Sequence

from ..logging import get_logger
from ..state import EnvPair, ProvisioningState
from .base import StepContext

LOG = get_logger(__name__)

SECRET_VERSION = "1"
LINE_CONTINUATION = " \\\n  "

# gcloud splits dict flags on commas; `^X^` switches the delimiter to X.
_ALT_DELIMITERS = ("|", "@", ";", "#", "~")


def env_var_flag(pair: EnvPair) -> str:
    item = f"{pair.key}={pair.value}"
    if "," in item:
        delim = next((d for d in _ALT_DELIMITERS if d not in item), None)
        if delim is not None:
            item = f"^{delim}^{item}"
    return "--set-env-vars=" + quote(item)


def secret_flag(pair: EnvPair, version: str = SECRET_VERSION) -> str:
    return "--set-secrets=" + quote(f"{pair.key}={pair.key}:{version}")


def render_deploy_command(
    *,
    service: str,
    project_id: str,
    region: str,
    env_vars: Sequence[EnvPair],
    secrets: Sequence[EnvPair],
    cloudsql_instance: Optional[str] = None,
    executable: str = "gcloud",
) -> str:
    parts: List[str] = [
        f"{quote(executable)} run deploy {quote(service)}",
        "--source .",
        f"--project={quote(project_id)}",
        f"--region={quote(region)}",
    ]
    if cloudsql_instance:
        parts.append(f"--set-cloudsql-instances={quote(cloudsql_instance)}")
    parts.append("--allow-unauthenticated")
    parts.extend(env_var_flag(pair) for pair in env_vars)
    parts.extend(secret_flag(pair) for pair in secrets)
    return LINE_CONTINUATION.join(parts)


def assemble_deploy_command(ctx: StepContext, state: ProvisioningState) -> None:
    """Compose the Cloud Run deploy command and keep it for the report.

    Never executed here; the operator runs it from the report.
    """
    if not ctx.prompter.confirm("Do you want to create a Cloud Run service?", default=True):
        return
    service = ctx.prompter.text("Cloud Run service name", default=ctx.cfg.default_service_name)
    state.deferred_command = render_deploy_command(
        service=service,
        project_id=state.project.id,
        region=ctx.cfg.region,
        env_vars=state.env_vars,
        secrets=state.secrets,
        cloudsql_instance=state.database.connection_name or None,
        executable=ctx.cfg.gcloud,
    )
    LOG.info(
        "✓ deploy command ready (%s variables, %s secrets)",
        len(state.env_vars),
        len(state.secrets),
    )

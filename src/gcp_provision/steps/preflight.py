from __future__ import annotations

from ..environment import read_template
from ..logging import get_logger
from ..state import ProvisioningState
from ..util.errors import PreconditionMissing
from .base import StepContext

LOG = get_logger(__name__)


def preflight(ctx: StepContext, state: ProvisioningState) -> None:
    """Check local prerequisites. Runs no gcloud command."""
    if not ctx.gcloud.is_installed():
        raise PreconditionMissing(f"{ctx.gcloud.binary} is not installed.")
    LOG.info("✓ %s is installed", ctx.gcloud.binary)

    env_path = ctx.cfg.env_path(ctx.cwd)
    if not env_path.is_file():
        raise PreconditionMissing(f"No {ctx.cfg.env_file} file found in {ctx.cwd}")
    try:
        entries = read_template(env_path)
    except UnicodeDecodeError as e:
        raise PreconditionMissing(f"{ctx.cfg.env_file} file is not valid UTF-8") from e
    if not entries:
        raise PreconditionMissing(f"{ctx.cfg.env_file} file looks empty")
    LOG.info("✓ %s found", ctx.cfg.env_file)

    descriptor = ctx.cfg.descriptor_path(ctx.cwd)
    if not descriptor.is_file():
        raise PreconditionMissing(f"No {ctx.cfg.descriptor_file} found in {ctx.cwd}")
    LOG.info("✓ %s found", ctx.cfg.descriptor_file)

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from ..gcloud.schemas import ComputeResource, RunService, decode_list, decode_one
from ..logging import get_logger
from ..state import ProvisioningState
from ..util.errors import PreconditionMissing
from .apis import COMPUTE_API, ensure_services
from .base import StepContext

LOG = get_logger(__name__)

DOMAIN_RE = re.compile(r"^(?=.{1,253}$)([a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?\.)+[a-z]{2,63}$")


def list_run_services(ctx: StepContext) -> List[RunService]:
    data = ctx.gcloud.json("run", "services", "list", f"--region={ctx.cfg.region}")
    return decode_list(data, RunService.from_json, "Cloud Run service")


def choose_run_service(ctx: StepContext) -> RunService:
    services = list_run_services(ctx)
    if not services:
        raise PreconditionMissing(
            f"No Cloud Run service in {ctx.cfg.region}. Deploy one before creating a load balancer."
        )
    labels = [f"{s.display_name} ({s.url})" if s.url else s.display_name for s in services]
    return services[ctx.prompter.select("Which service should the load balancer route to?", labels)]


def ask_domain(ctx: StepContext) -> str:
    while True:
        domain = ctx.prompter.text("Domain name (e.g. app.example.com)").strip().lower().rstrip(".")
        if DOMAIN_RE.match(domain):
            return domain
        LOG.warning("%r is not a valid domain name", domain)


def _find(ctx: StepContext, group: str, name: str, *scope: str) -> Optional[ComputeResource]:
    data = ctx.gcloud.json("compute", group, "list", f"--filter=name={name}", *scope)
    found = decode_list(data, ComputeResource.from_json, group)
    return found[0] if found else None


def _create(ctx: StepContext, group: str, name: str, *args: str) -> ComputeResource:
    data = ctx.gcloud.json("compute", group, "create", name, *args, quiet=False)
    created = decode_one(data, ComputeResource.from_json, group)
    LOG.info("✓ %s %s created", group, name)
    return created


def _ensure(ctx: StepContext, group: str, name: str, *args: str, scope: Tuple[str, ...] = ()) -> ComputeResource:
    """Create compute `group` resource `name` unless one with that name exists."""
    existing = _find(ctx, group, name, *scope)
    if existing is not None:
        LOG.info("✓ %s %s already exists", group, name)
        return existing
    return _create(ctx, group, name, *args)


def create_load_balancer(ctx: StepContext, state: ProvisioningState) -> None:
    LOG.info("Creating a load balancer")
    service = choose_run_service(ctx)
    domain = ask_domain(ctx)
    base = ctx.prompter.text("Name prefix for the load balancer resources", default=service.display_name)
    region = ctx.cfg.region
    ensure_services(ctx, state, [COMPUTE_API])

    neg = f"{base}-neg"
    backend = f"{base}-backend"
    url_map = f"{base}-url-map"
    cert = f"{base}-cert"
    proxy = f"{base}-https-proxy"
    address_name = f"{base}-ip"
    rule = f"{base}-https-rule"

    _ensure(
        ctx,
        "network-endpoint-groups",
        neg,
        f"--region={region}",
        "--network-endpoint-type=serverless",
        f"--cloud-run-service={service.display_name}",
        scope=(f"--regions={region}",),
    )

    if _find(ctx, "backend-services", backend) is None:
        _create(ctx, "backend-services", backend, "--global", "--load-balancing-scheme=EXTERNAL_MANAGED")
        ctx.gcloud.run(
            "compute",
            "backend-services",
            "add-backend",
            backend,
            "--global",
            f"--network-endpoint-group={neg}",
            f"--network-endpoint-group-region={region}",
        )
    else:
        LOG.info("✓ backend-services %s already exists", backend)

    _ensure(ctx, "url-maps", url_map, f"--default-service={backend}", "--global")
    _ensure(ctx, "ssl-certificates", cert, f"--domains={domain}", "--global")
    _ensure(
        ctx,
        "target-https-proxies",
        proxy,
        f"--url-map={url_map}",
        f"--ssl-certificates={cert}",
        "--global",
    )
    address = _ensure(ctx, "addresses", address_name, "--global", "--ip-version=IPV4")
    if not address.address:
        # Create responses do not always carry the reserved address.
        described = ctx.gcloud.json("compute", "addresses", "describe", address_name, "--global")
        address = decode_one(described, ComputeResource.from_json, "addresses")
    _ensure(
        ctx,
        "forwarding-rules",
        rule,
        "--global",
        "--load-balancing-scheme=EXTERNAL_MANAGED",
        f"--address={address_name}",
        f"--target-https-proxy={proxy}",
        "--ports=443",
    )

    state.load_balancer.service = service.display_name
    state.load_balancer.domain = domain
    state.load_balancer.address = address.address
    LOG.info("Point an A record for %s at %s", domain, address.address or address_name)

from __future__ import annotations

import logging
from enum import Enum
from time import perf_counter
from typing import Any, Callable, Dict, List, Optional, Tuple

from .environment import EnvironmentClassifier, parse_prod_defaults
from .logging import get_logger
from .state import ProvisioningState
from .steps import (
    StepContext,
    assemble_deploy_command,
    authenticate,
    configure_cli,
    create_adhoc_secrets,
    create_build_trigger,
    create_load_balancer,
    create_secrets,
    enable_apis,
    preflight,
    select_or_create_config,
    select_or_create_database,
    select_or_create_project,
    select_or_create_sql_instance,
    use_active_configuration,
)

LOG = get_logger(__name__)

Step = Callable[[StepContext, ProvisioningState], Any]


class Action(Enum):
    DEPLOY = "Create a Cloud Run service"
    BUILD_TRIGGER = "Create a build trigger"
    SECRET = "Create a secret"
    LOAD_BALANCER = "Create a load balancer"

    @property
    def label(self) -> str:
        return self.value


class _StepTimers:
    def __init__(self) -> None:
        self._starts: Dict[str, float] = {}

    def start(self, key: str) -> None:
        self._starts[key] = perf_counter()

    def finish(self, key: str) -> Optional[int]:
        started = self._starts.pop(key, None)
        if started is None:
            return None
        return int((perf_counter() - started) * 1000)


def _log_event(
    logger: Any,
    level: int,
    message: str,
    *,
    step: str,
    phase: str,
    timers: Optional[_StepTimers] = None,
    **extra: Any,
) -> None:
    duration_ms = None
    if timers is not None:
        if phase == "start":
            timers.start(step)
        elif phase in {"complete", "error"}:
            duration_ms = timers.finish(step)
    payload: Dict[str, Any] = {"step": step, "phase": phase, "event": f"{step}.{phase}"}
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    payload.update(extra)
    logger.log(level, message, extra=payload)


def collect_environment(ctx: StepContext, state: ProvisioningState) -> None:
    classifier = EnvironmentClassifier(ctx.prompter, parse_prod_defaults(ctx.cfg.prod_environment))
    classifier.collect(state, ctx.cfg.env_path(ctx.cwd))


def setup_steps(skip_auth: bool) -> List[Tuple[str, Step]]:
    """Steps every run goes through before the operator picks what to build."""
    steps: List[Tuple[str, Step]] = [("preflight", preflight)]
    if skip_auth:
        steps.append(("active_configuration", use_active_configuration))
    else:
        steps.extend(
            [
                ("authenticate", authenticate),
                ("configuration", select_or_create_config),
                ("project", select_or_create_project),
            ]
        )
    steps.extend([("configure_cli", configure_cli), ("enable_apis", enable_apis)])
    return steps


BRANCHES: Dict[Action, List[Tuple[str, Step]]] = {
    Action.DEPLOY: [
        ("sql_instance", select_or_create_sql_instance),
        ("database", select_or_create_database),
        ("environment", collect_environment),
        ("secrets", create_secrets),
        ("deploy_command", assemble_deploy_command),
    ],
    Action.BUILD_TRIGGER: [("build_trigger", create_build_trigger)],
    Action.SECRET: [("adhoc_secrets", create_adhoc_secrets)],
    Action.LOAD_BALANCER: [("load_balancer", create_load_balancer)],
}


def choose_action(ctx: StepContext, state: ProvisioningState) -> Action:
    actions = list(Action)
    idx = ctx.prompter.select(
        f"With project {state.project.id}, what do you want to do?",
        [a.label for a in actions],
    )
    return actions[idx]


def _run_steps(
    ctx: StepContext,
    state: ProvisioningState,
    steps: List[Tuple[str, Step]],
    timers: _StepTimers,
) -> None:
    for name, step in steps:
        _log_event(LOG, logging.DEBUG, f"{name} started", step=name, phase="start", timers=timers)
        try:
            step(ctx, state)
        except Exception as e:
            _log_event(
                LOG,
                logging.DEBUG,
                f"{name} failed",
                step=name,
                phase="error",
                timers=timers,
                error=str(e),
            )
            raise
        _log_event(LOG, logging.DEBUG, f"{name} complete", step=name, phase="complete", timers=timers)


def run_pipeline(
    ctx: StepContext,
    state: Optional[ProvisioningState] = None,
    action: Optional[Action] = None,
) -> ProvisioningState:
    """Run the setup steps, then the branch for `action` (asked when None).

    Any failure propagates; resources created before it are left in place.
    """
    if state is None:
        state = ProvisioningState()
    state.database.user = ctx.cfg.db_user

    timers = _StepTimers()
    _run_steps(ctx, state, setup_steps(ctx.cfg.skip_auth), timers)
    if action is None:
        action = choose_action(ctx, state)
    LOG.info("%s", action.label, extra={"action": action.name})
    _run_steps(ctx, state, BRANCHES[action], timers)
    return state

from __future__ import annotations

from .apis import enable_apis
from .auth import authenticate, select_or_create_config, use_active_configuration
from .base import StepContext
from .build_trigger import create_build_trigger
from .deploy import assemble_deploy_command
from .load_balancer import create_load_balancer
from .preflight import preflight
from .project import configure_cli, select_or_create_project
from .secrets import create_adhoc_secrets, create_secrets
from .sql import select_or_create_database, select_or_create_sql_instance

__all__ = [
    "StepContext",
    "assemble_deploy_command",
    "authenticate",
    "configure_cli",
    "create_adhoc_secrets",
    "create_build_trigger",
    "create_load_balancer",
    "create_secrets",
    "enable_apis",
    "preflight",
    "select_or_create_config",
    "select_or_create_database",
    "select_or_create_project",
    "select_or_create_sql_instance",
    "use_active_configuration",
]

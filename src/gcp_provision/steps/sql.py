from __future__ import annotations

from typing import List, Optional

from ..gcloud.schemas import Database, SqlInstance, decode_list
from ..logging import get_logger
from ..select import ResourceKind, select_or_create
from ..state import ProvisioningState
from .apis import SQL_APIS, ensure_services
from .base import StepContext

LOG = get_logger(__name__)


def list_sql_instances(ctx: StepContext) -> List[SqlInstance]:
    return decode_list(ctx.gcloud.json("sql", "instances", "list"), SqlInstance.from_json, "SQL instance")


def create_sql_instance(ctx: StepContext, state: ProvisioningState) -> Optional[SqlInstance]:
    # https://cloud.google.com/sdk/gcloud/reference/sql/instances/create
    if not ctx.prompter.confirm("Do you want to create a SQL instance?", default=True):
        return None

    instance_id = ctx.prompter.text("SQL instance id", default=state.project.id or None)
    root_password = ctx.prompter.text("Root password", password=True)

    LOG.info("Creating a Cloud SQL instance")
    ensure_services(ctx, state, SQL_APIS)
    LOG.info("Creating the instance. This takes a few minutes.")
    cfg = ctx.cfg
    data = ctx.gcloud.json(
        "sql",
        "instances",
        "create",
        instance_id,
        f"--database-version={cfg.db_engine}",
        f"--cpu={cfg.db_cpu}",
        f"--memory={cfg.db_memory}",
        f"--zone={cfg.zone}",
        f"--root-password={root_password}",
        quiet=False,
    )
    instance = SqlInstance.from_json(data)
    state.database.bind_instance(instance, password=root_password)
    LOG.info("✓ instance created and running at %s", instance.address or instance.connection_name)
    return instance


def select_or_create_sql_instance(ctx: StepContext, state: ProvisioningState) -> Optional[SqlInstance]:
    kind: ResourceKind[SqlInstance] = ResourceKind(
        name="SQL instance",
        message="Select an existing Postgres instance or create a new one",
        create_label="Create a new instance",
        list=lambda: list_sql_instances(ctx),
        create=lambda: create_sql_instance(ctx, state),
        label=lambda i: i.display_name,
    )
    instance = select_or_create(kind, ctx.prompter)
    if instance is not None and state.database.instance_id != instance.native_id:
        state.database.bind_instance(instance)
    return instance


def list_databases(ctx: StepContext, instance_id: str) -> List[Database]:
    data = ctx.gcloud.json("sql", "databases", "list", f"--instance={instance_id}")
    return decode_list(data, Database.from_json, "database")


def create_database(ctx: StepContext, state: ProvisioningState) -> Database:
    name = ctx.prompter.text("Database name", default=ctx.cfg.default_database_name)
    LOG.info("Creating %s database", name)
    data = ctx.gcloud.json(
        "sql",
        "databases",
        "create",
        name,
        f"--instance={state.database.instance_id}",
        quiet=False,
    )
    database = Database.from_json(data)
    LOG.info("✓ database created")
    return database


def select_or_create_database(ctx: StepContext, state: ProvisioningState) -> Optional[Database]:
    instance_id = state.database.instance_id
    if not instance_id:
        LOG.info("No SQL instance selected, skipping the database")
        return None

    kind: ResourceKind[Database] = ResourceKind(
        name="database",
        message="Select an existing database or create a new one",
        create_label="Create a new database",
        list=lambda: list_databases(ctx, instance_id),
        create=lambda: create_database(ctx, state),
        label=lambda d: d.display_name,
    )
    database = select_or_create(kind, ctx.prompter)
    if database is not None:
        state.database.bind_database(database.native_id)
    return database

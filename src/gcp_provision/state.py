from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Set

from .gcloud.schemas import Project, SqlInstance
from .util.errors import ProvisionError


@dataclass(frozen=True)
class EnvPair:
    key: str
    value: str


@dataclass
class ProjectInfo:
    id: str = ""
    display_name: str = ""
    number: str = ""
    account: str = ""
    billing_account: str = ""
    # Set once the operator has named a project that does not exist yet.
    identity_confirmed: bool = False

    def bind(self, project: Project) -> None:
        self.id = project.project_id
        self.display_name = project.display_name
        self.number = project.number


@dataclass
class DatabaseInfo:
    instance_id: str = ""
    connection_name: str = ""
    address: str = ""
    name: str = ""
    user: str = "postgres"
    password: str = field(default="", repr=False)

    def bind_instance(self, instance: SqlInstance, password: str = "") -> None:
        self.instance_id = instance.native_id
        self.connection_name = instance.connection_name
        self.address = instance.address
        if password:
            self.password = password

    def bind_database(self, name: str) -> None:
        if not self.instance_id:
            raise ProvisionError(f"Cannot bind database {name!r} before a SQL instance is selected")
        self.name = name


@dataclass
class BuildInfo:
    connection: str = ""
    repository: str = ""
    trigger: str = ""


@dataclass
class LoadBalancerInfo:
    service: str = ""
    domain: str = ""
    address: str = ""


@dataclass
class ProvisioningState:
    """Everything the steps learn or create during one run.

    Owned by the pipeline; each step writes only its own section.
    """

    project: ProjectInfo = field(default_factory=ProjectInfo)
    database: DatabaseInfo = field(default_factory=DatabaseInfo)
    secrets: List[EnvPair] = field(default_factory=list)
    env_vars: List[EnvPair] = field(default_factory=list)
    deferred_command: Optional[str] = None
    enabled_apis: Set[str] = field(default_factory=set)
    build: BuildInfo = field(default_factory=BuildInfo)
    load_balancer: LoadBalancerInfo = field(default_factory=LoadBalancerInfo)

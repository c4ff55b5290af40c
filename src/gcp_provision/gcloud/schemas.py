from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..util.errors import MalformedResponse

T = TypeVar("T")


@dataclass(frozen=True)
class ResourceDescriptor:
    """A listed or freshly created cloud resource.

    `raw` keeps the decoded JSON object for anything a step needs beyond the
    typed fields of the subclass.
    """

    display_name: str
    native_id: str
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


def _mapping(obj: Any, kind: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise MalformedResponse(f"Expected a {kind} object, got {type(obj).__name__}")
    return obj


def _required(obj: Dict[str, Any], key: str, kind: str) -> str:
    value = obj.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MalformedResponse(f"{kind} is missing required field '{key}'")
    return str(value)


def _optional(obj: Dict[str, Any], *path: str) -> Optional[Any]:
    cur: Any = obj
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def _short_name(resource_name: str) -> str:
    return resource_name.rstrip("/").rsplit("/", 1)[-1]


def decode_list(data: Any, decoder: Callable[[Any], T], kind: str) -> List[T]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise MalformedResponse(f"Expected a list of {kind} objects, got {type(data).__name__}")
    return [decoder(item) for item in data]


def decode_one(data: Any, decoder: Callable[[Any], T], kind: str) -> T:
    """Decode a create response; Compute commands wrap the new object in a list."""
    if isinstance(data, list):
        if not data:
            raise MalformedResponse(f"Expected a {kind} object, got an empty list")
        data = data[0]
    return decoder(data)


@dataclass(frozen=True)
class GcloudConfiguration(ResourceDescriptor):
    is_active: bool = False
    project: str = ""
    account: str = ""

    @classmethod
    def from_json(cls, obj: Any) -> GcloudConfiguration:
        data = _mapping(obj, "configuration")
        name = _required(data, "name", "configuration")
        return cls(
            display_name=name,
            native_id=name,
            raw=data,
            is_active=bool(data.get("is_active")),
            project=str(_optional(data, "properties", "core", "project") or ""),
            account=str(_optional(data, "properties", "core", "account") or ""),
        )


@dataclass(frozen=True)
class Project(ResourceDescriptor):
    number: str = ""

    @property
    def project_id(self) -> str:
        return self.native_id

    @classmethod
    def from_json(cls, obj: Any) -> Project:
        data = _mapping(obj, "project")
        project_id = _required(data, "projectId", "project")
        return cls(
            display_name=str(data.get("name") or project_id),
            native_id=project_id,
            raw=data,
            number=str(data.get("projectNumber") or ""),
        )


@dataclass(frozen=True)
class Account(ResourceDescriptor):
    status: str = ""

    @property
    def is_active(self) -> bool:
        return self.status.upper() == "ACTIVE"

    @classmethod
    def from_json(cls, obj: Any) -> Account:
        data = _mapping(obj, "account")
        account = _required(data, "account", "account")
        return cls(display_name=account, native_id=account, raw=data, status=str(data.get("status") or ""))


@dataclass(frozen=True)
class BillingAccount(ResourceDescriptor):
    is_open: bool = False

    @classmethod
    def from_json(cls, obj: Any) -> BillingAccount:
        data = _mapping(obj, "billing account")
        name = _required(data, "name", "billing account")
        return cls(
            display_name=str(data.get("displayName") or name),
            native_id=_short_name(name),
            raw=data,
            is_open=bool(data.get("open")),
        )


@dataclass(frozen=True)
class SqlInstance(ResourceDescriptor):
    connection_name: str = ""
    address: str = ""
    database_version: str = ""

    @classmethod
    def from_json(cls, obj: Any) -> SqlInstance:
        data = _mapping(obj, "SQL instance")
        name = _required(data, "name", "SQL instance")
        addresses = data.get("ipAddresses") or []
        if not isinstance(addresses, list):
            raise MalformedResponse("SQL instance field 'ipAddresses' must be a list")
        address = ""
        if addresses and isinstance(addresses[0], dict):
            address = str(addresses[0].get("ipAddress") or "")
        return cls(
            display_name=name,
            native_id=name,
            raw=data,
            connection_name=_required(data, "connectionName", "SQL instance"),
            address=address,
            database_version=str(data.get("databaseVersion") or ""),
        )


@dataclass(frozen=True)
class Database(ResourceDescriptor):
    instance: str = ""

    @classmethod
    def from_json(cls, obj: Any) -> Database:
        data = _mapping(obj, "database")
        name = _required(data, "name", "database")
        return cls(display_name=name, native_id=name, raw=data, instance=str(data.get("instance") or ""))


@dataclass(frozen=True)
class Secret(ResourceDescriptor):
    """`native_id` is the fully qualified name, `projects/<number>/secrets/<key>`."""

    @property
    def key(self) -> str:
        return self.display_name

    @classmethod
    def from_json(cls, obj: Any) -> Secret:
        data = _mapping(obj, "secret")
        name = _required(data, "name", "secret")
        return cls(display_name=_short_name(name), native_id=name, raw=data)


@dataclass(frozen=True)
class EnabledService(ResourceDescriptor):
    @classmethod
    def from_json(cls, obj: Any) -> EnabledService:
        data = _mapping(obj, "service")
        name = _optional(data, "config", "name") or _short_name(_required(data, "name", "service"))
        title = _optional(data, "config", "title") or name
        return cls(display_name=str(title), native_id=str(name), raw=data)


@dataclass(frozen=True)
class BuildConnection(ResourceDescriptor):
    installation_stage: str = ""

    @property
    def is_ready(self) -> bool:
        return self.installation_stage == "COMPLETE"

    @classmethod
    def from_json(cls, obj: Any) -> BuildConnection:
        data = _mapping(obj, "build connection")
        name = _required(data, "name", "build connection")
        return cls(
            display_name=_short_name(name),
            native_id=name,
            raw=data,
            installation_stage=str(_optional(data, "installationState", "stage") or ""),
        )


@dataclass(frozen=True)
class BuildRepository(ResourceDescriptor):
    remote_uri: str = ""

    @classmethod
    def from_json(cls, obj: Any) -> BuildRepository:
        data = _mapping(obj, "build repository")
        name = _required(data, "name", "build repository")
        return cls(
            display_name=_short_name(name),
            native_id=name,
            raw=data,
            remote_uri=str(data.get("remoteUri") or ""),
        )


@dataclass(frozen=True)
class BuildTrigger(ResourceDescriptor):
    @classmethod
    def from_json(cls, obj: Any) -> BuildTrigger:
        data = _mapping(obj, "build trigger")
        name = _required(data, "name", "build trigger")
        return cls(display_name=name, native_id=str(data.get("id") or name), raw=data)


@dataclass(frozen=True)
class RunService(ResourceDescriptor):
    url: str = ""

    @classmethod
    def from_json(cls, obj: Any) -> RunService:
        data = _mapping(obj, "Cloud Run service")
        name = _optional(data, "metadata", "name")
        if not name:
            raise MalformedResponse("Cloud Run service is missing required field 'metadata.name'")
        return cls(
            display_name=str(name),
            native_id=str(name),
            raw=data,
            url=str(_optional(data, "status", "url") or ""),
        )


@dataclass(frozen=True)
class ComputeResource(ResourceDescriptor):
    """Any Compute Engine object: NEGs, backend services, URL maps, addresses ..."""

    address: str = ""

    @classmethod
    def from_json(cls, obj: Any) -> ComputeResource:
        data = _mapping(obj, "compute resource")
        name = _required(data, "name", "compute resource")
        return cls(
            display_name=name,
            native_id=str(data.get("selfLink") or name),
            raw=data,
            address=str(data.get("address") or ""),
        )

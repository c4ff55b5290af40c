from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, List, Optional, TypeVar

from .logging import get_logger
from .prompts import Prompter
from .util.errors import ExecutionFailed

LOG = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ResourceKind(Generic[T]):
    """How to list, label and create one kind of resource.

    `create` may return None when the operator declines the creation.
    `preferred` marks the listed item offered as the default choice; when
    nothing matches, "create new" is the default.
    """

    name: str
    message: str
    create_label: str
    list: Callable[[], List[T]]
    create: Callable[[], Optional[T]]
    label: Callable[[T], str]
    preferred: Optional[Callable[[T], bool]] = None


def list_existing(kind: ResourceKind[T]) -> List[T]:
    """List resources of `kind`; a listing the CLI refuses counts as empty."""
    try:
        return list(kind.list())
    except ExecutionFailed as e:
        LOG.warning("Could not list %s, assuming none exist: %s", kind.name, e)
        return []


def select_or_create(kind: ResourceKind[T], prompter: Prompter) -> Optional[T]:
    existing = list_existing(kind)
    if existing:
        options = [kind.label(item) for item in existing] + [kind.create_label]
        default = 0
        if kind.preferred is not None:
            default = next((i for i, item in enumerate(existing) if kind.preferred(item)), len(existing))
        choice = prompter.select(kind.message, options, default=default)
        if 0 <= choice < len(existing):
            picked = existing[choice]
            LOG.info("Using existing %s %s", kind.name, kind.label(picked))
            return picked
    else:
        LOG.info("No existing %s found", kind.name)
    return kind.create()

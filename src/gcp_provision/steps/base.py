from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..config import RunConfig
from ..gcloud.executor import Gcloud
from ..prompts import Prompter


@dataclass
class StepContext:
    """Collaborators every step may use. Steps keep their results in ProvisioningState."""

    cfg: RunConfig
    gcloud: Gcloud
    prompter: Prompter
    cwd: Path = field(default_factory=Path.cwd)

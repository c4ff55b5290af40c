"""Collect the service environment and split it into plain variables and secrets.

The template (`.env`) lists every key the service reads. Production presets
override the template defaults; a preset without a value marks a key the
platform provides, which is skipped. Well-known database keys default to
what earlier steps bound into the provisioning state.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .logging import get_logger
from .prompts import Prompter
from .state import EnvPair, ProvisioningState

LOG = get_logger(__name__)

SECRET_KEYWORDS: Tuple[str, ...] = (
    "PASSWORD",
    "SECRET",
    "KEY",
    "TOKEN",
    "SALT",
    "HASH",
    "PRIVATE",
    "CERT",
    "PEM",
    "AUTH",
    "PASS",
    "PIN",
    "CODE",
    "CREDENTIAL",
    "SIGNATURE",
    "CIPHER",
    "ENCRYPT",
    "NONCE",
    "OTP",
)

SecretPredicate = Callable[[str], bool]

BARE_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class TemplateEntry:
    key: str
    value: str


@dataclass(frozen=True)
class EnvironmentEntry:
    key: str
    default_value: str
    is_secret: bool


def looks_secret(key: str) -> bool:
    upper = key.upper()
    return any(word in upper for word in SECRET_KEYWORDS)


def keyword_predicate(extra: Iterable[str] = (), overrides: Optional[Dict[str, bool]] = None) -> SecretPredicate:
    """Build a predicate from the default keywords plus `extra`; `overrides` wins per key."""
    words = tuple(SECRET_KEYWORDS) + tuple(w.upper() for w in extra)
    fixed = {k.upper(): v for k, v in (overrides or {}).items()}

    def _is_secret(key: str) -> bool:
        upper = key.upper()
        if upper in fixed:
            return fixed[upper]
        return any(word in upper for word in words)

    return _is_secret


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    return value


def parse_line(line: str) -> Optional[TemplateEntry]:
    """Parse one `KEY=default` or bare `KEY` line; comments, blanks and malformed lines give None."""
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    if text.startswith("export "):
        text = text[len("export ") :].lstrip()
    key, sep, value = text.partition("=")
    key = key.strip()
    if not sep:
        return TemplateEntry(key=key, value="") if BARE_KEY_RE.match(key) else None
    if not key or key.startswith("#"):
        return None
    return TemplateEntry(key=key, value=_unquote(value.strip()))


def parse_template(lines: Iterable[str]) -> List[TemplateEntry]:
    entries: List[TemplateEntry] = []
    seen: Set[str] = set()
    for line in lines:
        entry = parse_line(line)
        if entry is None or entry.key in seen:
            continue
        seen.add(entry.key)
        entries.append(entry)
    return entries


def read_template(path: Path) -> List[TemplateEntry]:
    return parse_template(path.read_text(encoding="utf-8").splitlines())


def parse_prod_defaults(items: Sequence[str]) -> Dict[str, str]:
    """`KEY=value` -> {KEY: value}; a bare `KEY` (or `KEY=`) maps to ""."""
    out: Dict[str, str] = {}
    for item in items:
        key, _, value = str(item).partition("=")
        key = key.strip()
        if key:
            out[key] = value.strip()
    return out


def derived_default(key: str, state: ProvisioningState) -> Optional[str]:
    db = state.database
    if key in {"PG_HOST", "DATABASE_HOST"}:
        return f"/cloudsql/{db.connection_name}" if db.connection_name else None
    if key in {"PG_DB_NAME", "DATABASE_NAME"}:
        return db.name or None
    if key in {"PG_PASSWORD", "DATABASE_PASSWORD"}:
        return db.password or None
    if key in {"PG_USER", "DATABASE_USERNAME"}:
        return db.user or None
    return None


class EnvironmentClassifier:
    def __init__(
        self,
        prompter: Prompter,
        prod_defaults: Dict[str, str],
        is_secret: SecretPredicate = looks_secret,
    ) -> None:
        self.prompter = prompter
        self.prod_defaults = dict(prod_defaults)
        self.is_secret = is_secret

    @property
    def provided_keys(self) -> Set[str]:
        return {k for k, v in self.prod_defaults.items() if not v}

    def default_for(self, entry: TemplateEntry, state: ProvisioningState) -> str:
        preset = self.prod_defaults.get(entry.key)
        if preset:
            return preset
        derived = derived_default(entry.key, state)
        if derived is not None:
            return derived
        return entry.value

    def plan(self, entries: Iterable[TemplateEntry], state: ProvisioningState) -> List[EnvironmentEntry]:
        """Resolve defaults and suggested classification without prompting."""
        skip = self.provided_keys
        planned: List[EnvironmentEntry] = []
        for entry in entries:
            if entry.key in skip:
                LOG.debug("Skipping %s, provided by the platform", entry.key)
                continue
            planned.append(
                EnvironmentEntry(
                    key=entry.key,
                    default_value=self.default_for(entry, state),
                    is_secret=self.is_secret(entry.key),
                )
            )
        return planned

    def collect(self, state: ProvisioningState, template_path: Path) -> List[EnvironmentEntry]:
        LOG.info("Collecting the environment variables from %s", template_path.name)
        collected: List[EnvironmentEntry] = []
        for suggested in self.plan(read_template(template_path), state):
            value = self.prompter.text(suggested.key, default=suggested.default_value or None, allow_blank=True)
            secret = self.prompter.confirm("Is this a secret?", default=suggested.is_secret)
            final = EnvironmentEntry(key=suggested.key, default_value=suggested.default_value, is_secret=secret)
            if final.is_secret:
                state.secrets.append(EnvPair(final.key, value))
            else:
                state.env_vars.append(EnvPair(final.key, value))
            collected.append(final)
        LOG.info(
            "✓ %s plain variables, %s secrets",
            sum(1 for e in collected if not e.is_secret),
            sum(1 for e in collected if e.is_secret),
        )
        return collected

from __future__ import annotations

import argparse
import json
import os
import warnings
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .util.errors import ConfigError

# --------
# Defaults
# --------
DEFAULT_REGION = "europe-west1"
DEFAULT_ZONE = "europe-west1-d"

# `KEY=value` presets applied in production. A bare `KEY` means the platform
# provides the value (Cloud Run sets PORT) and the key is never prompted.
DEFAULT_PROD_ENVIRONMENT: Tuple[str, ...] = (
    "PORT",
    # adonis
    "HOST=0.0.0.0",
    "NODE_ENV=production",
    "DRIVE_DISK=local",
    "SESSION_DRIVER=cookie",
    "CACHE_VIEWS=true",
    "DB_CONNECTION=pg",
    "PG_PORT=5432",
    "PG_USER=postgres",
    "SMTP_HOST=smtp.eu.mailgun.org",
    "SMTP_PORT=587",
    # strapi
    "DATABASE_PORT=5432",
    "DATABASE_USERNAME=postgres",
    "DATABASE_SSL=true",
)

DEFAULT_NEEDED_APIS: Tuple[str, ...] = (
    "run.googleapis.com",
    "cloudbuild.googleapis.com",
    "secretmanager.googleapis.com",
    "sourcerepo.googleapis.com",
    "iam.googleapis.com",
    "sqladmin.googleapis.com",
)

ENV_PREFIX = "GCP_PROV_"
BOOL_CONFIG_KEYS = {"skip_auth", "json_logs"}
INT_CONFIG_KEYS = {"db_cpu"}
LIST_CONFIG_KEYS = {"prod_environment", "needed_apis"}
STR_CONFIG_KEYS = {
    "region",
    "zone",
    "db_engine",
    "db_memory",
    "db_user",
    "env_file",
    "descriptor_file",
    "gcloud",
    "default_project_name",
    "default_database_name",
    "default_service_name",
    "build_connection",
    "build_config",
    "log_level",
}
ALLOWED_CONFIG_KEYS = BOOL_CONFIG_KEYS | INT_CONFIG_KEYS | LIST_CONFIG_KEYS | STR_CONFIG_KEYS


@dataclass(frozen=True)
class RunConfig:
    # Placement
    region: str = DEFAULT_REGION
    zone: str = DEFAULT_ZONE

    # Cloud SQL
    db_engine: str = "POSTGRES_15"
    db_cpu: int = 1
    db_memory: str = "4GiB"
    db_user: str = "postgres"

    # Local inputs, relative to the working directory
    env_file: str = ".env"
    descriptor_file: str = "Dockerfile"

    # Behaviour
    gcloud: str = "gcloud"
    skip_auth: bool = False
    prod_environment: List[str] = field(default_factory=lambda: list(DEFAULT_PROD_ENVIRONMENT))
    needed_apis: List[str] = field(default_factory=lambda: list(DEFAULT_NEEDED_APIS))
    default_project_name: str = "My App"
    default_database_name: str = "production"
    default_service_name: str = "production"
    build_connection: str = "github"
    build_config: str = "cloudbuild.yaml"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    def env_path(self, cwd: Optional[Path] = None) -> Path:
        return (cwd or Path.cwd()) / self.env_file

    def descriptor_path(self, cwd: Optional[Path] = None) -> Path:
        return (cwd or Path.cwd()) / self.descriptor_file


def _parse_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Top-level config must be an object")
    return data


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    raise ConfigError(f"Config field '{key}' must be a boolean")


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return int(value)
        except ValueError:
            pass
    raise ConfigError(f"Config field '{key}' must be an integer")


def _coerce_list(key: str, value: Any) -> List[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return [item.strip() for item in value if item.strip()]
    raise ConfigError(f"Config field '{key}' must be a list of strings or comma-separated string")


def _normalize(data: Dict[str, Any], *, source: str) -> Dict[str, Any]:
    unknown = sorted(set(data.keys()) - ALLOWED_CONFIG_KEYS)
    if unknown:
        warnings.warn(f"Unknown {source} keys ignored: {', '.join(unknown)}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in ALLOWED_CONFIG_KEYS or value is None:
            continue
        if key in BOOL_CONFIG_KEYS:
            normalized[key] = _coerce_bool(key, value)
        elif key in INT_CONFIG_KEYS:
            normalized[key] = _coerce_int(key, value)
        elif key in LIST_CONFIG_KEYS:
            normalized[key] = _coerce_list(key, value)
        elif isinstance(value, str):
            normalized[key] = value
        else:
            raise ConfigError(f"Config field '{key}' must be a string")
    if "db_cpu" in normalized and normalized["db_cpu"] < 1:
        raise ConfigError("Config field 'db_cpu' must be >= 1")
    return normalized


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in sorted(ALLOWED_CONFIG_KEYS):
        raw = os.getenv(ENV_PREFIX + key.upper())
        if raw is None or not raw.strip():
            continue
        out[key] = raw.strip()
    return out


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcp-provision",
        description=(
            "Provision a Google Cloud project for a backend service: project, APIs, "
            "Cloud SQL, secrets and a ready-to-run Cloud Run deploy command."
        ),
    )
    parser.add_argument(
        "--skip-auth",
        action="store_true",
        default=None,
        help="The CLI is already authenticated; use the active gcloud configuration",
    )
    parser.add_argument("--config", type=Path, help="Optional YAML/JSON config file")
    parser.add_argument("--region", default=None, help=f"Region (default: {DEFAULT_REGION})")
    parser.add_argument("--zone", default=None, help=f"Zone (default: {DEFAULT_ZONE})")
    parser.add_argument("--log-level", default=None, help="Log level (INFO, DEBUG, ...)")
    parser.add_argument(
        "--json-logs",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable JSON logs",
    )
    return parser


def load_run_config(argv: Optional[List[str]] = None) -> RunConfig:
    """
    Build RunConfig by merging defaults, optional config file, env vars, and CLI args.
    Precedence (low -> high): defaults < config file < env < CLI.
    """
    args = build_parser().parse_args(argv)

    merged: Dict[str, Any] = {}
    if args.config is not None:
        merged.update(_normalize(_parse_config_file(args.config), source="config file"))
    merged.update(_normalize(_env_overrides(), source="environment"))

    cli = {
        "skip_auth": args.skip_auth,
        "region": args.region,
        "zone": args.zone,
        "log_level": args.log_level,
        "json_logs": args.json_logs,
    }
    merged.update({k: v for k, v in cli.items() if v is not None})

    known = {f.name for f in fields(RunConfig)}
    return RunConfig(**{k: v for k, v in merged.items() if k in known})

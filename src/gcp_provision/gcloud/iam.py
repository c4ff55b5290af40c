from __future__ import annotations

from ..logging import get_logger
from .executor import Gcloud

LOG = get_logger(__name__)

SECRET_ACCESSOR = "roles/secretmanager.secretAccessor"
SECRET_ADMIN = "roles/secretmanager.admin"
CLOUDSQL_CLIENT = "roles/cloudsql.client"


def compute_service_account(project_number: str) -> str:
    """Default compute identity; Cloud Run revisions run as this account."""
    return f"{project_number}-compute@developer.gserviceaccount.com"


def cloudbuild_service_account(project_number: str) -> str:
    return f"{project_number}@cloudbuild.gserviceaccount.com"


def cloudbuild_service_agent(project_number: str) -> str:
    return f"service-{project_number}@gcp-sa-cloudbuild.iam.gserviceaccount.com"


def grant_project_role(gcloud: Gcloud, project_id: str, account: str, role: str) -> None:
    gcloud.run(
        "projects",
        "add-iam-policy-binding",
        project_id,
        f"--member=serviceAccount:{account}",
        f"--role={role}",
        "--condition=None",
        quiet=True,
    )
    LOG.info("✓ %s granted %s", account, role)


def grant_secret_role(gcloud: Gcloud, secret: str, account: str, role: str = SECRET_ACCESSOR) -> None:
    gcloud.run(
        "secrets",
        "add-iam-policy-binding",
        secret,
        f"--member=serviceAccount:{account}",
        f"--role={role}",
        quiet=True,
    )

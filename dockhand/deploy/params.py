"""Deploy parameters dataclass and validation."""

import enum
import os
import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

from dockhand.errors import ValidationError

DEFAULT_BRANCH = "main"

_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_USER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*\$?$")
_SERVER_RE = re.compile(r"^[A-Za-z0-9.:-]+$")
_NAME_INVALID_RE = re.compile(r"[^a-z0-9_-]+")
_NAME_SEPARATOR_RUN_RE = re.compile(r"[_-]{2,}")


class BuildMethod(enum.Enum):
    """How the working copy is turned into running containers."""

    DOCKERFILE = "dockerfile"
    COMPOSE = "compose"


@dataclass(frozen=True)
class DeployParams:
    """All parameters needed for a single deployment. Read-only once built."""

    repo_url: str
    token: str = field(repr=False)
    ssh_user: str
    server: str  # host name or IP
    ssh_key: str  # path to SSH private key
    app_port: int
    branch: str = DEFAULT_BRANCH
    ssh_port: int = 22
    workdir: str = "."
    dry_run: bool = False
    ssh_retries: int = 3
    settle_seconds: int = 3
    cleanup: bool = True

    @property
    def repo_name(self) -> str:
        """Repository name: last URL path segment without ``.git``."""
        return repo_name_from_url(self.repo_url)

    @property
    def working_copy(self) -> str:
        """Local checkout directory, stable across runs."""
        return os.path.join(self.workdir, self.repo_name)

    @property
    def app_name(self) -> str:
        """Container, image and compose project name."""
        return derive_app_name(self.working_copy)

    @property
    def address(self) -> str:
        """SSH address string (user@host)."""
        return f"{self.ssh_user}@{self.server}"


def repo_name_from_url(repo_url: str) -> str:
    path = urlparse(repo_url).path.rstrip("/")
    name = path.rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


def derive_app_name(working_copy: str) -> str:
    """Derive a Docker-safe name from the working copy directory name."""
    base = os.path.basename(os.path.normpath(working_copy)).lower()
    # Compose project names must match ^[a-z0-9][a-z0-9_-]*$, image names
    # reject separator runs and trailing separators
    name = _NAME_INVALID_RE.sub("-", base)
    name = _NAME_SEPARATOR_RUN_RE.sub("-", name).strip("_-")
    if not name:
        raise ValidationError(f"Cannot derive an application name from '{working_copy}'")
    return name


def _validate_repo_url(value):
    if not value or not _URL_RE.match(value):
        raise ValidationError("Invalid Git URL format: must start with http:// or https://")
    parsed = urlparse(value)
    if not parsed.hostname or not repo_name_from_url(value):
        raise ValidationError(f"Invalid Git URL: {value}")


def _validate_branch(value):
    if (
        not value
        or value.startswith("-")
        or ".." in value
        or any(c.isspace() for c in value)
        or value.endswith((".lock", "/"))
    ):
        raise ValidationError(f"Invalid branch name: {value!r}")


def _validate_port(value, name="Port"):
    try:
        port = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number") from None
    if not 0 < port < 65536:
        raise ValidationError(f"{name} must be between 1 and 65535")
    return port


def _validate_count(value, name, minimum):
    try:
        count = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number") from None
    if count < minimum:
        raise ValidationError(f"{name} must be at least {minimum}")
    return count


def validate_params(raw: dict) -> DeployParams:
    """Validate raw field values and build DeployParams.

    Fields are checked in collection order; the first invalid one raises
    ValidationError.
    """
    repo_url = (raw.get("repo_url") or "").strip()
    _validate_repo_url(repo_url)

    token = raw.get("token") or ""
    if not token.strip():
        raise ValidationError("Access token cannot be empty")

    branch = (raw.get("branch") or "").strip() or DEFAULT_BRANCH
    _validate_branch(branch)

    ssh_user = (raw.get("ssh_user") or "").strip()
    if not ssh_user or not _USER_RE.match(ssh_user):
        raise ValidationError(f"Invalid SSH username: {ssh_user!r}")

    server = (raw.get("server") or "").strip()
    if not server or not _SERVER_RE.match(server):
        raise ValidationError(f"Invalid server address: {server!r}")

    ssh_key = os.path.expanduser((raw.get("ssh_key") or "").strip())
    if not ssh_key or not os.path.isfile(ssh_key):
        raise ValidationError(f"SSH key not found at {ssh_key}")
    if not os.access(ssh_key, os.R_OK):
        raise ValidationError(f"SSH key is not readable: {ssh_key}")

    app_port = _validate_port(raw.get("app_port"))
    ssh_port = _validate_port(raw.get("ssh_port", 22), name="SSH port")
    ssh_retries = _validate_count(raw.get("ssh_retries", 3), "SSH retries", 1)
    settle_seconds = _validate_count(raw.get("settle_seconds", 3), "Settle seconds", 0)

    params = DeployParams(
        repo_url=repo_url,
        token=token.strip(),
        branch=branch,
        ssh_user=ssh_user,
        server=server,
        ssh_key=ssh_key,
        app_port=app_port,
        ssh_port=ssh_port,
        workdir=raw.get("workdir") or ".",
        dry_run=bool(raw.get("dry_run", False)),
        ssh_retries=ssh_retries,
        settle_seconds=settle_seconds,
        cleanup=bool(raw.get("cleanup", True)),
    )
    # Fail now rather than after the clone if no usable name can be derived
    derive_app_name(params.working_copy)
    return params

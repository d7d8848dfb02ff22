"""Parameter collection: CLI flags, environment, YAML config file, prompts."""

import getpass
import logging
import os

import yaml

from dockhand.deploy.params import DEFAULT_BRANCH, DeployParams, validate_params
from dockhand.errors import ValidationError
from dockhand.logging_setup import log_success
from dockhand.redact import register_secret

logger = logging.getLogger(__name__)

# (field, env vars, prompt) in collection order
FIELDS = [
    ("repo_url", ["DOCKHAND_REPO_URL"], "Enter Git Repository URL: "),
    ("token", ["DOCKHAND_GIT_TOKEN", "GIT_TOKEN"], "Enter Personal Access Token (PAT): "),
    ("branch", ["DOCKHAND_BRANCH"], f"Enter Branch name (default: {DEFAULT_BRANCH}): "),
    ("ssh_user", ["DOCKHAND_SSH_USER"], "Enter SSH Username: "),
    ("server", ["DOCKHAND_SERVER"], "Enter Server IP Address: "),
    ("ssh_key", ["DOCKHAND_SSH_KEY"], "Enter SSH Key Path (e.g., ~/.ssh/id_rsa): "),
    ("app_port", ["DOCKHAND_APP_PORT"], "Enter Application Port (internal container port): "),
]

# Keys accepted in the YAML config file. The token is deliberately absent.
CONFIG_KEYS = {
    "repo_url",
    "branch",
    "ssh_user",
    "server",
    "ssh_key",
    "ssh_port",
    "app_port",
    "workdir",
    "ssh_retries",
    "settle_seconds",
}


def load_config_file(path) -> dict:
    """Load non-secret deploy settings from a YAML mapping."""
    if not os.path.isfile(path):
        raise ValidationError(f"Config file not found: {path}")

    with open(path) as f:
        try:
            config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid YAML in {path}: {e}") from None

    if not isinstance(config, dict):
        raise ValidationError(f"Config file {path} must contain a mapping")
    if "token" in config:
        raise ValidationError(
            f"Config file {path} must not contain the access token. "
            "Use DOCKHAND_GIT_TOKEN or the interactive prompt instead."
        )
    unknown = sorted(set(config) - CONFIG_KEYS)
    if unknown:
        raise ValidationError(
            f"Unknown config keys in {path}: {', '.join(unknown)}. "
            f"Allowed: {', '.join(sorted(CONFIG_KEYS))}"
        )
    return config


def collect_params(args, environ=None, prompt=input, secret_prompt=getpass.getpass, interactive=None) -> DeployParams:
    """Gather every deploy field and validate it.

    Precedence: CLI flag, environment variable, config file, prompt. Prompts
    are only shown in interactive mode; otherwise a missing field is fatal.
    """
    environ = os.environ if environ is None else environ
    if interactive is None:
        interactive = not getattr(args, "non_interactive", False) and os.isatty(0)

    file_config = load_config_file(args.config) if getattr(args, "config", None) else {}

    raw = {}
    for name, env_vars, question in FIELDS:
        value = getattr(args, name, None)
        if value is None:
            value = next((environ[v] for v in env_vars if environ.get(v)), None)
        if value is None:
            value = file_config.get(name)
        if value is None and interactive:
            value = secret_prompt(question) if name == "token" else prompt(question)
        if value is None and name != "branch":
            raise ValidationError(f"{name} is required (flag, {env_vars[0]} or config file)")
        raw[name] = value

    for name in ("ssh_port", "workdir", "ssh_retries", "settle_seconds"):
        value = getattr(args, name, None)
        if value is None:
            value = file_config.get(name)
        if value is not None:
            raw[name] = value

    raw["dry_run"] = getattr(args, "dry_run", False)
    raw["cleanup"] = not getattr(args, "no_cleanup", False)

    register_secret((raw["token"] or "").strip())
    params = validate_params(raw)

    log_success(logger, f"Git Repository: {params.repo_url}")
    log_success(logger, "PAT received")
    log_success(logger, f"Branch: {params.branch}")
    log_success(logger, f"SSH target: {params.address} (port {params.ssh_port})")
    log_success(logger, f"SSH Key found: {params.ssh_key}")
    log_success(logger, f"Application Port: {params.app_port}")
    log_success(logger, "All parameters collected successfully")
    return params

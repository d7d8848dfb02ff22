"""Source acquisition: clone or fast-forward a Git working copy over HTTPS."""

import logging
import os
from urllib.parse import quote, urlsplit, urlunsplit

from dockhand.deploy.params import DeployParams
from dockhand.errors import SourceError
from dockhand.logging_setup import log_success
from dockhand.provisioning.shell import run_shell_cmd
from dockhand.redact import register_secret

logger = logging.getLogger(__name__)

# Fail instead of prompting for credentials when the token is rejected
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


def _replace_userinfo(repo_url, userinfo):
    parts = urlsplit(repo_url)
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    if parts.port:
        host = f"{host}:{parts.port}"
    netloc = f"{userinfo}@{host}" if userinfo else host
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def authenticated_url(repo_url, token):
    """Inject the token as URL userinfo for a single git invocation.

    The encoded form differs from the raw token when it contains reserved
    characters, so it is registered for redaction as well.
    """
    encoded = quote(token, safe="")
    register_secret(encoded)
    return _replace_userinfo(repo_url, encoded)


def clean_url(repo_url):
    """Strip any credentials from the URL."""
    return _replace_userinfo(repo_url, None)


async def _git(run, args, dry_run, step):
    rc, _, stderr = await run(["git", *args], dry_run=dry_run, timeout=900, env=GIT_ENV)
    if rc != 0:
        for line in stderr.strip().splitlines():
            logger.error(f"git: {line}")
        raise SourceError(f"git {step} failed with exit code {rc}", exit_code=rc)


async def clone_or_update(params: DeployParams, run=run_shell_cmd) -> str:
    """Produce a working copy at the branch tip and return its path.

    An existing working copy is updated in place (checkout + fast-forward)
    instead of being cloned again. The token only ever appears on the git
    command line, never in .git/config.
    """
    dest = params.working_copy
    auth_url = authenticated_url(params.repo_url, params.token)
    branch = params.branch

    if not os.path.exists(dest):
        logger.info(f"Cloning repository to {dest}...")
        await _git(run, ["clone", "--branch", branch, auth_url, dest], params.dry_run, "clone")
        await _git(run, ["-C", dest, "remote", "set-url", "origin", clean_url(params.repo_url)], params.dry_run, "remote set-url")
        log_success(logger, "Repository cloned successfully")
        return dest

    if not os.path.isdir(os.path.join(dest, ".git")):
        raise SourceError(f"{dest} exists but is not a git working copy")

    logger.info(f"Working copy exists at {dest}, updating branch {branch}...")
    refspec = f"+refs/heads/{branch}:refs/remotes/origin/{branch}"
    await _git(run, ["-C", dest, "fetch", "--prune", auth_url, refspec], params.dry_run, "fetch")
    await _git(run, ["-C", dest, "checkout", branch], params.dry_run, "checkout")
    await _git(run, ["-C", dest, "merge", "--ff-only", f"origin/{branch}"], params.dry_run, "merge")
    log_success(logger, "Repository updated successfully")
    return dest

"""Build-method detection: Dockerfile or compose file at the working copy root."""

import logging
import os

from dockhand.deploy.params import BuildMethod
from dockhand.errors import BuildDescriptorError
from dockhand.logging_setup import log_success

logger = logging.getLogger(__name__)

DOCKERFILE = "Dockerfile"
COMPOSE_FILES = ["docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml"]


def find_compose_file(working_copy):
    """Return the first compose file name present, or None."""
    for name in COMPOSE_FILES:
        if os.path.isfile(os.path.join(working_copy, name)):
            return name
    return None


def detect_build_method(working_copy, dry_run=False) -> BuildMethod:
    """Pick the build method; a Dockerfile wins over a compose file."""
    if dry_run and not os.path.isdir(working_copy):
        logger.info(f"[dry-run] {working_copy} not cloned, assuming {DOCKERFILE}")
        return BuildMethod.DOCKERFILE

    if os.path.isfile(os.path.join(working_copy, DOCKERFILE)):
        log_success(logger, f"{DOCKERFILE} found")
        return BuildMethod.DOCKERFILE

    compose_file = find_compose_file(working_copy)
    if compose_file:
        log_success(logger, f"{compose_file} found")
        return BuildMethod.COMPOSE

    raise BuildDescriptorError(f"Neither {DOCKERFILE} nor a docker-compose file found in {working_copy}")

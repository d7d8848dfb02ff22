"""Source handling: working copy acquisition and build-method detection."""

from dockhand.source.detect import COMPOSE_FILES, detect_build_method, find_compose_file
from dockhand.source.git import authenticated_url, clean_url, clone_or_update

__all__ = [
    "COMPOSE_FILES",
    "authenticated_url",
    "clean_url",
    "clone_or_update",
    "detect_build_method",
    "find_compose_file",
]

"""Deploy library: parameters, proxy rules, launch scripts, validation.

The pipeline itself lives in dockhand.deploy.orchestrate.
"""

from dockhand.deploy.collect import collect_params, load_config_file
from dockhand.deploy.launch import (
    build_cleanup_script,
    build_compose_launch_script,
    build_dockerfile_launch_script,
    build_stage_script,
    remote_app_dir,
)
from dockhand.deploy.nginx import NGINX_SITE_PATH, build_proxy_script, generate_proxy_conf
from dockhand.deploy.params import BuildMethod, DeployParams, derive_app_name, validate_params
from dockhand.deploy.validate import ValidationReport, parse_validation_output

__all__ = [
    "BuildMethod",
    "DeployParams",
    "NGINX_SITE_PATH",
    "ValidationReport",
    "build_cleanup_script",
    "build_compose_launch_script",
    "build_dockerfile_launch_script",
    "build_proxy_script",
    "build_stage_script",
    "collect_params",
    "derive_app_name",
    "generate_proxy_conf",
    "load_config_file",
    "parse_validation_output",
    "remote_app_dir",
    "validate_params",
]

"""Deploy orchestration: the ordered, fail-fast deployment pipeline."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from dockhand.deploy.launch import cleanup_failed_launch, launch_containers, transfer_working_copy
from dockhand.deploy.nginx import configure_proxy
from dockhand.deploy.params import BuildMethod, DeployParams
from dockhand.deploy.validate import ValidationReport, probe_http, validate_deployment
from dockhand.errors import ConnectivityError, DeployError
from dockhand.logging_setup import log_success
from dockhand.provisioning.remote import provision_remote
from dockhand.provisioning.shell import run_shell_cmd
from dockhand.provisioning.ssh import wait_for_ssh
from dockhand.provisioning.ssh_transport import make_copy_dir, make_run_script
from dockhand.source.detect import detect_build_method
from dockhand.source.git import clone_or_update

logger = logging.getLogger(__name__)

# ssh exits 255 on connection and authentication failures
SSH_CONNECT_FAILURE = 255


@dataclass
class Transport:
    """External side effects of the pipeline, injectable for tests.

    run_local: async (command, dry_run=, timeout=, env=) -> (rc, stdout, stderr)
    run_script: async (script, timeout=, docker_group=) -> (rc, stdout, stderr)
    copy_dir: async (local_dir, remote_path) -> (rc, stderr)
    check_ssh: async () -> bool
    probe: async (url) -> status code or None
    """

    run_local: Callable[..., Awaitable[tuple]]
    run_script: Callable[..., Awaitable[tuple]]
    copy_dir: Callable[..., Awaitable[tuple]]
    check_ssh: Callable[[], Awaitable[bool]]
    probe: Callable[..., Awaitable[int | None]] = probe_http


@dataclass
class DeployResult:
    """Values produced by the pipeline steps."""

    working_copy: str
    build_method: BuildMethod
    app_name: str
    report: ValidationReport


def make_ssh_transport(params: DeployParams) -> Transport:
    """Build the real SSH/SCP/git transport for *params*."""

    async def check_ssh():
        return await wait_for_ssh(
            params.server,
            params.ssh_user,
            params.ssh_port,
            params.ssh_key,
            attempts=params.ssh_retries,
            dry_run=params.dry_run,
        )

    return Transport(
        run_local=run_shell_cmd,
        run_script=make_run_script(params.address, params.ssh_key, params.ssh_port, dry_run=params.dry_run),
        copy_dir=make_copy_dir(params.address, params.ssh_key, params.ssh_port, dry_run=params.dry_run),
        check_ssh=check_ssh,
    )


def _step(number, title):
    logger.info(f"=== STEP {number}: {title} ===")


async def deploy(params: DeployParams, transport: Transport | None = None) -> DeployResult:
    """Run steps 2-8 of the pipeline for already validated params.

    Each fatal step raises a DeployError subclass and nothing after it runs.
    Post-deploy validation never raises.
    """
    if transport is None:
        transport = make_ssh_transport(params)

    _step(2, "Clone or Update Repository")
    working_copy = await clone_or_update(params, run=transport.run_local)

    _step(3, "Verify Docker Configuration")
    build_method = detect_build_method(working_copy, dry_run=params.dry_run)
    app_name = params.app_name

    _step(4, "Testing SSH Connection")
    if not await transport.check_ssh():
        raise ConnectivityError(
            f"Failed to establish SSH connection to {params.address}",
            exit_code=SSH_CONNECT_FAILURE,
        )
    log_success(logger, "SSH connection established")

    _step(5, "Preparing Remote Environment")
    await provision_remote(transport.run_script)
    log_success(logger, "Remote environment prepared")

    _step(6, "Deploying Dockerized Application")
    try:
        await transfer_working_copy(transport.run_script, transport.copy_dir, working_copy, app_name)
        await launch_containers(
            transport.run_script,
            build_method,
            app_name,
            params.app_port,
            settle_seconds=params.settle_seconds,
        )
    except DeployError:
        if params.cleanup:
            await cleanup_failed_launch(transport.run_script, app_name)
        raise

    _step(7, "Configuring Nginx Reverse Proxy")
    await configure_proxy(transport.run_script, params.app_port)

    _step(8, "Validating Deployment")
    report = await validate_deployment(
        transport.run_script,
        params.server,
        probe=transport.probe,
        dry_run=params.dry_run,
    )
    log_success(logger, "Deployment validation completed")

    status = "dry-run (not deployed)" if params.dry_run else "deployed"
    logger.info(f"Application: {app_name} ({build_method.value})")
    logger.info(f"Endpoint: http://{params.server}/")
    logger.info(f"Status: {status}")
    return DeployResult(
        working_copy=working_copy,
        build_method=build_method,
        app_name=app_name,
        report=report,
    )

"""Artifact transfer and container launch scripts."""

import logging

from dockhand.deploy.params import BuildMethod
from dockhand.errors import RemoteExecutionError, TransferError
from dockhand.logging_setup import log_success
from dockhand.provisioning.script import RemoteScript
from dockhand.provisioning.ssh_transport import REMOTE_DEPLOY_DIR

logger = logging.getLogger(__name__)

LOG_TAIL_LINES = 20


def remote_app_dir(app_name):
    """Remote copy location, relative to the remote home directory."""
    return f"{REMOTE_DEPLOY_DIR}/{app_name}"


def _cd_app_dir(s: RemoteScript, app_name):
    s.var("APP_DIR", remote_app_dir(app_name))
    s.line('cd "$HOME/$APP_DIR"')


def build_stage_script(app_name) -> str:
    """Remove the previous copy so the transfer replaces it instead of nesting into it."""
    s = RemoteScript()
    s.var("APP_DIR", remote_app_dir(app_name))
    s.line('rm -rf "${HOME:?}/$APP_DIR"')
    s.line(f'mkdir -p "$HOME"/{RemoteScript.quote(REMOTE_DEPLOY_DIR)}')
    return s.render()


def build_dockerfile_launch_script(app_name, app_port: int, settle_seconds: int = 3) -> str:
    """Build the image, replace any container with the same name, start a new one."""
    app_port = int(app_port)
    s = RemoteScript()
    s.var("APP_NAME", app_name)
    s.var("APP_PORT", app_port)
    _cd_app_dir(s, app_name)

    s.echo("Building Docker image...")
    s.line('docker build -t "$APP_NAME:latest" .')

    s.echo("Checking for a previous container...")
    s.line('EXISTING="$(docker ps -aq --filter "name=^/${APP_NAME}$")"')
    s.line('if [ -n "$EXISTING" ]; then')
    s.line('    echo "Removing previous container $APP_NAME"')
    s.line('    docker rm -f "$APP_NAME" > /dev/null')
    s.line("else")
    s.line('    echo "No previous container named $APP_NAME"')
    s.line("fi")

    s.echo("Starting new container...")
    s.line('docker run -d --name "$APP_NAME" --restart unless-stopped -p "$APP_PORT:$APP_PORT" "$APP_NAME:latest"')

    s.echo("Waiting for container to start...")
    s.line(f"sleep {int(settle_seconds)}")
    s.echo("Container status:")
    s.line('docker ps -a --filter "name=^/${APP_NAME}$"')
    s.echo("Recent logs:")
    s.line(f'docker logs --tail {LOG_TAIL_LINES} "$APP_NAME" 2>&1 || true')
    s.echo("Deployment complete")
    return s.render()


def build_compose_launch_script(app_name, settle_seconds: int = 3) -> str:
    """Tear down the compose project and bring up a fresh stack."""
    s = RemoteScript()
    s.var("APP_NAME", app_name)
    _cd_app_dir(s, app_name)
    s.line("if docker compose version > /dev/null 2>&1; then")
    s.line('    COMPOSE="docker compose"')
    s.line("else")
    s.line('    COMPOSE="docker-compose"')
    s.line("fi")

    s.echo("Stopping existing stack...")
    s.line('$COMPOSE -p "$APP_NAME" down --remove-orphans')
    s.echo("Starting stack...")
    s.line('$COMPOSE -p "$APP_NAME" up -d --build')

    s.echo("Waiting for services to start...")
    s.line(f"sleep {int(settle_seconds)}")
    s.echo("Stack status:")
    s.line('$COMPOSE -p "$APP_NAME" ps')
    s.echo("Recent logs:")
    s.line(f'$COMPOSE -p "$APP_NAME" logs --tail {LOG_TAIL_LINES} || true')
    s.echo("Deployment complete")
    return s.render()


def build_cleanup_script(app_name) -> str:
    """Best-effort removal of a failed launch: the copy and non-running containers."""
    s = RemoteScript(fail_fast=False)
    s.var("APP_NAME", app_name)
    s.var("APP_DIR", remote_app_dir(app_name))
    s.line('rm -rf "${HOME:?}/$APP_DIR"')
    s.line(
        'docker ps -aq --filter "name=^/${APP_NAME}$" --filter status=created --filter status=exited'
        " | xargs -r docker rm > /dev/null 2>&1"
    )
    s.echo("Cleanup finished")
    return s.render()


async def transfer_working_copy(run_script, copy_dir, working_copy, app_name):
    """Replace the remote copy of the working copy."""
    rc, _, _ = await run_script(build_stage_script(app_name), timeout=300)
    if rc != 0:
        raise RemoteExecutionError(f"Failed to prepare remote directory (exit code {rc})", exit_code=rc)

    logger.info("Transferring project files to remote server...")
    rc, stderr = await copy_dir(working_copy, remote_app_dir(app_name))
    if rc != 0:
        for line in stderr.strip().splitlines():
            logger.error(f"scp: {line}")
        raise TransferError(f"File transfer failed with exit code {rc}", exit_code=rc)
    log_success(logger, f"Project files copied to ~/{remote_app_dir(app_name)}")


async def launch_containers(run_script, build_method: BuildMethod, app_name, app_port, settle_seconds=3):
    """Build and start the container (or compose stack) on the remote host."""
    if build_method is BuildMethod.COMPOSE:
        script = build_compose_launch_script(app_name, settle_seconds)
    else:
        script = build_dockerfile_launch_script(app_name, app_port, settle_seconds)

    rc, _, _ = await run_script(script, timeout=3600, docker_group=True)
    if rc != 0:
        raise RemoteExecutionError(f"Container launch failed with exit code {rc}", exit_code=rc)
    log_success(logger, "Application deployed successfully")


async def cleanup_failed_launch(run_script, app_name):
    """Run the cleanup script; failures here are only reported."""
    logger.warning(f"Cleaning up partial deployment of {app_name}...")
    rc, _, _ = await run_script(build_cleanup_script(app_name), timeout=300, docker_group=True)
    if rc != 0:
        logger.warning(f"Cleanup exited with code {rc}; remove ~/{remote_app_dir(app_name)} manually")

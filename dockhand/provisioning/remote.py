"""Remote server provisioning: install Docker, Docker Compose and nginx."""

import logging

from dockhand.errors import RemoteExecutionError
from dockhand.provisioning.script import RemoteScript

logger = logging.getLogger(__name__)

COMPOSE_RELEASE_URL = "https://github.com/docker/compose/releases/latest/download/docker-compose-$(uname -s)-$(uname -m)"


def build_prepare_script() -> str:
    """Build the idempotent host preparation script.

    Steps (each checks before installing):
    1. Refresh the package index and upgrade packages
    2. Install Docker if not found
    3. Install Docker Compose if neither the plugin nor the binary is found
    4. Install nginx if not found
    5. Add user to docker group
    6. Enable and start docker and nginx
    """
    s = RemoteScript()
    s.line("export DEBIAN_FRONTEND=noninteractive")

    s.echo("Updating system packages...")
    s.line("sudo -E apt-get update -y > /dev/null")
    s.line("sudo -E apt-get upgrade -y > /dev/null")

    s.echo("Installing Docker...")
    s.line("if ! command -v docker > /dev/null 2>&1; then")
    s.line("    curl -fsSL https://get.docker.com -o /tmp/get-docker.sh")
    s.line("    sudo sh /tmp/get-docker.sh > /dev/null")
    s.line("    rm -f /tmp/get-docker.sh")
    s.line("else")
    s.line('    echo "Docker already installed"')
    s.line("fi")

    s.echo("Installing Docker Compose...")
    s.line("if docker compose version > /dev/null 2>&1 || command -v docker-compose > /dev/null 2>&1; then")
    s.line('    echo "Docker Compose already installed"')
    s.line("else")
    s.line(f'    sudo curl -fsSL "{COMPOSE_RELEASE_URL}" -o /usr/local/bin/docker-compose')
    s.line("    sudo chmod +x /usr/local/bin/docker-compose")
    s.line("fi")

    s.echo("Installing Nginx...")
    s.line("if ! command -v nginx > /dev/null 2>&1; then")
    s.line("    sudo -E apt-get install -y nginx > /dev/null")
    s.line("else")
    s.line('    echo "Nginx already installed"')
    s.line("fi")

    s.echo("Adding user to Docker group...")
    s.line('if ! id -nG "$(whoami)" | grep -qw docker; then')
    s.line('    sudo usermod -aG docker "$(whoami)"')
    s.line("fi")

    s.echo("Enabling and starting services...")
    s.line("sudo systemctl enable --now docker > /dev/null 2>&1")
    s.line("sudo systemctl enable --now nginx > /dev/null 2>&1")
    s.echo("Services ready")
    return s.render()


async def provision_remote(run_script):
    """Ensure the remote server has Docker, Docker Compose and nginx running."""
    rc, _, _ = await run_script(build_prepare_script(), timeout=1800)
    if rc != 0:
        raise RemoteExecutionError(f"Remote environment preparation failed with exit code {rc}", exit_code=rc)

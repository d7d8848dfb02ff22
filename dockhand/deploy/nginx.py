"""nginx reverse proxy rule generation and installation."""

import logging

from dockhand.errors import ProxyConfigError
from dockhand.logging_setup import log_success
from dockhand.provisioning.script import RemoteScript

logger = logging.getLogger(__name__)

NGINX_SITE_PATH = "/etc/nginx/sites-available/default"
NGINX_ENABLED_PATH = "/etc/nginx/sites-enabled/default"
BACKUP_SUFFIX = ".dockhand.bak"


def generate_proxy_conf(app_port: int) -> str:
    """Generate a server block forwarding port 80 to the application port."""
    app_port = int(app_port)
    return f"""server {{
    listen 80;
    server_name _;

    location / {{
        proxy_pass http://127.0.0.1:{app_port};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-For $proxy_add_x_forwarded_for;
        proxy_set_header X-Forwarded-Proto $scheme;
    }}
}}
"""


def build_proxy_script(app_port: int, site_path=NGINX_SITE_PATH, enabled_path=NGINX_ENABLED_PATH) -> str:
    """Write the rule, syntax-check it and reload nginx only if the check passes.

    A failed check restores the previous rule so the running nginx keeps a
    valid configuration on disk. On a first run there is nothing to restore,
    so the new rule and its sites-enabled link are removed instead.
    """
    s = RemoteScript()
    s.var("CONF", site_path)
    s.var("LINK", enabled_path)
    s.var("BACKUP", site_path + BACKUP_SUFFIX)
    # A backup left by an earlier run must not be restored over a newer rule
    s.line('sudo rm -f "$BACKUP"')
    s.line('if [ -f "$CONF" ]; then sudo cp -f "$CONF" "$BACKUP"; fi')
    s.heredoc('sudo tee "$CONF" > /dev/null', generate_proxy_conf(app_port), delimiter="DOCKHAND_NGINX")
    s.line('sudo ln -sf "$CONF" "$LINK"')
    s.echo("Testing Nginx configuration...")
    s.line("if ! sudo nginx -t; then")
    s.line('    if [ -f "$BACKUP" ]; then')
    s.line('        echo "Nginx configuration test failed, restoring previous rule" >&2')
    s.line('        sudo cp -f "$BACKUP" "$CONF"')
    s.line("    else")
    s.line('        echo "Nginx configuration test failed, removing the new rule" >&2')
    s.line('        sudo rm -f "$LINK" "$CONF"')
    s.line("    fi")
    s.line("    exit 3")
    s.line("fi")
    s.echo("Reloading Nginx...")
    s.line("sudo systemctl reload nginx")
    s.echo("Nginx configured successfully")
    return s.render()


async def configure_proxy(run_script, app_port: int):
    """Install the reverse proxy rule on the remote host."""
    rc, _, _ = await run_script(build_proxy_script(app_port), timeout=300)
    if rc != 0:
        raise ProxyConfigError(f"Nginx configuration failed with exit code {rc}; nginx was not reloaded", exit_code=rc)
    log_success(logger, f"Nginx forwards port 80 to 127.0.0.1:{app_port}")

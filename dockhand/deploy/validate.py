"""Post-deploy validation. Advisory only: nothing here aborts the pipeline."""

import logging
from dataclasses import dataclass

import httpx

from dockhand.logging_setup import log_success
from dockhand.provisioning.script import RemoteScript

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """Outcome of the post-deploy checks."""

    docker_active: bool = False
    nginx_active: bool = False
    local_status: int | None = None
    public_status: int | None = None

    @property
    def healthy(self) -> bool:
        return (
            self.docker_active
            and self.nginx_active
            and self.local_status is not None
            and self.local_status < 500
            and self.public_status is not None
            and self.public_status < 500
        )


def build_validation_script() -> str:
    s = RemoteScript(fail_fast=False)
    s.line('echo "docker: $(systemctl is-active docker 2>/dev/null || true)"')
    s.line('echo "nginx: $(systemctl is-active nginx 2>/dev/null || true)"')
    s.echo("Running containers:")
    s.line("docker ps 2>/dev/null || sudo docker ps")
    s.line('echo "local_http: $(curl -s -o /dev/null -m 10 -w "%{http_code}" http://127.0.0.1 || echo 000)"')
    return s.render()


def _parse_status(value):
    try:
        code = int(value.strip()[:3])
    except ValueError:
        return None
    return code or None


def parse_validation_output(stdout: str) -> ValidationReport:
    report = ValidationReport()
    for line in stdout.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key, value = key.strip(), value.strip()
        if key == "docker":
            report.docker_active = value == "active"
        elif key == "nginx":
            report.nginx_active = value == "active"
        elif key == "local_http":
            report.local_status = _parse_status(value)
    return report


async def probe_http(url, timeout=10):
    """GET *url* and return the status code, or None if unreachable."""
    try:
        async with httpx.AsyncClient(follow_redirects=False) as client:
            resp = await client.get(url, timeout=timeout)
    except httpx.HTTPError as e:
        logger.warning(f"HTTP probe of {url} failed: {e}")
        return None
    return resp.status_code


async def validate_deployment(run_script, server, probe=probe_http, dry_run=False) -> ValidationReport:
    """Check services and connectivity; every failure is downgraded to a warning."""
    url = f"http://[{server}]" if ":" in server else f"http://{server}"
    try:
        rc, stdout, _ = await run_script(build_validation_script(), timeout=120, docker_group=True)
    except Exception as e:
        logger.warning(f"Remote validation session failed: {e}")
        rc, stdout = 1, ""
    if rc != 0:
        logger.warning(f"Remote validation session exited with code {rc}")
    report = parse_validation_output(stdout)

    if dry_run:
        logger.info(f"[dry-run] GET {url}")
        return report

    for name, active in (("Docker", report.docker_active), ("Nginx", report.nginx_active)):
        if active:
            log_success(logger, f"{name} is running")
        else:
            logger.warning(f"{name} is not running")

    if report.local_status is not None:
        log_success(logger, f"Local HTTP Status: {report.local_status}")
    else:
        logger.warning("Local connectivity test inconclusive")

    logger.info("Testing remote connectivity...")
    try:
        report.public_status = await probe(url)
    except Exception as e:
        logger.warning(f"HTTP probe raised: {e}")
        report.public_status = None
    if report.public_status is not None:
        log_success(logger, f"Remote HTTP Status: {report.public_status}")
    else:
        logger.warning(f"Could not reach {url} - check firewall rules")

    return report

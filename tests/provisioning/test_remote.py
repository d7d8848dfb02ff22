"""Unit tests for remote environment preparation."""

import pytest

from dockhand.errors import RemoteExecutionError
from dockhand.provisioning.remote import build_prepare_script, provision_remote


def test_prepare_script_is_fail_fast():
    assert build_prepare_script().startswith("set -euo pipefail")


def test_prepare_script_guards_every_install():
    script = build_prepare_script()
    assert "if ! command -v docker" in script
    assert "docker compose version" in script
    assert "command -v docker-compose" in script
    assert "if ! command -v nginx" in script
    assert "grep -qw docker" in script


def test_prepare_script_updates_index_and_starts_services():
    script = build_prepare_script()
    assert "apt-get update" in script
    assert "systemctl enable --now docker" in script
    assert "systemctl enable --now nginx" in script
    assert script.index("apt-get update") < script.index("get.docker.com")


def test_provision_remote_single_session(run_async):
    scripts = []

    async def run_script(script, timeout=1800, docker_group=False):
        scripts.append(script)
        return 0, "", ""

    run_async(provision_remote(run_script))
    assert scripts == [build_prepare_script()]


def test_provision_remote_failure_raises_with_exit_code(run_async):
    async def run_script(script, timeout=1800, docker_group=False):
        return 100, "", "E: Unable to locate package"

    with pytest.raises(RemoteExecutionError) as exc_info:
        run_async(provision_remote(run_script))
    assert exc_info.value.exit_code == 100

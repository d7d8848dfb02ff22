"""Remote host access and provisioning: SSH transport, script builder, host prep."""

from dockhand.provisioning.remote import build_prepare_script, provision_remote
from dockhand.provisioning.script import RemoteScript
from dockhand.provisioning.shell import run_shell_cmd
from dockhand.provisioning.ssh import wait_for_ssh
from dockhand.provisioning.ssh_transport import (
    REMOTE_DEPLOY_DIR,
    make_copy_dir,
    make_run_script,
    scp_base_args,
    ssh_base_args,
)

__all__ = [
    "RemoteScript",
    "wait_for_ssh",
    "run_shell_cmd",
    "build_prepare_script",
    "provision_remote",
    "ssh_base_args",
    "scp_base_args",
    "make_run_script",
    "make_copy_dir",
    "REMOTE_DEPLOY_DIR",
]

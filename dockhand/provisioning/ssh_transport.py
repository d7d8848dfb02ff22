"""SSH transport: run scripts and copy directories to remote servers via SSH/SCP."""

import asyncio
import logging

logger = logging.getLogger(__name__)

# Relative to the remote user's home directory
REMOTE_DEPLOY_DIR = "deploy"

_COMMON_OPTS = [
    "-o", "StrictHostKeyChecking=no",
    "-o", "UserKnownHostsFile=/dev/null",
    "-o", "BatchMode=yes",
    "-o", "LogLevel=ERROR",
    "-o", "ServerAliveInterval=60",
    "-o", "ServerAliveCountMax=5",
]


def ssh_base_args(server, ssh_key, ssh_port):
    """Build base SSH arguments."""
    args = ["ssh", *_COMMON_OPTS]
    if ssh_key:
        args += ["-i", ssh_key]
    if ssh_port and ssh_port != 22:
        args += ["-p", str(ssh_port)]
    args.append(server)
    return args


def scp_base_args(ssh_key, ssh_port):
    """Build base SCP arguments (recursive)."""
    args = ["scp", "-r", *_COMMON_OPTS]
    if ssh_key:
        args += ["-i", ssh_key]
    if ssh_port and ssh_port != 22:
        args += ["-P", str(ssh_port)]
    return args


def make_run_script(server, ssh_key, ssh_port, dry_run=False):
    """Create a run_script callable that executes a multi-line script over SSH.

    The script is fed to ``bash -s`` on stdin, so the whole script runs in one
    session and yields a single exit status.
    """

    async def run_script(script, timeout=1800, docker_group=False):
        # sg picks up a docker group membership added earlier in this run
        remote_cmd = "sg docker -c 'bash -s'" if docker_group else "bash -s"
        if dry_run:
            logger.info(f"[dry-run] ssh {server}: {remote_cmd} <<EOF")
            for line in script.splitlines():
                logger.info(f"[dry-run]   {line}")
            logger.info("[dry-run] EOF")
            return 0, "", ""

        ssh_args = ssh_base_args(server, ssh_key, ssh_port)
        ssh_args.append(remote_cmd)

        proc = None
        try:
            proc = await asyncio.create_subprocess_exec(
                *ssh_args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout_lines, stderr_lines = [], []

            async def _feed_stdin():
                proc.stdin.write(script.encode())
                await proc.stdin.drain()
                proc.stdin.close()

            async def _read_stream(pipe, lines, level):
                async for raw_line in pipe:
                    line = raw_line.decode(errors="replace").rstrip("\n")
                    logger.log(level, line, extra={"raw": True})
                    lines.append(line)

            await asyncio.wait_for(
                asyncio.gather(
                    _feed_stdin(),
                    _read_stream(proc.stdout, stdout_lines, logging.INFO),
                    _read_stream(proc.stderr, stderr_lines, logging.WARNING),
                    proc.wait(),
                ),
                timeout=timeout,
            )
            return proc.returncode, "\n".join(stdout_lines), "\n".join(stderr_lines)
        except TimeoutError:
            logger.error(f"Remote script timed out after {timeout}s on {server}")
            proc.kill()
            await proc.wait()
            return 124, "", "timeout"
        except OSError as e:
            logger.error(f"Error running SSH session: {e}")
            return 255, "", str(e)

    return run_script


def make_copy_dir(server, ssh_key, ssh_port, dry_run=False):
    """Create a copy_dir callable that copies a local directory via ``scp -r``."""

    async def copy_dir(local_dir, remote_path, timeout=1800):
        scp_args = scp_base_args(ssh_key, ssh_port)
        scp_args += [local_dir, f"{server}:{remote_path}"]
        if dry_run:
            logger.info(f"[dry-run] scp -r {local_dir} -> {server}:{remote_path}")
            return 0, ""

        proc = None
        try:
            proc = await asyncio.create_subprocess_exec(
                *scp_args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr_bytes = await asyncio.wait_for(proc.communicate(), timeout=timeout)
            stderr = stderr_bytes.decode(errors="replace") if stderr_bytes else ""
            return proc.returncode, stderr
        except TimeoutError:
            logger.error(f"SCP timed out after {timeout}s: {local_dir} -> {server}:{remote_path}")
            proc.kill()
            await proc.wait()
            return 124, "timeout"
        except FileNotFoundError:
            return 127, "'scp' not found"

    return copy_dir

"""SSH reachability check with bounded retries."""

import asyncio
import logging

from dockhand.provisioning.ssh_transport import ssh_base_args

logger = logging.getLogger(__name__)


async def wait_for_ssh(host, username, ssh_port, ssh_key_path, attempts=3, interval=5, connect_timeout=10, dry_run=False):
    """Try an exit-fast authenticated SSH command up to *attempts* times.

    Returns:
        True if SSH connected, False once all attempts failed.
    """
    address = f"{username}@{host}" if username else host
    args = ssh_base_args(address, ssh_key_path, ssh_port)
    # Add ConnectTimeout for fast failure
    args.insert(-1, "-o")
    args.insert(-1, f"ConnectTimeout={connect_timeout}")
    args.append("true")

    if dry_run:
        logger.info(f"[dry-run] {' '.join(args)}")
        return True

    for attempt in range(1, attempts + 1):
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr_bytes = await proc.communicate()
        except FileNotFoundError:
            logger.error("Error: 'ssh' not found. Is it installed and on PATH?")
            return False
        if proc.returncode == 0:
            return True
        stderr = stderr_bytes.decode(errors="replace").strip() if stderr_bytes else ""
        logger.warning(f"SSH attempt {attempt}/{attempts} to {address}:{ssh_port} failed: {stderr or proc.returncode}")
        if attempt < attempts:
            await asyncio.sleep(interval)

    logger.error(f"Giving up on {address}:{ssh_port} after {attempts} attempt(s)")
    return False

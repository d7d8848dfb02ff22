"""Deploy command: collect parameters, run the pipeline, map errors to exit codes."""

import asyncio
import logging
import sys

from dockhand.deploy.collect import collect_params
from dockhand.deploy.orchestrate import deploy
from dockhand.errors import DeployError
from dockhand.logging_setup import add_file_handler, log_success

logger = logging.getLogger(__name__)


def handle_deploy(args):
    """Handle the deploy command."""
    log_file = add_file_handler(args.log_dir)

    logger.info("=========================================")
    logger.info("dockhand - Automated Deployment")
    logger.info(f"Log file: {log_file}")
    logger.info("=========================================")

    try:
        logger.info("=== STEP 1: Collecting Parameters ===")
        params = collect_params(args)
        result = asyncio.run(deploy(params))
    except DeployError as e:
        logger.error(str(e))
        logger.error(f"Deployment aborted with exit code {e.exit_code}")
        logger.info(f"Log file saved at: {log_file}")
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        logger.error("Deployment interrupted")
        sys.exit(130)

    if not result.report.healthy and not params.dry_run:
        logger.warning("Deployment finished but some checks did not pass; see warnings above")
    log_success(logger, "=========================================")
    log_success(logger, "DEPLOYMENT COMPLETED SUCCESSFULLY!")
    log_success(logger, "=========================================")
    logger.info(f"Log file saved at: {log_file}")


def register_deploy_command(subparsers):
    """Register the deploy subcommand."""
    parser = subparsers.add_parser(
        "deploy",
        help="Deploy a Git repository's container to a remote host behind nginx",
    )
    parser.add_argument("--repo-url", default=None, help="Git repository URL (http:// or https://)")
    parser.add_argument(
        "--token",
        default=None,
        help="Personal access token (default: $DOCKHAND_GIT_TOKEN or $GIT_TOKEN; prompted if unset)",
    )
    parser.add_argument("--branch", default=None, help="Branch to deploy (default: main)")
    parser.add_argument("--ssh-user", default=None, help="SSH username")
    parser.add_argument("--server", default=None, help="Server host name or IP address")
    parser.add_argument("--ssh-key", default=None, help="SSH private key path (e.g. ~/.ssh/id_rsa)")
    parser.add_argument("--ssh-port", type=int, default=None, help="SSH port (default: 22)")
    parser.add_argument("--app-port", default=None, help="Application port inside the container")
    parser.add_argument("--workdir", default=None, help="Directory holding local working copies (default: .)")
    parser.add_argument("--config", default=None, help="YAML file with non-secret deploy settings")
    parser.add_argument("--log-dir", default="./logs", help="Directory for run log files (default: ./logs)")
    parser.add_argument("--ssh-retries", type=int, default=None, help="SSH reachability attempts (default: 3)")
    parser.add_argument(
        "--settle-seconds",
        type=int,
        default=None,
        help="Seconds to wait before reporting container status (default: 3)",
    )
    parser.add_argument("--non-interactive", action="store_true", help="Never prompt; fail on missing values")
    parser.add_argument("--no-cleanup", action="store_true", help="Keep partial artifacts when the launch fails")
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing")
    parser.set_defaults(func=handle_deploy)

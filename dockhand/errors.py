"""Deployment error taxonomy.

Every fatal step failure raises a ``DeployError`` subclass carrying the exit code
the process should terminate with. Only the deploy command handler turns these
into ``sys.exit``.
"""


class DeployError(Exception):
    """Fatal pipeline error."""

    def __init__(self, message, exit_code=1, step=None):
        super().__init__(message)
        self.exit_code = exit_code or 1
        self.step = step


class ValidationError(DeployError):
    """Operator-supplied configuration is missing or malformed."""


class SourceError(DeployError):
    """Cloning or updating the working copy failed."""


class BuildDescriptorError(DeployError):
    """Working copy has neither a Dockerfile nor a compose file."""


class ConnectivityError(DeployError):
    """Remote host unreachable or key authentication rejected."""


class RemoteExecutionError(DeployError):
    """A remote script session exited non-zero."""


class TransferError(DeployError):
    """Copying the working copy to the remote host failed."""


class ProxyConfigError(RemoteExecutionError):
    """Generated nginx rule failed the syntax check or the reload."""

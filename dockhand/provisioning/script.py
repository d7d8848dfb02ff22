"""Remote bash script builder with quoted parameters."""

import re
import shlex

_VAR_NAME_RE = re.compile(r"^[A-Z_][A-Z0-9_]*$")


class RemoteScript:
    """Accumulates lines of a bash script run in a single SSH session.

    Values that come from the operator or the repository must go through
    ``var()`` or ``quote()``; ``line()`` takes trusted script text only.
    """

    def __init__(self, fail_fast=True):
        self.fail_fast = fail_fast
        self._lines: list[str] = []

    @staticmethod
    def quote(value) -> str:
        return shlex.quote(str(value))

    def line(self, text: str) -> "RemoteScript":
        self._lines.append(text)
        return self

    def echo(self, message: str) -> "RemoteScript":
        return self.line(f"echo {shlex.quote(message)}")

    def var(self, name: str, value) -> "RemoteScript":
        """Assign a shell variable; the value is single-quoted."""
        if not _VAR_NAME_RE.match(name):
            raise ValueError(f"Invalid shell variable name: {name!r}")
        return self.line(f"{name}={shlex.quote(str(value))}")

    def heredoc(self, command: str, body: str, delimiter: str = "DOCKHAND_EOF") -> "RemoteScript":
        """Feed *body* verbatim to *command* through a quoted heredoc."""
        if any(line == delimiter for line in body.splitlines()):
            raise ValueError(f"Heredoc body contains its delimiter {delimiter!r}")
        self._lines.append(f"{command} <<'{delimiter}'")
        self._lines.extend(body.rstrip("\n").splitlines())
        self._lines.append(delimiter)
        return self

    def render(self) -> str:
        header = ["set -euo pipefail"] if self.fail_fast else ["set -u"]
        return "\n".join(header + self._lines) + "\n"

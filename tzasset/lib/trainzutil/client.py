"""Python wrapper around the TrainzUtil CLI.

All calls shell out to the TrainzUtil executable and parse its stdout text
protocol. Invocations block until the tool exits; there is no timeout.
"""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path

from tzasset.lib.trainzutil.models import ToolOutput, parse_output, with_prefix

logger = logging.getLogger("tzasset.trainzutil")

TRAINZUTIL_ENV = "TRAINZUTIL_PATH"
DEFAULT_TRAINZUTIL = "TrainzUtil"


class TrainzUtilError(Exception):
    """Base class for TrainzUtil invocation failures."""


class ToolNotFound(TrainzUtilError):
    def __init__(self, tool_path: str | Path) -> None:
        super().__init__(f"TrainzUtil executable was not found: {tool_path}")
        self.tool_path = tool_path


class ToolFailure(TrainzUtilError):
    """TrainzUtil started but exited with a non-zero status."""

    def __init__(self, output: ToolOutput, returncode: int = 1) -> None:
        super().__init__(
            f"TrainzUtil command failed with exit code {returncode} "
            f"and following output:\n{with_prefix('>', output)}"
        )
        self.output = output
        self.returncode = returncode


class ToolUnknown(TrainzUtilError):
    def __init__(self, cause: BaseException) -> None:
        super().__init__(f"Unknown error: {cause}")
        self.cause = cause


def resolve_tool_path(explicit: str | Path | None = None) -> str:
    """Pick the TrainzUtil path: explicit > $TRAINZUTIL_PATH > bare name on PATH."""
    if explicit:
        return str(explicit)
    return os.environ.get(TRAINZUTIL_ENV) or DEFAULT_TRAINZUTIL


def execute(tool_path: str | Path, *args: str) -> ToolOutput:
    """Run TrainzUtil with ``args`` and return its parsed output.

    Raises:
        ToolNotFound: If the executable could not be found.
        ToolUnknown: If spawning failed for any other OS-level reason.
        ToolFailure: If the tool exited with a non-zero status.
        OutputParseError: If a successful run did not end with a summary line.
    """
    cmd = [str(tool_path), *args]
    logger.debug("Running %s", cmd)

    try:
        result = subprocess.run(cmd, capture_output=True, check=False)
    except FileNotFoundError:
        raise ToolNotFound(tool_path) from None
    except OSError as e:
        raise ToolUnknown(e) from e

    if result.returncode != 0:
        logger.debug("%s exited with %d", cmd, result.returncode)
        raise ToolFailure(parse_output(result.stdout, strict=False), result.returncode)

    return parse_output(result.stdout)


class TrainzUtilClient:
    """One method per TrainzUtil subcommand."""

    def __init__(self, tool_path: str | Path | None = None) -> None:
        self.tool_path = resolve_tool_path(tool_path)

    def run(self, *args: str) -> ToolOutput:
        return execute(self.tool_path, *args)

    def version(self) -> ToolOutput:
        return self.run("version")

    def install_from_path(self, path: str | Path) -> ToolOutput:
        return self.run("installfrompath", str(path))

    def commit(self, kuid: str) -> ToolOutput:
        return self.run("commit", kuid)

    def validate(self, kuid: str) -> ToolOutput:
        return self.run("validate", kuid)

    def delete(self, kuid: str) -> ToolOutput:
        return self.run("delete", kuid)

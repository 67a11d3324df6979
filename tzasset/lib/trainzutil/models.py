"""Data models for TrainzUtil's stdout text protocol."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterator

from tzasset.log import Severity

# Every TrainzUtil invocation ends its stdout with this line.
_SUMMARY_PATTERN = re.compile(
    r"OK\s*\(\s*(\d+)\s+Errors\s*,\s*(\d+)\s+Warnings\s*\)",
    re.IGNORECASE,
)

# Validation diagnostics, e.g. "- <kuid:12345:1:0> : broken mesh reference"
_DIAGNOSTIC_PATTERN = re.compile(r"^([-+!;])\s*<(.+?)>\s*:\s*(.+)$")

_PREFIX_SEVERITY = {
    "-": Severity.ERROR,
    "!": Severity.WARN,
    "+": Severity.INFO,
    ";": Severity.INFO,
}


class OutputParseError(ValueError):
    """TrainzUtil output did not end with a well-formed summary line."""


@dataclass
class Diagnostic:
    """One classified line of ``validate`` output."""

    prefix: str
    kuid: str
    message: str

    @property
    def severity(self) -> Severity:
        return _PREFIX_SEVERITY[self.prefix]

    @property
    def verbose_only(self) -> bool:
        return self.prefix == ";"


@dataclass
class ToolOutput:
    """Captured stdout of one TrainzUtil call, minus the summary line.

    ``errors`` and ``warnings`` are None only for output of a failed call
    that carried no summary line.
    """

    lines: list[str] = field(default_factory=list)
    errors: int | None = 0
    warnings: int | None = 0

    def diagnostics(self) -> Iterator[Diagnostic]:
        for line in self.lines:
            diagnostic = parse_diagnostic(line)
            if diagnostic is not None:
                yield diagnostic

    def __str__(self) -> str:
        text = list(self.lines)
        if self.errors is not None and self.warnings is not None:
            text.append(f"OK ({self.errors} Errors, {self.warnings} Warnings)")
        return "\n".join(text)


def _split_lines(stdout: bytes) -> list[str]:
    text = stdout.decode("utf-8", errors="replace")
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def parse_summary(line: str) -> tuple[int, int] | None:
    """Return ``(errors, warnings)`` from a summary line, or None."""
    match = _SUMMARY_PATTERN.fullmatch(line.strip())
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def parse_output(stdout: bytes, *, strict: bool = True) -> ToolOutput:
    """Parse raw TrainzUtil stdout.

    Args:
        stdout: Captured bytes.
        strict: When False, a missing summary keeps all lines and leaves
            the counts unset instead of raising.

    Raises:
        OutputParseError: In strict mode, if the last line is missing or
            is not ``OK (<n> Errors, <n> Warnings)``.
    """
    lines = _split_lines(stdout)
    counts = parse_summary(lines[-1]) if lines else None
    if counts is None:
        if strict:
            last = lines[-1] if lines else "<no output>"
            raise OutputParseError(f"Malformed TrainzUtil summary line: {last!r}")
        return ToolOutput(lines=lines, errors=None, warnings=None)

    errors, warnings = counts
    return ToolOutput(lines=lines[:-1], errors=errors, warnings=warnings)


def parse_diagnostic(line: str) -> Diagnostic | None:
    match = _DIAGNOSTIC_PATTERN.match(line)
    if match is None:
        return None
    return Diagnostic(prefix=match.group(1), kuid=match.group(2), message=match.group(3))


def with_prefix(prefix: str, text: object) -> str:
    """Prefix every line of ``text``."""
    return "\n".join(f"{prefix}{line}" for line in str(text).splitlines())

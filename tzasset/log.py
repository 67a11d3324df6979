"""Tiered console output with error/warning statistics.

Every user-facing line goes through an :class:`OutputLog`. A call is tagged
with a *tier* (the mode it is meant for) and a *severity*. The active mode
decides what gets printed, while the statistics count every error and
warning regardless of what was printed.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import IO, Any

OUTPUT_LOGGER_NAME = "tzasset.output"


class Mode(str, Enum):
    SILENT = "silent"
    NORMAL = "normal"
    VERBOSE = "verbose"

    def accepts(self, tier: Mode) -> bool:
        """Return True if output tagged with ``tier`` is shown in this mode."""
        if self is Mode.VERBOSE:
            return tier in (Mode.NORMAL, Mode.VERBOSE)
        return tier is self


class Severity(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"

    @property
    def level(self) -> int:
        return _SEVERITY_LEVELS[self]


_SEVERITY_LEVELS = {
    Severity.ERROR: logging.ERROR,
    Severity.WARN: logging.WARNING,
    Severity.INFO: logging.INFO,
}

_LEVEL_LABELS = {
    logging.ERROR: "ERROR",
    logging.WARNING: "WARN ",
    logging.INFO: "INFO ",
}


@dataclass
class Statistics:
    """Running error/warning counters for one run."""

    errors: int = 0
    warnings: int = 0

    def record(self, levelno: int) -> None:
        if levelno >= logging.ERROR:
            self.errors += 1
        elif levelno >= logging.WARNING:
            self.warnings += 1


class TierFormatter(logging.Formatter):
    """Raw text on the silent tier, severity-labelled text otherwise."""

    def __init__(self, mode: Mode) -> None:
        super().__init__()
        self.mode = mode

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if self.mode is Mode.SILENT:
            return message
        label = _LEVEL_LABELS.get(record.levelno, "INFO ")
        return f"{label} {message}"


class StatisticsHandler(logging.StreamHandler):
    """Counts every record, then prints only those the mode accepts."""

    def __init__(self, mode: Mode, stream: IO[str] | None = None) -> None:
        super().__init__(stream if stream is not None else sys.stdout)
        self.mode = mode
        self.statistics = Statistics()
        self.setFormatter(TierFormatter(mode))

    def handle(self, record: logging.LogRecord) -> bool:
        self.statistics.record(record.levelno)
        tier = getattr(record, "tier", Mode.NORMAL)
        if not self.mode.accepts(tier):
            return False
        return super().handle(record)


class OutputLog:
    """Per-run output context passed to every component that reports.

    Constructing a new OutputLog replaces the handler of any previous one,
    so a process never prints through two of them at once.
    """

    def __init__(self, mode: Mode = Mode.NORMAL, stream: IO[str] | None = None) -> None:
        self.mode = mode
        self._handler = StatisticsHandler(mode, stream)
        self._logger = logging.getLogger(OUTPUT_LOGGER_NAME)
        for handler in list(self._logger.handlers):
            if isinstance(handler, StatisticsHandler):
                self._logger.removeHandler(handler)
        self._logger.addHandler(self._handler)
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False

    @property
    def statistics(self) -> Statistics:
        return self._handler.statistics

    def log(self, tier: Mode, severity: Severity, message: str, *args: Any) -> None:
        self._logger.log(severity.level, message, *args, extra={"tier": tier})

    def silent(self, severity: Severity, message: str, *args: Any) -> None:
        self.log(Mode.SILENT, severity, message, *args)

    def normal(self, severity: Severity, message: str, *args: Any) -> None:
        self.log(Mode.NORMAL, severity, message, *args)

    def verbose(self, severity: Severity, message: str, *args: Any) -> None:
        self.log(Mode.VERBOSE, severity, message, *args)

    def close(self) -> None:
        self._handler.flush()
        self._logger.removeHandler(self._handler)

    def __enter__(self) -> OutputLog:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

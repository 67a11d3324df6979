"""Pydantic models for per-asset outcomes and the batch report."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from tzasset.log import Statistics

logger = logging.getLogger("tzasset.report")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Asset Lifecycle ───────────────────────────────────────────────────

class Stage(str, Enum):
    LOCATED = "located"
    STAGED = "staged"
    INSTALLED = "installed"
    COMMITTED = "committed"
    VALIDATED = "validated"
    CLEANED = "cleaned"
    DONE = "done"


class DiagnosticRecord(BaseModel):
    prefix: str
    severity: str
    message: str


class BuildOutcome(BaseModel):
    """Result of one asset's pipeline. ``stages`` lists completed stages."""

    kuid: str
    name: str
    label: str
    root_path: str
    stages: list[Stage] = Field(default_factory=lambda: [Stage.LOCATED])
    failed_stage: Stage | None = None
    error: str | None = None
    errors: int = 0
    warnings: int = 0
    diagnostics: list[DiagnosticRecord] = Field(default_factory=list)
    success: bool = False


# ── Batch Report ──────────────────────────────────────────────────────

class BatchReport(BaseModel):
    """Finalized, immutable summary of one run."""

    model_config = ConfigDict(frozen=True)

    started_at: str = ""
    completed_at: str = ""
    duration_seconds: float = 0
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: int = 0
    warnings: int = 0
    outcomes: tuple[BuildOutcome, ...] = ()

    @property
    def success(self) -> bool:
        return self.failed == 0

    @property
    def exit_code(self) -> int:
        return 0 if self.failed == 0 else 1

    def summary_line(self) -> str:
        status = "SUCCESS" if self.success else "FAILED"
        return (
            f"BUILD {status} ({self.total} Total, "
            f"{self.succeeded} Succeeded, {self.failed} Failed)"
        )


@dataclass
class BatchTally:
    """Running tallies, updated once per asset."""

    started_at: str = field(default_factory=_now)
    outcomes: list[BuildOutcome] = field(default_factory=list)

    def add(self, outcome: BuildOutcome) -> None:
        self.outcomes.append(outcome)

    def finalize(self, statistics: Statistics) -> BatchReport:
        completed = _now()
        try:
            duration = (
                datetime.fromisoformat(completed) - datetime.fromisoformat(self.started_at)
            ).total_seconds()
        except (ValueError, TypeError):
            duration = 0.0

        succeeded = sum(1 for o in self.outcomes if o.success)
        return BatchReport(
            started_at=self.started_at,
            completed_at=completed,
            duration_seconds=duration,
            total=len(self.outcomes),
            succeeded=succeeded,
            failed=len(self.outcomes) - succeeded,
            errors=statistics.errors,
            warnings=statistics.warnings,
            outcomes=tuple(self.outcomes),
        )


def write_report(report: BatchReport, path: Path) -> None:
    """Persist the report as JSON."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.model_dump(mode="json"), indent=2), encoding="utf-8")
    logger.info("Wrote build report to %s", path)

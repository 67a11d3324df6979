"""Build orchestration -- runs every located asset through TrainzUtil.

Assets are processed strictly one at a time:

    located -> staged -> installed -> committed -> validated [-> cleaned]

A failing stage ends that asset's pipeline and marks it failed; the batch
always continues with the next asset. Only an unreachable TrainzUtil at
start-up, unreadable directories and malformed tool output end the run.
"""

from __future__ import annotations

import logging
import time
from contextlib import ExitStack
from pathlib import Path
from typing import Callable

from tzasset.config import BuildConfig, LabelStyle
from tzasset.engine.report import (
    BatchReport,
    BatchTally,
    BuildOutcome,
    DiagnosticRecord,
    Stage,
)
from tzasset.engine.staging import StagedAsset, StagingCleanupError, staged_asset
from tzasset.lib.assets import AssetDescriptor, locate_assets
from tzasset.lib.trainzutil import ToolOutput, TrainzUtilClient, TrainzUtilError, with_prefix
from tzasset.log import Mode, OutputLog, Severity

logger = logging.getLogger("tzasset.builder")

PREFLIGHT_EXIT_CODE = 2


class BuildAborted(RuntimeError):
    """TrainzUtil could not be reached; no asset was processed."""

    def __init__(self, cause: TrainzUtilError) -> None:
        super().__init__(f"TrainzUtil error: {cause}")
        self.cause = cause
        self.exit_code = PREFLIGHT_EXIT_CODE


def _relative(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


def asset_label(asset: AssetDescriptor, scan_root: Path, style: LabelStyle) -> str:
    """Name an asset in output lines, relative to the scan root."""
    if style is LabelStyle.CONFIG:
        return f"[{_relative(asset.config_path, scan_root)}]"
    if style is LabelStyle.KUID:
        return f"<{asset.kuid}>"
    return f"[{_relative(asset.root_path, scan_root)}]"


class AssetBuilder:
    """Drives TrainzUtil over every asset under a scan root."""

    def __init__(self, config: BuildConfig, client: TrainzUtilClient, log: OutputLog) -> None:
        self.config = config
        self.client = client
        self.log = log

    def run(self, scan_root: str | Path) -> BatchReport:
        """Build every asset under ``scan_root`` and print the summary.

        Raises:
            BuildAborted: If the ``version`` pre-flight call fails.
            AssetDiscoveryError: If the tree cannot be read.
            OutputParseError: If TrainzUtil output lacks its summary line.
        """
        root = Path(scan_root).resolve()
        self.preflight()

        assets = locate_assets(root, self.config.recursive)
        if not assets:
            self.log.normal(Severity.WARN, "No assets found in %s", root)
        for asset in assets:
            self.log.verbose(Severity.INFO, "Found asset: <%s>, %s", asset.kuid, asset.root_path)

        tally = BatchTally()
        for asset in assets:
            tally.add(self.build_asset(asset, root))

        report = tally.finalize(self.log.statistics)
        self._print_summary(report)
        return report

    def preflight(self) -> None:
        try:
            output = self.client.version()
        except TrainzUtilError as e:
            self.log.normal(Severity.ERROR, "TrainzUtil error: %s", e)
            raise BuildAborted(e) from e
        version = output.lines[0] if output.lines else "unknown"
        self.log.verbose(Severity.INFO, "TrainzUtil version: %s", version)

    # ── Per-asset pipeline ────────────────────────────────────────────

    def build_asset(self, asset: AssetDescriptor, scan_root: Path) -> BuildOutcome:
        label = asset_label(asset, scan_root, self.config.label_style)
        outcome = BuildOutcome(
            kuid=asset.kuid,
            name=asset.display_name,
            label=label,
            root_path=str(asset.root_path),
        )
        self.log.normal(Severity.INFO, "Building asset %s %s", label, asset.display_name)

        try:
            with ExitStack() as stack:
                try:
                    staged = stack.enter_context(
                        staged_asset(asset, self.config.install_mode, self.config.temp_dir)
                    )
                except OSError as e:
                    self._fail(outcome, Stage.STAGED, f"Failed to stage asset {label}: {e}")
                else:
                    outcome.stages.append(Stage.STAGED)
                    self.log.verbose(Severity.INFO, "Staged %s at %s as <%s>", label, staged.path, staged.kuid)
                    self._run_pipeline(outcome, staged)
        except StagingCleanupError as e:
            # The asset's result stands; only the leftover directory is reported
            self.log.normal(Severity.WARN, "Asset %s: %s", label, e)

        outcome.stages.append(Stage.DONE)
        return outcome

    def _run_pipeline(self, outcome: BuildOutcome, staged: StagedAsset) -> None:
        if self._invoke(outcome, Stage.INSTALLED, "install", self.client.install_from_path, str(staged.path)) is None:
            return
        if self._invoke(outcome, Stage.COMMITTED, "commit", self.client.commit, staged.kuid) is None:
            return

        if self.config.validate_delay > 0:
            time.sleep(self.config.validate_delay)

        output = self._invoke(
            outcome, Stage.VALIDATED, "validate", self.client.validate, staged.kuid, record=False
        )
        if output is None:
            return
        self._report_diagnostics(outcome, output)
        outcome.errors = output.errors or 0
        outcome.warnings = output.warnings or 0
        if outcome.errors:
            self._fail(
                outcome,
                Stage.VALIDATED,
                f"Asset {outcome.label} failed validation "
                f"({outcome.errors} Errors, {outcome.warnings} Warnings)",
            )
            return
        outcome.stages.append(Stage.VALIDATED)

        if self.config.cleanup:
            if self._invoke(outcome, Stage.CLEANED, "delete", self.client.delete, staged.kuid) is None:
                return

        outcome.success = True
        self.log.normal(
            Severity.INFO, "Asset %s built successfully (%d Warnings)", outcome.label, outcome.warnings
        )

    def _invoke(
        self,
        outcome: BuildOutcome,
        stage: Stage,
        verb: str,
        call: Callable[[str], ToolOutput],
        arg: str,
        *,
        record: bool = True,
    ) -> ToolOutput | None:
        """Run one TrainzUtil stage; on failure mark the asset failed and return None."""
        self.log.verbose(Severity.INFO, "Running %s for %s...", verb, outcome.label)
        try:
            output = call(arg)
        except TrainzUtilError as e:
            self._fail(outcome, stage, f"Failed to {verb} asset {outcome.label}: {e}")
            return None

        if record:
            outcome.stages.append(stage)
        self.log.verbose(Severity.INFO, "Success! TrainzUtil output:\n%s", with_prefix(">", output))
        return output

    def _report_diagnostics(self, outcome: BuildOutcome, output: ToolOutput) -> None:
        for diagnostic in output.diagnostics():
            tier = Mode.VERBOSE if diagnostic.verbose_only else Mode.NORMAL
            self.log.log(tier, diagnostic.severity, "%s : %s", outcome.label, diagnostic.message)
            # Flattened record for machine consumers; counted once above
            self.log.silent(
                Severity.INFO, "%s %s : %s", diagnostic.prefix, outcome.label, diagnostic.message
            )
            outcome.diagnostics.append(
                DiagnosticRecord(
                    prefix=diagnostic.prefix,
                    severity=diagnostic.severity.value,
                    message=diagnostic.message,
                )
            )

    def _fail(self, outcome: BuildOutcome, stage: Stage, message: str) -> BuildOutcome:
        outcome.failed_stage = stage
        outcome.error = message
        outcome.success = False
        self.log.normal(Severity.ERROR, "%s", message)
        logger.debug("Asset %s failed at %s", outcome.label, stage.value)
        return outcome

    # ── Summary ───────────────────────────────────────────────────────

    def _print_summary(self, report: BatchReport) -> None:
        line = report.summary_line()
        rule = "=" * len(line)
        severity = Severity.INFO if report.success else Severity.ERROR
        self.log.normal(Severity.INFO, "%s", rule)
        self.log.normal(severity, "%s", line)
        self.log.normal(Severity.INFO, "%s", rule)
        self.log.silent(Severity.INFO, "OK (%d Errors, 0 Warnings)", report.failed)

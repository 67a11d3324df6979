"""tzasset build engine -- staging, orchestration, reporting."""

from tzasset.engine.builder import AssetBuilder, BuildAborted, asset_label
from tzasset.engine.report import BatchReport, BatchTally, BuildOutcome, Stage, write_report
from tzasset.engine.staging import StagedAsset, StagingCleanupError, StagingError, staged_asset

__all__ = [
    "AssetBuilder",
    "BuildAborted",
    "asset_label",
    "BatchReport",
    "BatchTally",
    "BuildOutcome",
    "Stage",
    "write_report",
    "StagedAsset",
    "StagingCleanupError",
    "StagingError",
    "staged_asset",
]

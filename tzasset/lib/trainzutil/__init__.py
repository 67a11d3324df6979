"""TrainzUtil CLI client library."""

from tzasset.lib.trainzutil.client import (
    DEFAULT_TRAINZUTIL,
    TRAINZUTIL_ENV,
    ToolFailure,
    ToolNotFound,
    ToolUnknown,
    TrainzUtilClient,
    TrainzUtilError,
    execute,
    resolve_tool_path,
)
from tzasset.lib.trainzutil.models import (
    Diagnostic,
    OutputParseError,
    ToolOutput,
    parse_diagnostic,
    parse_output,
    with_prefix,
)

__all__ = [
    "DEFAULT_TRAINZUTIL",
    "TRAINZUTIL_ENV",
    "ToolFailure",
    "ToolNotFound",
    "ToolUnknown",
    "TrainzUtilClient",
    "TrainzUtilError",
    "execute",
    "resolve_tool_path",
    "Diagnostic",
    "OutputParseError",
    "ToolOutput",
    "parse_diagnostic",
    "parse_output",
    "with_prefix",
]

"""Tests for TrainzUtil stdout parsing."""

from __future__ import annotations

import pytest

from tzasset.lib.trainzutil.models import (
    OutputParseError,
    ToolOutput,
    parse_diagnostic,
    parse_output,
    parse_summary,
    with_prefix,
)
from tzasset.log import Severity


class TestParseOutput:
    def test_lines_and_counts(self):
        output = parse_output(b"first line\r\nsecond line\nOK (2 Errors, 3 Warnings)\r\n")
        assert output.lines == ["first line", "second line"]
        assert output.errors == 2
        assert output.warnings == 3

    def test_summary_without_trailing_newline(self):
        output = parse_output(b"OK (0 Errors, 0 Warnings)")
        assert output.lines == []
        assert output.errors == 0
        assert output.warnings == 0

    def test_summary_case_and_spacing(self):
        output = parse_output(b"ok( 4 errors ,  1 warnings )\n")
        assert (output.errors, output.warnings) == (4, 1)

    def test_only_one_carriage_return_stripped(self):
        output = parse_output(b"text\r\r\nOK (0 Errors, 0 Warnings)\n")
        assert output.lines == ["text\r"]

    def test_blank_lines_kept(self):
        output = parse_output(b"a\n\nb\nOK (0 Errors, 0 Warnings)\n")
        assert output.lines == ["a", "", "b"]

    @pytest.mark.parametrize(
        "stdout",
        [
            b"",
            b"\n",
            b"some output\n",
            b"FAIL (1 Errors, 0 Warnings)\n",
            b"OK (x Errors, 0 Warnings)\n",
            b"OK (1 Errors)\n",
            b"OK (1 Errors, 0 Warnings)\ntrailing junk\n",
        ],
    )
    def test_malformed_summary_raises(self, stdout):
        with pytest.raises(OutputParseError):
            parse_output(stdout)

    def test_lenient_keeps_everything(self):
        output = parse_output(b"Error: no such asset\n", strict=False)
        assert output.lines == ["Error: no such asset"]
        assert output.errors is None
        assert output.warnings is None

    def test_lenient_still_parses_summary(self):
        output = parse_output(b"msg\nOK (1 Errors, 0 Warnings)\n", strict=False)
        assert output.lines == ["msg"]
        assert output.errors == 1

    def test_undecodable_bytes_replaced(self):
        output = parse_output(b"caf\xe9\nOK (0 Errors, 0 Warnings)\n")
        assert output.lines[0].startswith("caf")


class TestParseSummary:
    def test_valid(self):
        assert parse_summary("  OK (10 Errors, 20 Warnings)  ") == (10, 20)

    def test_invalid(self):
        assert parse_summary("NOT OK (1 Errors, 0 Warnings)") is None


class TestToolOutputStr:
    def test_renders_summary(self):
        output = ToolOutput(lines=["a", "b"], errors=1, warnings=2)
        assert str(output) == "a\nb\nOK (1 Errors, 2 Warnings)"

    def test_partial_output_has_no_summary(self):
        output = ToolOutput(lines=["a"], errors=None, warnings=None)
        assert str(output) == "a"


class TestDiagnostics:
    def test_error_line(self):
        diagnostic = parse_diagnostic("- <kuid:12345:1:0> : broken mesh reference")
        assert diagnostic is not None
        assert diagnostic.prefix == "-"
        assert diagnostic.kuid == "kuid:12345:1:0"
        assert diagnostic.message == "broken mesh reference"
        assert diagnostic.severity is Severity.ERROR
        assert diagnostic.verbose_only is False

    @pytest.mark.parametrize(
        "line,severity,verbose_only",
        [
            ("! <kuid:1:2> : missing thumbnail", Severity.WARN, False),
            ("+ <kuid:1:2> : installed", Severity.INFO, False),
            ("; <kuid:1:2> : loaded mesh", Severity.INFO, True),
            ("-<kuid2:1:2:3>:tight spacing", Severity.ERROR, False),
        ],
    )
    def test_prefixes(self, line, severity, verbose_only):
        diagnostic = parse_diagnostic(line)
        assert diagnostic is not None
        assert diagnostic.severity is severity
        assert diagnostic.verbose_only is verbose_only

    @pytest.mark.parametrize(
        "line",
        ["Validating asset", "* <kuid:1:2> : unknown prefix", "- kuid:1:2 : no brackets", "- <kuid:1:2> :"],
    )
    def test_non_matching(self, line):
        assert parse_diagnostic(line) is None

    def test_diagnostics_skip_plain_lines(self):
        output = ToolOutput(
            lines=["Validating...", "- <kuid:1:2> : bad", "! <kuid:1:2> : meh", "Done"],
        )
        assert [d.prefix for d in output.diagnostics()] == ["-", "!"]


class TestWithPrefix:
    def test_multiline(self):
        assert with_prefix(">", "a\nb") == ">a\n>b"

    def test_tool_output(self):
        assert with_prefix("> ", ToolOutput(lines=["x"])) == "> x\n> OK (0 Errors, 0 Warnings)"

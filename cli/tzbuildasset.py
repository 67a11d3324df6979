"""tzbuildasset -- Trainz Asset Builder CLI.

Builds all assets within a given path:

1. Copies the asset to a staging directory.
2. Replaces the asset KUID with a dummy one.
3. Installs the asset into Trainz.
4. Commits and validates it.
5. Optionally removes it from Trainz again.

Usage:
    tzbuildasset build PATH [OPTIONS]
    tzbuildasset install PATH [OPTIONS]
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Callable

import click

from tzasset import __version__
from tzasset.config import BuildConfig, ConfigError, InstallMode, LabelStyle
from tzasset.engine import AssetBuilder, BuildAborted, write_report
from tzasset.lib.assets import AssetDiscoveryError
from tzasset.lib.trainzutil import TRAINZUTIL_ENV, OutputParseError, TrainzUtilClient
from tzasset.log import Mode, OutputLog, Severity

logger = logging.getLogger("tzasset.cli")


def setup_logging(config: BuildConfig) -> None:
    """Configure developer logging on stderr; user output goes through OutputLog."""
    level = getattr(logging, config.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)-20s %(levelname)-5s %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def apply_cli_overrides(config: BuildConfig, options: dict[str, Any]) -> BuildConfig:
    """Apply CLI options to the config, overriding env/defaults."""
    if options.get("trainzutil"):
        config.trainzutil_path = options["trainzutil"]
    if options.get("recursive"):
        config.recursive = True
    if options.get("show_config"):
        config.label_style = LabelStyle.CONFIG
    elif options.get("show_kuid"):
        config.label_style = LabelStyle.KUID
    if options.get("temp_dir"):
        config.temp_dir = options["temp_dir"]
    if options.get("cleanup") is not None:
        config.cleanup = options["cleanup"]
    if options.get("validate_delay") is not None:
        config.validate_delay = options["validate_delay"]
    if options.get("report_file"):
        config.report_file = options["report_file"]
    if options.get("log_level"):
        config.log_level = options["log_level"]
    # Silent wins over verbose
    if options.get("silent"):
        config.mode = Mode.SILENT
    elif options.get("verbose"):
        config.mode = Mode.VERBOSE
    return config


def run_build(path: Path, install_mode: InstallMode, options: dict[str, Any]) -> int:
    """Run one batch and return the process exit code."""
    try:
        config = apply_cli_overrides(BuildConfig(install_mode=install_mode), options)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e
    setup_logging(config)
    logger.debug("Build path: %s", path)
    logger.debug("TrainzUtil path: %s", config.trainzutil_path)

    with OutputLog(config.mode) as log:
        builder = AssetBuilder(config, TrainzUtilClient(config.trainzutil_path), log)
        try:
            report = builder.run(path)
        except BuildAborted as e:
            return e.exit_code
        except (AssetDiscoveryError, OutputParseError) as e:
            log.normal(Severity.ERROR, "Build aborted: %s", e)
            return 1

    if config.report_file:
        write_report(report, config.report_file)
    return report.exit_code


def build_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by ``build`` and ``install``."""
    decorators = [
        click.argument(
            "path",
            type=click.Path(exists=True, file_okay=False, path_type=Path),
        ),
        click.option(
            "--trainzutil",
            envvar=TRAINZUTIL_ENV,
            default=None,
            metavar="PATH",
            help="Path to the TrainzUtil executable (default: TrainzUtil on PATH).",
        ),
        click.option("-r", "--recursive", is_flag=True, help="Search subdirectories for assets."),
        click.option("--show-config", is_flag=True, help="Label assets by their config.txt path."),
        click.option("--show-kuid", is_flag=True, help="Label assets by their KUID."),
        click.option(
            "--temp-dir",
            type=click.Path(file_okay=False, path_type=Path),
            default=None,
            help="Staging directory to reuse instead of a fresh temporary one.",
        ),
        click.option(
            "--cleanup/--no-cleanup",
            default=None,
            help="Delete the asset from Trainz after validation.",
        ),
        click.option(
            "--validate-delay",
            type=click.FloatRange(min=0),
            default=None,
            help="Seconds to wait between commit and validate.",
        ),
        click.option(
            "--report-file",
            type=click.Path(dir_okay=False, path_type=Path),
            default=None,
            help="Write a JSON build report to this file.",
        ),
        click.option(
            "--log-level",
            type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
            default=None,
            help="Diagnostic log level on stderr.",
        ),
        click.option("-v", "--verbose", is_flag=True, help="Detailed output."),
        click.option("-s", "--silent", is_flag=True, help="Machine-readable output only."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


@click.group()
@click.version_option(__version__, prog_name="tzbuildasset")
def cli() -> None:
    """Trainz Asset Builder.

    Assets are directories holding a config.txt with a line like
    kuid <kuid:123:456> or kuid <kuid2:123:456:1>.
    """


@cli.command()
@build_options
@click.pass_context
def build(ctx: click.Context, path: Path, **options: Any) -> None:
    """Install, commit and validate assets under PATH using a dummy KUID."""
    ctx.exit(run_build(path, InstallMode.DUMMY, options))


@cli.command()
@build_options
@click.pass_context
def install(ctx: click.Context, path: Path, **options: Any) -> None:
    """Install, commit and validate assets under PATH with their own KUIDs."""
    ctx.exit(run_build(path, InstallMode.DIRECT, options))


def main() -> None:
    """Entry point for the tzbuildasset command."""
    cli()


if __name__ == "__main__":
    main()

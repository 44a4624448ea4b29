"""Command-line interface for provisioning and load-testing the fleet."""

import functools
import logging
import sys
from pathlib import Path

import click

from src.config.constants import (
    BASE_DIR,
    CONFIG_DIR_NAME,
    FATAL_EXIT_CODE,
    IDENTITY_WIDTH,
    KUBECTL,
    NAMESPACE,
    NUM_REPLICAS,
    OVERLAY_DIR,
    STABILIZATION_SECONDS,
    WORK_DIR,
    WORKERS,
    YAML_URL,
)
from src.config.schema import FleetConfig
from src.fleet.errors import ConfigError, SourceFetchError
from src.orchestration.kubectl import KubectlClient
from src.orchestration.lifecycle import FleetOrchestrator
from src.orchestration.report import FleetReport
from src.storage.report_writer import ReportWriter

logger = logging.getLogger(__name__)


def fleet_options(func):
    """Options shared by every command; builds a FleetConfig from them."""

    @click.option("--replicas", default=NUM_REPLICAS, show_default=True, help="Number of replicas in the fleet.")
    @click.option("--width", default=IDENTITY_WIDTH, show_default=True, help="Zero-padded width of replica identities.")
    @click.option("--work-dir", default=WORK_DIR, show_default=True,
                  type=click.Path(file_okay=False, path_type=Path),
                  help="Directory generated artifacts are written under.")
    @click.option("--base-dir", default=BASE_DIR, show_default=True, help="Base bundle directory name.")
    @click.option("--overlay-dir", default=OVERLAY_DIR, show_default=True, help="Overlay directory name.")
    @click.option("--config-dir", default=CONFIG_DIR_NAME, show_default=True,
                  help="Load-test artifact directory name.")
    @click.option("--namespace", default=NAMESPACE, show_default=True, help="Target namespace.")
    @click.option("--base-url", default=YAML_URL, show_default=True, help="Where to fetch the base bundle from.")
    @click.option("--stabilization-seconds", default=STABILIZATION_SECONDS, type=float, show_default=True,
                  help="Pause between applying the fleet and launching load tests.")
    @click.option("--workers", default=WORKERS, show_default=True, help="Replicas processed concurrently.")
    @click.option("--kubectl", default=KUBECTL, show_default=True, help="kubectl binary.")
    @click.option("--report-dir", default=None, type=click.Path(file_okay=False, path_type=Path),
                  help="Write a Parquet/JSON report of the run here.")
    @click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
    @functools.wraps(func)
    def wrapper(replicas, width, work_dir, base_dir, overlay_dir, config_dir, namespace,
                base_url, stabilization_seconds, workers, kubectl, report_dir, verbose, **kwargs):
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        try:
            config = FleetConfig(
                replicas=replicas,
                identity_width=width,
                work_dir=work_dir,
                base_dir=base_dir,
                overlay_dir=overlay_dir,
                config_dir=config_dir,
                base_url=base_url,
                namespace=namespace,
                stabilization_seconds=stabilization_seconds,
                workers=workers,
                kubectl=kubectl,
            )
        except ConfigError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(FATAL_EXIT_CODE)
        return func(config=config, report_dir=report_dir, **kwargs)

    return wrapper


def _orchestrator(config: FleetConfig) -> FleetOrchestrator:
    client = KubectlClient(kubectl=config.kubectl, namespace=config.namespace)
    return FleetOrchestrator(config, client)


def _finish(report: FleetReport, report_dir) -> None:
    """Log the summary, optionally persist the report, and exit with its code."""
    for line in report.summary().splitlines():
        logger.info(line)
    if report_dir is not None:
        path = ReportWriter(report_dir).write(report)
        logger.info(f"Report written to {path}")
    sys.exit(report.exit_code)


@click.group()
def main():
    """Provision a fleet of bookinfo replicas and drive k6 load tests against them."""


@main.command()
@fleet_options
def install(config, report_dir):
    """Apply every replica, wait, then launch every load test."""
    logger.info(f"Installing {config.replicas} replicas into namespace {config.namespace}")
    try:
        report = _orchestrator(config).install()
    except SourceFetchError as exc:
        logger.error(str(exc))
        sys.exit(FATAL_EXIT_CODE)
    _finish(report, report_dir)


@main.command()
@fleet_options
def clean(config, report_dir):
    """Remove every replica's resources and all generated files."""
    logger.info(f"Cleaning {config.replicas} replicas from namespace {config.namespace}")
    _finish(_orchestrator(config).clean(), report_dir)


@main.command()
@fleet_options
def generate(config, report_dir):
    """Write base, overlay and load-test artifacts without touching the cluster."""
    try:
        report = FleetOrchestrator(config).generate()
    except SourceFetchError as exc:
        logger.error(str(exc))
        sys.exit(FATAL_EXIT_CODE)
    _finish(report, report_dir)


if __name__ == "__main__":
    main()

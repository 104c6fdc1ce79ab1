from __future__ import annotations

import sys
from enum import IntEnum
from pathlib import Path
from typing import Any, Optional

import typer

from failover_probe.config import Settings, load_settings
from failover_probe.controller import RunController, RunMode, RunSummary
from failover_probe.errors import ConfigurationError, FatalProbeError
from failover_probe.generator import RecordGenerator
from failover_probe.infrastructure.connection import ConnectionManager, build_dsn, mask_dsn
from failover_probe.infrastructure.schema import ensure_schema
from failover_probe.reporter import print_summary
from failover_probe.utils.logging import configure_logging, get_logger
from failover_probe.writer import WriteRetryLoop

app = typer.Typer(help="PostgreSQL failover probe CLI.")
log = get_logger(__name__)


class Usecase(IntEnum):
    GENERATE_DUMMY_DATA = 1
    SIMULATE_FAILOVER = 2
    INIT_SCHEMA = 99


_USECASE_TITLES = {
    Usecase.GENERATE_DUMMY_DATA: "Dummy Data Generator",
    Usecase.SIMULATE_FAILOVER: "RDS Failover Simulator",
    Usecase.INIT_SCHEMA: "Create Table",
}


def resolve_usecase(value: int) -> Optional[Usecase]:
    """Map the numeric selector to a usecase; None when unrecognized."""
    try:
        return Usecase(value)
    except ValueError:
        return None


def execute_usecase(
    usecase: Usecase, settings: Settings, **connection_kwargs: Any
) -> Optional[RunSummary]:
    """
    Connect to the database and perform the selected usecase.

    Returns the run summary for write usecases and None for schema setup.
    Fatal errors (FatalProbeError) propagate to the caller.
    """
    log.info(_USECASE_TITLES[usecase])
    run_config = settings.run_config()
    mode = RunMode.BURST if usecase is Usecase.GENERATE_DUMMY_DATA else RunMode.RATE_LIMITED
    if usecase is Usecase.SIMULATE_FAILOVER and not run_config.rps:
        raise ConfigurationError("Failover simulation requires a target rps")

    with ConnectionManager.from_settings(settings, **connection_kwargs) as connections:
        if usecase is Usecase.INIT_SCHEMA:
            ensure_schema(connections)
            return None

        controller = RunController(
            WriteRetryLoop.from_config(connections, run_config),
            RecordGenerator(seed=settings.probe_seed),
            run_config,
        )
        return controller.run(mode)


def _load_settings(config: Optional[Path]) -> Settings:
    try:
        return load_settings(config)
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def info(
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Optional JSON config file (overrides environment)."
    ),
) -> None:
    """
    Show effective configuration values.
    """
    settings = _load_settings(config)
    typer.echo(
        f"DSN={mask_dsn(build_dsn(settings))} | "
        f"test_run={settings.probe_test_run} rps={settings.probe_rps} "
        f"max_retry={settings.probe_max_retry} delay_retry={settings.probe_delay_retry}s"
    )


@app.command()
def run(
    usecase: int = typer.Option(
        0,
        "--usecase",
        "-u",
        help="1 = generate dummy data, 2 = simulate failover (rate-limited), 99 = create table.",
    ),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Optional JSON config file (overrides environment)."
    ),
    records: Optional[int] = typer.Option(
        None, "--records", "-n", min=0, help="Override number of records to write."
    ),
    rps: Optional[int] = typer.Option(
        None, "--rps", min=1, help="Override target records per second."
    ),
) -> None:
    """
    Run the selected usecase against the configured database.
    """
    settings = _load_settings(config)
    overrides = {"probe_test_run": records, "probe_rps": rps}
    settings = settings.model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )
    configure_logging(level=settings.log_level, json_logs=settings.log_json)

    typer.echo(f"Usecase: {usecase}")
    selected = resolve_usecase(usecase)
    if selected is None:
        typer.echo("Unknown usecase selected.")
        return

    try:
        summary = execute_usecase(selected, settings)
    except FatalProbeError as exc:
        log.error(f"Aborting: {exc}", extra={"error_type": type(exc).__name__})
        typer.echo(f"Fatal: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if summary is not None:
        print_summary(summary)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()

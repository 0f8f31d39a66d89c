"""Click-based CLI entry point for the balemetrics engine."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from balemetrics.config import ALL_DEVICES, DEFAULT_TIME_WINDOW, TIME_WINDOWS


def _load_session(csv_path: Path):
    from balemetrics.dashboard import FleetSession
    from balemetrics.parsers.csv_parser import IngestionError, load_csv

    try:
        rows = load_csv(csv_path)
    except IngestionError as e:
        raise click.ClickException(str(e)) from e
    return FleetSession.from_rows(rows)


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool):
    """Baler fleet telemetry metrics."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def devices(csv_path: Path):
    """List the device ids present in a telemetry CSV."""
    session = _load_session(csv_path)
    for device in session.devices:
        click.echo(device)


@cli.command()
@click.argument("csv_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--device", default=ALL_DEVICES, show_default=True, help="Device id, or 'all'.")
@click.option("--window", type=click.Choice(list(TIME_WINDOWS)), default=DEFAULT_TIME_WINDOW, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Dump the full report as JSON.")
@click.option("--workers", type=int, default=None, help="Evaluate aggregators in a thread pool.")
def summary(csv_path: Path, device: str, window: str, as_json: bool, workers: int | None):
    """Compute fleet metrics for a telemetry CSV."""
    session = _load_session(csv_path)
    if device != ALL_DEVICES and device not in session.devices:
        raise click.BadParameter(f"unknown device {device!r}", param_hint="--device")

    session.select(device=device, window=window)
    report = session.dashboard(workers=workers)

    if as_json:
        payload = report.to_dict()
        payload["rejected_rows"] = len(session.rejected)
        click.echo(json.dumps(payload, indent=2, default=str))
        return

    click.echo(f"Fleet summary ({device}, {window})")
    click.echo("=" * 80)
    if session.rejected:
        click.echo(f"  Rows dropped (invalid timestamp): {len(session.rejected)}")

    fleet = report.fleet
    if fleet.is_empty:
        click.echo("  No records in the selected window.")
        return

    click.echo(f"  Records: {fleet.total_cycles} from {fleet.unique_devices} devices")
    click.echo(f"  Total runtime: {fleet.total_runtime:.1f} h")
    click.echo(f"  Utilization: {fleet.utilization_rate:.1f}%")
    click.echo(f"  Errors (e-stop/overload): {fleet.error_count}")
    click.echo(f"  Avg cycles per machine: {fleet.avg_cycles_per_machine:.1f}")
    click.echo(f"  Energy: {fleet.total_energy:.1f} kWh, bales: {fleet.total_bales:.0f}")

    click.echo("\n  Top machines by runtime:")
    for m in report.ranking.top5:
        click.echo(f"    {m.device}: {m.runtime:.1f} h, {m.errors} errors, {m.status}")

    safety = report.safety_health.safety
    health = report.safety_health.health
    click.echo("\n  Safety:")
    click.echo(f"    E-stops: {safety.e_stop_count}, overloads: {safety.overload_count}")
    click.echo(f"    Door/gate openings: {safety.door_gate_violations}, valve issues: {safety.valve_issues}")
    click.echo("  Health:")
    click.echo(f"    Current imbalance: {health.avg_current_imbalance:.1f}%")
    click.echo(f"    Pressure overshoot: {health.avg_pressure_overshoot:.1f}%")
    click.echo(f"    Cycle time drift: {health.cycle_time_drift:+.1f}%")

    high_risk = report.safety_health.anomalies.high_risk_machines
    if high_risk:
        click.echo("  High-risk machines:")
        for m in high_risk:
            click.echo(f"    {m.device}: {m.anomaly_count} anomalies, avg score {m.avg_score:.1f}")

    maint = report.maintenance
    click.echo("\n  Maintenance:")
    click.echo(f"    Avg MTBF: {maint.avg_mtbf:.1f} h, avg MTTR: {maint.avg_mttr:.1f} h")
    click.echo(f"    Avg remaining life: {maint.avg_remaining_life:.1f}%")
    for d in maint.eol_machines:
        click.echo(f"    Near EOL: {d.device} ({d.remaining_life_pct:.1f}% remaining)")


if __name__ == "__main__":
    cli()

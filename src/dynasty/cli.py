from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich import print as rprint
from rich.table import Table

from .engine import (
    advance_day,
    allocation_context,
    assign_worker,
    ensure_jobs,
    new_game,
    release_worker,
    start_construction,
)
from .io import load_state, save_state
from .view import build_view_model

app = typer.Typer(add_completion=False)
DEFAULT_SAVE = Path("saves/village_001.yaml")


def _render_status(vm: dict) -> None:
    t = vm["time"]
    rprint(f"[bold]Day {t['day']}[/bold]  ({t['season']})")

    rtable = Table(title="Resources", show_header=True, header_style="bold")
    rtable.add_column("Resource")
    rtable.add_column("Stock")
    rtable.add_column("Cap")
    rtable.add_column("Daily")
    for name, info in vm["resources"].items():
        cap = "-" if info["cap"] is None else str(info["cap"])
        daily = vm["production"].get(name, 0)
        rtable.add_row(name, str(info["amount"]), cap, f"{daily:+}")
    rprint(rtable)

    ws = vm["worker_stats"]
    rprint(f"Workers: {ws['assigned']} assigned, {ws['idle']} idle, {ws['total']} total")

    jtable = Table(title="Jobs", show_header=True, header_style="bold")
    jtable.add_column("Job")
    jtable.add_column("Filled")
    jtable.add_column("Slots")
    for job, info in sorted(vm["job_summary"]["job_types"].items()):
        jtable.add_row(job, str(info["filled"]), str(info["available"]))
    rprint(jtable)

    if vm["construction"]:
        rprint(f"[bold]Construction[/bold] (desired builders: {vm['desired_builders']})")
        for site in vm["construction"]:
            rprint(f"- {site['building_type']}: {site['points_remaining']}/{site['points_required']} points left")

    if vm["recent_events"]:
        rprint("[bold]Recent events[/bold]")
        for e in vm["recent_events"]:
            rprint(f"- {e['event_id']}  {e.get('params', {})}")


def _load_or_new(path: Path, seed: int = 1):
    if path.exists():
        return load_state(path)
    return new_game(seed)


@app.callback()
def _configure(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show engine log output")):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(name)s: %(message)s")


@app.command()
def status(save: Path = DEFAULT_SAVE):
    village = _load_or_new(save)
    _render_status(build_view_model(village))


@app.command()
def tick(days: int = 1, save: Path = DEFAULT_SAVE, seed: int = 1):
    """Advance the village by one or more days."""
    village = _load_or_new(save, seed)
    for _ in range(max(1, days)):
        advance_day(village)
    save_state(village, save)
    _render_status(build_view_model(village))


@app.command()
def assign(worker_id: str, building_id: str, job_type: str, save: Path = DEFAULT_SAVE):
    village = _load_or_new(save)
    if not assign_worker(village, worker_id, building_id, job_type):
        rprint(f"[red]Could not assign {worker_id} to {job_type} at {building_id}[/red]")
        raise typer.Exit(code=1)
    save_state(village, save)
    rprint(f"Assigned {worker_id} to {job_type}")


@app.command()
def release(worker_id: str, save: Path = DEFAULT_SAVE):
    village = _load_or_new(save)
    if not release_worker(village, worker_id):
        rprint(f"[red]{worker_id} has no job to release[/red]")
        raise typer.Exit(code=1)
    save_state(village, save)
    rprint(f"Released {worker_id}")


@app.command()
def auto(save: Path = DEFAULT_SAVE, builders: bool = typer.Option(False, help="Staff every builder slot first")):
    """Run the job allocator without advancing the day."""
    village = _load_or_new(save)
    jobs = ensure_jobs(village)
    jobs.refresh(village.buildings)
    count = jobs.maximize_builders(village.day) if builders else 0
    count += jobs.auto_assign(allocation_context(village), village.day)
    save_state(village, save)
    rprint(f"Made {count} new assignments")


@app.command()
def production(save: Path = DEFAULT_SAVE):
    """Show where today's resources come from and go to."""
    village = _load_or_new(save)
    vm = build_view_model(village)
    for resource, entry in vm["breakdown"].items():
        table = Table(title=resource.title(), show_header=True, header_style="bold")
        table.add_column("Source")
        table.add_column("Amount")
        for line in entry["income"]:
            table.add_row(line["label"], f"[green]{line['amount']:+}[/green]")
        for line in entry["expense"]:
            table.add_row(line["label"], f"[red]{line['amount']:+}[/red]")
        rprint(table)


@app.command()
def build(building_type: str, save: Path = DEFAULT_SAVE):
    village = _load_or_new(save)
    try:
        site = start_construction(village, building_type)
    except ValueError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    save_state(village, save)
    rprint(f"Started {site.building_type} ({site.points_required} points)")


@app.command()
def dump(save: Path = DEFAULT_SAVE):
    village = _load_or_new(save)
    print(json.dumps(build_view_model(village), indent=2, sort_keys=True))


def main():
    app()


if __name__ == "__main__":
    main()

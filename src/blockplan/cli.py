"""blockplan CLI - focus-block planner."""

import json
import logging
import sys
from datetime import date
from pathlib import Path

import click

from .adapters.json_snapshot import SnapshotError
from .config import Config, load_config
from .core.blocks import DayPlan, PlanningMode
from .workflows import conflicts_for_date, next_runs, plan_for_date, plan_for_mode

logger = logging.getLogger(__name__)


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _slot_json(slot) -> dict:
    return {"start": slot.start.isoformat(), "end": slot.end.isoformat()}


def _plan_json(plan: DayPlan) -> dict:
    return {
        "date": plan.date.isoformat(),
        "focusBlockDuration": int(plan.preferences.focus_block_duration.total_seconds() // 60),
        "breakDuration": int(plan.preferences.break_duration.total_seconds() // 60),
        "busy": [dict(_slot_json(b), label=b.label) for b in plan.busy],
        "freeSlots": [_slot_json(s) for s in plan.free_slots],
        "blocks": [b.to_dict() for b in plan.blocks],
        "unscheduled": [t.id for t in plan.unscheduled],
    }


def _show_plan(plan: DayPlan) -> None:
    click.echo(f"### {plan.date.strftime('%A, %B %d')}")
    if not plan.blocks:
        click.echo("  No focus blocks.")
    for block in plan.blocks:
        click.echo(f"  {block.format()}")
    if plan.unscheduled:
        click.echo(f"  Unscheduled: {', '.join(t.display_title for t in plan.unscheduled)}")


@click.group()
@click.version_option()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to blockplan.conf",
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging")
@click.pass_context
def main(ctx, config_path: Path | None, verbose: bool):
    """blockplan - plan focus blocks around your calendar."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )
    ctx.obj = load_config(config_path)


def _target_date(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        _fail(f"Invalid date {value!r}, expected YYYY-MM-DD")


@main.command()
@click.option("--date", "date_str", help="Day to inspect (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def slots(config: Config, date_str: str | None, as_json: bool):
    """List free slots in working hours."""
    try:
        plan = plan_for_date(config, _target_date(date_str))
    except (SnapshotError, ValueError) as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps([_slot_json(s) for s in plan.free_slots], indent=2))
        return

    if not plan.free_slots:
        click.echo("No free slots.")
        return
    for slot in plan.free_slots:
        click.echo(f"- {slot.format()}")


@main.command()
@click.option("--date", "date_str", help="Day to plan (YYYY-MM-DD), defaults to today")
@click.option("--task", "task_ids", multiple=True, help="Only schedule these task ids")
@click.option("--energy", type=click.IntRange(0, 100), default=None, help="Today's energy level (0-100)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def blocks(config: Config, date_str: str | None, task_ids: tuple[str, ...], energy: int | None, as_json: bool):
    """Generate focus blocks for one day."""
    try:
        plan = plan_for_date(config, _target_date(date_str), task_ids=list(task_ids), energy_level=energy)
    except (SnapshotError, ValueError) as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps(_plan_json(plan), indent=2))
    else:
        _show_plan(plan)


@main.command()
@click.option(
    "--mode",
    type=click.Choice([m.value for m in PlanningMode]),
    default=PlanningMode.DAILY.value,
    show_default=True,
    help="How far ahead to plan",
)
@click.option("--date", "date_str", help="Reference day (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def plan(config: Config, mode: str, date_str: str | None, as_json: bool):
    """Plan focus blocks for tasks due in a date range."""
    try:
        plans = plan_for_mode(config, PlanningMode(mode), _target_date(date_str))
    except (SnapshotError, ValueError) as e:
        _fail(str(e))

    if as_json:
        click.echo(json.dumps([_plan_json(p) for p in plans], indent=2))
        return

    if not plans:
        click.echo("No tasks due in this range.")
        return
    for i, day_plan in enumerate(plans):
        if i:
            click.echo()
        _show_plan(day_plan)


@main.command()
@click.option("--date", "date_str", help="Day to check (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def conflicts(config: Config, date_str: str | None, as_json: bool):
    """Report double-booked time."""
    try:
        found = conflicts_for_date(config, _target_date(date_str))
    except SnapshotError as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                [
                    {"time": c.time.isoformat(), "events": [e.title for e in c.items]}
                    for c in found
                ],
                indent=2,
            )
        )
        return

    if not found:
        click.echo("No conflicts.")
        return
    for conflict in found:
        click.echo(f"- {conflict.format()}")


@main.command("next-run")
@click.option("--id", "rule_id", help="Only this schedule")
@click.option("--count", type=click.IntRange(1, 100), default=1, show_default=True, help="Runs to preview")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_obj
def next_run_cmd(config: Config, rule_id: str | None, count: int, as_json: bool):
    """Show when automation schedules fire next."""
    try:
        results = next_runs(config, count=count, rule_id=rule_id)
    except SnapshotError as e:
        _fail(str(e))

    if as_json:
        click.echo(
            json.dumps(
                [
                    {"id": rule.id, "name": rule.name, "runs": [r.isoformat() for r in runs]}
                    for rule, runs in results
                ],
                indent=2,
            )
        )
        return

    if not results:
        click.echo("No schedules.")
        return
    for rule, runs in results:
        label = rule.name or rule.id or "(unnamed)"
        if not runs:
            click.echo(f"{label}: no upcoming run")
            continue
        click.echo(f"{label}: {', '.join(r.strftime('%Y-%m-%d %H:%M') for r in runs)}")

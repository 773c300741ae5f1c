"""tatl CLI - task and time tracking."""

import json
import logging
import sys
from datetime import datetime, tzinfo

import click

from .config import load_config
from .core.dates import to_epoch
from .core.duration import format_duration
from .core.errors import TatlError
from .core.tasks import Session, Task, total_tracked
from .workflows import (
    add_task,
    annotate_tasks,
    complete_tasks,
    get_clock,
    get_store,
    list_sessions,
    list_tasks,
    modify_tasks,
    record_break,
    record_work,
    resume_after_break,
    start_tracking,
    stop_tracking,
)

# Filter words like -urgent or -7d..now are arguments, not options
FILTER_ARGS = {"ignore_unknown_options": True}


def _open():
    config = load_config()
    return config, get_store(config), get_clock(config)


def _fail(e: Exception) -> None:
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _fmt_ts(ts: int | None, tz: tzinfo) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts, tz).strftime("%Y-%m-%d %H:%M")


def _task_json(task: Task) -> dict:
    return task.to_record() | {"status": task.status.label}


def _task_line(task: Task, tz: tzinfo, now_ts: int) -> str:
    tags = " ".join(f"+{t}" for t in sorted(task.tags))
    project = f" project:{task.project}" if task.project else ""
    overdue = ", overdue" if task.is_overdue(now_ts) else ""
    due = f" (due {_fmt_ts(task.due_ts, tz)}{overdue})" if task.due_ts is not None else ""
    alloc = f" [{format_duration(task.alloc_secs)}]" if task.alloc_secs else ""
    line = f"{task.id:>4} {task.status.label:9} {task.description}{project}{due}{alloc}"
    return f"{line} {tags}".rstrip()


def _session_line(session: Session, tz: tzinfo, now_ts: int) -> str:
    end = "running" if session.is_open else _fmt_ts(session.end_ts, tz)[-5:]
    return (
        f"{_fmt_ts(session.start_ts, tz)}-{end} "
        f"({format_duration(session.duration(now_ts))})"
    )


def _split_modify_args(args: tuple[str, ...]) -> tuple[list[str], list[str]]:
    """Split "<selector...> : <changes...>"."""
    if ":" not in args:
        raise click.UsageError("Separate the filter from the changes with ':'")
    idx = args.index(":")
    return list(args[:idx]), list(args[idx + 1 :])


def _split_offon_args(args: tuple[str, ...]) -> tuple[int | None, str]:
    """Split "[task_id] <when>"."""
    if len(args) == 1:
        return None, args[0]
    if len(args) == 2 and args[0].isdigit():
        return int(args[0]), args[1]
    raise click.UsageError("Expected [TASK_ID] START..END or [TASK_ID] START")


@click.group()
@click.version_option(package_name="tatl")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """tatl - task and time tracking."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command(context_settings=FILTER_ARGS)
@click.argument("args", nargs=-1, type=click.UNPROCESSED, required=True)
def add(args: tuple[str, ...]):
    """Add a task: tatl add Write report +work project:q3 due:eow"""
    config, store, clock = _open()
    try:
        task = add_task(store, clock, list(args), config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)
    click.echo(f"Created task {task.id}: {task.description}")


@main.command("list", context_settings=FILTER_ARGS)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def list_cmd(as_json: bool, args: tuple[str, ...]):
    """List tasks matching a filter."""
    config, store, clock = _open()
    try:
        tasks = list_tasks(store, clock, list(args), config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)

    if as_json:
        click.echo(json.dumps([_task_json(t) for t in tasks], indent=2))
        return

    if not tasks:
        click.echo("No matching tasks.")
        return
    now_ts = to_epoch(clock.now_utc())
    for task in tasks:
        click.echo(_task_line(task, clock.tz, now_ts))


@main.command(context_settings=FILTER_ARGS)
@click.argument("args", nargs=-1, type=click.UNPROCESSED, required=True)
def modify(args: tuple[str, ...]):
    """Modify tasks: tatl modify project:work : +urgent due:tomorrow"""
    selector, changes = _split_modify_args(args)
    config, store, clock = _open()
    try:
        tasks = modify_tasks(store, clock, selector, changes, config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)
    click.echo(f"Modified {len(tasks)} task(s).")


@main.command(context_settings=FILTER_ARGS)
@click.argument("selector", nargs=-1, type=click.UNPROCESSED, required=True)
def done(selector: tuple[str, ...]):
    """Mark tasks matching a filter as done."""
    config, store, clock = _open()
    try:
        tasks = complete_tasks(store, clock, list(selector), config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)

    if not tasks:
        click.echo("No matching tasks.")
    for task in tasks:
        click.echo(f"Completed task {task.id}: {task.description}")


@main.command(context_settings=FILTER_ARGS)
@click.argument("selector", nargs=-1, type=click.UNPROCESSED, required=True)
@click.option("--note", required=True, help="Annotation text")
def annotate(selector: tuple[str, ...], note: str):
    """Annotate tasks matching a filter."""
    config, store, clock = _open()
    try:
        tasks = annotate_tasks(store, clock, list(selector), note, config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)
    click.echo(f"Annotated {len(tasks)} task(s).")


@main.command(context_settings=FILTER_ARGS)
@click.argument("task_id", type=int)
@click.argument("when", required=False)
def on(task_id: int, when: str | None):
    """Start timing a task, now or at WHEN (e.g. 14:00)."""
    config, store, clock = _open()
    try:
        session = start_tracking(store, clock, task_id, when, config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)
    click.echo(f"Started timing task {task_id} at {_fmt_ts(session.start_ts, clock.tz)}")


@main.command(context_settings=FILTER_ARGS)
@click.argument("when", required=False)
def off(when: str | None):
    """Stop timing, now or at WHEN."""
    config, store, clock = _open()
    try:
        session = stop_tracking(store, clock, when, config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)
    click.echo(f"Stopped timing task {session.task_id} at {_fmt_ts(session.end_ts, clock.tz)}")


@main.command(context_settings=FILTER_ARGS)
@click.argument("args", nargs=-1, required=True)
def offon(args: tuple[str, ...]):
    """Record a break: offon [TASK_ID] START..END, or offon [TASK_ID] START to resume now."""
    task_id, interval = _split_offon_args(args)
    config, store, clock = _open()

    if ".." not in interval:
        try:
            stopped, started = resume_after_break(store, clock, interval, task_id, config.week_start_index())
        except (TatlError, RuntimeError) as e:
            _fail(e)
        click.echo(f"Stopped timing task {stopped.task_id} at {_fmt_ts(stopped.end_ts, clock.tz)}")
        click.echo(f"Started timing task {started.task_id} at {_fmt_ts(started.start_ts, clock.tz)}")
        return

    try:
        sessions = record_break(store, clock, task_id, interval, config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)
    click.echo(f"Sessions modified for task {sessions[0].task_id}:" if sessions else "All time removed.")
    now_ts = to_epoch(clock.now_utc())
    for session in sessions:
        click.echo(f"  {_session_line(session, clock.tz, now_ts)}")


@main.command(context_settings=FILTER_ARGS)
@click.argument("task_id", type=int)
@click.argument("interval")
def onoff(task_id: int, interval: str):
    """Record work: add START..END to a task's sessions."""
    config, store, clock = _open()
    try:
        sessions = record_work(store, clock, task_id, interval, config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)
    click.echo(f"Added session to task {task_id}:")
    now_ts = to_epoch(clock.now_utc())
    for session in sessions:
        click.echo(f"  {_session_line(session, clock.tz, now_ts)}")


@main.command(context_settings=FILTER_ARGS)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def sessions(as_json: bool, args: tuple[str, ...]):
    """List sessions; filters apply to the task, date ranges to session start."""
    config, store, clock = _open()
    try:
        rows = list_sessions(store, clock, list(args), config.week_start_index())
    except (TatlError, RuntimeError) as e:
        _fail(e)

    if as_json:
        click.echo(
            json.dumps(
                [s.to_record() | {"description": t.description} for s, t in rows],
                indent=2,
            )
        )
        return

    if not rows:
        click.echo("No sessions.")
        return

    now_ts = to_epoch(clock.now_utc())
    for session, task in rows:
        click.echo(f"{task.id:>4} {_session_line(session, clock.tz, now_ts)}  {task.description}")
    click.echo(f"Total: {format_duration(total_tracked([s for s, _ in rows], now_ts))}")


if __name__ == "__main__":
    main()

"""todoline CLI - browse and act on remote tasks."""

import json
import logging
import sys
from datetime import date

import click

from .adapters.prompt_selector import PromptSelector
from .adapters.todoist_api import TodoistGateway
from .aggregator import CompletedWindow, ViewRequest
from .config import load_config, save_token
from .core.completed import WindowPreset, date_window, validate_window
from .core.grouping import GroupBy, Narrowing, SortBy
from .core.models import Priority
from .display import render_buckets, render_tree
from .errors import TodolineError
from .session import SessionController
from .workflows import Snapshot, run_pipeline

GROUP_CHOICES = click.Choice([g.value for g in GroupBy])
SORT_CHOICES = click.Choice([s.value for s in SortBy])


def _fail(error: TodolineError) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(error.exit_code)


def _gateway() -> TodoistGateway:
    config = load_config()
    return TodoistGateway(config)


def _task_json(snapshot: Snapshot) -> str:
    agg = snapshot.aggregate
    return json.dumps(
        [
            {
                "id": e.task.id,
                "content": e.task.content,
                "priority": e.task.priority.label,
                "due": e.task.due.date.isoformat() if e.task.due else None,
                "project": agg.projects[e.task.project_id].name if e.task.project_id in agg.projects else None,
                "labels": agg.task_labels(e.task),
                "parent_id": e.task.parent_id,
                "depth": e.depth,
                "completed_at": e.task.completed_at.isoformat() if e.task.completed_at else None,
            }
            for e in snapshot.entries
        ],
        indent=2,
    )


def _show(snapshot: Snapshot, group_by: GroupBy, sort_by: SortBy, as_json: bool, show_id: bool) -> None:
    if as_json:
        click.echo(_task_json(snapshot))
        return
    if not snapshot.tasks:
        click.echo("No tasks.")
        return
    agg = snapshot.aggregate
    known = set(agg.labels)
    if group_by is GroupBy.NONE and sort_by is SortBy.DEFAULT:
        lines = render_tree(snapshot.hierarchy, show_id=show_id, known_labels=known)
    else:
        lines = render_buckets(snapshot.buckets, agg.projects, agg.sections, show_id=show_id, known_labels=known)
    for line in lines:
        click.echo(line)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(package_name="todoline")
def main(debug: bool):
    """todoline - browse and act on remote tasks."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )
    else:
        logging.basicConfig(format="%(levelname)s: %(message)s", level=logging.WARNING)


@main.command()
@click.argument("token")
def auth(token: str):
    """Store the API token."""
    save_token(token)
    click.echo("Token saved.")


@main.command("list")
@click.option("--filter", "-f", "filter_", default=None, help="Filter query, forwarded as-is")
@click.option("--group-by", type=GROUP_CHOICES, default=None, help="Group tasks")
@click.option("--sort-by", type=SORT_CHOICES, default="default", help="Sort tasks")
@click.option("--select", "select", is_flag=True, help="Pick a task and act on it")
@click.option("--interactive", "-i", "continuous", is_flag=True, help="Keep selecting and acting until cancelled")
@click.option("--expand", "-e", is_flag=True, help="Also show parents of matching subtasks")
@click.option("--project", "-P", default=None, help="Only tasks in this project (name or ID)")
@click.option("--section", "-S", default=None, help="Only tasks in this section (name or ID)")
@click.option("--label", "-L", "labels", multiple=True, help="Only tasks with any of these labels")
@click.option("--show-id", is_flag=True, help="Show task IDs")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(
    filter_: str | None,
    group_by: str | None,
    sort_by: str,
    select: bool,
    continuous: bool,
    expand: bool,
    project: str | None,
    section: str | None,
    labels: tuple[str, ...],
    show_id: bool,
    as_json: bool,
):
    """List tasks, optionally selecting one to act on."""
    config = load_config()
    gateway = TodoistGateway(config)
    grouping = GroupBy(group_by or config.group_by)
    sorting = SortBy(sort_by)
    narrowing = Narrowing(project=project, section=section, labels=list(labels))

    def pipeline(filter: str | None) -> Snapshot:
        request = ViewRequest(filter=filter, expand=expand)
        return run_pipeline(gateway, request, grouping, sorting, narrowing)

    if select or continuous:
        controller = SessionController(
            pipeline,
            PromptSelector(),
            gateway,
            continuous=continuous,
            echo=click.echo,
            filter=filter_ or config.default_filter,
            default_filter=config.default_filter,
        )
        outcome = controller.run()
        if outcome.error is not None:
            _fail(outcome.error)
        if outcome.cancelled and outcome.actions == 0:
            click.echo("No selection was made")
        return

    try:
        snapshot = pipeline(filter_ or config.default_filter)
    except TodolineError as e:
        _fail(e)
    _show(snapshot, grouping, sorting, as_json, show_id)


@main.command()
@click.option("--since", default=None, help="Start date (YYYY-MM-DD or ISO 8601)")
@click.option("--until", default=None, help="End date (YYYY-MM-DD or ISO 8601)")
@click.option("--today", "preset", flag_value=WindowPreset.TODAY.value, help="Completed today")
@click.option("--yesterday", "preset", flag_value=WindowPreset.YESTERDAY.value, help="Completed yesterday")
@click.option("--this-week", "preset", flag_value=WindowPreset.THIS_WEEK.value, help="Monday to today")
@click.option("--last-week", "preset", flag_value=WindowPreset.LAST_WEEK.value, help="Last Monday to Sunday")
@click.option("--this-month", "preset", flag_value=WindowPreset.THIS_MONTH.value, help="1st to today")
@click.option("--by-due-date", is_flag=True, help="Window on due date instead of completion date")
@click.option("--filter", "-f", "filter_", default=None, help="Filter query, forwarded as-is")
@click.option("--limit", default=50, type=click.IntRange(1, 200), help="Results per page")
@click.option("--all", "fetch_all", is_flag=True, help="Fetch every page")
@click.option("--group-by", type=GROUP_CHOICES, default="none", help="Group tasks")
@click.option("--show-id", is_flag=True, help="Show task IDs")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def completed(
    since: str | None,
    until: str | None,
    preset: str | None,
    by_due_date: bool,
    filter_: str | None,
    limit: int,
    fetch_all: bool,
    group_by: str,
    show_id: bool,
    as_json: bool,
):
    """List completed tasks in a date window."""
    if preset and (since or until):
        raise click.UsageError("--since/--until cannot be combined with a date preset")
    if bool(since) != bool(until):
        raise click.UsageError("--since and --until must be given together")
    gateway = _gateway()
    try:
        start, end = date_window(
            date.today(),
            WindowPreset(preset) if preset else None,
            since,
            until,
        )
        validate_window(start, end, by_due_date)
        window = CompletedWindow(start, end, by_due_date=by_due_date, limit=limit, fetch_all=fetch_all)
        snapshot = run_pipeline(gateway, ViewRequest(filter=filter_, completed=window), GroupBy(group_by))
    except TodolineError as e:
        _fail(e)

    if not snapshot.tasks and not as_json:
        click.echo("No completed tasks found in the specified date range.")
        return
    _show(snapshot, GroupBy(group_by), SortBy.DEFAULT, as_json, show_id)
    if as_json:
        return
    if snapshot.aggregate.truncated:
        click.echo("\nShowing the first page only. Use --all to fetch all pages.")
    click.echo(f"\nTotal: {len(snapshot.tasks)} completed tasks")


@main.command()
@click.argument("name")
@click.option("--due", "-d", default=None, help="Due date in natural language")
@click.option("--desc", "-D", default=None, help="Description")
@click.option("--priority", "-p", type=click.IntRange(1, 4), default=None, help="1 (urgent) to 4 (normal)")
@click.option("--project", "project_name", default=None, help="Project name")
@click.option("--label", "-L", "labels", multiple=True, help="Label to attach (repeatable)")
def add(
    name: str,
    due: str | None,
    desc: str | None,
    priority: int | None,
    project_name: str | None,
    labels: tuple[str, ...],
):
    """Create a task."""
    gateway = _gateway()
    payload: dict = {"content": name}
    if due:
        payload["due_string"] = due
    if desc:
        payload["description"] = desc
    if priority:
        payload["priority"] = int(Priority.from_label(priority))
    if labels:
        payload["labels"] = list(labels)
    try:
        if project_name:
            project = next(
                (p for p in gateway.projects() if p.name.lower() == project_name.lower()),
                None,
            )
            if project is None:
                click.echo(f"Error: No project named '{project_name}'", err=True)
                sys.exit(1)
            payload["project_id"] = project.id
        task = gateway.create_task(payload)
    except TodolineError as e:
        _fail(e)
    click.echo(f"Created '{task.content}' ({task.id})")


@main.command()
@click.argument("task_id")
@click.option("--complete", is_flag=True, help="Stop recurring tasks instead of moving them on")
def close(task_id: str, complete: bool):
    """Close a task."""
    gateway = _gateway()
    try:
        if complete:
            gateway.complete_task(task_id)
        else:
            gateway.close_task(task_id)
    except TodolineError as e:
        _fail(e)
    click.echo(f"Closed {task_id}")


@main.command()
@click.argument("task_id")
@click.option("--name", "-n", default=None, help="New name")
@click.option("--desc", "-D", default=None, help="New description")
@click.option("--due", "-d", default=None, help="New due date in natural language")
@click.option("--priority", "-p", type=click.IntRange(1, 4), default=None, help="1 (urgent) to 4 (normal)")
@click.option("--label", "-L", "labels", multiple=True, help="Replace labels (repeatable)")
def edit(
    task_id: str,
    name: str | None,
    desc: str | None,
    due: str | None,
    priority: int | None,
    labels: tuple[str, ...],
):
    """Update fields of a task."""
    payload: dict = {}
    if name is not None:
        payload["content"] = name
    if desc is not None:
        payload["description"] = desc
    if due is not None:
        payload["due_string"] = due
    if priority is not None:
        payload["priority"] = int(Priority.from_label(priority))
    if labels:
        payload["labels"] = list(labels)
    if not payload:
        click.echo("Nothing to change.")
        return

    gateway = _gateway()
    try:
        gateway.update_task(task_id, payload)
    except TodolineError as e:
        _fail(e)
    click.echo(f"Updated {task_id}")


@main.command()
@click.argument("task_id")
@click.confirmation_option(prompt="Delete this task?")
def delete(task_id: str):
    """Delete a task permanently."""
    gateway = _gateway()
    try:
        gateway.delete_task(task_id)
    except TodolineError as e:
        _fail(e)
    click.echo(f"Deleted {task_id}")


if __name__ == "__main__":
    main()

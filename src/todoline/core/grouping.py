"""Local grouping and sorting of an already-filtered hierarchy.

Pure functions - no I/O. The filter string is forwarded verbatim at fetch
time and never evaluated here; narrow() only restricts the fetched tasks by
project, section and label.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from todoline.errors import InvalidInputError

from .models import Priority, Project, Section, Task
from .tree import Hierarchy, Node

NO_DUE_DATE = "No due date"


class GroupBy(Enum):
    NONE = "none"
    PROJECT = "project"
    PRIORITY = "priority"
    DUE_DATE = "due-date"


class SortBy(Enum):
    DEFAULT = "default"
    CREATED = "created"  # Oldest first, for finding stale tasks
    DURATION = "duration"  # Shortest first, for quick wins
    PRIORITY = "priority"


@dataclass
class Entry:
    """A task at a given depth in the flattened hierarchy."""

    task: Task
    depth: int = 0


@dataclass
class Bucket:
    name: str
    entries: list[Entry] = field(default_factory=list)


@dataclass
class Narrowing:
    """Local restriction applied after the remote filter: project, section, any of labels."""

    project: str | None = None
    section: str | None = None
    labels: list[str] = field(default_factory=list)


def flatten(hierarchy: Hierarchy) -> list[Entry]:
    """Depth-first task order of the hierarchy; subtasks follow their parent."""
    entries: list[Entry] = []

    def walk(node: Node, depth: int) -> None:
        if node.kind == "task":
            entries.append(Entry(node.item, depth))
            depth += 1
        for child in node.children:
            walk(child, depth)

    for root in hierarchy.roots:
        walk(root, 0)
    return entries


def sort_entries(entries: list[Entry], sort_by: SortBy = SortBy.DEFAULT) -> list[Entry]:
    """Stable sort; entries with equal keys keep their original order."""
    match sort_by:
        case SortBy.DEFAULT:
            return list(entries)
        case SortBy.CREATED:
            return sorted(entries, key=lambda e: (e.task.created_at is None, e.task.created_at or datetime.min))
        case SortBy.DURATION:
            return sorted(
                entries,
                key=lambda e: (e.task.duration_minutes is None, e.task.duration_minutes or 0),
            )
        case SortBy.PRIORITY:
            return sorted(entries, key=lambda e: -e.task.priority)


def _bucket(buckets: dict[str, Bucket], name: str) -> Bucket:
    if name not in buckets:
        buckets[name] = Bucket(name)
    return buckets[name]


def group(
    entries: list[Entry],
    group_by: GroupBy,
    projects: dict[str, Project] | None = None,
) -> list[Bucket]:
    """
    Re-project ordered entries into named buckets.

    Each bucket keeps the relative order its entries had in the input.
    """
    projects = projects or {}
    buckets: dict[str, Bucket] = {}

    match group_by:
        case GroupBy.NONE:
            return [Bucket("", list(entries))]
        case GroupBy.PROJECT:
            # Keyed by id: distinct projects may share a name.
            for entry in entries:
                project_id = entry.task.project_id
                if project_id not in buckets:
                    project = projects.get(project_id)
                    buckets[project_id] = Bucket(project.name if project else project_id or "(no project)")
                buckets[project_id].entries.append(entry)
            return list(buckets.values())
        case GroupBy.PRIORITY:
            for priority in sorted(Priority, reverse=True):
                buckets[priority.label] = Bucket(priority.label)
            for entry in entries:
                buckets[entry.task.priority.label].entries.append(entry)
            return [b for b in buckets.values() if b.entries]
        case GroupBy.DUE_DATE:
            dated = [e for e in entries if e.task.due]
            for entry in sorted(dated, key=lambda e: e.task.due.date):
                _bucket(buckets, entry.task.due.date.isoformat()).entries.append(entry)
            undated = [e for e in entries if not e.task.due]
            if undated:
                buckets[NO_DUE_DATE] = Bucket(NO_DUE_DATE, undated)
            return list(buckets.values())


def _resolve(value: str, items, kind: str):
    """Find an item by id, else by case-insensitive name."""
    for item in items:
        if item.id == value:
            return item
    for item in items:
        if item.name.lower() == value.lower():
            return item
    raise InvalidInputError(f"No {kind} named '{value}'")


def narrow(
    tasks: dict[str, Task],
    projects: dict[str, Project],
    sections: dict[str, Section],
    narrowing: Narrowing,
) -> dict[str, Task]:
    """
    Keep only tasks in the given project and section that carry any of the labels.

    Project and section are matched by id or name. A section name is looked up
    within the chosen project first, so same-named sections in other projects
    do not shadow it.
    """
    result = dict(tasks)
    if narrowing.project:
        project = _resolve(narrowing.project, projects.values(), "project")
        result = {tid: t for tid, t in result.items() if t.project_id == project.id}
        candidates = [s for s in sections.values() if s.project_id == project.id]
    else:
        candidates = list(sections.values())
    if narrowing.section:
        section = _resolve(narrowing.section, candidates, "section")
        result = {tid: t for tid, t in result.items() if t.section_id == section.id}
    if narrowing.labels:
        wanted = {name.lower() for name in narrowing.labels}
        result = {tid: t for tid, t in result.items() if any(name.lower() in wanted for name in t.labels)}
    return result

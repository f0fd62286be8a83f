"""Plain-text rendering of tasks, buckets and the project tree."""

from .core.grouping import Bucket, Entry
from .core.models import Project, Section, Task
from .core.tree import Hierarchy, Node


def format_task_line(
    task: Task,
    projects: dict[str, Project] | None = None,
    sections: dict[str, Section] | None = None,
    labels: list[str] | None = None,
    depth: int = 0,
    show_project: bool = True,
    show_id: bool = False,
) -> str:
    """One-line summary, e.g. "[p1] Pay rent (due 2025-01-31) #Home/Bills @money"."""
    parts = []
    if show_id:
        parts.append(task.id)
    parts.append(f"[{task.priority.label}]")
    parts.append(task.content)
    if task.due:
        parts.append(f"(due {task.due})")
    if show_project:
        project = (projects or {}).get(task.project_id)
        if project:
            location = f"#{project.name}"
            section = (sections or {}).get(task.section_id) if task.section_id else None
            if section:
                location += f"/{section.name}"
            parts.append(location)
    for label in labels if labels is not None else task.labels:
        parts.append(f"@{label}")
    return "  " * depth + " ".join(parts)


def format_task_detail(
    task: Task,
    projects: dict[str, Project] | None = None,
    sections: dict[str, Section] | None = None,
    labels: list[str] | None = None,
) -> str:
    """Multi-line view of every field worth showing."""
    lines = [
        f"ID: {task.id}",
        f"Priority: {task.priority.label}",
        f"Content: {task.content}",
        f"Description: {task.description}",
    ]
    if task.due:
        lines.append(f"Due: {task.due}")
    project = (projects or {}).get(task.project_id)
    if project:
        lines.append(f"Project: {project.name}")
    section = (sections or {}).get(task.section_id) if task.section_id else None
    if section:
        lines.append(f"Section: {section.name}")
    shown = labels if labels is not None else task.labels
    if shown:
        lines.append(f"Labels: {', '.join(shown)}")
    if task.completed_at:
        lines.append(f"Completed: {task.completed_at:%Y-%m-%d %H:%M}")
    return "\n".join(lines)


def _known(task: Task, known_labels: set[str] | None) -> list[str] | None:
    if known_labels is None:
        return None
    return [name for name in task.labels if name in known_labels]


def render_tree(hierarchy: Hierarchy, show_id: bool = False, known_labels: set[str] | None = None) -> list[str]:
    """Indented outline of projects, sections and tasks. Empty containers are skipped."""
    lines: list[str] = []

    def walk(node: Node, depth: int) -> None:
        if node.kind == "task":
            labels = _known(node.item, known_labels)
            lines.append(format_task_line(node.item, labels=labels, depth=depth, show_project=False, show_id=show_id))
        else:
            if not any(True for _ in node.iter_tasks()):
                return
            header = f"## {node.name}" if node.kind in ("project", "unassigned") else f"### {node.name}"
            lines.append("  " * depth + header)
        for child in node.children:
            walk(child, depth + 1)

    for root in hierarchy.roots:
        walk(root, 0)
    return lines


def render_buckets(
    buckets: list[Bucket],
    projects: dict[str, Project] | None = None,
    sections: dict[str, Section] | None = None,
    show_id: bool = False,
    known_labels: set[str] | None = None,
) -> list[str]:
    lines: list[str] = []
    for bucket in buckets:
        if bucket.name:
            if lines:
                lines.append("")
            lines.append(f"[{bucket.name}] ({len(bucket.entries)} tasks)")
        for entry in bucket.entries:
            lines.append(
                format_task_line(
                    entry.task,
                    projects,
                    sections,
                    labels=_known(entry.task, known_labels),
                    depth=entry.depth,
                    show_id=show_id,
                )
            )
    return lines


def entry_label(entry: Entry, projects: dict[str, Project], sections: dict[str, Section], labels: list[str]) -> str:
    """Candidate label shown in the interactive selector."""
    return format_task_line(entry.task, projects, sections, labels=labels)

"""Assemble flat task, project and section mappings into an ordered hierarchy.

Pure functions - no I/O. The hierarchy is a view: it is rebuilt from fresh
mappings on every fetch and never mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Iterator

from todoline.errors import ConsistencyWarning

from .models import Project, Section, Task

UNASSIGNED_NAME = "(unassigned)"


@dataclass
class Node:
    """A project, section, task or the unassigned bucket with ordered children."""

    kind: str
    item: Project | Section | Task | None
    children: list["Node"] = field(default_factory=list)

    @property
    def name(self) -> str:
        if self.kind == "unassigned":
            return UNASSIGNED_NAME
        if self.kind == "task":
            return self.item.content
        return self.item.name

    def iter_tasks(self) -> Iterator[Task]:
        """Depth-first walk over every task below (and including) this node."""
        if self.kind == "task":
            yield self.item
        for child in self.children:
            yield from child.iter_tasks()


@dataclass
class Hierarchy:
    """Output of build_tree: ordered root nodes plus diagnostics."""

    roots: list[Node] = field(default_factory=list)
    warnings: list[ConsistencyWarning] = field(default_factory=list)

    def iter_tasks(self) -> Iterator[Task]:
        for root in self.roots:
            yield from root.iter_tasks()


def _ordered(items):
    """Sort by the remote order field; sorted() keeps input position on ties."""
    return sorted(items, key=lambda item: item.order)


def _cycle_entry(task_id: str, tasks: dict[str, Task]) -> str:
    """Walk up the parent chain and return the first task seen twice."""
    path: set[str] = set()
    current = task_id
    while current not in path:
        path.add(current)
        current = tasks[current].parent_id
    return current


def count_tasks(hierarchy: Hierarchy) -> int:
    return sum(1 for _ in hierarchy.iter_tasks())


def build_tree(
    tasks: dict[str, Task],
    projects: dict[str, Project],
    sections: dict[str, Section],
) -> Hierarchy:
    """
    Build project -> section -> task -> subtask hierarchy.

    Every input task appears exactly once. Sections and tasks whose project
    is unknown go into a trailing unassigned bucket. Subtask cycles are cut
    at the first member reached walking up from the earliest unplaced task,
    so the member that would re-enter the cycle ends up as a leaf.
    """
    warnings: list[ConsistencyWarning] = []

    # Arena: child id lists indexed by parent task id, in input order.
    children: dict[str, list[str]] = {}
    roots: list[str] = []
    for task in tasks.values():
        if task.parent_id and task.parent_id in tasks and task.parent_id != task.id:
            children.setdefault(task.parent_id, []).append(task.id)
        else:
            roots.append(task.id)

    placed: set[str] = set()

    def expand(task_id: str) -> Node:
        placed.add(task_id)
        node = Node("task", tasks[task_id])
        for child_id in [t.id for t in _ordered(tasks[c] for c in children.get(task_id, []))]:
            if child_id in placed:
                continue
            node.children.append(expand(child_id))
        return node

    top_level: list[Node] = [expand(task_id) for task_id in roots]

    # Anything still unplaced hangs off a parent cycle.
    for task_id in tasks:
        if task_id in placed:
            continue
        entry = _cycle_entry(task_id, tasks)
        warnings.append(
            ConsistencyWarning(
                "cycle",
                f"Task {entry} is part of a subtask cycle; showing it as a top-level task",
            )
        )
        top_level.append(expand(entry))

    project_nodes = {pid: Node("project", p) for pid, p in projects.items()}
    unassigned = Node("unassigned", None)

    section_nodes: dict[str, Node] = {}
    for section in _ordered(sections.values()):
        node = Node("section", section)
        section_nodes[section.id] = node
        if section.project_id in project_nodes:
            project_nodes[section.project_id].children.append(node)
        else:
            warnings.append(
                ConsistencyWarning(
                    "orphan",
                    f"Section '{section.name}' references unknown project {section.project_id}",
                )
            )
            unassigned.children.append(node)

    loose: dict[str, list[Node]] = {}
    for node in sorted(top_level, key=lambda n: n.item.order):
        task = node.item
        section = sections.get(task.section_id) if task.section_id else None
        if section is not None and section.project_id == task.project_id:
            section_nodes[section.id].children.append(node)
        elif task.project_id in project_nodes:
            loose.setdefault(task.project_id, []).append(node)
        else:
            warnings.append(
                ConsistencyWarning(
                    "orphan",
                    f"Task '{task.content}' references unknown project {task.project_id}",
                )
            )
            loose.setdefault(None, []).append(node)

    ordered_roots: list[Node] = []
    for project in _ordered(projects.values()):
        node = project_nodes[project.id]
        node.children.extend(loose.get(project.id, []))
        ordered_roots.append(node)

    unassigned.children.extend(loose.get(None, []))
    if unassigned.children:
        ordered_roots.append(unassigned)

    return Hierarchy(roots=ordered_roots, warnings=warnings)

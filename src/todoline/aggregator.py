"""Fetch every resource a view needs, concurrently, into id-keyed mappings."""

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable

from .core.models import Label, Project, Section, Task
from .errors import AggregationError, ConsistencyWarning
from .ports import TaskGateway

logger = logging.getLogger(__name__)


@dataclass
class CompletedWindow:
    """Date window of a completed-tasks view."""

    since: str
    until: str
    by_due_date: bool = False
    limit: int = 50
    fetch_all: bool = False


@dataclass
class ViewRequest:
    """What the pipeline should show."""

    filter: str | None = None
    completed: CompletedWindow | None = None
    expand: bool = False


@dataclass
class Aggregate:
    """Flat mappings for one view. Each keeps the order the API returned."""

    tasks: dict[str, Task] = field(default_factory=dict)
    projects: dict[str, Project] = field(default_factory=dict)
    sections: dict[str, Section] = field(default_factory=dict)
    labels: dict[str, Label] = field(default_factory=dict)
    warnings: list[ConsistencyWarning] = field(default_factory=list)
    truncated: bool = False

    def task_labels(self, task: Task) -> list[str]:
        """Label names of task that resolve to a known label."""
        return [name for name in task.labels if name in self.labels]


def _by_id(items) -> dict:
    return {item.id: item for item in items}


def _with_ancestors(matching: list[Task], everything: list[Task]) -> dict[str, Task]:
    """Matching tasks plus every ancestor, in the order of the full list."""
    index = _by_id(everything)
    keep = {t.id for t in matching}
    for task in matching:
        parent = task.parent_id
        while parent and parent in index and parent not in keep:
            keep.add(parent)
            parent = index[parent].parent_id

    result = {t.id: t for t in everything if t.id in keep}
    for task in matching:
        result.setdefault(task.id, task)
    return result


def aggregate(gateway: TaskGateway, request: ViewRequest) -> Aggregate:
    """
    Materialize one view.

    Tasks, projects and sections are required: the first failure among them
    cancels whatever has not started and raises AggregationError. Labels are
    best-effort and degrade to an empty mapping with a warning.
    """
    result = Aggregate()

    def fetch_tasks() -> list[Task]:
        if request.completed is None:
            return gateway.tasks(request.filter)
        window = request.completed
        tasks, result.truncated = gateway.completed_tasks(
            window.since,
            window.until,
            by_due_date=window.by_due_date,
            filter=request.filter,
            limit=window.limit,
            fetch_all=window.fetch_all,
        )
        return tasks

    required: dict[str, Callable[[], list]] = {
        "tasks": fetch_tasks,
        "projects": gateway.projects,
        "sections": gateway.sections,
    }
    if request.expand and request.completed is None:
        required["all tasks"] = lambda: gateway.tasks(None)

    executor = ThreadPoolExecutor(max_workers=len(required) + 1)
    try:
        futures: dict[Future, str] = {executor.submit(fn): name for name, fn in required.items()}
        labels_future = executor.submit(gateway.labels)

        collected: dict[str, list] = {}
        pending = set(futures)
        while pending:
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                name = futures[future]
                error = future.exception()
                if error is not None:
                    logger.error(f"Fetching {name} failed: {error}")
                    for other in pending:
                        other.cancel()
                    labels_future.cancel()
                    raise AggregationError(name, error) from error
                collected[name] = future.result()

        try:
            labels = labels_future.result()
        except Exception as e:
            warning = ConsistencyWarning("labels", f"Labels unavailable, showing tasks without them: {e}")
            logger.warning(warning.message)
            result.warnings.append(warning)
            labels = []
    finally:
        # Requests already in flight finish in the background; their results are dropped.
        executor.shutdown(wait=False, cancel_futures=True)

    if "all tasks" in collected:
        result.tasks = _with_ancestors(collected["tasks"], collected["all tasks"])
    else:
        result.tasks = _by_id(collected["tasks"])
    result.projects = _by_id(collected["projects"])
    result.sections = _by_id(collected["sections"])
    result.labels = {label.name: label for label in labels}

    logger.debug(
        f"Aggregated {len(result.tasks)} tasks, {len(result.projects)} projects, "
        f"{len(result.sections)} sections, {len(result.labels)} labels"
    )
    return result

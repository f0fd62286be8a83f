"""Shared pipeline between the list and completed commands and the session loop.

Each run fetches a fresh view, builds the hierarchy, then groups and sorts it.
Nothing is cached between runs.
"""

import logging
from dataclasses import dataclass, field

from .aggregator import Aggregate, ViewRequest, aggregate
from .core.fuzzy import Candidate
from .core.grouping import Bucket, Entry, GroupBy, Narrowing, SortBy, flatten, group, narrow, sort_entries
from .core.models import Task
from .core.tree import Hierarchy, build_tree
from .display import entry_label, format_task_detail
from .errors import ConsistencyWarning
from .ports import TaskGateway

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """One pipeline run: the fetched data and the views built from it."""

    aggregate: Aggregate
    hierarchy: Hierarchy
    buckets: list[Bucket]
    warnings: list[ConsistencyWarning] = field(default_factory=list)

    @property
    def tasks(self) -> dict[str, Task]:
        return self.aggregate.tasks

    @property
    def entries(self) -> list[Entry]:
        return [entry for bucket in self.buckets for entry in bucket.entries]

    def candidates(self) -> list[Candidate]:
        """Selector lines in display order."""
        agg = self.aggregate
        return [
            Candidate(entry_label(e, agg.projects, agg.sections, agg.task_labels(e.task)), e.task.id)
            for e in self.entries
        ]

    def describe(self, task: Task) -> str:
        agg = self.aggregate
        return format_task_detail(task, agg.projects, agg.sections, agg.task_labels(task))


def run_pipeline(
    gateway: TaskGateway,
    request: ViewRequest,
    group_by: GroupBy = GroupBy.NONE,
    sort_by: SortBy = SortBy.DEFAULT,
    narrowing: Narrowing | None = None,
) -> Snapshot:
    """Aggregate, narrow, build the tree, then group and sort. Raises on required fetch failures."""
    agg = aggregate(gateway, request)
    if narrowing is not None:
        agg.tasks = narrow(agg.tasks, agg.projects, agg.sections, narrowing)
    hierarchy = build_tree(agg.tasks, agg.projects, agg.sections)
    for warning in hierarchy.warnings:
        logger.warning(warning.message)

    entries = sort_entries(flatten(hierarchy), sort_by)
    buckets = group(entries, group_by, agg.projects)
    return Snapshot(
        aggregate=agg,
        hierarchy=hierarchy,
        buckets=buckets,
        warnings=agg.warnings + hierarchy.warnings,
    )

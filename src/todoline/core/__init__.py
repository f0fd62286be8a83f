"""Functional core - pure business logic with no I/O."""

from .models import Task, Project, Section, Label, Due, Priority
from .tree import Node, Hierarchy, build_tree, count_tasks
from .grouping import GroupBy, SortBy, Entry, Bucket, Narrowing, flatten, group, narrow, sort_entries
from .fuzzy import Candidate, Selected, Cancelled, SelectionResult, match, rank
from .completed import WindowPreset, date_window, validate_window

__all__ = [
    # Models
    "Task",
    "Project",
    "Section",
    "Label",
    "Due",
    "Priority",
    # Tree
    "Node",
    "Hierarchy",
    "build_tree",
    "count_tasks",
    # Grouping
    "GroupBy",
    "SortBy",
    "Entry",
    "Bucket",
    "Narrowing",
    "flatten",
    "group",
    "narrow",
    "sort_entries",
    # Fuzzy
    "Candidate",
    "Selected",
    "Cancelled",
    "SelectionResult",
    "match",
    "rank",
    # Completed
    "WindowPreset",
    "date_window",
    "validate_window",
]

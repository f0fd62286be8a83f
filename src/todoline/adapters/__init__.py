"""Adapters - I/O implementations of ports."""

from .todoist_api import TodoistGateway, ResourceKind, Operation
from .prompt_selector import PromptSelector

__all__ = [
    "TodoistGateway",
    "ResourceKind",
    "Operation",
    "PromptSelector",
]

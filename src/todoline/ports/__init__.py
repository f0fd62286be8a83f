"""Ports - interfaces/protocols for external dependencies."""

from .task_gateway import TaskGateway
from .selector import Selector

__all__ = [
    "TaskGateway",
    "Selector",
]

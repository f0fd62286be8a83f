"""Actions available on a selected task."""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .core.models import Task
from .ports import Selector, TaskGateway

logger = logging.getLogger(__name__)


class ActionKind(Enum):
    """Every action the menu offers. Dispatch in execute_action must cover all of them."""

    CLOSE = "Close"
    COMPLETE = "Complete"
    EDIT_CONTENT = "Edit name"
    EDIT_DESCRIPTION = "Edit description"
    CHANGE_DUE = "Change due date"
    CHANGE_PRIORITY = "Change priority"
    EDIT_LABELS = "Edit labels"
    VIEW = "View"
    QUIT = "Quit"

    @property
    def mutates(self) -> bool:
        return self not in (ActionKind.VIEW, ActionKind.QUIT)


@dataclass
class ActionResult:
    """What happened when an action ran."""

    kind: ActionKind
    changed: bool = False
    skipped: bool = False


def execute_action(
    kind: ActionKind,
    task: Task,
    gateway: TaskGateway,
    selector: Selector,
    echo: Callable[[str], None],
    describe: Callable[[Task], str] = lambda t: t.content,
) -> ActionResult:
    """
    Run one action against the remote service.

    Mutations get a fresh idempotency key per call so a retried request
    cannot close or edit the task twice. Errors from the gateway propagate.
    """
    key = str(uuid.uuid4())

    def edit(field: str, prompt: str, current: str) -> ActionResult:
        value = selector.ask_text(prompt, current)
        if value is None:
            return ActionResult(kind, skipped=True)
        gateway.update_task(task.id, {field: value}, idempotency_key=key)
        echo(f"Updated '{task.content}'")
        return ActionResult(kind, changed=True)

    match kind:
        case ActionKind.CLOSE:
            gateway.close_task(task.id, idempotency_key=key)
            echo(f"Closed '{task.content}'")
            return ActionResult(kind, changed=True)
        case ActionKind.COMPLETE:
            gateway.complete_task(task.id, idempotency_key=key)
            echo(f"Completed '{task.content}'")
            return ActionResult(kind, changed=True)
        case ActionKind.EDIT_CONTENT:
            return edit("content", "New name", task.content)
        case ActionKind.EDIT_DESCRIPTION:
            return edit("description", "New description", task.description)
        case ActionKind.CHANGE_DUE:
            return edit("due_string", "Due (e.g. 'tomorrow 5pm')", task.due.string if task.due else "")
        case ActionKind.CHANGE_PRIORITY:
            priority = selector.ask_priority(task.priority)
            if priority is None:
                return ActionResult(kind, skipped=True)
            gateway.update_task(task.id, {"priority": int(priority)}, idempotency_key=key)
            echo(f"Set '{task.content}' to {priority.label}")
            return ActionResult(kind, changed=True)
        case ActionKind.EDIT_LABELS:
            value = selector.ask_text("Labels (comma separated)", ", ".join(task.labels))
            if value is None:
                return ActionResult(kind, skipped=True)
            labels = [name.strip() for name in value.split(",") if name.strip()]
            gateway.update_task(task.id, {"labels": labels}, idempotency_key=key)
            echo(f"Updated labels on '{task.content}'")
            return ActionResult(kind, changed=True)
        case ActionKind.VIEW:
            echo(describe(task))
            return ActionResult(kind)
        case ActionKind.QUIT:
            return ActionResult(kind)
        case _:
            raise ValueError(f"Unhandled action: {kind}")


UPCOMING_FILTER = "(today | overdue)"


class MenuItem(Enum):
    """Entries of the view menu offered alongside the task list."""

    CREATE_TASK = "Create task..."
    SET_FILTER = "Set filter..."
    SHOW_ALL = "Show all tasks"
    INBOX = "Inbox"
    UPCOMING = "Upcoming"
    DEFAULT_FILTER = "Default filter"


@dataclass
class MenuResult:
    """The filter to use next, and whether the list must be fetched again."""

    filter: str | None
    changed: bool = False


def apply_menu_item(
    item: MenuItem,
    current: str | None,
    default_filter: str | None,
    gateway: TaskGateway,
    selector: Selector,
    echo: Callable[[str], None],
) -> MenuResult:
    """Create a task or switch the filter. Errors from the gateway propagate."""
    match item:
        case MenuItem.CREATE_TASK:
            content = selector.ask_text("Task name")
            if not content:
                return MenuResult(current)
            task = gateway.create_task({"content": content}, idempotency_key=str(uuid.uuid4()))
            echo(f"Created '{task.content}' ({task.id})")
            return MenuResult(current, changed=True)
        case MenuItem.SET_FILTER:
            value = selector.ask_text("Filter", current or "")
            if value is None:
                return MenuResult(current)
            return MenuResult(value or None, changed=True)
        case MenuItem.SHOW_ALL:
            return MenuResult("all", changed=True)
        case MenuItem.INBOX:
            return MenuResult("#inbox", changed=True)
        case MenuItem.UPCOMING:
            return MenuResult(UPCOMING_FILTER, changed=True)
        case MenuItem.DEFAULT_FILTER:
            return MenuResult(default_filter, changed=True)
        case _:
            raise ValueError(f"Unhandled menu item: {item}")

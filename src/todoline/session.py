"""Select -> act -> refresh loop for interactive use.

The controller is an explicit state machine. Each state does its work and
posts exactly one event to a queue; the controller consumes events one at a
time and applies the transition. Events that arrive for a state the session
has already left are dropped.
"""

import logging
import queue
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable

from .actions import ActionKind, ActionResult, MenuItem, MenuResult, apply_menu_item, execute_action
from .core.fuzzy import Candidate, Selected
from .errors import AuthError, TodolineError
from .ports import Selector, TaskGateway
from .workflows import Snapshot

logger = logging.getLogger(__name__)

MENU_ID = "__menu__"
MENU_LABEL = ">> Menu..."


class SessionState(Enum):
    IDLE = auto()
    SELECTING = auto()
    ACTION_MENU = auto()
    VIEW_MENU = auto()
    EXECUTING = auto()
    REFRESHING = auto()
    TERMINATED = auto()


# ============== Events ==============


@dataclass
class Refreshed:
    snapshot: Snapshot


@dataclass
class RefreshFailed:
    error: TodolineError


@dataclass
class SelectionMade:
    task_id: str


@dataclass
class SelectionCancelled:
    pass


@dataclass
class MenuRequested:
    pass


@dataclass
class MenuApplied:
    result: MenuResult


@dataclass
class ActionChosen:
    kind: ActionKind


@dataclass
class ActionCancelled:
    pass


@dataclass
class ActionSucceeded:
    result: ActionResult


@dataclass
class ActionFailed:
    error: TodolineError


Event = (
    Refreshed
    | RefreshFailed
    | SelectionMade
    | SelectionCancelled
    | MenuRequested
    | MenuApplied
    | ActionChosen
    | ActionCancelled
    | ActionSucceeded
    | ActionFailed
)


@dataclass
class SessionOutcome:
    """How a session ended."""

    actions: int = 0
    cancelled: bool = False
    error: TodolineError | None = None
    failures: list[TodolineError] = field(default_factory=list)


class SessionController:
    """
    Drives Idle -> Selecting -> ActionMenu -> Executing -> Refreshing -> Selecting.

    In single-shot mode exactly one selection and one action run, then the
    session terminates whatever the outcome. In continuous mode it loops until
    the user cancels the selection or picks Quit.
    Continuous mode also lists a menu entry after the tasks for creating a
    task or switching the filter.
    """

    def __init__(
        self,
        pipeline: Callable[[str | None], Snapshot],
        selector: Selector,
        gateway: TaskGateway,
        continuous: bool = False,
        echo: Callable[[str], None] = print,
        actions: list[ActionKind] | None = None,
        filter: str | None = None,
        default_filter: str | None = None,
    ):
        self.pipeline = pipeline
        self.selector = selector
        self.gateway = gateway
        self.continuous = continuous
        self.echo = echo
        self.actions = actions or list(ActionKind)
        self.filter = filter
        self.default_filter = default_filter if default_filter is not None else filter

        self.state = SessionState.IDLE
        self.snapshot: Snapshot | None = None
        self.selected_id: str | None = None
        self.action: ActionKind | None = None
        self.outcome = SessionOutcome()
        self._events: queue.Queue = queue.Queue()

    def post(self, event: Event) -> None:
        self._events.put(event)

    def run(self) -> SessionOutcome:
        """Run until Terminated and report how the session ended."""
        while self.state is not SessionState.TERMINATED:
            self._perform()
            while not self._events.empty():
                self.handle(self._events.get_nowait())
        return self.outcome

    # ============== State work ==============

    def _perform(self) -> None:
        """Do the work of the current state and post the resulting event."""
        match self.state:
            case SessionState.IDLE | SessionState.REFRESHING:
                try:
                    self.post(Refreshed(self.pipeline(self.filter)))
                except TodolineError as e:
                    self.post(RefreshFailed(e))
            case SessionState.SELECTING:
                candidates = self.snapshot.candidates()
                if not candidates:
                    self.echo("No tasks to select from.")
                    if not self.continuous:
                        self.post(SelectionCancelled())
                        return
                if self.continuous:
                    candidates.append(Candidate(MENU_LABEL, MENU_ID))
                result = self.selector.select(candidates, "Task")
                if isinstance(result, Selected) and result.id == MENU_ID:
                    self.post(MenuRequested())
                elif isinstance(result, Selected):
                    self.post(SelectionMade(result.id))
                else:
                    self.post(SelectionCancelled())
            case SessionState.ACTION_MENU:
                task = self.snapshot.tasks[self.selected_id]
                self.echo(self.snapshot.describe(task))
                index = self.selector.choose("Select action", [a.value for a in self.actions])
                if index is None:
                    self.post(ActionCancelled())
                else:
                    self.post(ActionChosen(self.actions[index]))
            case SessionState.VIEW_MENU:
                items = list(MenuItem)
                index = self.selector.choose("Select action", [m.value for m in items])
                if index is None:
                    self.post(ActionCancelled())
                    return
                try:
                    result = apply_menu_item(
                        items[index], self.filter, self.default_filter, self.gateway, self.selector, self.echo
                    )
                    self.post(MenuApplied(result))
                except TodolineError as e:
                    self.post(ActionFailed(e))
            case SessionState.EXECUTING:
                task = self.snapshot.tasks[self.selected_id]
                try:
                    result = execute_action(
                        self.action, task, self.gateway, self.selector, self.echo, self.snapshot.describe
                    )
                    self.post(ActionSucceeded(result))
                except TodolineError as e:
                    self.post(ActionFailed(e))

    # ============== Transitions ==============

    def _terminate(self, error: TodolineError | None = None) -> None:
        if error is not None:
            self.outcome.error = error
        self.state = SessionState.TERMINATED

    def handle(self, event: Event) -> None:
        """Apply one event to the current state."""
        state = self.state
        match (state, event):
            case (SessionState.IDLE | SessionState.REFRESHING, Refreshed(snapshot=snapshot)):
                # Each refresh replaces the previous snapshot wholesale.
                self.snapshot = snapshot
                self.selected_id = None
                self.state = SessionState.SELECTING
            case (SessionState.IDLE | SessionState.REFRESHING, RefreshFailed(error=error)):
                logger.error(f"Refresh failed: {error}")
                self._terminate(error)
            case (SessionState.SELECTING, SelectionMade(task_id=task_id)):
                self.selected_id = task_id
                self.state = SessionState.ACTION_MENU
            case (SessionState.SELECTING, MenuRequested()):
                self.state = SessionState.VIEW_MENU
            case (SessionState.SELECTING, SelectionCancelled()):
                self.outcome.cancelled = True
                self._terminate()
            case (SessionState.ACTION_MENU, ActionChosen(kind=ActionKind.QUIT)):
                self._terminate()
            case (SessionState.ACTION_MENU, ActionChosen(kind=kind)):
                self.action = kind
                self.state = SessionState.EXECUTING
            case (SessionState.ACTION_MENU, ActionCancelled()):
                if self.continuous:
                    self.state = SessionState.SELECTING
                else:
                    self._terminate()
            case (SessionState.VIEW_MENU, MenuApplied(result=result)):
                self.filter = result.filter
                self.state = SessionState.REFRESHING if result.changed else SessionState.SELECTING
            case (SessionState.VIEW_MENU, ActionCancelled()):
                self.state = SessionState.SELECTING
            case (SessionState.EXECUTING, ActionSucceeded(result=result)):
                if not result.skipped:
                    self.outcome.actions += 1
                if not self.continuous:
                    self._terminate()
                elif result.changed:
                    self.state = SessionState.REFRESHING
                else:
                    self.state = SessionState.SELECTING
            case (SessionState.EXECUTING | SessionState.VIEW_MENU, ActionFailed(error=error)):
                self.echo(f"Error: {error}")
                self.outcome.failures.append(error)
                if not self.continuous or isinstance(error, AuthError):
                    self._terminate(error)
                else:
                    # Back to the list we had before the action; no retry here.
                    self.state = SessionState.SELECTING
            case _:
                logger.debug(f"Dropping {type(event).__name__} in state {state.name}")

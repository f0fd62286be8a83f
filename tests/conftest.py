"""Shared fixtures: sample records and an in-memory gateway."""

import pytest

from todoline.core.fuzzy import Cancelled, Selected
from todoline.core.models import Label, Priority, Project, Section, Task


class FakeGateway:
    """In-memory stand-in for TodoistGateway that records every call."""

    def __init__(self, tasks=None, projects=None, sections=None, labels=None):
        self.task_list: list[Task] = list(tasks or [])
        self.project_list: list[Project] = list(projects or [])
        self.section_list: list[Section] = list(sections or [])
        self.label_list: list[Label] = list(labels or [])
        self.failures: dict[str, Exception] = {}
        self.calls: list[tuple] = []
        self.completed_pages: list[tuple[list[dict], str | None]] = []

    def _maybe_fail(self, name: str) -> None:
        if name in self.failures:
            raise self.failures[name]

    def authenticate(self, token):
        self.calls.append(("authenticate", token))

    def tasks(self, filter=None):
        self.calls.append(("tasks", filter))
        self._maybe_fail("tasks" if filter else "all tasks")
        return list(self.task_list)

    def projects(self):
        self.calls.append(("projects",))
        self._maybe_fail("projects")
        return list(self.project_list)

    def sections(self):
        self.calls.append(("sections",))
        self._maybe_fail("sections")
        return list(self.section_list)

    def labels(self):
        self.calls.append(("labels",))
        self._maybe_fail("labels")
        return list(self.label_list)

    def completed_tasks(self, since, until, by_due_date=False, filter=None, limit=50, fetch_all=False):
        self.calls.append(("completed_tasks", since, until, by_due_date, filter, limit, fetch_all))
        self._maybe_fail("completed")
        pages = self.completed_pages if fetch_all else self.completed_pages[:1]
        records = [r for page, _ in pages for r in page]
        truncated = not fetch_all and bool(self.completed_pages) and self.completed_pages[0][1] is not None
        return [Task.from_api(r) for r in records], truncated

    def create_task(self, payload, idempotency_key=None):
        self.calls.append(("create_task", payload, idempotency_key))
        self._maybe_fail("create")
        task = Task(
            id=f"new{len(self.task_list)}",
            content=payload["content"],
            project_id=payload.get("project_id", "p1"),
        )
        self.task_list.append(task)
        return task

    def close_task(self, task_id, idempotency_key=None):
        self.calls.append(("close_task", task_id, idempotency_key))
        self._maybe_fail("close")
        self.task_list = [t for t in self.task_list if t.id != task_id]

    def complete_task(self, task_id, idempotency_key=None):
        self.calls.append(("complete_task", task_id, idempotency_key))
        self._maybe_fail("close")
        self.task_list = [t for t in self.task_list if t.id != task_id]

    def update_task(self, task_id, payload, idempotency_key=None):
        self.calls.append(("update_task", task_id, payload, idempotency_key))
        self._maybe_fail("update")
        for task in self.task_list:
            if task.id == task_id and "content" in payload:
                task.content = payload["content"]


class FakeSelector:
    """Scripted Selector: replays queued answers in order."""

    def __init__(self, picks=None, actions=None, texts=None, priorities=None):
        self.picks = list(picks or [])
        self.actions = list(actions or [])
        self.texts = list(texts or [])
        self.priorities = list(priorities or [])
        self.seen: list[list[str]] = []

    def select(self, candidates, prompt=""):
        self.seen.append([c.id for c in candidates])
        pick = self.picks.pop(0) if self.picks else None
        return Selected(pick) if pick is not None else Cancelled()

    def choose(self, prompt, options):
        action = self.actions.pop(0) if self.actions else None
        return options.index(action.value) if action is not None else None

    def ask_text(self, prompt_text, default=""):
        return self.texts.pop(0) if self.texts else None

    def ask_priority(self, current):
        return self.priorities.pop(0) if self.priorities else None


@pytest.fixture
def make_gateway():
    return FakeGateway


@pytest.fixture
def make_selector():
    return FakeSelector


@pytest.fixture
def projects():
    return [
        Project(id="p2", name="Work", order=2),
        Project(id="p1", name="Inbox", order=1, is_inbox=True),
    ]


@pytest.fixture
def sections():
    return [
        Section(id="s1", name="Later", project_id="p2", order=2),
        Section(id="s2", name="Now", project_id="p2", order=1),
    ]


@pytest.fixture
def tasks():
    return [
        Task(id="t1", content="Buy milk", project_id="p1", order=2),
        Task(id="t2", content="Call bank", project_id="p1", order=1, priority=Priority.URGENT),
        Task(id="t3", content="Write report", project_id="p2", section_id="s2", order=1, labels=["focus"]),
        Task(id="t4", content="Outline", project_id="p2", section_id="s2", parent_id="t3", order=1),
        Task(id="t5", content="Plan sprint", project_id="p2", section_id="s1", order=1),
        Task(id="t6", content="Expense claim", project_id="p2", order=1),
    ]


@pytest.fixture
def labels():
    return [Label(id="l1", name="focus")]


@pytest.fixture
def fake_gateway(tasks, projects, sections, labels):
    return FakeGateway(tasks, projects, sections, labels)

"""Task service gateway interface."""

from typing import Iterator, Protocol

from todoline.core.models import Label, Project, Section, Task


class TaskGateway(Protocol):
    """Interface for reading and mutating tasks on the remote service."""

    def authenticate(self, token: str) -> None:
        """Set the credential used by every later call."""
        ...

    def fetch(self, kind, params: dict | None = None, max_pages: int | None = None) -> Iterator[dict]:
        """Yield raw records of one resource kind across all pages."""
        ...

    def first_page(self, kind, params: dict | None = None) -> tuple[list[dict], str | None]:
        """Fetch one page; also return the next cursor, if any."""
        ...

    def mutate(self, kind, id: str | None, operation, payload: dict | None = None, idempotency_key: str | None = None) -> dict | None:
        """Create, update, close or delete one record."""
        ...

    def tasks(self, filter: str | None = None) -> list[Task]:
        ...

    def projects(self) -> list[Project]:
        ...

    def sections(self) -> list[Section]:
        ...

    def labels(self) -> list[Label]:
        ...

    def completed_tasks(
        self,
        since: str,
        until: str,
        by_due_date: bool = False,
        filter: str | None = None,
        limit: int = 50,
        fetch_all: bool = False,
    ) -> tuple[list[Task], bool]:
        """Completed tasks in a date window, plus whether pages were left unread."""
        ...

    def create_task(self, payload: dict, idempotency_key: str | None = None) -> Task:
        ...

    def update_task(self, task_id: str, payload: dict, idempotency_key: str | None = None) -> None:
        ...

    def close_task(self, task_id: str, idempotency_key: str | None = None) -> None:
        ...

    def complete_task(self, task_id: str, idempotency_key: str | None = None) -> None:
        ...

    def delete_task(self, task_id: str, idempotency_key: str | None = None) -> None:
        ...

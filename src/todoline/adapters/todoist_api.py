"""Todoist API adapter - HTTP client with retries and cursor pagination."""

import logging
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator

import requests

from todoline.config import DEFAULT_URL, Config
from todoline.core.models import Label, Project, Section, Task
from todoline.errors import AuthError, NetworkError, RemoteRequestError

logger = logging.getLogger(__name__)

TRANSIENT_STATUSES = frozenset({429, 500, 502, 503, 504})
AUTH_STATUSES = frozenset({401, 403})


class ResourceKind(Enum):
    """Endpoint path and the key holding the records on each page."""

    TASKS = ("api/v1/tasks", "results")
    FILTERED_TASKS = ("api/v1/tasks/filter", "results")
    PROJECTS = ("api/v1/projects", "results")
    SECTIONS = ("api/v1/sections", "results")
    LABELS = ("api/v1/labels", "results")
    COMPLETED_BY_COMPLETION = ("api/v1/tasks/completed/by_completion_date", "items")
    COMPLETED_BY_DUE = ("api/v1/tasks/completed/by_due_date", "items")

    def __init__(self, path: str, records_key: str):
        self.path = path
        self.records_key = records_key


class Operation(Enum):
    CREATE = "create"
    UPDATE = "update"
    CLOSE = "close"
    DELETE = "delete"


class _Transient(Exception):
    """A failed attempt that may succeed if repeated."""

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


def _parse_retry_after(resp: requests.Response) -> float | None:
    value = resp.headers.get("Retry-After") if resp.headers is not None else None
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def completed_params(
    since: str,
    until: str,
    by_due_date: bool = False,
    filter: str | None = None,
    limit: int = 50,
) -> tuple[ResourceKind, dict]:
    """Endpoint and query parameters for a completed-tasks window."""
    kind = ResourceKind.COMPLETED_BY_DUE if by_due_date else ResourceKind.COMPLETED_BY_COMPLETION
    params = {"since": since, "until": until, "limit": limit}
    if filter:
        params["filter_query"] = filter
    return kind, params


class TodoistGateway:
    """
    Todoist API adapter.

    Implements the TaskGateway protocol. Handles authentication, retries with
    exponential backoff and cursor pagination. No business logic - just I/O.
    """

    def __init__(
        self,
        config: Config | None = None,
        session: requests.Session | None = None,
        max_retries: int | None = None,
        timeout: float | None = None,
        backoff_base: float | None = None,
        backoff_max: float = 30.0,
    ):
        config = config or Config()
        self.base_url = (config.url or DEFAULT_URL).rstrip("/") + "/"
        self.max_retries = config.max_retries if max_retries is None else max_retries
        self.timeout = config.timeout if timeout is None else timeout
        self.backoff_base = config.backoff_base if backoff_base is None else backoff_base
        self.backoff_max = backoff_max
        self._token = config.token
        self._session = session or requests.Session()

    def authenticate(self, token: str) -> None:
        """Use token as the bearer credential for all later calls."""
        self._token = token

    # ============== Transport ==============

    def _attempt(
        self,
        method: str,
        path: str,
        params: dict | None,
        payload: dict | None,
        headers: dict,
    ) -> dict | None:
        """One HTTP attempt. Raises _Transient for failures worth retrying."""
        try:
            resp = self._session.request(
                method,
                f"{self.base_url}{path}",
                params=params,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            raise _Transient(f"{type(e).__name__}: {e}") from e

        status = resp.status_code
        if status in TRANSIENT_STATUSES:
            raise _Transient(f"HTTP {status}", _parse_retry_after(resp))
        if status in AUTH_STATUSES:
            raise AuthError(f"Authentication failed ({status}): {resp.text}")
        if status >= 400:
            raise RemoteRequestError(status, resp.text)
        if status == 204 or not resp.content:
            return None
        return resp.json()

    def _delay(self, attempt: int, retry_after: float | None) -> float:
        if retry_after is not None:
            return min(self.backoff_max, max(0.0, retry_after))
        return min(self.backoff_max, self.backoff_base * 2**attempt)

    def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        payload: dict | None = None,
        idempotency_key: str | None = None,
    ) -> dict | None:
        """Make authenticated API request, retrying transient failures."""
        if not self._token:
            raise AuthError("No API token. Run 'todoline auth <token>' first.")

        headers = {"Authorization": f"Bearer {self._token}"}
        if idempotency_key:
            headers["X-Request-Id"] = idempotency_key

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            logger.debug(f"{method} {path} params={params} attempt={attempt + 1}")
            try:
                return self._attempt(method, path, params, payload, headers)
            except _Transient as e:
                if attempt + 1 >= attempts:
                    raise NetworkError(
                        f"{method} {path} failed after {attempts} attempts: {e}",
                        attempts=attempts,
                        cause=e,
                    ) from e
                wait = self._delay(attempt, e.retry_after)
                logger.warning(f"{method} {path} failed ({e}); retrying in {wait:.1f}s")
                time.sleep(wait)
        # Unreachable: the last attempt either returns or raises.
        raise NetworkError(f"{method} {path} failed", attempts=attempts)

    # ============== Generic operations ==============

    def fetch(
        self,
        kind: ResourceKind,
        params: dict | None = None,
        max_pages: int | None = None,
    ) -> Iterator[dict]:
        """Yield raw records of one kind, following next_cursor until exhausted."""
        query = dict(params or {})
        pages = 0
        while True:
            page = self._request("GET", kind.path, params=dict(query)) or {}
            pages += 1
            yield from page.get(kind.records_key, [])

            cursor = page.get("next_cursor")
            if not cursor or (max_pages is not None and pages >= max_pages):
                return
            query["cursor"] = cursor

    def first_page(self, kind: ResourceKind, params: dict | None = None) -> tuple[list[dict], str | None]:
        """Fetch a single page and report the cursor for the next one, if any."""
        page = self._request("GET", kind.path, params=dict(params or {})) or {}
        return page.get(kind.records_key, []), page.get("next_cursor")

    def mutate(
        self,
        kind: ResourceKind,
        id: str | None,
        operation: Operation,
        payload: dict | None = None,
        idempotency_key: str | None = None,
    ) -> dict | None:
        """
        Create, update, close or delete one record.

        The idempotency key is generated once per logical call when the caller
        does not supply one, and reused by every retried attempt.
        """
        key = idempotency_key or str(uuid.uuid4())
        base = kind.path
        match operation:
            case Operation.CREATE:
                return self._request("POST", base, payload=payload or {}, idempotency_key=key)
            case Operation.UPDATE:
                return self._request("POST", f"{base}/{id}", payload=payload or {}, idempotency_key=key)
            case Operation.CLOSE:
                return self._request("POST", f"{base}/{id}/close", payload={}, idempotency_key=key)
            case Operation.DELETE:
                return self._request("DELETE", f"{base}/{id}", idempotency_key=key)

    # ============== Typed helpers ==============

    def tasks(self, filter: str | None = None) -> list[Task]:
        """Tasks matching filter (forwarded verbatim), or all active tasks."""
        if filter:
            records = self.fetch(ResourceKind.FILTERED_TASKS, {"query": filter})
        else:
            records = self.fetch(ResourceKind.TASKS)
        return [Task.from_api(r) for r in records]

    def projects(self) -> list[Project]:
        return [Project.from_api(r) for r in self.fetch(ResourceKind.PROJECTS)]

    def sections(self) -> list[Section]:
        return [Section.from_api(r) for r in self.fetch(ResourceKind.SECTIONS)]

    def labels(self) -> list[Label]:
        return [Label.from_api(r) for r in self.fetch(ResourceKind.LABELS)]

    def completed_tasks(
        self,
        since: str,
        until: str,
        by_due_date: bool = False,
        filter: str | None = None,
        limit: int = 50,
        fetch_all: bool = False,
    ) -> tuple[list[Task], bool]:
        """
        Completed tasks in a date window.

        Returns the tasks and whether pages were left unread. Without fetch_all
        only the first page is requested.
        """
        kind, params = completed_params(since, until, by_due_date, filter, limit)
        if fetch_all:
            return [Task.from_api(r) for r in self.fetch(kind, params)], False
        records, cursor = self.first_page(kind, params)
        return [Task.from_api(r) for r in records], cursor is not None

    def create_task(self, payload: dict, idempotency_key: str | None = None) -> Task:
        data = self.mutate(ResourceKind.TASKS, None, Operation.CREATE, payload, idempotency_key)
        return Task.from_api(data)

    def update_task(self, task_id: str, payload: dict, idempotency_key: str | None = None) -> None:
        self.mutate(ResourceKind.TASKS, task_id, Operation.UPDATE, payload, idempotency_key)

    def close_task(self, task_id: str, idempotency_key: str | None = None) -> None:
        self.mutate(ResourceKind.TASKS, task_id, Operation.CLOSE, idempotency_key=idempotency_key)

    def complete_task(self, task_id: str, idempotency_key: str | None = None) -> None:
        """
        Close a task for good.

        Closing a recurring task only moves it to the next occurrence, so the
        due date is first pinned to now, which drops the recurrence.
        """
        key = idempotency_key or str(uuid.uuid4())
        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        self.update_task(task_id, {"due_datetime": now}, idempotency_key=f"{key}-due")
        self.close_task(task_id, idempotency_key=f"{key}-close")

    def delete_task(self, task_id: str, idempotency_key: str | None = None) -> None:
        self.mutate(ResourceKind.TASKS, task_id, Operation.DELETE, idempotency_key=idempotency_key)

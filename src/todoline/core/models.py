"""Task service records - pure data, no I/O."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import IntEnum


class Priority(IntEnum):
    """Priority as reported by the API: 1 is normal, 4 is urgent."""

    NORMAL = 1
    HIGH = 2
    VERY_HIGH = 3
    URGENT = 4

    @property
    def label(self) -> str:
        """UI label, which runs the other way round (URGENT is p1)."""
        return f"p{5 - self.value}"

    @classmethod
    def from_label(cls, value: str | int) -> "Priority":
        """Parse a UI label ("p1".."p4") or a UI number (1..4)."""
        text = str(value).strip().lower().removeprefix("p")
        number = int(text)
        if not 1 <= number <= 4:
            raise ValueError(f"Priority must be between 1 and 4, got {value}")
        return cls(5 - number)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class Due:
    """When a task is due, optionally with an exact time and recurrence."""

    date: date
    string: str = ""
    exact: datetime | None = None
    is_recurring: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "Due":
        raw_date = data.get("date", "")
        exact = _parse_datetime(data.get("datetime"))
        if exact is None and "T" in raw_date:
            exact = _parse_datetime(raw_date)
        return cls(
            date=date.fromisoformat(raw_date.split("T")[0]),
            string=data.get("string") or "",
            exact=exact,
            is_recurring=bool(data.get("is_recurring", False)),
        )

    def __str__(self) -> str:
        if self.exact:
            text = self.exact.strftime("%Y-%m-%d %H:%M")
        else:
            text = self.date.isoformat()
        return f"{text} (recurring)" if self.is_recurring else text


@dataclass
class Task:
    """A task, possibly nested under another task."""

    id: str
    content: str
    project_id: str
    description: str = ""
    section_id: str | None = None
    parent_id: str | None = None
    labels: list[str] = field(default_factory=list)
    priority: Priority = Priority.NORMAL
    due: Due | None = None
    order: int = 0
    is_completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime | None = None
    duration_minutes: int | None = None

    @classmethod
    def from_api(cls, data: dict) -> "Task":
        """Create Task from an API record."""
        duration = None
        if data.get("duration"):
            amount = data["duration"].get("amount", 0)
            unit = data["duration"].get("unit", "minute")
            duration = amount * 24 * 60 if unit == "day" else amount

        completed = data.get("checked", data.get("is_completed", False))
        completed_at = _parse_datetime(data.get("completed_at"))
        return cls(
            id=str(data["id"]),
            content=data.get("content", ""),
            description=data.get("description") or "",
            project_id=str(data.get("project_id") or ""),
            section_id=str(data["section_id"]) if data.get("section_id") else None,
            parent_id=str(data["parent_id"]) if data.get("parent_id") else None,
            labels=list(data.get("labels") or []),
            priority=Priority(data.get("priority") or 1),
            due=Due.from_api(data["due"]) if data.get("due") else None,
            order=data.get("child_order", data.get("order", 0)) or 0,
            is_completed=bool(completed or completed_at),
            completed_at=completed_at,
            created_at=_parse_datetime(data.get("added_at", data.get("created_at"))),
            duration_minutes=duration,
        )


@dataclass
class Project:
    """A project holding sections and tasks."""

    id: str
    name: str
    color: str = ""
    parent_id: str | None = None
    order: int = 0
    is_inbox: bool = False

    @classmethod
    def from_api(cls, data: dict) -> "Project":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            color=data.get("color") or "",
            parent_id=str(data["parent_id"]) if data.get("parent_id") else None,
            order=data.get("child_order", data.get("order", 0)) or 0,
            is_inbox=bool(data.get("inbox_project", data.get("is_inbox_project", False))),
        )


@dataclass
class Section:
    """A named subdivision of a project."""

    id: str
    name: str
    project_id: str
    order: int = 0

    @classmethod
    def from_api(cls, data: dict) -> "Section":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            project_id=str(data.get("project_id") or ""),
            order=data.get("section_order", data.get("order", 0)) or 0,
        )


@dataclass
class Label:
    id: str
    name: str

    @classmethod
    def from_api(cls, data: dict) -> "Label":
        return cls(id=str(data.get("id", data["name"])), name=data["name"])

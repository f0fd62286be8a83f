"""Interactive selection interface."""

from typing import Protocol

from todoline.core.fuzzy import Candidate, SelectionResult
from todoline.core.models import Priority


class Selector(Protocol):
    """Interface for everything the session asks the user."""

    def select(self, candidates: list[Candidate], prompt: str = "") -> SelectionResult:
        """Narrow candidates by a live query until one is chosen or the user cancels."""
        ...

    def choose(self, prompt: str, options: list[str]) -> int | None:
        """Pick one of a short list of options. Returns its index, or None on cancel."""
        ...

    def ask_text(self, prompt: str, default: str = "") -> str | None:
        """Free text input. None means the user cancelled."""
        ...

    def ask_priority(self, current: Priority) -> Priority | None:
        ...

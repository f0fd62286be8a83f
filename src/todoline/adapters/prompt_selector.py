"""prompt_toolkit adapter - live fuzzy selection and small input prompts."""

import logging

from prompt_toolkit import Application, prompt
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, VSplit, Window
from prompt_toolkit.layout.controls import BufferControl, FormattedTextControl
from prompt_toolkit.layout.dimension import Dimension
from prompt_toolkit.styles import Style

from todoline.core.fuzzy import Cancelled, Candidate, Selected, SelectionResult, rank
from todoline.core.models import Priority

logger = logging.getLogger(__name__)

STYLE = Style.from_dict(
    {
        "prompt": "bold ansicyan",
        "selected": "reverse",
        "count": "ansibrightblack",
    }
)

PRIORITY_OPTIONS = ["p1 - Urgent", "p2 - Very high", "p3 - High", "p4 - Normal"]


class PromptSelector:
    """
    Terminal selector.

    Implements the Selector protocol. Typing re-ranks the list on every
    keystroke; up/down (or ctrl-p/ctrl-n) move, Enter picks, Esc or
    ctrl-c cancels.
    """

    def __init__(self, max_rows: int = 15):
        self.max_rows = max_rows

    def select(self, candidates: list[Candidate], prompt: str = "") -> SelectionResult:
        matches = list(candidates)
        cursor = 0

        def on_text_changed(buf: Buffer) -> None:
            nonlocal matches, cursor
            matches = rank(candidates, buf.text)
            cursor = 0

        query = Buffer(multiline=False, on_text_changed=on_text_changed)

        def list_fragments():
            start = max(0, cursor - self.max_rows + 1)
            fragments = []
            for i, candidate in enumerate(matches[start : start + self.max_rows], start=start):
                style = "class:selected" if i == cursor else ""
                fragments.append((style, f" {candidate.label}\n"))
            return fragments

        def count_fragments():
            return [("class:count", f"  {len(matches)}/{len(candidates)}")]

        kb = KeyBindings()

        @kb.add("up")
        @kb.add("c-p")
        def _up(event):
            nonlocal cursor
            cursor = max(0, cursor - 1)

        @kb.add("down")
        @kb.add("c-n")
        def _down(event):
            nonlocal cursor
            cursor = min(max(0, len(matches) - 1), cursor + 1)

        @kb.add("enter")
        def _pick(event):
            if matches:
                event.app.exit(result=Selected(matches[cursor].id))

        @kb.add("escape", eager=True)
        @kb.add("c-c")
        @kb.add("c-d")
        def _cancel(event):
            event.app.exit(result=Cancelled())

        label = f"{prompt}> " if prompt else "> "
        root = HSplit(
            [
                VSplit(
                    [
                        Window(FormattedTextControl([("class:prompt", label)]), width=len(label), height=1),
                        Window(BufferControl(buffer=query), height=1),
                        Window(FormattedTextControl(count_fragments), height=1, width=Dimension(min=10)),
                    ]
                ),
                Window(FormattedTextControl(list_fragments), height=Dimension(max=self.max_rows)),
            ]
        )
        app = Application(
            layout=Layout(root, focused_element=query),
            key_bindings=kb,
            style=STYLE,
            full_screen=False,
            erase_when_done=True,
        )
        result = app.run()
        logger.debug(f"Selection result: {result}")
        return result if result is not None else Cancelled()

    def choose(self, prompt: str, options: list[str]) -> int | None:
        candidates = [Candidate(option, str(i)) for i, option in enumerate(options)]
        result = self.select(candidates, prompt)
        if isinstance(result, Selected):
            return int(result.id)
        return None

    def ask_text(self, prompt_text: str, default: str = "") -> str | None:
        try:
            return prompt(f"{prompt_text}: ", default=default)
        except (KeyboardInterrupt, EOFError):
            return None

    def ask_priority(self, current: Priority) -> Priority | None:
        index = self.choose(f"Priority (now {current.label})", PRIORITY_OPTIONS)
        if index is None:
            return None
        return Priority.from_label(index + 1)

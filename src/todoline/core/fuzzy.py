"""Subsequence matching and ranking for the interactive selector.

Pure functions - no I/O.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Candidate:
    """A selectable line: what the user sees and the id it stands for."""

    label: str
    id: str


@dataclass(frozen=True)
class Selected:
    id: str


@dataclass(frozen=True)
class Cancelled:
    pass


SelectionResult = Selected | Cancelled


@dataclass(frozen=True, order=True)
class Score:
    """Lower sorts first."""

    inexact: bool
    runs: int
    start: int


def match(query: str, label: str) -> Score | None:
    """
    Score label against query, or None if query is not a subsequence of it.

    Among all alignments of the query inside the label, picks the one with
    the fewest contiguous runs, then the earliest start.
    """
    if not query:
        return Score(False, 0, 0)

    q = query.lower()
    text = label.lower()
    n = len(text)

    # best[j]: best (runs, start) with q[i] matched at text[j]
    best: list[tuple[int, int] | None] = [(1, j) if text[j] == q[0] else None for j in range(n)]
    for ch in q[1:]:
        current: list[tuple[int, int] | None] = [None] * n
        # Best alignment for the previous query char ending strictly before j - 1
        running: tuple[int, int] | None = None
        for j in range(1, n):
            if j >= 2 and best[j - 2] is not None and (running is None or best[j - 2] < running):
                running = best[j - 2]
            if text[j] != ch:
                continue
            options = []
            if best[j - 1] is not None:
                options.append(best[j - 1])
            if running is not None:
                options.append((running[0] + 1, running[1]))
            if options:
                current[j] = min(options)
        best = current

    found = [b for b in best if b is not None]
    if not found:
        return None
    runs, start = min(found)
    return Score(text != q, runs, start)


def rank(candidates: list[Candidate], query: str) -> list[Candidate]:
    """
    Matching candidates, best first.

    An empty query returns every candidate in its original order. Exact
    label matches come first, then fewer runs, then earlier start, then
    original position.
    """
    if not query:
        return list(candidates)

    scored = []
    for position, candidate in enumerate(candidates):
        score = match(query, candidate.label)
        if score is not None:
            scored.append((score, position, candidate))
    scored.sort(key=lambda item: (item[0], item[1]))
    return [candidate for _, _, candidate in scored]

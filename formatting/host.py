"""
formatting/host.py

Collaborator protocols between the format command and its host editor.

Offsets are absolute code point offsets into the document's plain text (the
indices of the Python string), with every line break counting as one character.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SelectionState:
    """Selection as reported by the host.

    Attributes:
        anchor: Offset where the selection was started.
        position: Offset of the active end (the caret).
    """
    anchor: int
    position: int

    @property
    def start(self) -> int:
        return min(self.anchor, self.position)

    @property
    def end(self) -> int:
        return max(self.anchor, self.position)

    @property
    def is_backward(self) -> bool:
        return self.position < self.anchor

    def normalized(self) -> "SelectionState":
        """Return the selection with the active end at the logical end."""
        if self.is_backward:
            return SelectionState(anchor=self.position, position=self.anchor)
        return self


class EditorDocument(Protocol):
    """A text document open in the host editor."""

    @property
    def path(self) -> str:
        """Full file name, or "" for an untitled document."""
        ...

    def text(self) -> str:
        ...

    def selection(self) -> SelectionState:
        ...

    def replace_range(self, start: int, end: int, text: str) -> None:
        """Delete [start, end) and insert `text` there, leaving the caret after it."""
        ...

    def replace_all(self, text: str) -> None:
        ...

    def set_caret(self, offset: int) -> None:
        """Move the caret to `offset`, clamped to the document bounds."""
        ...

    def save(self) -> None:
        """Persist the document; the host then issues its saved notification."""
        ...


class Prompter(Protocol):
    """Blocking user prompts."""

    def confirm(self, title: str, message: str) -> bool:
        ...

    def warn(self, title: str, message: str) -> None:
        ...

"""In-memory stand-ins for the host editor, prompts and formatting engine."""
from __future__ import annotations

from typing import Callable, List, Optional

from formatting.engine import FormatResult
from formatting.host import SelectionState


class FakeDocument:
    def __init__(self, text: str, path: str = "query.sql", anchor: int = 0,
                 position: Optional[int] = None):
        self._text = text
        self.path = path
        self.anchor = anchor
        self.position = anchor if position is None else position
        self.saves = 0
        self.on_save: Optional[Callable[["FakeDocument"], None]] = None

    def text(self) -> str:
        return self._text

    def selection(self) -> SelectionState:
        return SelectionState(anchor=self.anchor, position=self.position)

    def replace_range(self, start: int, end: int, text: str) -> None:
        self._text = self._text[:start] + text + self._text[end:]
        self.anchor = self.position = start + len(text)

    def replace_all(self, text: str) -> None:
        self._text = text
        self.anchor = self.position = len(text)

    def set_caret(self, offset: int) -> None:
        self.anchor = self.position = min(max(offset, 0), len(self._text))

    def save(self) -> None:
        self.saves += 1
        if self.on_save is not None:
            self.on_save(self)


class FakePrompter:
    def __init__(self, answer: bool = True):
        self.answer = answer
        self.confirmations: List[str] = []
        self.messages: List[str] = []

    def confirm(self, title: str, message: str) -> bool:
        self.confirmations.append(message)
        return self.answer

    def warn(self, title: str, message: str) -> None:
        self.messages.append(message)


class FakeEngine:
    """Upper-cases its input unless given another transform."""

    def __init__(self, transform: Callable[[str], str] = str.upper, had_errors: bool = False):
        self.transform = transform
        self.had_errors = had_errors
        self.calls: List[str] = []

    def format(self, text: str) -> FormatResult:
        self.calls.append(text)
        return FormatResult(self.transform(text), self.had_errors)


class FailingEngine:
    def __init__(self):
        self.calls = 0

    def format(self, text: str) -> FormatResult:
        self.calls += 1
        raise RuntimeError("engine exploded")


class FakeKeyBindingHost:
    def __init__(self, bindings: Optional[List[str]] = None, scope: str = "Text Editor",
                 fail: bool = False):
        self.bindings = list(bindings or [])
        self.scope = scope
        self.fail = fail

    def command_bindings(self) -> List[str]:
        if self.fail:
            raise AttributeError("Bindings")
        return list(self.bindings)

    def set_command_bindings(self, bindings: List[str]) -> None:
        if self.fail:
            raise AttributeError("Bindings")
        self.bindings = list(bindings)

    def scope_name(self) -> str:
        if self.fail:
            raise LookupError("no scope")
        return self.scope

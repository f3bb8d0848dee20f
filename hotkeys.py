"""
hotkeys.py

Reconciles the persisted Format SQL hotkey with the host's live key bindings.

Bindings are strings of the form "<scope>::<key sequence>", for example
"Text Editor::Ctrl+K, Ctrl+F". The scope name is localized by the host, which
is why resetting the hotkey asks the host for it.

Host calls can fail in ways that cannot be enumerated up front, so every
operation here returns a HostResult instead of raising; callers decide how to
present the error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

from PyQt6.QtCore import QCoreApplication
from PyQt6.QtGui import QAction, QKeySequence

from settings import DEFAULT_HOTKEY_SCOPE, SettingsManager

log = logging.getLogger(__name__)

SCOPE_SEPARATOR = "::"


@dataclass(frozen=True)
class HostResult:
    """Outcome of a host key binding call.

    Attributes:
        value: Result value, when the call produces one.
        error: Error description; None on success.
    """
    value: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class KeyBindingHost(Protocol):
    """Host-side key bindings of the Format SQL command."""

    def command_bindings(self) -> List[str]:
        ...

    def set_command_bindings(self, bindings: List[str]) -> None:
        ...

    def scope_name(self) -> str:
        ...


def split_binding(binding: str) -> Tuple[str, str]:
    """Split "<scope>::<keys>" into (scope, keys); scope is "" when absent."""
    scope, sep, keys = binding.partition(SCOPE_SEPARATOR)
    if not sep:
        return "", binding.strip()
    return scope.strip(), keys.strip()


class QtKeyBindingHost:
    """Key bindings stored as the shortcuts of a QAction.

    Args:
        action: The Format SQL action.
    """

    def __init__(self, action: QAction):
        if action is None:
            raise ValueError("action is required")
        self.action = action

    def scope_name(self) -> str:
        name = QCoreApplication.translate("KeyBindings", DEFAULT_HOTKEY_SCOPE)
        if not name:
            raise LookupError("host reported an empty key binding scope")
        return name

    def command_bindings(self) -> List[str]:
        scope = self.scope_name()
        return [
            f"{scope}{SCOPE_SEPARATOR}{seq.toString(QKeySequence.SequenceFormat.PortableText)}"
            for seq in self.action.shortcuts()
            if not seq.isEmpty()
        ]

    def set_command_bindings(self, bindings: List[str]) -> None:
        sequences = []
        for binding in bindings:
            _, keys = split_binding(binding)
            seq = QKeySequence.fromString(keys, QKeySequence.SequenceFormat.PortableText)
            if seq.isEmpty():
                raise ValueError(f"Unrecognized key sequence: {keys!r}")
            sequences.append(seq)
        self.action.setShortcuts(sequences)


def read_scope_name(host: Optional[KeyBindingHost]) -> HostResult:
    """Ask the host for its localized key binding scope name."""
    if host is None:
        return HostResult(error="Key bindings are not supported by this host.")
    try:
        return HostResult(value=host.scope_name())
    except Exception as e:
        log.warning("Key binding scope lookup failed: %s", e)
        return HostResult(error=f"Could not determine the key binding scope name:\n{e}")


def pull_hotkey(settings_manager: SettingsManager, host: Optional[KeyBindingHost]) -> HostResult:
    """Persist the host's current binding if it differs from the stored hotkey.

    Only the first binding is tracked.
    """
    if host is None:
        return HostResult(error="Key bindings are not supported by this host.")
    try:
        bindings = host.command_bindings()
        current = bindings[0] if bindings else ""
        if settings_manager.hotkey != current:
            settings_manager.save(hotkey=current)
        return HostResult(value=current)
    except Exception as e:
        log.warning("Hotkey retrieval failed: %s", e)
        return HostResult(error=f"Could not read the current hotkey:\n{e}")


def push_hotkey(settings_manager: SettingsManager, host: Optional[KeyBindingHost]) -> HostResult:
    """Bind the stored hotkey on the host; a blank hotkey clears the bindings."""
    if host is None:
        return HostResult(error="Key bindings are not supported by this host.")
    hotkey = settings_manager.hotkey or ""
    try:
        host.set_command_bindings([hotkey] if hotkey.strip() else [])
        return HostResult(value=hotkey)
    except Exception as e:
        log.warning("Hotkey binding failed for %r: %s", hotkey, e)
        return HostResult(error=f"Could not bind the hotkey {hotkey!r}:\n{e}")

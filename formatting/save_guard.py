"""
formatting/save_guard.py

Format-on-save with a reentrancy gate.

Saving a document triggers formatting, and formatting ends with another save.
The gate makes the saved notification raised by that second save a no-op.
"""

from __future__ import annotations

import logging

from formatting.host import EditorDocument
from formatting.orchestrator import FormatOrchestrator

log = logging.getLogger(__name__)


class SaveGuard:
    """Runs the formatter when a SQL document is saved.

    Args:
        orchestrator: Format command whose cached options decide whether
            format-on-save is enabled.
    """

    def __init__(self, orchestrator: FormatOrchestrator):
        if orchestrator is None:
            raise ValueError("orchestrator is required")
        self.orchestrator = orchestrator
        self.format_in_progress = False

    def on_document_saved(self, document: EditorDocument) -> None:
        """Handle the host's saved notification for `document`."""
        if self.format_in_progress or not self.orchestrator.options.format_on_save:
            return

        # No prompt on the save path: non-SQL files are skipped silently.
        if not self.orchestrator.is_sql_document(document):
            return

        self.format_in_progress = True
        try:
            self.orchestrator.format_document(document)
            document.save()
        finally:
            self.format_in_progress = False
        log.debug("Formatted on save: %r", document.path)

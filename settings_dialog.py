"""
settings_dialog.py

Formatting options dialog for SqlTidy.
Organizes the formatting, editor and general settings into tabs, with
Restore Defaults, Import and Export of the formatting options.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Dict, Optional

from PyQt6.QtWidgets import (
    QDialog,
    QVBoxLayout,
    QHBoxLayout,
    QTabWidget,
    QWidget,
    QGroupBox,
    QFormLayout,
    QLabel,
    QSpinBox,
    QLineEdit,
    QCheckBox,
    QPushButton,
    QDialogButtonBox,
    QColorDialog,
    QFileDialog,
    QMessageBox,
)
from PyQt6.QtGui import QColor

from hotkeys import read_scope_name
from settings import AppSettings, FormatterOptions, SettingsError, validate_options

if TYPE_CHECKING:
    from hotkeys import KeyBindingHost
    from settings import SettingsManager

log = logging.getLogger(__name__)

OPTIONS_FILE_FILTER = "Formatting options (*.toml);;All files (*)"

# (field name, label) of the numeric options, shown as text boxes
COUNT_FIELDS = (
    ("max_line_width", "Max Line Width:"),
    ("spaces_per_tab", "Spaces per Tab:"),
    ("new_statement_line_breaks", "Statement Line Breaks:"),
    ("new_clause_line_breaks", "Clause Line Breaks:"),
)

# (field name, label) of the boolean options
TOGGLE_FIELDS = (
    ("expand_comma_lists", "Expand comma lists"),
    ("trailing_commas", "Trailing commas"),
    ("space_after_expanded_comma", "Space after expanded comma"),
    ("expand_boolean_expressions", "Expand boolean expressions"),
    ("expand_case_statements", "Expand CASE statements"),
    ("expand_between_conditions", "Expand BETWEEN conditions"),
    ("expand_in_lists", "Expand IN lists"),
    ("break_join_on_sections", "Break JOIN / ON sections"),
    ("uppercase_keywords", "Uppercase keywords"),
    ("keyword_standardization", "Standardize keywords"),
    ("format_on_save", "Format on save"),
)


def escape_indent(indent: str) -> str:
    """Show tabs and spaces of an indent string as \\t and \\s."""
    return indent.replace("\t", "\\t").replace(" ", "\\s")


def unescape_indent(text: str) -> str:
    return text.replace("\\t", "\t").replace("\\s", " ")


def parse_count(label: str, text: str) -> int:
    """Parse a non-negative whole number typed into a text box.

    Raises:
        SettingsError: If the text is not a non-negative integer.
    """
    try:
        value = int(text.strip())
    except ValueError as e:
        raise SettingsError(f"{label.rstrip(':')} must be a whole number, got {text!r}.") from e
    if value < 0:
        raise SettingsError(f"{label.rstrip(':')} must not be negative.")
    return value


class ColorButton(QPushButton):
    """A button that displays and allows selection of a color."""

    def __init__(self, color: str = "#000000", parent=None):
        super().__init__(parent)
        self._color = color
        self._update_style()
        self.clicked.connect(self._pick_color)
        self.setFixedWidth(80)

    def _update_style(self):
        """Update button appearance to show current color."""
        # Determine text color based on luminance
        qc = QColor(self._color)
        luminance = 0.299 * qc.red() + 0.587 * qc.green() + 0.114 * qc.blue()
        text_color = "#000000" if luminance > 128 else "#FFFFFF"
        self.setStyleSheet(
            f"background-color: {self._color}; color: {text_color}; "
            f"border: 1px solid #888; padding: 2px 8px;"
        )
        self.setText(self._color)

    def _pick_color(self):
        color = QColorDialog.getColor(QColor(self._color), self, "Select Color")
        if color.isValid():
            self._color = color.name()
            self._update_style()

    def color(self) -> str:
        return self._color

    def setColor(self, color: str):
        self._color = color
        self._update_style()


class SettingsDialog(QDialog):
    """
    Formatting options dialog.

    Nothing is persisted until OK, Apply or Export; Cancel discards the form.

    Tabs:
    - Formatting: Indentation, line breaks, expansion toggles, format on save
    - Editor: Font, line numbers, syntax colors
    - General: SQL file extension, parse dialect, hotkey

    Args:
        settings_manager: Settings store edited by the dialog.
        key_bindings: Host key binding support; the hotkey row is hidden when None.
        parent: Parent widget.
    """

    def __init__(self, settings_manager: "SettingsManager",
                 key_bindings: Optional["KeyBindingHost"] = None, parent=None):
        super().__init__(parent)
        if settings_manager is None:
            raise ValueError("settings_manager is required")
        self.settings_manager = settings_manager
        self.key_bindings = key_bindings
        self.supports_hotkey = key_bindings is not None
        self.setWindowTitle("SqlTidy Formatting Options")
        self.setMinimumSize(520, 480)

        self._setup_ui()
        self.load_controls(self.settings_manager.snapshot())

    def _setup_ui(self):
        """Create the dialog UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(6, 6, 6, 6)
        layout.setSpacing(4)

        self.tabs = QTabWidget()
        self.tabs.setStyleSheet("QTabBar::tab { padding: 4px 10px; }")
        layout.addWidget(self.tabs)

        self.tabs.addTab(self._create_formatting_tab(), "Formatting")
        self.tabs.addTab(self._create_editor_tab(), "Editor")
        self.tabs.addTab(self._create_general_tab(), "General")

        button_box = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok |
            QDialogButtonBox.StandardButton.Cancel |
            QDialogButtonBox.StandardButton.Apply |
            QDialogButtonBox.StandardButton.RestoreDefaults
        )
        self.import_btn = button_box.addButton("Import...", QDialogButtonBox.ButtonRole.ActionRole)
        self.export_btn = button_box.addButton("Export...", QDialogButtonBox.ButtonRole.ActionRole)
        button_box.accepted.connect(self._on_ok)
        button_box.rejected.connect(self.reject)
        button_box.button(QDialogButtonBox.StandardButton.Apply).clicked.connect(self._on_apply)
        button_box.button(QDialogButtonBox.StandardButton.RestoreDefaults).clicked.connect(self._on_restore_defaults)
        self.import_btn.clicked.connect(self._on_import)
        self.export_btn.clicked.connect(self._on_export)
        layout.addWidget(button_box)

    # =========================================================================
    # Tabs
    # =========================================================================

    def _create_formatting_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)

        layout_group = QGroupBox("Layout")
        layout_form = QFormLayout(layout_group)

        self.indent_edit = QLineEdit()
        self.indent_edit.setToolTip("Use \\t for a tab and \\s for a space. Leave empty for no indentation.")
        layout_form.addRow("Indent String:", self.indent_edit)

        self.count_edits: Dict[str, QLineEdit] = {}
        for name, label in COUNT_FIELDS:
            edit = QLineEdit()
            self.count_edits[name] = edit
            layout_form.addRow(label, edit)

        layout.addWidget(layout_group)

        toggles_group = QGroupBox("Options")
        toggles_layout = QVBoxLayout(toggles_group)
        self.option_checks: Dict[str, QCheckBox] = {}
        for name, label in TOGGLE_FIELDS:
            check = QCheckBox(label)
            self.option_checks[name] = check
            toggles_layout.addWidget(check)

        layout.addWidget(toggles_group)
        layout.addStretch()
        return widget

    def _create_editor_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)

        font_group = QGroupBox("Font")
        font_layout = QFormLayout(font_group)

        self.editor_font_family = QLineEdit()
        font_layout.addRow("Font Family:", self.editor_font_family)

        self.editor_font_size = QSpinBox()
        self.editor_font_size.setRange(6, 72)
        font_layout.addRow("Font Size:", self.editor_font_size)

        self.editor_tab_width = QSpinBox()
        self.editor_tab_width.setRange(1, 16)
        font_layout.addRow("Tab Width:", self.editor_tab_width)

        layout.addWidget(font_group)

        ln_group = QGroupBox("Line Numbers")
        ln_layout = QFormLayout(ln_group)

        self.editor_ln_left_margin = QSpinBox()
        self.editor_ln_left_margin.setRange(0, 50)
        ln_layout.addRow("Left Margin:", self.editor_ln_left_margin)

        self.editor_ln_right_margin = QSpinBox()
        self.editor_ln_right_margin.setRange(0, 50)
        ln_layout.addRow("Right Margin:", self.editor_ln_right_margin)

        layout.addWidget(ln_group)

        syntax_group = QGroupBox("Syntax Highlighting")
        syntax_layout = QFormLayout(syntax_group)

        self.syntax_keyword_color = ColorButton()
        self.syntax_keyword_bold = QCheckBox("Bold")
        kw_row = QHBoxLayout()
        kw_row.addWidget(self.syntax_keyword_color)
        kw_row.addWidget(self.syntax_keyword_bold)
        kw_row.addStretch()
        syntax_layout.addRow("Keywords:", kw_row)

        self.syntax_string_color = ColorButton()
        syntax_layout.addRow("Strings:", self.syntax_string_color)

        self.syntax_number_color = ColorButton()
        syntax_layout.addRow("Numbers:", self.syntax_number_color)

        self.syntax_comment_color = ColorButton()
        syntax_layout.addRow("Comments:", self.syntax_comment_color)

        layout.addWidget(syntax_group)
        layout.addStretch()
        return widget

    def _create_general_tab(self) -> QWidget:
        widget = QWidget()
        layout = QVBoxLayout(widget)

        files_group = QGroupBox("SQL Files")
        files_layout = QFormLayout(files_group)

        self.sql_extension_edit = QLineEdit()
        files_layout.addRow("SQL Extension:", self.sql_extension_edit)

        self.dialect_edit = QLineEdit()
        self.dialect_edit.setPlaceholderText("generic")
        files_layout.addRow("Parse Dialect:", self.dialect_edit)

        layout.addWidget(files_group)

        self.hotkey_group = QGroupBox("Hotkey")
        hotkey_layout = QFormLayout(self.hotkey_group)
        self.hotkey_edit = QLineEdit()
        hotkey_layout.addRow("Format SQL:", self.hotkey_edit)
        hotkey_hint = QLabel("Format: <scope>::<keys>, e.g. Text Editor::Ctrl+K, Ctrl+F. Leave empty for none.")
        hotkey_hint.setWordWrap(True)
        hotkey_layout.addRow("", hotkey_hint)
        self.hotkey_group.setVisible(self.supports_hotkey)

        layout.addWidget(self.hotkey_group)
        layout.addStretch()
        return widget

    # =========================================================================
    # Settings Load/Save
    # =========================================================================

    def load_controls(self, settings: AppSettings):
        """Show `settings` in the form widgets."""
        self.load_option_controls(settings.options)

        self.editor_font_family.setText(settings.editor.font.family)
        self.editor_font_size.setValue(settings.editor.font.size)
        self.editor_tab_width.setValue(settings.editor.font.tab_width)
        self.editor_ln_left_margin.setValue(settings.editor.line_numbers.left_margin)
        self.editor_ln_right_margin.setValue(settings.editor.line_numbers.right_margin)
        self.syntax_keyword_color.setColor(settings.editor.syntax.keyword_color)
        self.syntax_keyword_bold.setChecked(settings.editor.syntax.keyword_bold)
        self.syntax_string_color.setColor(settings.editor.syntax.string_color)
        self.syntax_number_color.setColor(settings.editor.syntax.number_color)
        self.syntax_comment_color.setColor(settings.editor.syntax.comment_color)

        self.sql_extension_edit.setText(settings.sql_extension)
        self.dialect_edit.setText(settings.dialect)
        if self.supports_hotkey:
            self.hotkey_edit.setText(settings.hotkey)

    def load_option_controls(self, options: FormatterOptions):
        """Show a formatting options record in the Formatting tab."""
        self.indent_edit.setText(escape_indent(options.indent_string))
        for name, _ in COUNT_FIELDS:
            self.count_edits[name].setText(str(getattr(options, name)))
        for name, _ in TOGGLE_FIELDS:
            self.option_checks[name].setChecked(getattr(options, name))

    def options_from_controls(self) -> FormatterOptions:
        """Build a formatting options record from the Formatting tab.

        Raises:
            SettingsError: If a numeric field does not hold a whole number.
        """
        options = FormatterOptions(indent_string=unescape_indent(self.indent_edit.text()))
        for name, label in COUNT_FIELDS:
            setattr(options, name, parse_count(label, self.count_edits[name].text()))
        for name, _ in TOGGLE_FIELDS:
            setattr(options, name, self.option_checks[name].isChecked())
        validate_options(options)
        return options

    def settings_from_controls(self) -> AppSettings:
        """Build the complete settings from the form.

        Raises:
            SettingsError: If a field holds an invalid value.
        """
        settings = copy.deepcopy(self.settings_manager.settings)
        settings.options = self.options_from_controls()

        settings.editor.font.family = self.editor_font_family.text()
        settings.editor.font.size = self.editor_font_size.value()
        settings.editor.font.tab_width = self.editor_tab_width.value()
        settings.editor.line_numbers.left_margin = self.editor_ln_left_margin.value()
        settings.editor.line_numbers.right_margin = self.editor_ln_right_margin.value()
        settings.editor.syntax.keyword_color = self.syntax_keyword_color.color()
        settings.editor.syntax.keyword_bold = self.syntax_keyword_bold.isChecked()
        settings.editor.syntax.string_color = self.syntax_string_color.color()
        settings.editor.syntax.number_color = self.syntax_number_color.color()
        settings.editor.syntax.comment_color = self.syntax_comment_color.color()

        extension = self.sql_extension_edit.text().strip()
        if not extension:
            raise SettingsError("SQL Extension must not be empty.")
        settings.sql_extension = extension
        settings.dialect = self.dialect_edit.text().strip()
        if self.supports_hotkey:
            settings.hotkey = self.hotkey_edit.text().strip()
        return settings

    def save_settings(self) -> bool:
        """Persist the form. Shows the error and returns False if it is invalid."""
        try:
            settings = self.settings_from_controls()
            self.settings_manager.apply(settings)
        except (SettingsError, OSError) as e:
            log.warning("Settings not saved: %s", e)
            QMessageBox.warning(self, "Settings not saved", f"The settings could not be saved:\n{e}")
            return False
        return True

    # =========================================================================
    # Button Handlers
    # =========================================================================

    def _on_ok(self):
        """Handle OK button - save and close."""
        if self.save_settings():
            self.accept()

    def _on_apply(self):
        self.save_settings()

    def _on_restore_defaults(self):
        """Show factory defaults in the form without changing the stored settings.

        The store's reset persists the defaults, so the current settings are
        snapshotted first and written back afterwards; the defaults only take
        effect if the user then saves.
        """
        snapshot = self.settings_manager.snapshot()

        scope_name = None
        if self.supports_hotkey:
            scope = read_scope_name(self.key_bindings)
            if scope.ok:
                scope_name = scope.value
            else:
                QMessageBox.warning(self, "Hotkey", scope.error)

        try:
            try:
                defaults = self.settings_manager.reset(scope_name)
            finally:
                self.settings_manager.restore(snapshot)
        except (SettingsError, OSError) as e:
            log.warning("Defaults not restored: %s", e)
            QMessageBox.warning(self, "Restore Defaults", f"The default settings could not be restored:\n{e}")
            return
        self.load_controls(defaults)

    def _on_import(self):
        path, _ = QFileDialog.getOpenFileName(self, "Import Formatting Options", "", OPTIONS_FILE_FILTER)
        if path:
            self.import_options_from(path)

    def import_options_from(self, path: str) -> bool:
        """Load an options file into the form; it is applied on save."""
        try:
            options = self.settings_manager.import_options(path)
        except SettingsError as e:
            QMessageBox.warning(self, "Import failed", f"Failed to import settings:\n{e}")
            return False
        self.load_option_controls(options)
        return True

    def _on_export(self):
        path, _ = QFileDialog.getSaveFileName(self, "Export Formatting Options", "sqltidy-options.toml",
                                              OPTIONS_FILE_FILTER)
        if path:
            self.export_options_to(path)

    def export_options_to(self, path: str) -> bool:
        """Save the form, then write its formatting options to `path`."""
        if not self.save_settings():
            return False
        try:
            self.settings_manager.export_options(path)
        except OSError as e:
            QMessageBox.warning(self, "Export failed", f"Failed to export settings:\n{e}")
            return False
        return True

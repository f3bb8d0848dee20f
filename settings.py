"""
settings.py

Persistent settings management for SqlTidy.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/sqltidy/settings.toml
    - macOS: ~/Library/Application Support/sqltidy/settings.toml
    - Linux: ~/.config/sqltidy/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import copy
import logging
import os
import sys
import tempfile
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

log = logging.getLogger(__name__)

APP_NAME = "sqltidy"

# Scope prefix embedded in the stock hotkey. Hosts running in another UI
# language report a translated scope name, substituted on reset.
DEFAULT_HOTKEY_SCOPE = "Text Editor"
DEFAULT_HOTKEY = f"{DEFAULT_HOTKEY_SCOPE}::Ctrl+K, Ctrl+F"

# Table name used for the options record, both in settings.toml and in
# exported option files.
OPTIONS_TABLE = "formatting"

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


class SettingsError(ValueError):
    """Raised when a settings value or an options file is invalid."""


# =============================================================================
# Formatting Options
# =============================================================================

@dataclass
class FormatterOptions:
    """Formatting knobs handed to the SQL formatting engine.

    Defaults:
        indent_string: "\\t"
        spaces_per_tab: 4
        max_line_width: 999
        new_statement_line_breaks: 2
        new_clause_line_breaks: 1
        expand_comma_lists: True
        trailing_commas: False
        space_after_expanded_comma: False
        expand_boolean_expressions: True
        expand_case_statements: True
        expand_between_conditions: True
        expand_in_lists: True
        break_join_on_sections: False
        uppercase_keywords: True
        keyword_standardization: False
        format_on_save: False
    """
    indent_string: str = "\t"                 # Default: one tab
    spaces_per_tab: int = 4                   # Default: 4 characters
    max_line_width: int = 999                 # Default: 999 characters
    new_statement_line_breaks: int = 2        # Default: 2
    new_clause_line_breaks: int = 1           # Default: 1
    expand_comma_lists: bool = True           # Default: True
    trailing_commas: bool = False             # Default: False (leading commas)
    space_after_expanded_comma: bool = False  # Default: False
    expand_boolean_expressions: bool = True   # Default: True
    expand_case_statements: bool = True       # Default: True
    expand_between_conditions: bool = True    # Default: True
    expand_in_lists: bool = True              # Default: True
    break_join_on_sections: bool = False      # Default: False
    uppercase_keywords: bool = True           # Default: True
    keyword_standardization: bool = False     # Default: False
    format_on_save: bool = False              # Default: False


def validate_options(options: FormatterOptions) -> None:
    """Check the invariants of a FormatterOptions instance.

    Raises:
        SettingsError: If a numeric field is not a non-negative integer, a
            toggle is not a boolean, or the indent string is not a string.
    """
    for f in fields(FormatterOptions):
        value = getattr(options, f.name)
        if f.type in ("int", int):
            if isinstance(value, bool) or not isinstance(value, int):
                raise SettingsError(f"`{f.name}` must be an integer")
            if value < 0:
                raise SettingsError(f"`{f.name}` must not be negative")
        elif f.type in ("bool", bool):
            if not isinstance(value, bool):
                raise SettingsError(f"`{f.name}` must be true or false")
        elif not isinstance(value, str):
            raise SettingsError(f"`{f.name}` must be a string")


def options_from_dict(data: Dict[str, Any], strict: bool = True) -> FormatterOptions:
    """Build FormatterOptions from a TOML table.

    Missing keys take their defaults. In strict mode unknown keys and invalid
    values raise; otherwise they are skipped with a logged warning.

    Raises:
        SettingsError: In strict mode, when the table is malformed.
    """
    if not isinstance(data, dict):
        raise SettingsError(f"`[{OPTIONS_TABLE}]` must be a table")

    known = {f.name for f in fields(FormatterOptions)}
    unknown = sorted(set(data) - known)
    if unknown and strict:
        raise SettingsError(f"Unsupported option(s): {', '.join(unknown)}")

    options = FormatterOptions()
    for name in known & set(data):
        candidate = copy.copy(options)
        setattr(candidate, name, data[name])
        try:
            validate_options(candidate)
        except SettingsError:
            if strict:
                raise
            log.warning("Ignoring invalid setting %s.%s=%r", OPTIONS_TABLE, name, data[name])
            continue
        options = candidate
    return options


def options_to_dict(options: FormatterOptions) -> Dict[str, Any]:
    """Convert options to a TOML-compatible table."""
    return {f.name: getattr(options, f.name) for f in fields(FormatterOptions)}


def localize_hotkey(hotkey: str, scope_name: Optional[str]) -> str:
    """Replace the stock scope prefix of a hotkey with the host's scope name."""
    if not scope_name:
        return hotkey
    return hotkey.replace(DEFAULT_HOTKEY_SCOPE, scope_name)


# =============================================================================
# Editor Settings
# =============================================================================

@dataclass
class EditorFontSettings:
    """Editor font settings.

    Defaults:
        family: "Consolas"
        size: 10
        tab_width: 4
    """
    family: str = "Consolas"  # Default: "Consolas"
    size: int = 10            # Default: 10 points
    tab_width: int = 4        # Default: 4 characters


@dataclass
class EditorLineNumberSettings:
    """Line number gutter settings.

    Defaults:
        left_margin: 8
        right_margin: 4
    """
    left_margin: int = 8     # Default: 8 pixels
    right_margin: int = 4    # Default: 4 pixels


@dataclass
class EditorSyntaxSettings:
    """SQL syntax highlighting colors.

    Defaults:
        keyword_color: "#2E86C1"
        keyword_bold: True
        string_color: "#27AE60"
        number_color: "#8E44AD"
        comment_color: "#808B96"
    """
    keyword_color: str = "#2E86C1"   # Default: blue
    keyword_bold: bool = True        # Default: True
    string_color: str = "#27AE60"    # Default: green
    number_color: str = "#8E44AD"    # Default: purple
    comment_color: str = "#808B96"   # Default: gray


@dataclass
class EditorSettings:
    """All editor-related settings."""
    font: EditorFontSettings = field(default_factory=EditorFontSettings)
    line_numbers: EditorLineNumberSettings = field(default_factory=EditorLineNumberSettings)
    syntax: EditorSyntaxSettings = field(default_factory=EditorSyntaxSettings)


# =============================================================================
# Application Settings (root)
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        sql_extension: File extension treated as SQL without asking.
        dialect: sqlglot dialect used to detect parse errors.
        hotkey: Key binding of the Format SQL command ("" for none).
        options: Formatting options.
        editor: Editor-related settings.
    """
    sql_extension: str = ".sql"      # Default: ".sql"
    dialect: str = "tsql"            # Default: "tsql"
    hotkey: str = DEFAULT_HOTKEY     # Default: "Text Editor::Ctrl+K, Ctrl+F"

    options: FormatterOptions = field(default_factory=FormatterOptions)
    editor: EditorSettings = field(default_factory=EditorSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save. Every mutation is written through synchronously.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory for settings.toml (tests, portable installs).
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Union[str, Path]] = None):
        if settings_dir is None:
            settings_dir = platformdirs.user_config_dir(app_name)
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    @property
    def options(self) -> FormatterOptions:
        return self.settings.options

    @property
    def hotkey(self) -> str:
        return self.settings.hotkey

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self._write(self.settings)
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            log.warning("Could not read %s, using defaults: %s", self.settings_file, e)
            return AppSettings()

        return self._parse_toml(data)

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        general = _table(data, "general")
        settings.sql_extension = _str_value(general, "sql_extension", settings.sql_extension)
        settings.dialect = _str_value(general, "dialect", settings.dialect)
        settings.hotkey = _str_value(general, "hotkey", settings.hotkey)

        formatting = _table(data, OPTIONS_TABLE)
        settings.options = options_from_dict(formatting, strict=False)

        editor = _table(data, "editor")
        font = _table(editor, "font")
        settings.editor.font.family = _str_value(font, "family", settings.editor.font.family)
        settings.editor.font.size = _int_value(font, "size", settings.editor.font.size)
        settings.editor.font.tab_width = _int_value(font, "tab_width", settings.editor.font.tab_width)
        ln = _table(editor, "line_numbers")
        settings.editor.line_numbers.left_margin = _int_value(ln, "left_margin", settings.editor.line_numbers.left_margin)
        settings.editor.line_numbers.right_margin = _int_value(ln, "right_margin", settings.editor.line_numbers.right_margin)
        syn = _table(editor, "syntax")
        settings.editor.syntax.keyword_color = _str_value(syn, "keyword_color", settings.editor.syntax.keyword_color)
        settings.editor.syntax.keyword_bold = _bool_value(syn, "keyword_bold", settings.editor.syntax.keyword_bold)
        settings.editor.syntax.string_color = _str_value(syn, "string_color", settings.editor.syntax.string_color)
        settings.editor.syntax.number_color = _str_value(syn, "number_color", settings.editor.syntax.number_color)
        settings.editor.syntax.comment_color = _str_value(syn, "comment_color", settings.editor.syntax.comment_color)

        return settings

    def save(self, options: Optional[FormatterOptions] = None, hotkey: Optional[str] = None) -> None:
        """Save current settings to the TOML file.

        When given, `options` and `hotkey` replace the current values. The new
        state becomes visible in a single assignment after validation, and the
        file is replaced atomically.

        Raises:
            SettingsError: If `options` violates its invariants.
        """
        updated = copy.deepcopy(self.settings)
        if options is not None:
            validate_options(options)
            updated.options = copy.deepcopy(options)
        if hotkey is not None:
            updated.hotkey = hotkey
        self._write(updated)
        self.settings = updated

    def reset(self, scope_name: Optional[str] = None) -> AppSettings:
        """Restore factory defaults for every setting and persist them.

        Args:
            scope_name: Localized key binding scope reported by the host. It
                replaces the stock "Text Editor" scope in the default hotkey;
                None keeps the raw default.

        Returns:
            The new (default) settings.
        """
        defaults = AppSettings()
        defaults.hotkey = localize_hotkey(defaults.hotkey, scope_name)
        self._write(defaults)
        self.settings = defaults
        log.info("Settings reset to defaults (hotkey=%r)", defaults.hotkey)
        return copy.deepcopy(defaults)

    def snapshot(self) -> AppSettings:
        """Return a detached copy of the current settings."""
        return copy.deepcopy(self.settings)

    def apply(self, settings: AppSettings) -> None:
        """Replace every setting with `settings` and persist.

        Raises:
            SettingsError: If the options violate their invariants.
        """
        updated = copy.deepcopy(settings)
        validate_options(updated.options)
        self._write(updated)
        self.settings = updated

    def restore(self, snapshot: AppSettings) -> None:
        """Reapply a snapshot taken with `snapshot()` and persist it."""
        self.apply(snapshot)

    # -------------------------------------------------------------------------
    # Options import/export
    # -------------------------------------------------------------------------

    def export_options(self, path: Union[str, Path], options: Optional[FormatterOptions] = None) -> None:
        """Write an options record (current options by default) to a TOML file.

        The hotkey and the other application settings are not exported.
        """
        _atomic_write(Path(path), options_to_toml(options or self.settings.options).encode("utf-8"))
        log.info("Exported formatting options to %s", path)

    def import_options(self, path: Union[str, Path]) -> FormatterOptions:
        """Read an options record from a TOML file without applying it.

        Raises:
            SettingsError: If the file cannot be read or is malformed.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise SettingsError(f"Could not read {path}: {e}") from e
        return options_from_toml(text)

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file

    def _write(self, settings: AppSettings) -> None:
        self.settings_dir.mkdir(parents=True, exist_ok=True)
        data = tomli_w.dumps(self._to_toml_dict(settings)).encode("utf-8")
        _atomic_write(self.settings_file, data)

    def _to_toml_dict(self, s: AppSettings) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        return {
            "general": {
                "sql_extension": s.sql_extension,
                "dialect": s.dialect,
                "hotkey": s.hotkey,
            },
            OPTIONS_TABLE: options_to_dict(s.options),
            "editor": {
                "font": {
                    "family": s.editor.font.family,
                    "size": s.editor.font.size,
                    "tab_width": s.editor.font.tab_width,
                },
                "line_numbers": {
                    "left_margin": s.editor.line_numbers.left_margin,
                    "right_margin": s.editor.line_numbers.right_margin,
                },
                "syntax": {
                    "keyword_color": s.editor.syntax.keyword_color,
                    "keyword_bold": s.editor.syntax.keyword_bold,
                    "string_color": s.editor.syntax.string_color,
                    "number_color": s.editor.syntax.number_color,
                    "comment_color": s.editor.syntax.comment_color,
                },
            },
        }


def options_to_toml(options: FormatterOptions) -> str:
    """Serialize an options record as a standalone TOML document."""
    return tomli_w.dumps({OPTIONS_TABLE: options_to_dict(options)})


def options_from_toml(text: str) -> FormatterOptions:
    """Parse a TOML document produced by `options_to_toml`.

    Raises:
        SettingsError: If the text is not valid TOML, lacks the options
            table, or carries unknown keys or invalid values.
    """
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"Invalid options file: {e}") from e
    if OPTIONS_TABLE not in data:
        raise SettingsError(f"Missing `[{OPTIONS_TABLE}]` table")
    return options_from_dict(data[OPTIONS_TABLE], strict=True)


def _atomic_write(path: Path, data: bytes) -> None:
    temp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(mode="wb", delete=False, dir=path.parent) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(data)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
        os.replace(temp_path, path)
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass


def _table(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key, {})
    return value if isinstance(value, dict) else {}


def _str_value(table: Dict[str, Any], key: str, default: str) -> str:
    value = table.get(key, default)
    if not isinstance(value, str):
        log.warning("Ignoring invalid setting %s=%r", key, value)
        return default
    return value


def _int_value(table: Dict[str, Any], key: str, default: int) -> int:
    value = table.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        log.warning("Ignoring invalid setting %s=%r", key, value)
        return default
    return value


def _bool_value(table: Dict[str, Any], key: str, default: bool) -> bool:
    value = table.get(key, default)
    if not isinstance(value, bool):
        log.warning("Ignoring invalid setting %s=%r", key, value)
        return default
    return value

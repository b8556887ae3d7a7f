import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

DEFAULT_GROUP = "Group"


class SettingsError(Exception):
    """Raised for missing or malformed configuration values."""


def load_jsonc(file_path: str) -> Dict[str, Any]:
    """Read a JSON file that may contain // and /* */ comments."""
    with open(file_path, "r", encoding="utf-8") as f:
        content = f.read()

    # string literals are matched first so "//" inside a value survives
    content = re.sub(
        r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/',
        lambda m: m.group(1) or "",
        content,
        flags=re.DOTALL,
    )
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise SettingsError(f"Can't parse settings file {file_path}: {e}") from e


class Settings:
    """
    Sectioned key/value configuration.

    Values are looked up in `namespace` first and then in `secondary`
    (normally the shared "Group" section), so a group section only needs
    the keys it overrides.
    """

    def __init__(self, data: Dict[str, Any], namespace: Optional[str] = None,
                 secondary: Optional[str] = None, base_dir: Optional[str] = None):
        self.data = data
        self.namespace = namespace
        self.secondary = secondary
        self.base_dir = base_dir

    # ---------- views ----------

    def section(self, namespace: str, secondary: Optional[str] = None) -> "Settings":
        return Settings(self.data, namespace, secondary, self.base_dir)

    def for_group(self, group: str) -> "Settings":
        """View of a node group's section that falls back to "Group"."""
        secondary = DEFAULT_GROUP if group != DEFAULT_GROUP else None
        return self.section(group, secondary)

    # ---------- raw access ----------

    def _full_name(self, name: str, namespace: Optional[str]) -> str:
        return f"{namespace}.{name}" if namespace else name

    def _lookup(self, name: str):
        for ns in (self.namespace, self.secondary):
            scope = self.data.get(ns, {}) if ns else self.data
            if isinstance(scope, dict) and name in scope:
                return scope[name]
        raise SettingsError(
            f"Can't find setting {self._full_name(name, self.namespace)}"
            + (f" (or {self._full_name(name, self.secondary)})" if self.secondary else "")
        )

    def contains(self, name: str) -> bool:
        try:
            self._lookup(name)
        except SettingsError:
            return False
        return True

    def get_setting(self, name: str, default: Any = None) -> str:
        try:
            value = self._lookup(name)
        except SettingsError:
            if default is None:
                raise
            value = default
        return str(value)

    def get_path(self, name: str) -> str:
        """File path setting, resolved against the settings file directory."""
        value = Path(self.get_setting(name))
        if not value.is_absolute() and self.base_dir:
            value = Path(self.base_dir) / value
        return str(value)

    # ---------- typed access ----------

    def get_int(self, name: str, default: Optional[int] = None) -> int:
        value = self.get_setting(name, None if default is None else str(default))
        try:
            return int(value)
        except ValueError:
            raise SettingsError(
                f"Invalid integer value '{value}' for setting "
                f"{self._full_name(name, self.namespace)}"
            ) from None

    def get_float(self, name: str, default: Optional[float] = None) -> float:
        value = self.get_setting(name, None if default is None else str(default))
        try:
            return float(value)
        except ValueError:
            raise SettingsError(
                f"Invalid numeric value '{value}' for setting "
                f"{self._full_name(name, self.namespace)}"
            ) from None

    def get_boolean(self, name: str, default: Optional[bool] = None) -> bool:
        value = self.get_setting(name, None if default is None else str(default))
        lowered = value.strip().lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise SettingsError(
            f"Invalid boolean value '{value}' for setting "
            f"{self._full_name(name, self.namespace)}"
        )

    def _csv(self, name: str) -> List[str]:
        value = self._lookup(name)
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [v.strip() for v in str(value).split(",") if v.strip()]

    def get_csv_floats(self, name: str, expected: Optional[int] = None) -> List[float]:
        items = self._csv(name)
        if expected is not None and len(items) != expected:
            raise SettingsError(
                f"Setting {self._full_name(name, self.namespace)} should have "
                f"{expected} values, found {len(items)}"
            )
        try:
            return [float(v) for v in items]
        except ValueError:
            raise SettingsError(
                f"Invalid numeric list {items} for setting "
                f"{self._full_name(name, self.namespace)}"
            ) from None

    def get_csv_ints(self, name: str, expected: Optional[int] = None) -> List[int]:
        values = self.get_csv_floats(name, expected)
        if any(v != int(v) for v in values):
            raise SettingsError(
                f"Setting {self._full_name(name, self.namespace)} must hold integers"
            )
        return [int(v) for v in values]


def load_settings(file_path: str) -> Settings:
    """
    Load a settings file.

    >>> settings = load_settings("config/tum_settings.jsonc")
    >>> settings.for_group("Group1").get_int("clock_begin")
    43200
    """
    data = load_jsonc(file_path)
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {file_path} must hold a JSON object")
    return Settings(data, base_dir=str(Path(file_path).parent))

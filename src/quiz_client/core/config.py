"""Layered TOML settings: built-in defaults, a config file, then overrides.

Loaders describe their settings as a nested ``defaults`` mapping. The file
may only set keys that already exist there, and overrides address the same
keys by dotted path (``backend.base_url``), so every layer is checked
against one schema.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

try:  # Python >= 3.11 ships ``tomllib`` in the stdlib.
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - interpreter guard
    raise RuntimeError("Python 3.11+ required for tomllib support.") from exc

__all__ = [
    "TomlConfigError",
    "apply_overrides",
    "load_layered",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """Raised when a settings layer cannot be read, merged or written."""


def load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Failed to parse config TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Merge ``override`` into ``base`` in place, rejecting unknown keys."""

    for key, value in override.items():
        dotted = f"{path}{key}"
        if key not in base:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        current = base[key]
        if not isinstance(current, MutableMapping):
            base[key] = value
            continue
        if not isinstance(value, Mapping):
            raise TomlConfigError(
                f"Expected table for '{dotted}', "
                f"found {type(value).__name__}."
            )
        merge_defaults(current, value, path=f"{dotted}.")


def load_layered(
    defaults: Mapping[str, Any],
    path: Path,
    *,
    required: bool = False,
) -> Tuple[Dict[str, Any], Optional[Path]]:
    """Return a fresh copy of ``defaults`` with the file at ``path`` merged in.

    A missing file leaves the defaults untouched unless ``required`` is set.
    The second element is ``path`` when the file was read, otherwise
    ``None``.
    """

    tree = copy.deepcopy(dict(defaults))
    if not path.exists():
        if required:
            raise TomlConfigError(f"Config file not found: {path}")
        return tree, None
    merge_defaults(tree, load_toml(path))
    return tree, path


def apply_overrides(
    tree: MutableMapping[str, Any], overrides: Mapping[str, Any]
) -> None:
    """Set values addressed by dotted keys, e.g. ``{"backend.base_url": ...}``.

    Only leaf settings that exist in ``tree`` can be overridden.
    """

    for dotted, value in overrides.items():
        *parents, leaf = dotted.split(".")
        section: Any = tree
        for part in parents:
            if not isinstance(section, Mapping):
                break
            section = section.get(part)
        if (
            not isinstance(section, MutableMapping)
            or leaf not in section
            or isinstance(section[leaf], Mapping)
        ):
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        section[leaf] = value


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path

"""Config and form-definition discovery.

``fieldctl.toml`` is found by walking up from the working directory (like
git finds ``.git/``), unless FIELDCTL_CONFIG or ``--config`` names it.
Form definitions are found either by path or by form name inside the
forms directory, which sits next to the config file.
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILENAME = "fieldctl.toml"
CONFIG_ENV_VAR = "FIELDCTL_CONFIG"
DEFINITION_SUFFIXES = (".yaml", ".yml", ".toml")


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for fieldctl.toml.

    Returns the path to the config file, or None if not found.
    Checks FIELDCTL_CONFIG env var first.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def forms_root(config_path: Path | None, directory: str, start: Path | None = None) -> Path:
    """Directory holding named form definitions.

    A relative *directory* is taken from the config file's directory, or
    from *start* (default: cwd) when no config file was found.
    """
    path = Path(directory)
    if path.is_absolute():
        return path
    base = config_path.parent if config_path is not None else (start or Path.cwd())
    return base / path


def find_definition(ref: str, root: Path) -> Path | None:
    """Resolve *ref* to a definition file.

    *ref* is tried as a path first, then as a form name under *root*
    with each supported suffix in turn (``account-update`` finds
    ``forms/account-update.yaml``).
    """
    direct = Path(ref)
    if direct.is_file():
        return direct
    if direct.suffix or len(direct.parts) != 1:
        return None
    for suffix in DEFINITION_SUFFIXES:
        candidate = root / f"{ref}{suffix}"
        if candidate.is_file():
            return candidate
    return None

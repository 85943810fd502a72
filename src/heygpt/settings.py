# heygpt: Lightweight YAML settings loader.

from __future__ import annotations

import pathlib
from typing import Any, Dict

import yaml


def load_settings(home: pathlib.Path) -> Dict[str, Any]:
    """
    Load settings from <home>/settings.yaml or settings.yml.

    Returns an empty dict {} when the settings file is missing, unreadable, or
    does not contain a mapping. The function never raises.
    """
    candidates = [home / "settings.yaml", home / "settings.yml"]
    for p in candidates:
        if not p.is_file():
            continue
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError):
            # Unreadable or invalid YAML; try the next candidate.
            continue
        if isinstance(data, dict):
            return data
        # Non-mapping YAML is treated as empty settings.
        return {}
    return {}


def section(settings: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Walk nested mappings by key, returning {} as soon as a level is missing or not a mapping."""
    node: Any = settings
    for key in keys:
        node = node.get(key) if isinstance(node, dict) else None
    return node if isinstance(node, dict) else {}

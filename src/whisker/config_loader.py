"""Load WhiskerConfig from whisker.yaml / whisker.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import sys
from pathlib import Path

from whisker.config import WhiskerConfig

_KNOWN_KEYS: frozenset[str] = frozenset({
    "host",
    "port",
    "reflexes_dir",
    "templates_dir",
    "channel",
    "default_morph_target",
    "profile",
    "max_events",
    "session_secret",
})


def load_config(root: Path, **overrides: object) -> WhiskerConfig:
    """Load WhiskerConfig from root, optionally merging whisker.yaml.

    Looks for whisker.yaml, whisker.yml, or whisker.toml in root. If found,
    loads and merges with overrides. Overrides take precedence.
    """
    file_config = _read_whisker_config(root)
    merged = {**file_config, **overrides}
    return WhiskerConfig(root=root, **merged)


def _read_whisker_config(root: Path) -> dict[str, object]:
    """Read whisker config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("whisker.yaml", "whisker.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "whisker.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config. Returns empty dict on error."""
    import yaml

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as exc:
        print(f"  Config error: {path.name}: {exc}", file=sys.stderr)
        return {}
    if not isinstance(data, dict):
        return {}
    return _flatten_whisker_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config. Returns empty dict on error."""
    import tomllib

    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        print(f"  Config error: {path.name}: {exc}", file=sys.stderr)
        return {}
    return _flatten_whisker_section(data)


def _flatten_whisker_section(data: dict[str, object]) -> dict[str, object]:
    """Extract whisker.* keys into top-level config, ignoring unknown keys."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k != "whisker" and k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("whisker")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    return result

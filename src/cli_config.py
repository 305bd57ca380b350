"""Configuration loading and per-platform option resolution.

Options come from a YAML/JSON config file, ``--set`` overrides and the
environment. The precedence is an explicit, ordered list of named
``OverrideSource`` values; the first non-empty value wins:

1. ``set:<platform>.<key>``
2. ``config:<platform>.<key>``
3. ``env:<PLATFORM>_<KEY>``
4. ``set:<key>``
5. ``config:<key>``
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

import yaml

from constants import PlatformType

logger = logging.getLogger(__name__)

# Request fields understood by at least one platform.
OPTION_KEYS = (
    "id",
    "token",
    "files",
    "name",
    "version",
    "version_type",
    "changelog",
    "changelog_file",
    "changelog_type",
    "loaders",
    "game_versions",
    "java",
    "dependencies",
    "retry_attempts",
    "retry_delay",
    "fail_mode",
    "featured",
    "unfeature_mode",
    "tag",
    "commitish",
    "draft",
    "prerelease",
    "discussion",
    "generate_changelog",
)


@dataclass(frozen=True)
class OverrideSource:
    """A named place an option value may come from."""

    name: str
    lookup: Callable[[str], Any]

    def get(self, key: str) -> Any:
        return self.lookup(key)


def is_empty(value: Any) -> bool:
    """None, blank strings and empty collections count as "not set"."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def first_non_empty(*values: Any) -> Any:
    """Return the first value that is not empty, or None."""
    for value in values:
        if not is_empty(value):
            return value
    return None


def coerce_value(text: Any) -> Any:
    """Best-effort convert string to JSON/bool, else raw string.

    Numbers keep their original text so that versions such as ``1.20``
    are never rounded through a float.
    """
    s = str(text).strip()
    try:
        return json.loads(s, parse_int=str, parse_float=str)
    except ValueError:
        sl = s.lower()
        if sl == "true":
            return True
        if sl == "false":
            return False
        return s


def _apply_dot_path(dct: Dict[str, Any], dot_path: str, value: Any) -> None:
    parts = [p for p in dot_path.split(".") if p]
    cur = dct
    for key in parts[:-1]:
        if key not in cur or not isinstance(cur.get(key), dict):
            cur[key] = {}
        cur = cur[key]
    cur[parts[-1]] = value


def collect_overrides(pairs: Optional[Iterable[str]]) -> Dict[str, Any]:
    """Turn ``KEY=VALUE`` / ``platform.KEY=VALUE`` pairs into a nested dict."""
    overrides: Dict[str, Any] = {}
    for item in pairs or []:
        if not isinstance(item, str) or "=" not in item:
            logger.warning("Ignoring malformed --set value: %s", item)
            continue
        key, val = item.split("=", 1)
        key = key.strip().replace("-", "_")
        if not key:
            continue
        _apply_dot_path(overrides, key, coerce_value(val))
    return overrides


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the configuration file.

    Args:
        config_path: Path to YAML/JSON config file.

    Returns:
        Configuration dict; empty when no path is given.

    Raises:
        FileNotFoundError: The file does not exist.
        ValueError: The file is not valid YAML or its top level is not a mapping.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"Failed to parse config file {config_path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping at the top level")
    return {str(k).replace("-", "_"): v for k, v in data.items()}


def _section(mapping: Mapping[str, Any], platform: PlatformType) -> Mapping[str, Any]:
    section = mapping.get(platform.value)
    if not isinstance(section, Mapping):
        return {}
    return {str(k).replace("-", "_"): v for k, v in section.items()}


def _top_level(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    platform_names = {p.value for p in PlatformType}
    return {k: v for k, v in mapping.items() if k not in platform_names}


def build_sources(
    platform: PlatformType,
    config: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> List[OverrideSource]:
    """Build the ordered override sources for ``platform``, highest precedence first."""
    config = config or {}
    overrides = overrides or {}
    env = os.environ if env is None else env

    set_platform = _section(overrides, platform)
    config_platform = _section(config, platform)
    set_general = _top_level(overrides)
    config_general = _top_level(config)
    env_prefix = platform.value.upper()

    return [
        OverrideSource(f"set:{platform.value}", set_platform.get),
        OverrideSource(f"config:{platform.value}", config_platform.get),
        OverrideSource(f"env:{env_prefix}", lambda key: env.get(f"{env_prefix}_{key.upper()}")),
        OverrideSource("set", set_general.get),
        OverrideSource("config", config_general.get),
    ]


def resolve_option(key: str, sources: Iterable[OverrideSource]) -> Any:
    return first_non_empty(*(source.get(key) for source in sources))


def resolve_platform_options(
    platform: PlatformType,
    config: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Resolve every known option for ``platform``; unset options are omitted."""
    sources = build_sources(platform, config, overrides, env)
    options: Dict[str, Any] = {}
    for key in OPTION_KEYS:
        value = resolve_option(key, sources)
        if value is not None:
            options[key] = value
    return options

"""Mod metadata extraction from built jar files.

Supports the four loader formats found in Minecraft mod jars:

- ``fabric.mod.json`` (Fabric)
- ``quilt.mod.json`` (Quilt)
- ``META-INF/neoforge.mods.toml`` (NeoForge)
- ``META-INF/mods.toml`` (Forge)

Only the fields needed to fill upload defaults are read. Each format may
carry a ``mc-publish`` object with per-platform aliases and ignore rules
for dependencies, plus loader/dependency overrides for the whole mod.
"""
from __future__ import annotations

import json
import logging
import re
import tomllib
import zipfile
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from constants import PlatformType
from dependencies.models import (
    FABRIC_DEPENDENCY_TYPES,
    Dependency,
    DependencyType,
    create_dependency,
    parse_dependencies,
)

logger = logging.getLogger(__name__)

PAYLOAD_KEY = "mc-publish"
GAME_DEPENDENCY_ID = "minecraft"

_FABRIC_IGNORED = ("minecraft", "java", "fabricloader")
_QUILT_IGNORED = ("minecraft", "java", "quilt_loader")
_FORGE_IGNORED = ("minecraft", "java", "forge")
_NEOFORGE_IGNORED = ("minecraft", "java", "neoforge")

# Dependency ids published under a different project name on every platform.
_SPECIAL_ALIASES = {"fabric": "fabric-api"}

_NEOFORGE_TYPES = {
    "required": DependencyType.REQUIRED,
    "optional": DependencyType.OPTIONAL,
    "embedded": DependencyType.EMBEDDED,
    "incompatible": DependencyType.INCOMPATIBLE,
    "discouraged": DependencyType.CONFLICTING,
}

_INTERVAL_REGEX = re.compile(r"([\[(])\s*([^,\])]*)\s*(?:,\s*([^\])]*)\s*)?([\])])")


@dataclass(frozen=True)
class ModMetadata:
    """Upload-relevant fields read from a mod jar."""

    id: str
    name: str
    version: str
    loaders: Tuple[str, ...] = ()
    game_versions: Tuple[str, ...] = ()
    dependencies: Tuple[Dependency, ...] = field(default_factory=tuple)


def read_metadata(path: str) -> Optional[ModMetadata]:
    """Read mod metadata from the jar at ``path``.

    Returns:
        The metadata of the first format found, or None when the file is not
        a readable archive or carries none of the supported formats.
    """
    try:
        archive = zipfile.ZipFile(path)
    except (OSError, zipfile.BadZipFile) as exc:
        logger.debug("Cannot open %s as an archive: %s", path, exc)
        return None

    with archive:
        names = set(archive.namelist())
        for entry, parser in _READERS:
            if entry not in names:
                continue
            try:
                raw = archive.read(entry).decode("utf-8")
                metadata = parser(raw)
            except (ValueError, tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
                logger.warning("Failed to parse %s in %s: %s", entry, path, exc)
                continue
            if metadata:
                return metadata
    return None


def _payload(source: Any) -> Mapping:
    if not isinstance(source, Mapping):
        return {}
    payload = source.get(PAYLOAD_KEY)
    if not isinstance(payload, Mapping):
        custom = source.get("custom")
        payload = custom.get(PAYLOAD_KEY) if isinstance(custom, Mapping) else None
    return payload if isinstance(payload, Mapping) else {}


def _dependency(
    dep_id: str,
    dependency_type: DependencyType,
    versions: Any,
    payload: Mapping,
    ignored_ids: Tuple[str, ...],
) -> Optional[Dependency]:
    ignore_value = payload.get("ignore")
    ignore = dep_id in ignored_ids or ignore_value is True
    ignored_platforms = ignore_value if isinstance(ignore_value, list) else ()

    aliases: Dict[str, str] = {}
    if dep_id in _SPECIAL_ALIASES:
        aliases = {p.value: _SPECIAL_ALIASES[dep_id] for p in PlatformType}
    for platform in PlatformType:
        alias = payload.get(platform.value)
        if alias:
            aliases[platform.value] = str(alias)

    if isinstance(versions, str):
        versions = [versions]
    return create_dependency(
        dep_id,
        type=dependency_type,
        versions=versions,
        ignore=ignore,
        ignored_platforms=ignored_platforms,
        aliases=aliases,
    )


def _merge(dependencies: List[Dependency], overrides: List[Dependency]) -> Tuple[Dependency, ...]:
    """Dependencies from the ``mc-publish`` payload replace same-id ones."""
    by_id: Dict[str, Dependency] = {d.id: d for d in dependencies}
    for dependency in overrides:
        by_id[dependency.id] = dependency
    return tuple(by_id.values())


def _game_versions(dependencies: List[Dependency]) -> Tuple[str, ...]:
    for dependency in dependencies:
        if dependency.id == GAME_DEPENDENCY_ID:
            return tuple(v for v in dependency.versions if v != "*")
    return ()


def _loaders(payload: Mapping, default: List[str]) -> Tuple[str, ...]:
    loaders = payload.get("loaders")
    if isinstance(loaders, list) and loaders:
        return tuple(str(x) for x in loaders)
    return tuple(default)


def _read_fabric(raw: str) -> Optional[ModMetadata]:
    data = json.loads(raw)
    if not isinstance(data, Mapping) or not data.get("id"):
        return None
    payload = _payload(data)

    dependencies: List[Dependency] = []
    for key, dependency_type in FABRIC_DEPENDENCY_TYPES.items():
        for dep_id, versions in (data.get(key) or {}).items():
            dependency = _dependency(dep_id, dependency_type, versions, {}, _FABRIC_IGNORED)
            if dependency:
                dependencies.append(dependency)

    default_loaders = ["fabric", "quilt"] if payload.get("quilt") else ["fabric"]
    return ModMetadata(
        id=str(data["id"]),
        name=str(data.get("name") or data["id"]),
        version=str(data.get("version") or ""),
        loaders=_loaders(payload, default_loaders),
        game_versions=_game_versions(dependencies),
        dependencies=_merge(dependencies, parse_dependencies(payload.get("dependencies") or [])),
    )


def _quilt_type(dependency: Mapping, breaking: bool) -> DependencyType:
    if breaking:
        return DependencyType.CONFLICTING if dependency.get("unless") else DependencyType.INCOMPATIBLE
    if dependency.get("provided"):
        return DependencyType.EMBEDDED
    if dependency.get("optional") or dependency.get("unless"):
        return DependencyType.OPTIONAL
    return DependencyType.REQUIRED


def _read_quilt(raw: str) -> Optional[ModMetadata]:
    data = json.loads(raw)
    loader = data.get("quilt_loader") if isinstance(data, Mapping) else None
    if not isinstance(loader, Mapping) or not loader.get("id"):
        return None
    payload = _payload(data)

    dependencies: List[Dependency] = []
    for key, breaking in (("depends", False), ("breaks", True)):
        for entry in loader.get(key) or []:
            entry = {"id": entry} if isinstance(entry, str) else entry
            if not isinstance(entry, Mapping) or not entry.get("id"):
                continue
            versions = entry.get("versions") or entry.get("version")
            dependency = _dependency(
                str(entry["id"]), _quilt_type(entry, breaking), versions, _payload(entry), _QUILT_IGNORED
            )
            if dependency:
                dependencies.append(dependency)

    metadata = loader.get("metadata") or {}
    return ModMetadata(
        id=str(loader["id"]),
        name=str(metadata.get("name") or loader["id"]),
        version=str(loader.get("version") or ""),
        loaders=_loaders(payload, ["quilt"]),
        game_versions=_game_versions(dependencies),
        dependencies=_merge(dependencies, parse_dependencies(payload.get("dependencies") or [])),
    )


def interval_to_range(interval: str) -> str:
    """Convert a Maven version interval (``[1.19,1.20)``) into an npm-style range."""
    parts = []
    for match in _INTERVAL_REGEX.finditer(interval or ""):
        opening, low, high, closing = match.groups()
        low = (low or "").strip()
        if high is None:
            if low:
                parts.append(low)
            continue
        high = high.strip()
        bounds = []
        if low:
            bounds.append(f"{'>=' if opening == '[' else '>'}{low}")
        if high:
            bounds.append(f"{'<=' if closing == ']' else '<'}{high}")
        parts.append(" ".join(bounds) or "*")
    if not parts:
        return (interval or "").strip()
    return " || ".join(parts)


def _forge_reader(
    ignored_ids: Tuple[str, ...],
    loader_name: str,
    type_of: Callable[[Mapping], DependencyType],
) -> Callable[[str], Optional[ModMetadata]]:
    def _read(raw: str) -> Optional[ModMetadata]:
        data = tomllib.loads(raw)
        mods = data.get("mods") or []
        if not mods or not isinstance(mods[0], Mapping) or not mods[0].get("modId"):
            return None
        mod = mods[0]
        payload = _payload(data)

        # Later declarations of the same modId win.
        declared: Dict[str, Mapping] = {}
        for entries in (data.get("dependencies") or {}).values():
            if not isinstance(entries, list):
                continue
            for entry in entries:
                if isinstance(entry, Mapping) and entry.get("modId"):
                    declared[entry["modId"]] = entry

        dependencies: List[Dependency] = []
        for dep_id, entry in declared.items():
            versions = entry.get("versionRange")
            dependency = _dependency(
                dep_id,
                type_of(entry),
                interval_to_range(versions) if versions else None,
                _payload(entry),
                ignored_ids,
            )
            if dependency:
                dependencies.append(dependency)

        return ModMetadata(
            id=str(mod["modId"]),
            name=str(mod.get("displayName") or mod["modId"]),
            version=str(mod.get("version") or ""),
            loaders=_loaders(payload, [loader_name]),
            game_versions=_game_versions(dependencies),
            dependencies=_merge(dependencies, parse_dependencies(payload.get("dependencies") or [])),
        )

    return _read


def _forge_type(entry: Mapping) -> DependencyType:
    if entry.get("incompatible"):
        return DependencyType.INCOMPATIBLE
    if entry.get("embedded"):
        return DependencyType.EMBEDDED
    if entry.get("mandatory"):
        return DependencyType.REQUIRED
    return DependencyType.OPTIONAL


def _neoforge_type(entry: Mapping) -> DependencyType:
    declared = _NEOFORGE_TYPES.get(str(entry.get("type") or "").lower())
    if declared:
        return declared
    return DependencyType.REQUIRED if entry.get("mandatory", True) else DependencyType.OPTIONAL


_READERS = (
    ("fabric.mod.json", _read_fabric),
    ("quilt.mod.json", _read_quilt),
    ("META-INF/neoforge.mods.toml", _forge_reader(_NEOFORGE_IGNORED, "neoforge", _neoforge_type)),
    ("META-INF/mods.toml", _forge_reader(_FORGE_IGNORED, "forge", _forge_type)),
)

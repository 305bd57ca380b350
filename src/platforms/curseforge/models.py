"""CurseForge data types, name comparers and structured errors."""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from common.errors import HttpError
from dependencies.models import DependencyType
from games.models import GameVersion

NameComparer = Callable[[Optional[str], Optional[str]], bool]


@dataclass(frozen=True)
class CurseForgeGameVersionType:
    id: int
    name: str
    slug: str

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "CurseForgeGameVersionType":
        return cls(id=int(data["id"]), name=str(data.get("name") or ""), slug=str(data.get("slug") or ""))


# Missing from /game/version-types although Bukkit versions reference it.
BUKKIT_GAME_VERSION_TYPE = CurseForgeGameVersionType(id=1, name="Bukkit", slug="bukkit")


@dataclass(frozen=True)
class CurseForgeGameVersion:
    id: int
    game_version_type_id: int
    name: str
    slug: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "CurseForgeGameVersion":
        return cls(
            id=int(data["id"]),
            game_version_type_id=int(data.get("gameVersionTypeID") or 0),
            name=str(data.get("name") or ""),
            slug=str(data.get("slug") or ""),
        )


@dataclass(frozen=True)
class CurseForgeGameVersionMap:
    """Game version identifiers partitioned by the kind of project using them."""

    game_versions: Sequence[CurseForgeGameVersion] = ()
    game_versions_for_plugins: Sequence[CurseForgeGameVersion] = ()
    game_versions_for_addons: Sequence[CurseForgeGameVersion] = ()
    java_versions: Sequence[CurseForgeGameVersion] = ()
    loaders: Sequence[CurseForgeGameVersion] = ()
    environments: Sequence[CurseForgeGameVersion] = ()


def _filter_by_type_slug(
    versions: Sequence[CurseForgeGameVersion],
    types: Sequence[CurseForgeGameVersionType],
    prefix: str,
) -> List[CurseForgeGameVersion]:
    type_ids = {t.id for t in types if t.slug.startswith(prefix)}
    return [v for v in versions if v.game_version_type_id in type_ids]


def create_game_version_map(
    versions: Sequence[CurseForgeGameVersion],
    types: Sequence[CurseForgeGameVersionType],
) -> CurseForgeGameVersionMap:
    return CurseForgeGameVersionMap(
        game_versions=_filter_by_type_slug(versions, types, "minecraft"),
        game_versions_for_plugins=_filter_by_type_slug(versions, types, "bukkit"),
        game_versions_for_addons=_filter_by_type_slug(versions, types, "addon"),
        java_versions=_filter_by_type_slug(versions, types, "java"),
        loaders=_filter_by_type_slug(versions, types, "modloader"),
        environments=_filter_by_type_slug(versions, types, "environment"),
    )


def ignore_case_comparer(a: Optional[str], b: Optional[str]) -> bool:
    if a is None or b is None:
        return a is b
    return a.casefold() == b.casefold()


def snapshot_name_comparer(a: Optional[str], b: Optional[str]) -> bool:
    """Match ``1.20`` against ``1.20-Snapshot`` and vice versa."""
    a_version = a.replace("-Snapshot", "") if a is not None else None
    b_version = b.replace("-Snapshot", "") if b is not None else None
    return a_version == b_version


_MAJOR_MINOR_REGEX = re.compile(r"\d+\.\d+")


def plugin_name_comparer(a: Optional[str], b: Optional[str]) -> bool:
    """Compare only the ``major.minor`` part of two names."""

    def _major_minor(value: Optional[str]) -> Optional[str]:
        match = _MAJOR_MINOR_REGEX.search(value or "")
        return match.group(0) if match else None

    return _major_minor(a) == _major_minor(b)


def find_ids_by_names(
    versions: Sequence[CurseForgeGameVersion],
    names: Iterable[str],
    comparer: Optional[NameComparer] = None,
    fallback_comparer: Optional[NameComparer] = None,
) -> List[int]:
    """Resolve names to distinct version ids, in the order of ``names``.

    For every name the first version matching ``comparer`` (case-insensitive
    equality by default) wins; ``fallback_comparer`` is tried only when
    nothing matched. Unmatched names are dropped.
    """
    comparer = comparer or ignore_case_comparer
    ids: List[int] = []
    for name in names:
        match = next((v for v in versions if comparer(v.name, name)), None)
        if match is None and fallback_comparer is not None:
            match = next((v for v in versions if fallback_comparer(v.name, name)), None)
        if match is not None and match.id not in ids:
            ids.append(match.id)
    return ids


def format_game_version(game_version: GameVersion) -> str:
    version = game_version.version
    patch = f".{version.patch}" if version.patch else ""
    return f"{version.major}.{version.minor}{patch}"


def format_game_version_snapshot(game_version: GameVersion) -> str:
    suffix = "-Snapshot" if game_version.is_snapshot else ""
    return f"{format_game_version(game_version)}{suffix}"


class CurseForgeDependencyType(Enum):
    EMBEDDED_LIBRARY = "embeddedLibrary"
    INCOMPATIBLE = "incompatible"
    OPTIONAL_DEPENDENCY = "optionalDependency"
    REQUIRED_DEPENDENCY = "requiredDependency"
    TOOL = "tool"

    @classmethod
    def from_dependency_type(cls, dependency_type: DependencyType) -> Optional["CurseForgeDependencyType"]:
        return _FROM_DEPENDENCY_TYPE.get(dependency_type)


_FROM_DEPENDENCY_TYPE = {
    DependencyType.REQUIRED: CurseForgeDependencyType.REQUIRED_DEPENDENCY,
    DependencyType.RECOMMENDED: CurseForgeDependencyType.OPTIONAL_DEPENDENCY,
    DependencyType.OPTIONAL: CurseForgeDependencyType.OPTIONAL_DEPENDENCY,
    DependencyType.EMBEDDED: CurseForgeDependencyType.EMBEDDED_LIBRARY,
    DependencyType.CONFLICTING: CurseForgeDependencyType.INCOMPATIBLE,
    DependencyType.INCOMPATIBLE: CurseForgeDependencyType.INCOMPATIBLE,
}


@dataclass(frozen=True)
class CurseForgeDependency:
    slug: str
    type: CurseForgeDependencyType

    def to_json(self) -> dict:
        return {"slug": self.slug, "type": self.type.value}


@dataclass(frozen=True)
class CurseForgeProject:
    id: int
    slug: str
    website_url: str

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "CurseForgeProject":
        links = data.get("links") or {}
        return cls(
            id=int(data["id"]),
            slug=str(data.get("slug") or data["id"]),
            website_url=str(links.get("websiteUrl") or ""),
        )


def is_project_id(value: Any) -> bool:
    """CurseForge project ids are positive integers; anything else is a slug."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    return isinstance(value, str) and value.strip().isdigit() and int(value) > 0


# Structured upload API errors
INVALID_PROJECT_SLUG_ERROR_CODE = 1018
INVALID_GAME_VERSION_ID_ERROR_CODE = 1009

_INVALID_SLUG_REGEX = re.compile(r"Invalid slug in project relations: '([^']*)'")


@dataclass(frozen=True)
class CurseForgeError:
    error_code: int
    error_message: str

    @property
    def invalid_project_slug(self) -> Optional[str]:
        if self.error_code != INVALID_PROJECT_SLUG_ERROR_CODE:
            return None
        match = _INVALID_SLUG_REGEX.search(self.error_message)
        return match.group(1) if match else None


def get_curseforge_error(error: BaseException) -> Optional[CurseForgeError]:
    """Extract the ``{errorCode, errorMessage}`` body of a failed upload, if any."""
    if not isinstance(error, HttpError):
        return None
    body = error.json()
    if not isinstance(body, Mapping):
        return None
    code = body.get("errorCode")
    message = body.get("errorMessage")
    if not isinstance(code, int) or isinstance(code, bool) or not isinstance(message, str):
        return None
    return CurseForgeError(error_code=code, error_message=message)

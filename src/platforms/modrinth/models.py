"""Modrinth data types."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from dependencies.models import DependencyType


class ModrinthDependencyType(Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    INCOMPATIBLE = "incompatible"
    EMBEDDED = "embedded"

    @classmethod
    def from_dependency_type(cls, dependency_type: DependencyType) -> Optional["ModrinthDependencyType"]:
        return _FROM_DEPENDENCY_TYPE.get(dependency_type)


_FROM_DEPENDENCY_TYPE = {
    DependencyType.REQUIRED: ModrinthDependencyType.REQUIRED,
    DependencyType.RECOMMENDED: ModrinthDependencyType.OPTIONAL,
    DependencyType.OPTIONAL: ModrinthDependencyType.OPTIONAL,
    DependencyType.EMBEDDED: ModrinthDependencyType.EMBEDDED,
    DependencyType.CONFLICTING: ModrinthDependencyType.INCOMPATIBLE,
    DependencyType.INCOMPATIBLE: ModrinthDependencyType.INCOMPATIBLE,
}


@dataclass(frozen=True)
class ModrinthProject:
    id: str
    slug: str
    project_type: str = "mod"

    @property
    def is_placeholder(self) -> bool:
        """Placeholders are built from the requested id when the project is not readable."""
        return self.id == self.slug

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ModrinthProject":
        return cls(
            id=str(data["id"]),
            slug=str(data.get("slug") or data["id"]),
            project_type=str(data.get("project_type") or "mod"),
        )


@dataclass(frozen=True)
class ModrinthLoader:
    name: str
    supported_project_types: Tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ModrinthLoader":
        return cls(
            name=str(data.get("name") or ""),
            supported_project_types=tuple(data.get("supported_project_types") or ()),
        )


@dataclass(frozen=True)
class UnfeaturableVersion:
    """The fields of a version that decide whether it should be unfeatured."""

    id: str
    project_id: Optional[str] = None
    game_versions: Tuple[str, ...] = ()
    version_type: Optional[str] = None
    loaders: Tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "UnfeaturableVersion":
        return cls(
            id=str(data["id"]),
            project_id=data.get("project_id"),
            game_versions=tuple(data.get("game_versions") or ()),
            version_type=data.get("version_type"),
            loaders=tuple(data.get("loaders") or ()),
        )


@dataclass(frozen=True)
class ModrinthFile:
    sha1: Optional[str]
    filename: str
    url: Optional[str]
    primary: bool = False

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ModrinthFile":
        return cls(
            sha1=(data.get("hashes") or {}).get("sha1"),
            filename=str(data.get("filename") or ""),
            url=data.get("url"),
            primary=bool(data.get("primary", False)),
        )


@dataclass(frozen=True)
class ModrinthVersion:
    id: str
    project_id: str
    version_number: str
    name: Optional[str] = None
    version_type: Optional[str] = None
    featured: bool = False
    game_versions: Tuple[str, ...] = ()
    loaders: Tuple[str, ...] = ()
    files: Tuple[ModrinthFile, ...] = ()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ModrinthVersion":
        return cls(
            id=str(data["id"]),
            project_id=str(data.get("project_id") or ""),
            version_number=str(data.get("version_number") or ""),
            name=data.get("name"),
            version_type=data.get("version_type"),
            featured=bool(data.get("featured", False)),
            game_versions=tuple(data.get("game_versions") or ()),
            loaders=tuple(data.get("loaders") or ()),
            files=tuple(ModrinthFile.from_json(x) for x in data.get("files") or ()),
        )

    def as_unfeaturable(self) -> UnfeaturableVersion:
        return UnfeaturableVersion(
            id=self.id,
            project_id=self.project_id,
            game_versions=self.game_versions,
            version_type=self.version_type,
            loaders=self.loaders,
        )

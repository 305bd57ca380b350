"""Platform-agnostic upload request and report."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from constants import VersionType
from dependencies.models import Dependency


@dataclass(frozen=True)
class UploadRequest:
    """Everything an uploader needs to publish one version.

    The request is never mutated; uploaders derive working copies with
    ``with_changes``. Fields after ``retry_delay`` only apply to the
    platform that understands them and are ignored elsewhere.
    """

    id: Optional[str] = None
    token: Optional[str] = None
    files: Tuple[str, ...] = ()
    name: Optional[str] = None
    version: Optional[str] = None
    version_type: Optional[VersionType] = None
    changelog: Optional[str] = None
    loaders: Tuple[str, ...] = ()
    game_versions: Tuple[str, ...] = ()
    java: Tuple[str, ...] = ()
    dependencies: Tuple[Dependency, ...] = ()
    retry_attempts: Optional[int] = None
    retry_delay: Optional[float] = None

    # Modrinth
    featured: Optional[bool] = None
    unfeature_mode: Optional[Any] = None

    # CurseForge
    changelog_type: Optional[str] = None

    # GitHub
    tag: Optional[str] = None
    commitish: Optional[str] = None
    draft: Optional[bool] = None
    prerelease: Optional[bool] = None
    discussion: Optional[str] = None
    generate_changelog: Optional[bool] = None

    def with_changes(self, **changes: Any) -> "UploadRequest":
        return dataclasses.replace(self, **changes)

    def __repr__(self) -> str:
        # Tokens must never end up in logs.
        fields = ", ".join(
            f"{f.name}=***" if f.name == "token" and self.token else f"{f.name}={getattr(self, f.name)!r}"
            for f in dataclasses.fields(self)
        )
        return f"UploadRequest({fields})"


@dataclass(frozen=True)
class UploadedFile:
    """A file as stored by the platform."""

    id: Any
    name: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "url": self.url}


@dataclass(frozen=True)
class UploadReport:
    """Uniform result of an upload to any platform."""

    project_id: Any
    version_id: Any
    url: Optional[str]
    files: Tuple[UploadedFile, ...] = ()
    unfeatured: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "id": self.project_id,
            "version": self.version_id,
            "url": self.url,
            "files": [f.to_dict() for f in self.files],
        }
        if self.unfeatured:
            result["unfeatured"] = dict(self.unfeatured)
        return result

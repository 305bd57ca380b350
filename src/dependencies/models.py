"""Platform-agnostic dependency model and its string notation.

Notation::

    id@versions(type){platform:alias}{platform:alias}#(ignore:platform,platform)

Every part except ``id`` is optional. ``#(ignore)`` without a platform list
hides the dependency from every platform. The legacy ``id | type | versions``
form (types named the way fabric.mod.json names them) is still accepted.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

from constants import PlatformType

logger = logging.getLogger(__name__)

ANY_VERSION = "*"


class DependencyType(Enum):
    """Relationship between a project and one of its dependencies."""

    REQUIRED = "required"
    RECOMMENDED = "recommended"
    EMBEDDED = "embedded"
    OPTIONAL = "optional"
    CONFLICTING = "conflicting"
    INCOMPATIBLE = "incompatible"

    @classmethod
    def parse(cls, value) -> Optional["DependencyType"]:
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


# fabric.mod.json relationship keys
FABRIC_DEPENDENCY_TYPES: Mapping[str, DependencyType] = {
    "depends": DependencyType.REQUIRED,
    "recommends": DependencyType.RECOMMENDED,
    "includes": DependencyType.EMBEDDED,
    "suggests": DependencyType.OPTIONAL,
    "breaks": DependencyType.INCOMPATIBLE,
    "conflicts": DependencyType.CONFLICTING,
}


@dataclass(frozen=True)
class Dependency:
    """A dependency as declared by the author, before any platform mapping."""

    id: str
    type: DependencyType = DependencyType.REQUIRED
    versions: Tuple[str, ...] = (ANY_VERSION,)
    ignore: bool = False
    ignored_platforms: FrozenSet[PlatformType] = frozenset()
    aliases: Mapping[PlatformType, str] = field(default_factory=dict)

    def is_ignored(self, platform: Optional[PlatformType] = None) -> bool:
        """Return True if the dependency must not be surfaced to ``platform``.

        Without a platform, the dependency counts as ignored only when every
        known platform ignores it.
        """
        if self.ignore:
            return True
        if platform is None:
            return len(self.ignored_platforms) == len(PlatformType)
        return platform in self.ignored_platforms

    def get_project_id(self, platform: PlatformType) -> str:
        """Return the platform-specific alias, falling back to the abstract id."""
        return self.aliases.get(platform) or self.id


DependencyLike = Union[Dependency, Mapping, str]

_DEPENDENCY_REGEX = re.compile(
    r"^\s*(?P<id>[^@{(#]+)"
    r"(?:@(?P<versions>[^@{(#]*))?"
    r"(?:\((?P<type>[^@{(#]*)\))?"
    r"(?P<aliases>(?:\{[^:=]+[:=][^}]*\})+)?"
    r"(?P<ignore>#\(ignore(?::(?P<ignored_platforms>[^)]*))?\))?\s*$"
)
_ALIAS_REGEX = re.compile(r"\{(?P<platform>[^:=]+)[:=](?P<id>[^}]*)\}")


def create_dependency(
    id: str,  # pylint: disable=redefined-builtin
    type: Union[str, DependencyType, None] = None,  # pylint: disable=redefined-builtin
    versions: Union[str, Iterable[str], None] = None,
    ignore: bool = False,
    ignored_platforms: Iterable[Union[str, PlatformType]] = (),
    aliases: Union[Mapping, Iterable[Tuple[str, str]], None] = None,
) -> Optional[Dependency]:
    """Build a Dependency from loosely typed parts; returns None without an id."""
    if not id or not str(id).strip():
        return None

    dependency_type = DependencyType.parse(type) or DependencyType.REQUIRED

    if versions is None:
        version_list: List[str] = []
    elif isinstance(versions, str):
        version_list = [versions]
    else:
        version_list = list(versions)
    version_list = [v.strip() for v in version_list if v and v.strip() and v.strip() != ANY_VERSION]

    platforms = frozenset(p for p in (PlatformType.parse(x) for x in ignored_platforms) if p)

    alias_items = aliases.items() if isinstance(aliases, Mapping) else (aliases or [])
    alias_map: Dict[PlatformType, str] = {}
    for key, value in alias_items:
        platform = PlatformType.parse(key)
        if platform and value:
            alias_map[platform] = str(value).strip()

    return Dependency(
        id=str(id).strip(),
        type=dependency_type,
        versions=tuple(version_list) or (ANY_VERSION,),
        ignore=bool(ignore),
        ignored_platforms=platforms,
        aliases=alias_map,
    )


def parse_dependency(value: DependencyLike) -> Optional[Dependency]:
    """Parse a dependency from its string notation or a mapping.

    Returns:
        The dependency, or None when the input cannot be interpreted.
    """
    if isinstance(value, Dependency):
        return value
    if isinstance(value, Mapping):
        return create_dependency(
            value.get("id"),
            type=value.get("type"),
            versions=value.get("versions"),
            ignore=bool(value.get("ignore", False)),
            ignored_platforms=value.get("ignored_platforms") or (),
            aliases=value.get("aliases"),
        )
    if not isinstance(value, str):
        return None

    if "|" in value and "@" not in value:
        return _parse_legacy(value)

    match = _DEPENDENCY_REGEX.match(value)
    if not match:
        return None

    ignored = [x.strip() for x in (match.group("ignored_platforms") or "").split(",") if x.strip()]
    aliases = [(m.group("platform").strip(), m.group("id").strip())
               for m in _ALIAS_REGEX.finditer(match.group("aliases") or "")]
    return create_dependency(
        match.group("id"),
        type=(match.group("type") or "").strip() or None,
        versions=(match.group("versions") or "").strip() or None,
        ignore=bool(match.group("ignore")) and not ignored,
        ignored_platforms=ignored,
        aliases=aliases,
    )


def _parse_legacy(value: str) -> Optional[Dependency]:
    logger.warning(
        "The 'id | type | versions' dependency format is deprecated. "
        "Example of the current format: foo@1.0.0(required){modrinth:foo-fabric}#(ignore:curseforge)"
    )
    parts = [x.strip() for x in value.split("|")]
    dep_id = parts[0]
    fabric_type = parts[1] if len(parts) > 1 else ""
    versions = parts[2] if len(parts) > 2 else None
    return create_dependency(dep_id, type=FABRIC_DEPENDENCY_TYPES.get(fabric_type.lower()), versions=versions)


def parse_dependencies(values: Iterable[DependencyLike]) -> List[Dependency]:
    """Parse many dependencies, dropping the ones that cannot be interpreted.

    A single string may hold several dependencies separated by newlines.
    """
    if isinstance(values, str):
        values = values.splitlines()
    result = []
    for value in values or []:
        dependency = parse_dependency(value.strip() if isinstance(value, str) else value)
        if dependency:
            result.append(dependency)
    return result


def format_dependency(dependency: Dependency) -> str:
    """Render a dependency back into its string notation."""
    versions = " || ".join(v for v in dependency.versions if v != ANY_VERSION)
    version_part = f"@{versions}" if versions else ""
    aliases = "".join(
        f"{{{p.value}:{dependency.get_project_id(p)}}}"
        for p in PlatformType
        if dependency.get_project_id(p) != dependency.id
    )
    if dependency.ignore:
        ignore = "#(ignore)"
    else:
        ignored_by = ",".join(p.value for p in PlatformType if dependency.is_ignored(p))
        ignore = f"#(ignore:{ignored_by})" if ignored_by else ""
    return f"{dependency.id}{version_part}({dependency.type.value}){aliases}{ignore}"

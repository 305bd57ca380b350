"""Mapping of abstract dependencies onto platform-specific pairs."""
from __future__ import annotations

from typing import Callable, Hashable, Iterable, List, Optional, Tuple, TypeVar

from constants import PlatformType
from dependencies.models import Dependency, DependencyType

T = TypeVar("T")
K = TypeVar("K")


def simplify(
    dependencies: Iterable[Dependency],
    platform: PlatformType,
    type_converter: Callable[[DependencyType], Optional[K]],
) -> List[Tuple[str, K]]:
    """Convert dependencies into ``(project_id, platform_kind)`` pairs.

    Dependencies ignored for ``platform`` are skipped, and pairs whose id or
    kind comes out empty are dropped. No de-duplication happens here.

    Args:
        dependencies: Abstract dependencies of the request.
        platform: Platform the pairs are meant for.
        type_converter: Lookup from the abstract kind to the platform's kind.

    Returns:
        Pairs in the order of the input.
    """
    pairs: List[Tuple[str, K]] = []
    for dependency in dependencies or []:
        if dependency.is_ignored(platform):
            continue
        project_id = dependency.get_project_id(platform)
        kind = type_converter(dependency.type)
        if project_id and kind:
            pairs.append((project_id, kind))
    return pairs


def dedupe_by(items: Iterable[T], key: Callable[[T], Hashable]) -> List[T]:
    """Keep the first item for every distinct ``key(item)``."""
    seen = set()
    result: List[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        result.append(item)
    return result

"""Decides which previously featured Modrinth versions a new version supersedes.

A policy is three independent per-dimension rules (game versions, version
type, loaders), each one of ``any``, ``subset`` or ``intersection``. A
previous version is unfeatured when every dimension is satisfied.

Policies are written as ``|``-separated flags, as in the action inputs:
``subset``, ``intersection``, ``any``, ``none``, or per-dimension flags
such as ``game_version_subset | loader_any``. Within one dimension
``subset`` takes precedence over ``intersection``; a dimension without
either flag is ``any``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Collection, Dict, Optional, Set, Tuple, Union

from constants import VersionType
from platforms.modrinth.models import UnfeaturableVersion


class DimensionPolicy(Enum):
    ANY = "any"
    SUBSET = "subset"
    INTERSECTION = "intersection"


_DIMENSIONS = ("game_version", "version_type", "loader")

# Bit values of the flags, kept so numeric modes remain accepted.
_FLAG_BITS: Dict[int, Tuple[str, DimensionPolicy]] = {
    1: ("game_version", DimensionPolicy.SUBSET),
    2: ("game_version", DimensionPolicy.INTERSECTION),
    4: ("game_version", DimensionPolicy.ANY),
    8: ("version_type", DimensionPolicy.SUBSET),
    16: ("version_type", DimensionPolicy.INTERSECTION),
    32: ("version_type", DimensionPolicy.ANY),
    64: ("loader", DimensionPolicy.SUBSET),
    128: ("loader", DimensionPolicy.INTERSECTION),
    256: ("loader", DimensionPolicy.ANY),
}


def _normalize(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", name.lower())


_FLAG_NAMES: Dict[str, Tuple[Optional[str], Optional[DimensionPolicy]]] = {"none": (None, None)}
for _policy in DimensionPolicy:
    _FLAG_NAMES[_normalize(_policy.value)] = (None, _policy)
    for _dimension in _DIMENSIONS:
        _FLAG_NAMES[_normalize(f"{_dimension}_{_policy.value}")] = (_dimension, _policy)


@dataclass(frozen=True)
class UnfeaturePolicy:
    """Per-dimension unfeature rules; ``enabled=False`` disables unfeaturing."""

    game_version: DimensionPolicy = DimensionPolicy.ANY
    version_type: DimensionPolicy = DimensionPolicy.ANY
    loader: DimensionPolicy = DimensionPolicy.ANY
    enabled: bool = True

    @classmethod
    def none(cls) -> "UnfeaturePolicy":
        return cls(enabled=False)

    @classmethod
    def uniform(cls, policy: DimensionPolicy) -> "UnfeaturePolicy":
        return cls(game_version=policy, version_type=policy, loader=policy)

    @classmethod
    def subset(cls) -> "UnfeaturePolicy":
        return cls.uniform(DimensionPolicy.SUBSET)

    @classmethod
    def intersection(cls) -> "UnfeaturePolicy":
        return cls.uniform(DimensionPolicy.INTERSECTION)

    @classmethod
    def any(cls) -> "UnfeaturePolicy":
        return cls.uniform(DimensionPolicy.ANY)

    @classmethod
    def parse(cls, value: Union[str, int, "UnfeaturePolicy", None]) -> Optional["UnfeaturePolicy"]:
        """Parse a flag expression or a numeric mode.

        Returns:
            The policy, or None for empty input.

        Raises:
            ValueError: A flag name is unknown.
        """
        if value is None or isinstance(value, UnfeaturePolicy):
            return value

        flags: Set[Tuple[str, DimensionPolicy]] = set()
        if isinstance(value, int) and not isinstance(value, bool):
            flags = {flag for bit, flag in _FLAG_BITS.items() if value & bit}
            return cls._from_flags(flags) if value else cls.none()

        parts = [p for p in re.split(r"[|,]", str(value)) if p.strip()]
        if not parts:
            return None
        for part in parts:
            key = _normalize(part)
            if key not in _FLAG_NAMES:
                raise ValueError(f"Unknown Modrinth unfeature mode: {part.strip()}")
            dimension, policy = _FLAG_NAMES[key]
            if policy is None:
                continue
            for d in (dimension,) if dimension else _DIMENSIONS:
                flags.add((d, policy))
        if not flags:
            return cls.none()
        return cls._from_flags(flags)

    @classmethod
    def _from_flags(cls, flags: Set[Tuple[str, DimensionPolicy]]) -> "UnfeaturePolicy":
        def _resolve(dimension: str) -> DimensionPolicy:
            if (dimension, DimensionPolicy.SUBSET) in flags:
                return DimensionPolicy.SUBSET
            if (dimension, DimensionPolicy.INTERSECTION) in flags:
                return DimensionPolicy.INTERSECTION
            return DimensionPolicy.ANY

        return cls(
            game_version=_resolve("game_version"),
            version_type=_resolve("version_type"),
            loader=_resolve("loader"),
        )

    @classmethod
    def default_for(cls, featured: Optional[bool]) -> "UnfeaturePolicy":
        """``subset`` for featured versions, otherwise nothing is unfeatured."""
        return cls.subset() if featured else cls.none()


def satisfies(previous: Any, current: Any, policy: DimensionPolicy) -> bool:
    """Check one dimension of two versions against ``policy``.

    Scalars satisfy ``subset`` and ``intersection`` only when equal.
    """
    if policy is DimensionPolicy.ANY:
        return True

    scalar = (str, bytes)
    if isinstance(previous, scalar) or isinstance(current, scalar) \
            or not isinstance(previous, Collection) or not isinstance(current, Collection):
        return previous == current

    current_items = set(current)
    if policy is DimensionPolicy.SUBSET:
        return all(x in current_items for x in previous)
    return any(x in current_items for x in previous)


def should_unfeature(previous: UnfeaturableVersion, current: UnfeaturableVersion,
                     policy: UnfeaturePolicy) -> bool:
    """Return True if ``previous`` must lose its featured flag because of ``current``.

    A version never unfeatures itself.
    """
    if not policy.enabled or previous.id == current.id:
        return False

    release = VersionType.RELEASE.value
    return (
        satisfies(tuple(previous.game_versions or ()), tuple(current.game_versions or ()), policy.game_version)
        and satisfies(previous.version_type or release, current.version_type or release, policy.version_type)
        and satisfies(tuple(previous.loaders or ()), tuple(current.loaders or ()), policy.loader)
    )

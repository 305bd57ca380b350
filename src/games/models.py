"""Version value types shared by the platform uploaders."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

import semantic_version


@dataclass(frozen=True)
class GameVersion:
    """A game version with a semantic version attached for range matching."""

    id: str
    version: semantic_version.Version
    type: str = "release"
    url: Optional[str] = None
    release_time: Optional[str] = None

    @property
    def is_release(self) -> bool:
        return self.type == "release"

    @property
    def is_snapshot(self) -> bool:
        return not self.is_release

    def __str__(self) -> str:
        return self.id


# Resolves a list of names or ranges to known game versions.
GameVersionProvider = Callable[[Iterable[str]], List[GameVersion]]

_JAVA_VERSION_REGEX = re.compile(r"^\s*(?:java\s*)?(?:1\.)?(\d+)", re.IGNORECASE)


@dataclass(frozen=True)
class JavaVersion:
    """A Java runtime version such as ``Java 17``."""

    version: int

    @property
    def name(self) -> str:
        return f"Java {self.version}"

    @classmethod
    def parse(cls, value: Union[str, int, "JavaVersion", None]) -> Optional["JavaVersion"]:
        """Parse ``17``, ``"17"``, ``"Java 17"`` or ``"1.8"`` (Java 8).

        Returns:
            The parsed version, or None when ``value`` does not name one.
        """
        if isinstance(value, JavaVersion):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value) if value > 0 else None
        if not isinstance(value, str):
            return None
        match = _JAVA_VERSION_REGEX.match(value)
        if not match:
            return None
        number = int(match.group(1))
        return cls(number) if number > 0 else None

    def __str__(self) -> str:
        return self.name

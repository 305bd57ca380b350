"""Minecraft versions from the Mojang version manifest.

Manifest ids are mapped onto semantic versions so that ranges such as
``>=1.19 <1.20`` or ``1.20.x`` can be matched with ``semantic_version``.
Snapshots and pre-releases borrow the version number of the nearest
following release (``23w13a`` -> ``1.20.0-alpha.23.13.a``).
"""
from __future__ import annotations

import logging
import re
import threading
from typing import Dict, Iterable, List, Mapping, Optional

import requests
import semantic_version

from constants import Constants
from common.http_client import HttpClient
from games.models import GameVersion

logger = logging.getLogger(__name__)

RELEASE_REGEX = re.compile(r"\d+\.\d+(?:\.\d+)?")
PRE_RELEASE_REGEX = re.compile(r".+(?:-pre| Pre-[Rr]elease )(\d+)")
RELEASE_CANDIDATE_REGEX = re.compile(r".+(?:-rc| [Rr]elease Candidate )(\d+)")
SNAPSHOT_REGEX = re.compile(r"(?:Snapshot )?(\d+)w0?(0|[1-9]\d*)([a-z])")
OLD_VERSION_REGEX = re.compile(r"^(?:b|Beta v?|a|Alpha v?)[01]\.(\d+(?:\.\d+)?[a-z]?(?:_\d+)?[a-z]?)")
_TOKEN_REGEX = re.compile(r"[0-9A-Za-z][\w.\-~]*")

# Snapshot weeks whose release cannot be read from the manifest order.
_SNAPSHOT_RELEASES = (
    (23, 12, 99, "1.20"),
    (20, 45, 99, "1.17"),
    (21, 0, 20, "1.17"),
    (15, 31, 99, "1.9"),
    (16, 0, 7, "1.9"),
    (14, 2, 34, "1.8"),
    (13, 47, 49, "1.7.4"),
    (13, 36, 43, "1.7.2"),
    (13, 16, 26, "1.6"),
)


def _release_core(release: str) -> str:
    parts = [str(int(p)) for p in release.split(".")]
    while len(parts) < 3:
        parts.append("0")
    return ".".join(parts[:3])


def _identifiers(text: str) -> str:
    """Turn free text into dot-separated semver pre-release identifiers."""
    result = []
    for part in re.split(r"[^0-9A-Za-z]+", text):
        if not part:
            continue
        result.append(str(int(part)) if part.isdigit() else part)
    return ".".join(result)


def _snapshot_release(year: int, week: int) -> Optional[str]:
    for y, first, last, release in _SNAPSHOT_RELEASES:
        if year == y and first <= week <= last:
            return release
    return None


def find_nearest_release(entries: List[Mapping], index: int) -> Optional[str]:
    """Return the release a manifest entry belongs to.

    Args:
        entries: Manifest entries sorted newest first.
        index: Position of the entry in ``entries``.
    """
    entry = entries[index]
    if entry.get("type") == "release":
        return entry.get("id")
    if entry.get("type") != "snapshot":
        return None

    match = RELEASE_REGEX.search(entry.get("id", ""))
    if match:
        return match.group(0)

    snapshot = SNAPSHOT_REGEX.search(entry.get("id", ""))
    if snapshot:
        hardcoded = _snapshot_release(int(snapshot.group(1)), int(snapshot.group(2)))
        if hardcoded:
            return hardcoded

    for i in range(index - 1, -1, -1):
        if entries[i].get("type") == "release":
            return entries[i].get("id")
    return None


def normalize_minecraft_version(version_id: str, release: Optional[str] = None) -> str:
    """Map a Minecraft version id onto a semantic version string.

    Args:
        version_id: Manifest id, e.g. ``1.20.1``, ``1.20-pre2`` or ``23w13a``.
        release: The release this id belongs to; read from the id when omitted.
    """
    if release is None:
        match = RELEASE_REGEX.search(version_id)
        release = match.group(0) if match else None

    old = OLD_VERSION_REGEX.match(version_id)
    if old:
        channel = "beta" if version_id.lower().startswith("b") else "alpha"
        return f"1.0.0-{channel}.{_identifiers(old.group(1))}"

    if not release:
        suffix = _identifiers(version_id)
        return f"0.0.0-{suffix}" if suffix else "0.0.0"

    core = _release_core(release)
    if version_id == release:
        return core

    if version_id.startswith(release):
        match = RELEASE_CANDIDATE_REGEX.match(version_id)
        if match:
            build = int(match.group(1)) + 8 if release == "1.16" else int(match.group(1))
            return f"{core}-rc.{build}"
        match = PRE_RELEASE_REGEX.match(version_id)
        if match:
            legacy = semantic_version.Version(core) <= semantic_version.Version("1.16.0")
            return f"{core}-{'rc' if legacy else 'beta'}.{int(match.group(1))}"
        suffix = _identifiers(version_id[len(release):])
        return f"{core}-{suffix}" if suffix else core

    match = SNAPSHOT_REGEX.search(version_id)
    if match:
        return f"{core}-alpha.{int(match.group(1))}.{int(match.group(2))}.{match.group(3)}"

    suffix = _identifiers(version_id)
    return f"{core}-{suffix}" if suffix else core


class MojangApiClient:
    """Reads the Mojang version manifest and resolves version names and ranges."""

    def __init__(self, http: Optional[HttpClient] = None, *, session: Optional[requests.Session] = None):
        self.http = http or HttpClient(Constants.MOJANG_API_URL, session=session, context="mojang")
        self._versions: Optional[Dict[str, GameVersion]] = None
        self._lock = threading.Lock()

    def get_all_versions(self) -> Dict[str, GameVersion]:
        """Return every known version keyed by id, newest first."""
        if self._versions is not None:
            return self._versions

        manifest = self.http.get_json("/game/version_manifest_v2.json", cache=True) or {}
        entries = sorted(
            manifest.get("versions") or [],
            key=lambda x: x.get("releaseTime") or "",
            reverse=True,
        )

        versions: Dict[str, GameVersion] = {}
        for i, entry in enumerate(entries):
            version_id = entry.get("id")
            if not version_id:
                continue
            normalized = normalize_minecraft_version(version_id, find_nearest_release(entries, i))
            try:
                parsed = semantic_version.Version(normalized)
            except ValueError:
                logger.debug("Skipping unparseable Minecraft version %s (%s)", version_id, normalized)
                continue
            versions[version_id] = GameVersion(
                id=version_id,
                version=parsed,
                type=entry.get("type") or "release",
                url=entry.get("url"),
                release_time=entry.get("releaseTime"),
            )

        with self._lock:
            if self._versions is None:
                self._versions = versions
        return self._versions

    def get_version(self, version_id: str) -> Optional[GameVersion]:
        """Return the version with the given id, or the newest one matching it as a range."""
        versions = self.get_all_versions()
        if version_id in versions:
            return versions[version_id]
        matches = self.get_versions([version_id])
        return matches[0] if matches else None

    def get_versions(self, names: Iterable[str]) -> List[GameVersion]:
        """Resolve version ids and ranges to known versions, newest first.

        Each name may be an exact id (``1.19``, ``23w13a``) or an npm-style
        range (``>=1.19 <1.20``, ``1.20.x``). Names that cannot be parsed
        are skipped with a warning.
        """
        versions = self.get_all_versions()
        specs = []
        for name in names or []:
            name = (name or "").strip()
            if not name:
                continue
            if name in versions:
                specs.append(semantic_version.NpmSpec(f"={versions[name].version}"))
                continue
            expression = _TOKEN_REGEX.sub(
                lambda m: str(versions[m.group(0)].version) if m.group(0) in versions else m.group(0),
                name,
            )
            try:
                specs.append(semantic_version.NpmSpec(expression))
            except ValueError:
                logger.warning("Unable to interpret Minecraft version range '%s'", name)

        if not specs:
            return []
        return [v for v in versions.values() if any(spec.match(v.version) for spec in specs)]

    __call__ = get_versions

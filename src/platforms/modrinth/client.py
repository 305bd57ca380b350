"""HTTP client for the Modrinth v2 API."""
from __future__ import annotations

import json
import logging
import os
from contextlib import ExitStack
from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests

from constants import Constants
from common.errors import HttpError, TransportError
from common.http_client import HttpClient, parse_json
from platforms.modrinth.models import ModrinthLoader, ModrinthProject, ModrinthVersion, UnfeaturableVersion
from platforms.modrinth.unfeature import UnfeaturePolicy, should_unfeature

logger = logging.getLogger(__name__)


class ModrinthApiClient:
    """Modrinth API client; 404 responses of read endpoints mean "no data"."""

    def __init__(self, token: Optional[str] = None, *, session: Optional[requests.Session] = None,
                 base_url: str = Constants.MODRINTH_API_URL):
        self.http = HttpClient(
            base_url,
            headers={"Authorization": token},
            session=session,
            not_found_as_none=True,
            context="modrinth",
        )

    def get_loaders(self) -> List[ModrinthLoader]:
        data = self.http.get_json("/tag/loader", cache=True) or []
        return [ModrinthLoader.from_json(x) for x in data]

    def get_game_versions(self) -> List[str]:
        data = self.http.get_json("/tag/game_version", cache=True) or []
        return [str(x.get("version")) for x in data if x.get("version")]

    def get_project(self, id_or_slug: str) -> Optional[ModrinthProject]:
        data = self.http.get_json(f"/project/{id_or_slug}")
        return ModrinthProject.from_json(data) if data else None

    def get_project_id(self, id_or_slug: str) -> Optional[str]:
        data = self.http.get_json(f"/project/{id_or_slug}/check")
        return (data or {}).get("id")

    def get_project_versions(self, id_or_slug: str, *, featured: Optional[bool] = None,
                             loaders: Optional[Iterable[str]] = None,
                             game_versions: Optional[Iterable[str]] = None) -> List[ModrinthVersion]:
        params: Dict[str, Any] = {}
        if featured is not None:
            params["featured"] = "true" if featured else "false"
        if loaders is not None:
            params["loaders"] = json.dumps(list(loaders))
        if game_versions is not None:
            params["game_versions"] = json.dumps(list(game_versions))
        data = self.http.get_json(f"/project/{id_or_slug}/version", params=params or None) or []
        return [ModrinthVersion.from_json(x) for x in data]

    def create_version(self, version: Mapping[str, Any], files: Iterable[str]) -> ModrinthVersion:
        """Create a version with ``files`` attached, the first one being primary.

        Args:
            version: Version fields (``project_id``, ``version_number``, ``name``, ...).
            files: Paths of the files to upload.
        """
        paths = list(files)
        data = dict(version)
        data["name"] = data.get("name") or data.get("version_number") or (
            os.path.basename(paths[0]) if paths else None
        )
        if data.get("version_type") is None:
            data["version_type"] = "release"
        if data.get("featured") is None:
            data["featured"] = True
        for key in ("dependencies", "game_versions", "loaders"):
            data[key] = list(data.get(key) or [])
        data["file_parts"] = [f"_{i}" for i in range(len(paths))]
        if paths:
            data["primary_file"] = "_0"

        with ExitStack() as stack:
            parts = {
                f"_{i}": (os.path.basename(path), stack.enter_context(open(path, "rb")))
                for i, path in enumerate(paths)
            }
            response = self.http.request(
                "POST", "/version", data={"data": json.dumps(data)}, files=parts
            )
        return ModrinthVersion.from_json(parse_json(response))

    def update_version(self, version_id: str, **changes: Any) -> bool:
        """Patch a version; returns whether the platform accepted the change."""
        try:
            response = self.http.request("PATCH", f"/version/{version_id}", json=changes)
        except HttpError as exc:
            logger.debug("Modrinth rejected the update of %s: %s", version_id, exc)
            return False
        return response is not None

    def unfeature_previous_versions(self, current: UnfeaturableVersion,
                                    policy: Optional[UnfeaturePolicy] = None) -> Dict[str, bool]:
        """Unfeature every featured version superseded by ``current``.

        Best effort: each version is patched once and the outcome recorded,
        failures are neither retried nor raised.

        Returns:
            Mapping of version id to whether it was unfeatured.
        """
        policy = policy or UnfeaturePolicy.subset()
        result: Dict[str, bool] = {}
        if not policy.enabled:
            return result

        for previous in self.get_project_versions(current.project_id, featured=True):
            if not should_unfeature(previous.as_unfeaturable(), current, policy):
                continue
            try:
                result[previous.id] = self.update_version(previous.id, featured=False)
            except TransportError as exc:
                logger.debug("Failed to unfeature %s: %s", previous.id, exc)
                result[previous.id] = False
        return result

"""HTTP clients for the CurseForge upload API and the public read API."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from constants import Constants
from common.errors import HttpError, TransportError
from common.http_client import HttpClient, parse_json
from common.retry import retry_with_repair
from platforms.curseforge.models import (
    BUKKIT_GAME_VERSION_TYPE,
    CurseForgeGameVersion,
    CurseForgeGameVersionMap,
    CurseForgeGameVersionType,
    CurseForgeProject,
    create_game_version_map,
    is_project_id,
)
from platforms.curseforge.repair import PendingSubmission, repair_submission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurseForgeFile:
    id: int
    name: str
    url: str
    project_id: int
    version_id: int


@dataclass
class CurseForgeVersion:
    """A version is identified by its first (parent) file."""

    id: int
    project_id: int
    name: str
    files: List[CurseForgeFile] = field(default_factory=list)


def pack_metadata(submission: PendingSubmission) -> Dict[str, Any]:
    """Build the ``metadata`` form field of an upload.

    Child files (with a parent) inherit game versions and relations from
    the parent and must not send their own.
    """
    has_parent = submission.parent_file_id is not None
    metadata: Dict[str, Any] = {
        "changelog": submission.changelog or "",
        "changelogType": submission.changelog_type or Constants.DEFAULT_CHANGELOG_TYPE,
        "displayName": (
            os.path.basename(submission.file) if has_parent or not submission.name else submission.name
        ),
        "releaseType": submission.version_type or "release",
    }
    if has_parent:
        metadata["parentFileID"] = submission.parent_file_id
    else:
        metadata["gameVersions"] = list(submission.game_version_ids)
        if submission.dependencies:
            metadata["relations"] = {"projects": [d.to_json() for d in submission.dependencies]}
    return metadata


class CurseForgeUploadApiClient:
    """Client of ``minecraft.curseforge.com/api``, authenticated with ``X-Api-Token``."""

    def __init__(self, token: Optional[str], *, session: Optional[requests.Session] = None,
                 base_url: str = Constants.CURSEFORGE_UPLOAD_API_URL):
        self.http = HttpClient(
            base_url,
            headers={"X-Api-Token": token},
            session=session,
            context="curseforge",
        )

    def get_game_version_types(self) -> List[CurseForgeGameVersionType]:
        data = self.http.get_json("/game/version-types", params={"cache": "true"}, cache=True) or []
        types = [CurseForgeGameVersionType.from_json(x) for x in data]
        if not any(t.id == BUKKIT_GAME_VERSION_TYPE.id for t in types):
            types.insert(0, BUKKIT_GAME_VERSION_TYPE)
        return types

    def get_game_versions(self) -> List[CurseForgeGameVersion]:
        data = self.http.get_json("/game/versions", params={"cache": "true"}, cache=True) or []
        return [CurseForgeGameVersion.from_json(x) for x in data]

    def get_game_version_map(self) -> CurseForgeGameVersionMap:
        return create_game_version_map(self.get_game_versions(), self.get_game_version_types())

    def upload_file(self, project_id: int, submission: PendingSubmission) -> CurseForgeFile:
        """Send one upload attempt. Errors are raised as-is for the repair loop."""
        metadata = pack_metadata(submission)
        with open(submission.file, "rb") as fh:
            response = self.http.request(
                "POST",
                f"/projects/{project_id}/upload-file",
                data={"metadata": json.dumps(metadata)},
                files={"file": (os.path.basename(submission.file), fh)},
            )
        body = parse_json(response) or {}
        file_id = int(body["id"])
        return CurseForgeFile(
            id=file_id,
            name=metadata["displayName"] or os.path.basename(submission.file),
            url=f"{Constants.CURSEFORGE_SITE_URL}/api/v1/mods/{project_id}/files/{file_id}/download",
            project_id=project_id,
            version_id=submission.parent_file_id or file_id,
        )

    def create_version(
        self,
        project_id: int,
        files: Sequence[str],
        submission: PendingSubmission,
    ) -> Optional[CurseForgeVersion]:
        """Upload ``files`` as one version.

        The first file becomes the parent; later files are attached to it.
        Each file goes through the repair loop, and the repaired submission
        of a file is the starting point of the next one.

        Args:
            project_id: Numeric project id.
            files: Paths in upload order.
            submission: Template carrying everything except the file and parent.
        """
        version: Optional[CurseForgeVersion] = None
        for path in files:
            pending = submission.with_changes(
                file=path,
                parent_file_id=version.id if version else None,
            )

            def _attempt(payload: PendingSubmission) -> Tuple[CurseForgeFile, PendingSubmission]:
                return self.upload_file(project_id, payload), payload

            uploaded, submission = retry_with_repair(
                _attempt, pending, repair_submission, context="curseforge-upload"
            )
            if version is None:
                version = CurseForgeVersion(id=uploaded.id, project_id=project_id, name=uploaded.name)
            version.files.append(uploaded)
        return version


class CurseForgeEternalApiClient:
    """Client of the public ``api.curseforge.com`` read API."""

    def __init__(self, *, session: Optional[requests.Session] = None,
                 api_key: Optional[str] = None,
                 base_url: str = Constants.CURSEFORGE_ETERNAL_API_URL):
        self.http = HttpClient(
            base_url,
            headers={"X-Api-Key": api_key or os.environ.get(Constants.ENV_CURSEFORGE_API_KEY)},
            session=session,
            not_found_as_none=True,
            context="curseforge-eternal",
        )

    def get_project(self, id_or_slug: Any) -> Optional[CurseForgeProject]:
        """Look up a project by numeric id or by slug.

        Returns:
            The project, or None when it does not exist or is not public.
        """
        if is_project_id(id_or_slug):
            data = self.http.get_json(f"/mods/{id_or_slug}")
            project = (data or {}).get("data")
            return CurseForgeProject.from_json(project) if project else None

        data = self.http.get_json(
            "/mods/search",
            params={"gameId": Constants.CURSEFORGE_MINECRAFT_GAME_ID, "slug": id_or_slug},
        )
        for project in (data or {}).get("data") or []:
            if project.get("slug") == id_or_slug:
                return CurseForgeProject.from_json(project)
        return None

    def try_get_project(self, id_or_slug: Any) -> Optional[CurseForgeProject]:
        """Like ``get_project`` but treats any API failure as "not found"."""
        try:
            return self.get_project(id_or_slug)
        except (HttpError, TransportError) as exc:
            logger.debug("CurseForge project lookup for \"%s\" failed: %s", id_or_slug, exc)
            return None

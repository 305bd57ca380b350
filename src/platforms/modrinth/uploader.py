"""Modrinth uploader."""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional

import requests

from constants import Constants, PlatformType, VersionType
from common.errors import ArgumentError, HttpError, TransportError
from dependencies.models import Dependency
from dependencies.reconcile import dedupe_by
from platforms.base import GenericPlatformUploader
from platforms.models import UploadedFile, UploadReport, UploadRequest
from platforms.modrinth.client import ModrinthApiClient
from platforms.modrinth.models import ModrinthDependencyType, ModrinthProject, ModrinthVersion
from platforms.modrinth.unfeature import UnfeaturePolicy


def _loose_key(value: str) -> str:
    return re.sub(r"\W", "", value or "").casefold()


def _find_name(candidates: List[str], name: str) -> Optional[str]:
    """Find ``name`` ignoring case, then ignoring non-word characters too."""
    folded = (name or "").casefold()
    match = next((x for x in candidates if x.casefold() == folded), None)
    if match is None:
        match = next((x for x in candidates if _loose_key(x) == _loose_key(name)), None)
    return match


class ModrinthUploader(GenericPlatformUploader):
    """Publishes files to Modrinth and unfeatures the versions they supersede."""

    platform = PlatformType.MODRINTH

    def __init__(self, *, session: Optional[requests.Session] = None,
                 logger: Optional[logging.Logger] = None,
                 api_url: str = Constants.MODRINTH_API_URL):
        super().__init__(session=session, logger=logger)
        self.api_url = api_url

    def upload_core(self, request: UploadRequest) -> UploadReport:
        ArgumentError.throw_if_null_or_empty(
            request.id, "request.id", "A project ID is required to upload files to Modrinth."
        )
        ArgumentError.throw_if_null_or_empty(
            request.version, "request.version", "A version number is required to upload files to Modrinth."
        )
        ArgumentError.throw_if_null_or_empty(
            request.loaders, "request.loaders",
            "At least one loader should be specified to upload files to Modrinth.",
        )
        ArgumentError.throw_if_null_or_empty(
            request.game_versions, "request.game_versions",
            "At least one game version should be specified to upload files to Modrinth.",
        )

        api = ModrinthApiClient(request.token, session=self.session, base_url=self.api_url)
        policy = UnfeaturePolicy.parse(request.unfeature_mode) or UnfeaturePolicy.default_for(request.featured)

        project = self.get_project(request.id, api)
        version = self.create_version(request, project, api)
        unfeatured = self.unfeature_previous_versions(version, policy, api)

        return UploadReport(
            project_id=project.id,
            version_id=version.id,
            url=f"{Constants.MODRINTH_SITE_URL}/{project.project_type}/{project.slug}/version/{version.version_number}",
            files=tuple(UploadedFile(id=f.sha1, name=f.filename, url=f.url) for f in version.files),
            unfeatured=unfeatured,
        )

    def get_project(self, id_or_slug: str, api: ModrinthApiClient) -> ModrinthProject:
        """Find the project, or use a placeholder when the token cannot read it.

        Unreviewed projects are invisible without the "Read projects" scope,
        yet their id is all an upload needs.
        """
        project = api.get_project(id_or_slug)
        if project:
            return project
        self.logger.debug("Modrinth project \"%s\" is inaccessible.", id_or_slug)
        return ModrinthProject(id=id_or_slug, slug=id_or_slug, project_type="mod")

    def create_version(self, request: UploadRequest, project: ModrinthProject,
                       api: ModrinthApiClient) -> ModrinthVersion:
        version_type = request.version_type or VersionType.RELEASE
        return api.create_version(
            {
                "name": request.name,
                "version_number": request.version,
                "project_id": project.id,
                "changelog": request.changelog,
                "dependencies": self.convert_to_modrinth_dependencies(request.dependencies, api),
                "game_versions": self.convert_to_modrinth_game_versions(request.game_versions, api),
                "version_type": version_type.value,
                "loaders": self.convert_to_modrinth_loaders(request.loaders, project, api),
                "featured": request.featured,
            },
            request.files,
        )

    def convert_to_modrinth_dependencies(self, dependencies: Iterable[Dependency],
                                         api: ModrinthApiClient) -> List[Dict[str, str]]:
        """Resolve dependency ids and slugs to canonical project ids."""
        result = []
        for id_or_slug, dependency_type in self.convert_to_simple_dependencies(
            dependencies, ModrinthDependencyType.from_dependency_type
        ):
            try:
                project_id = api.get_project_id(id_or_slug)
            except (HttpError, TransportError) as exc:
                self.logger.debug("Cannot resolve Modrinth project \"%s\": %s", id_or_slug, exc)
                project_id = None
            if project_id and dependency_type:
                result.append({"project_id": project_id, "dependency_type": dependency_type.value})
        return dedupe_by(result, lambda x: x["project_id"])

    def convert_to_modrinth_loaders(self, loaders: Iterable[str], project: ModrinthProject,
                                    api: ModrinthApiClient) -> List[str]:
        """Map loader names onto Modrinth's, keeping those valid for the project type.

        A placeholder project has no reliable type, so no loader is filtered out.
        """
        loaders = list(loaders or [])
        if not loaders:
            return []
        known = {x.name: x for x in api.get_loaders()}
        result = []
        for name in loaders:
            match_name = _find_name(list(known), name)
            if match_name is None:
                continue
            match = known[match_name]
            if project.project_type in match.supported_project_types or project.is_placeholder:
                result.append(match.name)
        return result

    def convert_to_modrinth_game_versions(self, game_versions: Iterable[str],
                                          api: ModrinthApiClient) -> List[str]:
        game_versions = list(game_versions or [])
        if not game_versions:
            return []
        known = api.get_game_versions()
        result = []
        for name in game_versions:
            match = _find_name(known, name)
            if match:
                result.append(match)
        return result

    def unfeature_previous_versions(self, version: ModrinthVersion, policy: UnfeaturePolicy,
                                    api: ModrinthApiClient) -> Dict[str, bool]:
        """Unfeature superseded versions without ever failing the upload."""
        if not policy.enabled:
            return {}

        self.logger.info("Initiating unfeaturing of older Modrinth project versions")
        try:
            result = api.unfeature_previous_versions(version.as_unfeaturable(), policy)
        except (HttpError, TransportError) as exc:
            self.logger.warning("Failed to list previous Modrinth versions: %s", exc)
            return {}

        unfeatured = [k for k, ok in result.items() if ok]
        failed = [k for k, ok in result.items() if not ok]
        if unfeatured:
            self.logger.info("Successfully unfeatured %s", ", ".join(unfeatured))
        if failed:
            self.logger.info("Failed to unfeature %s. Please, double-check your token", ", ".join(failed))
        return result

"""CurseForge uploader."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import requests

from constants import Constants, PlatformType, VersionType
from common.errors import ArgumentError
from dependencies.models import Dependency
from dependencies.reconcile import dedupe_by
from games.minecraft import MojangApiClient
from games.models import GameVersionProvider
from platforms.base import GenericPlatformUploader
from platforms.curseforge.client import CurseForgeEternalApiClient, CurseForgeUploadApiClient
from platforms.curseforge.models import (
    CurseForgeDependency,
    CurseForgeDependencyType,
    CurseForgeProject,
    is_project_id,
)
from platforms.curseforge.repair import PendingSubmission
from platforms.curseforge.versions import VersionVariantResolver
from platforms.models import UploadedFile, UploadReport, UploadRequest


class CurseForgeUploader(GenericPlatformUploader):
    """Publishes files to CurseForge."""

    platform = PlatformType.CURSEFORGE

    def __init__(self, *, session: Optional[requests.Session] = None,
                 logger: Optional[logging.Logger] = None,
                 game_version_provider: Optional[GameVersionProvider] = None,
                 upload_api_url: str = Constants.CURSEFORGE_UPLOAD_API_URL,
                 eternal_api_url: str = Constants.CURSEFORGE_ETERNAL_API_URL):
        super().__init__(session=session, logger=logger)
        self.game_version_provider = game_version_provider
        self.upload_api_url = upload_api_url
        self.eternal_api_url = eternal_api_url

    def upload_core(self, request: UploadRequest) -> UploadReport:
        ArgumentError.throw_if_null_or_empty(
            request.id, "request.id", "A project ID is required to upload files to CurseForge."
        )
        ArgumentError.throw_if_null_or_empty(
            request.loaders, "request.loaders",
            "At least one loader should be specified to upload files to CurseForge.",
        )
        ArgumentError.throw_if_null_or_empty(
            request.game_versions, "request.game_versions",
            "At least one game version should be specified to upload files to CurseForge.",
        )

        api = CurseForgeUploadApiClient(request.token, session=self.session, base_url=self.upload_api_url)
        eternal_api = CurseForgeEternalApiClient(session=self.session, base_url=self.eternal_api_url)

        project = self.get_project(request.id, eternal_api)
        dependencies = self.convert_to_curseforge_dependencies(request.dependencies, eternal_api)

        if self.game_version_provider is None:
            self.game_version_provider = MojangApiClient(session=self.session)
        provider = self.game_version_provider
        resolver = VersionVariantResolver(api.get_game_version_map, provider)
        variants = resolver.resolve(request.game_versions, request.loaders, request.java)

        version_type = request.version_type or VersionType.RELEASE
        submission = PendingSubmission(
            file=request.files[0],
            name=request.name,
            version_type=version_type.value,
            changelog=request.changelog,
            changelog_type=request.changelog_type,
            game_version_variants=tuple(tuple(x) for x in variants),
            dependencies=tuple(dependencies),
        )
        version = api.create_version(project.id, request.files, submission)

        return UploadReport(
            project_id=project.id,
            version_id=version.id,
            url=f"{project.website_url}/files/{version.id}",
            files=tuple(UploadedFile(id=f.id, name=f.name, url=f.url) for f in version.files),
        )

    def get_project(self, id_or_slug: str, eternal_api: CurseForgeEternalApiClient) -> CurseForgeProject:
        """Find the project, or fall back to a placeholder when only its id is known."""
        project = eternal_api.try_get_project(id_or_slug)
        if project:
            return project

        if not is_project_id(id_or_slug):
            raise ArgumentError(
                "request.id",
                f"Cannot access CurseForge project \"{id_or_slug}\" by its slug. Please specify the ID instead.",
            )

        # Hidden projects and API outages look the same; the id alone is enough to upload.
        self.logger.debug("CurseForge project \"%s\" is inaccessible.", id_or_slug)
        return CurseForgeProject(
            id=int(id_or_slug),
            slug=str(id_or_slug),
            website_url=f"{Constants.CURSEFORGE_SITE_URL}/minecraft/mc-mods/{id_or_slug}",
        )

    def convert_to_curseforge_dependencies(
        self,
        dependencies: Iterable[Dependency],
        eternal_api: CurseForgeEternalApiClient,
    ) -> List[CurseForgeDependency]:
        """Map dependencies to slugs, resolving numeric ids through the public API.

        CurseForge cannot tell that two slugs refer to the same project, so
        duplicates are removed by case-insensitive slug.
        """
        result = []
        for project_id, dependency_type in self.convert_to_simple_dependencies(
            dependencies, CurseForgeDependencyType.from_dependency_type
        ):
            if is_project_id(project_id):
                project = eternal_api.try_get_project(project_id)
                slug = project.slug if project else None
            else:
                slug = project_id
            if slug and dependency_type:
                result.append(CurseForgeDependency(slug=slug, type=dependency_type))
        return dedupe_by(result, lambda x: x.slug.casefold())


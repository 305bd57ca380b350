"""GitHub Releases uploader."""
from __future__ import annotations

import logging
from typing import Optional

import requests

from constants import PlatformType, VersionType
from common.errors import ArgumentError, PublishError
from platforms.base import GenericPlatformUploader
from platforms.github.client import GitHubApiClient
from platforms.github.context import GitHubContext, GitHubRepository
from platforms.models import UploadedFile, UploadReport, UploadRequest


class GitHubUploader(GenericPlatformUploader):
    """Attaches files to a GitHub release, creating the release when needed."""

    platform = PlatformType.GITHUB

    def __init__(self, *, session: Optional[requests.Session] = None,
                 logger: Optional[logging.Logger] = None,
                 context: Optional[GitHubContext] = None):
        super().__init__(session=session, logger=logger)
        self.context = context or GitHubContext()

    def upload_core(self, request: UploadRequest) -> UploadReport:
        repo = self.context.repo
        if repo is None:
            raise ArgumentError(
                "GITHUB_REPOSITORY",
                "The GitHub repository (owner/repo) is required to upload files to GitHub.",
            )

        api = GitHubApiClient(request.token, session=self.session, base_url=self.context.api_url)
        release_id = self.get_or_create_release_id(request, repo, api)
        release = api.update_release(repo, release_id, body=request.changelog, assets=request.files) or {}

        return UploadReport(
            project_id=str(repo),
            version_id=release.get("tag_name"),
            url=release.get("html_url"),
            files=tuple(
                UploadedFile(id=x.get("id"), name=x.get("name"), url=x.get("browser_download_url"))
                for x in release.get("assets") or []
            ),
        )

    def get_or_create_release_id(self, request: UploadRequest, repo: GitHubRepository,
                                 api: GitHubApiClient) -> int:
        """Find the target release, creating it from the request when it does not exist.

        Lookup order: the explicit tag of the request, the release of the
        triggering event, then the tag derived from the context or version.
        """
        tag = request.tag or self.context.tag or request.version
        release_id = None

        if request.tag:
            release_id = (api.get_release(repo, tag=request.tag) or {}).get("id")
        elif self.context.release_id:
            release_id = self.context.release_id
        elif tag:
            release_id = (api.get_release(repo, tag=tag) or {}).get("id")

        if not release_id and tag:
            version_type = request.version_type or VersionType.RELEASE
            created = api.create_release(
                repo,
                tag_name=tag,
                target_commitish=request.commitish,
                name=request.name,
                body=request.changelog,
                draft=request.draft,
                prerelease=request.prerelease if request.prerelease is not None
                else version_type is not VersionType.RELEASE,
                discussion_category_name=request.discussion,
                generate_release_notes=request.generate_changelog if request.generate_changelog is not None
                else not request.changelog,
            )
            release_id = (created or {}).get("id")

        if not release_id:
            suffix = f" ({tag})" if tag else ""
            raise PublishError(f"Cannot find or create GitHub Release{suffix}.")
        return release_id

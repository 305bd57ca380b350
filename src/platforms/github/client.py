"""HTTP client for GitHub releases."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import requests

from constants import Constants
from common.http_client import HttpClient, parse_json
from platforms.github.context import GitHubRepository

logger = logging.getLogger(__name__)


class GitHubApiClient:
    """GitHub REST client restricted to the release endpoints."""

    def __init__(self, token: Optional[str] = None, *, session: Optional[requests.Session] = None,
                 base_url: str = Constants.GITHUB_API_URL):
        self.http = HttpClient(
            base_url,
            headers={
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": Constants.GITHUB_API_VERSION,
                "Authorization": f"Bearer {token}" if token else None,
            },
            session=session,
            not_found_as_none=True,
            context="github",
        )

    def get_release(self, repo: GitHubRepository, *, release_id: Optional[int] = None,
                    tag: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Look up a release by id, or by tag when no id is given."""
        if release_id is not None:
            path = f"/repos/{repo.owner}/{repo.repo}/releases/{release_id}"
        else:
            path = f"/repos/{repo.owner}/{repo.repo}/releases/tags/{quote(tag or '', safe='')}"
        return self.http.get_json(path)

    def create_release(self, repo: GitHubRepository, **fields: Any) -> Optional[Dict[str, Any]]:
        """Create a release; fields whose value is None are not sent."""
        data = {k: v for k, v in fields.items() if v is not None}
        response = self.http.request("POST", f"/repos/{repo.owner}/{repo.repo}/releases", json=data)
        return parse_json(response)

    def update_release(self, repo: GitHubRepository, release_id: int, *,
                       body: Optional[str] = None,
                       assets: Iterable[str] = ()) -> Optional[Dict[str, Any]]:
        """Replace assets and update the body of a release.

        Returns:
            The release as it stands after the update.
        """
        assets = list(assets or [])
        if assets:
            self.update_release_assets(repo, release_id, assets)
        if body is None:
            return self.get_release(repo, release_id=release_id)
        response = self.http.request(
            "PATCH", f"/repos/{repo.owner}/{repo.repo}/releases/{release_id}", json={"body": body}
        )
        return parse_json(response)

    def update_release_assets(self, repo: GitHubRepository, release_id: int,
                              paths: Iterable[str]) -> List[Dict[str, Any]]:
        """Upload files to a release, replacing assets with the same name."""
        release = self.get_release(repo, release_id=release_id) or {}
        uploaded = []
        for path in paths:
            name = os.path.basename(path)
            existing = next(
                (x for x in release.get("assets") or [] if x.get("name") in (name, path)), None
            )
            if existing:
                self.delete_release_asset(repo, existing["id"])
            uploaded.append(self.upload_release_asset(release["upload_url"], path))
        return uploaded

    def upload_release_asset(self, upload_url: str, path: str) -> Dict[str, Any]:
        url = upload_url.split("{", 1)[0]
        with open(path, "rb") as fh:
            response = self.http.request(
                "POST",
                url,
                params={"name": os.path.basename(path)},
                data=fh,
                headers={"Content-Type": "application/octet-stream"},
            )
        return parse_json(response) or {}

    def delete_release_asset(self, repo: GitHubRepository, asset_id: int) -> bool:
        response = self.http.request("DELETE", f"/repos/{repo.owner}/{repo.repo}/releases/assets/{asset_id}")
        return response is not None

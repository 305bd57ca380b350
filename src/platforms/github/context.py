"""GitHub Actions environment."""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from constants import Constants

logger = logging.getLogger(__name__)

_TAG_REF_PREFIX = "refs/tags/"


@dataclass(frozen=True)
class GitHubRepository:
    owner: str
    repo: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}"


class GitHubContext:
    """Reads the repository, ref and event payload of the current workflow run."""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self._env = env if env is not None else os.environ
        self._payload: Optional[Dict[str, Any]] = None

    @property
    def ref(self) -> Optional[str]:
        return self._env.get("GITHUB_REF") or None

    @property
    def payload(self) -> Dict[str, Any]:
        """The webhook payload; empty when it is missing or unreadable."""
        if self._payload is None:
            path = self._env.get("GITHUB_EVENT_PATH")
            payload: Dict[str, Any] = {}
            if path:
                try:
                    with open(path, "r", encoding="utf-8") as fh:
                        loaded = json.load(fh)
                    payload = loaded if isinstance(loaded, dict) else {}
                except (OSError, ValueError) as exc:
                    logger.debug("Cannot read the GitHub event payload at %s: %s", path, exc)
            self._payload = payload
        return self._payload

    @property
    def release_id(self) -> Optional[int]:
        release = self.payload.get("release") or {}
        return release.get("id") or None

    @property
    def tag(self) -> Optional[str]:
        release = self.payload.get("release") or {}
        if release.get("tag_name"):
            return release["tag_name"]
        ref = self.ref
        if ref and ref.startswith(_TAG_REF_PREFIX):
            return ref[len(_TAG_REF_PREFIX):]
        return None

    @property
    def version(self) -> Optional[str]:
        """The tag without the ``v`` prefix GitHub popularized (``v1.2`` -> ``1.2``)."""
        tag = self.tag
        if tag and re.match(r"v\d", tag):
            return tag[1:]
        return tag

    @property
    def repo(self) -> Optional[GitHubRepository]:
        repository = self._env.get("GITHUB_REPOSITORY") or ""
        if "/" not in repository:
            return None
        owner, repo = repository.split("/", 1)
        return GitHubRepository(owner=owner, repo=repo)

    @property
    def api_url(self) -> str:
        return self._env.get("GITHUB_API_URL") or Constants.GITHUB_API_URL

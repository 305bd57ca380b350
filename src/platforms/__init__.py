"""Platform uploaders.

- base.py: retrying upload flow shared by every platform
- models.py: upload request and report
- curseforge/, modrinth/, github/: platform clients and uploaders
"""
from __future__ import annotations

from typing import Any

from constants import PlatformType
from platforms.base import GenericPlatformUploader


def create_platform_uploader(platform: Any, **options: Any) -> GenericPlatformUploader:
    """Create the uploader for ``platform`` (a PlatformType or its name).

    Raises:
        ValueError: The platform is unknown.
    """
    # pylint: disable=import-outside-toplevel
    from platforms.curseforge.uploader import CurseForgeUploader
    from platforms.github.uploader import GitHubUploader
    from platforms.modrinth.uploader import ModrinthUploader

    platform_type = PlatformType.parse(platform)
    if platform_type is PlatformType.MODRINTH:
        return ModrinthUploader(**options)
    if platform_type is PlatformType.CURSEFORGE:
        return CurseForgeUploader(**options)
    if platform_type is PlatformType.GITHUB:
        return GitHubUploader(**options)
    raise ValueError(f"Unknown platform '{platform}'")

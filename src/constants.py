"""Constants used in the project."""

from enum import Enum
from typing import Optional


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    PUBLISH_ERROR = 1
    CONNECTION_ERROR = 2


class PlatformType(Enum):
    """Platforms supported by the program.

    Args:
        Enum (string): Platforms supported by the program.
    """

    MODRINTH = "modrinth"
    CURSEFORGE = "curseforge"
    GITHUB = "github"

    @property
    def friendly_name(self) -> str:
        """Human-readable platform name used in log and error messages."""
        return _FRIENDLY_NAMES[self]

    @classmethod
    def parse(cls, value) -> Optional["PlatformType"]:
        """Parse a platform name ignoring case and non-word characters.

        Returns:
            The matching platform, or None when the value is unknown.
        """
        if isinstance(value, cls):
            return value
        if not value:
            return None
        normalized = "".join(ch for ch in str(value).lower() if ch.isalnum())
        for platform in cls:
            if platform.value == normalized:
                return platform
        return None


_FRIENDLY_NAMES = {
    PlatformType.MODRINTH: "Modrinth",
    PlatformType.CURSEFORGE: "CurseForge",
    PlatformType.GITHUB: "GitHub",
}


class VersionType(Enum):
    """Release channel of a published version."""

    ALPHA = "alpha"
    BETA = "beta"
    RELEASE = "release"

    @classmethod
    def parse(cls, value) -> Optional["VersionType"]:
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @classmethod
    def from_file_name(cls, name: str) -> "VersionType":
        """Infer a channel from markers such as ``-alpha`` or ``+beta`` in a name."""
        lowered = (name or "").lower()
        for marker, version_type in (("alpha", cls.ALPHA), ("beta", cls.BETA)):
            for sep in "-+_.":
                if f"{sep}{marker}" in lowered:
                    return version_type
        return cls.RELEASE


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    MODRINTH_API_URL = "https://api.modrinth.com/v2"
    MODRINTH_STAGING_API_URL = "https://staging-api.modrinth.com/v2"
    MODRINTH_SITE_URL = "https://modrinth.com"
    CURSEFORGE_UPLOAD_API_URL = "https://minecraft.curseforge.com/api"
    CURSEFORGE_ETERNAL_API_URL = "https://api.curseforge.com/v1"
    CURSEFORGE_SITE_URL = "https://www.curseforge.com"
    CURSEFORGE_MINECRAFT_GAME_ID = 432
    GITHUB_API_URL = "https://api.github.com"
    GITHUB_API_VERSION = "2022-11-28"
    MOJANG_API_URL = "https://piston-meta.mojang.com/mc"

    ENV_LOG_LEVEL = "MODPUBLISH_LOG_LEVEL"
    ENV_CURSEFORGE_API_KEY = "CURSEFORGE_API_KEY"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    USER_AGENT = "modpublish/0.3"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    DEFAULT_RETRY_ATTEMPTS = 2
    DEFAULT_RETRY_DELAY_SEC = 1.0
    DEFAULT_CHANGELOG_TYPE = "markdown"

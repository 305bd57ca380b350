"""modpublish - publish mod files to Modrinth, CurseForge and GitHub Releases.

Resolves the options of every platform that has a token, fills the gaps
from the primary file's metadata, uploads and prints one JSON report.
"""

from __future__ import annotations

import glob
import json
import logging
import os
import re
import sys
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from args import parse_args
from cli_config import collect_overrides, load_config, resolve_platform_options
from common.errors import ArgumentError, ErrorBuilder, FailMode, PublishError, SoftError, TransportError
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes, PlatformType, VersionType
from dependencies.models import parse_dependencies
from games.minecraft import MojangApiClient
from games.models import GameVersionProvider
from metadata.reader import ModMetadata, read_metadata
from platforms import create_platform_uploader
from platforms.models import UploadRequest

logger = logging.getLogger(__name__)

_LIST_SEPARATOR = re.compile(r"[\s,]+")


def _as_list(value: Any) -> List[str]:
    """Accept a list or a comma/whitespace separated string."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(x).strip() for x in value if str(x).strip()]
    return [x for x in _LIST_SEPARATOR.split(str(value)) if x]


def _as_lines(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [line for line in str(value).splitlines() if line.strip()]


def _as_bool(value: Any) -> Optional[bool]:
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "1", "on"):
        return True
    if text in ("false", "no", "0", "off"):
        return False
    return None


def _as_number(value: Any, kind: Callable[[Any], Any], name: str) -> Any:
    if value is None:
        return None
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ArgumentError(name, f"Value of '{name}' must be a number, got '{value}'.") from exc


def resolve_files(patterns: Iterable[str]) -> Tuple[str, ...]:
    """Expand glob patterns in order, dropping duplicates and directories."""
    files: List[str] = []
    for pattern in patterns:
        matches = sorted(glob.glob(pattern, recursive=True)) if glob.has_magic(pattern) else [pattern]
        for path in matches:
            if os.path.isfile(path) and path not in files:
                files.append(path)
    return tuple(files)


def expand_game_versions(names: Iterable[str], provider: GameVersionProvider) -> Tuple[str, ...]:
    """Turn version ranges into concrete ids, preferring releases."""
    versions = provider(list(names))
    releases = [v for v in versions if v.is_release]
    return tuple(v.id for v in (releases or versions))


def build_request(
    options: Mapping[str, Any],
    *,
    metadata_reader: Callable[[str], Optional[ModMetadata]] = read_metadata,
    game_version_provider: Optional[GameVersionProvider] = None,
) -> UploadRequest:
    """Build an upload request from resolved options and the primary file's metadata.

    Args:
        options: Options resolved for one platform.
        metadata_reader: Reads metadata from the primary file.
        game_version_provider: Expands game version ranges found in metadata;
            a Mojang client is created on demand when omitted.

    Returns:
        The request with every default filled in.
    """
    files = resolve_files(_as_list(options.get("files")))
    metadata = metadata_reader(files[0]) if files else None

    version = options.get("version") or (metadata.version if metadata else None)
    version = str(version) if version is not None else None
    version_type = VersionType.parse(options.get("version_type")) or VersionType.from_file_name(
        version or (os.path.basename(files[0]) if files else "")
    )

    changelog = options.get("changelog")
    if not changelog and options.get("changelog_file"):
        with open(options["changelog_file"], "r", encoding="utf-8") as f:
            changelog = f.read()

    loaders = _as_list(options.get("loaders")) or list(metadata.loaders if metadata else ())

    game_versions = _as_list(options.get("game_versions"))
    if not game_versions and metadata and metadata.game_versions:
        provider = game_version_provider or MojangApiClient()
        game_versions = list(expand_game_versions(metadata.game_versions, provider))

    if options.get("dependencies") is not None:
        dependencies = parse_dependencies(_as_lines(options.get("dependencies")))
    else:
        dependencies = list(metadata.dependencies if metadata else ())

    return UploadRequest(
        id=str(options["id"]) if options.get("id") is not None else None,
        token=options.get("token"),
        files=files,
        name=options.get("name") or version,
        version=version,
        version_type=version_type,
        changelog=changelog,
        loaders=tuple(loaders),
        game_versions=tuple(game_versions),
        java=tuple(_as_list(options.get("java"))),
        dependencies=tuple(dependencies),
        retry_attempts=_as_number(
            options.get("retry_attempts", Constants.DEFAULT_RETRY_ATTEMPTS), int, "retry_attempts"
        ),
        retry_delay=_as_number(
            options.get("retry_delay", Constants.DEFAULT_RETRY_DELAY_SEC), float, "retry_delay"
        ),
        featured=_as_bool(options.get("featured")),
        unfeature_mode=options.get("unfeature_mode"),
        changelog_type=options.get("changelog_type"),
        tag=options.get("tag"),
        commitish=options.get("commitish"),
        draft=_as_bool(options.get("draft")),
        prerelease=_as_bool(options.get("prerelease")),
        discussion=options.get("discussion"),
        generate_changelog=_as_bool(options.get("generate_changelog")),
    )


def publish(
    platforms: Iterable[PlatformType],
    config: Mapping[str, Any],
    overrides: Mapping[str, Any],
    env: Optional[Mapping[str, str]] = None,
    **uploader_options: Any,
) -> Tuple[Dict[str, Any], ErrorBuilder, bool]:
    """Publish to every platform that has a token.

    Returns:
        Tuple of (reports by platform name, collected errors, whether a
        fatal error was a connection failure).
    """
    reports: Dict[str, Any] = {}
    errors = ErrorBuilder(logger)
    connection_failed = False

    for platform in platforms:
        options = resolve_platform_options(platform, config, overrides, env)
        if not options.get("token"):
            logger.debug("No token for %s, skipping", platform.friendly_name)
            continue

        fail_mode = FailMode.parse(options.get("fail_mode", FailMode.FAIL.value))
        if is_debug_enabled(logger):
            logger.debug(
                "Publishing to platform",
                extra=extra_context(
                    event="decision",
                    component="cli",
                    action="publish",
                    platform=platform.value,
                    fail_mode=fail_mode.value,
                ),
            )
        try:
            request = build_request(options)
            uploader = create_platform_uploader(platform, **uploader_options)
            reports[platform.value] = uploader.upload(request).to_dict()
        except (SoftError, ArgumentError, PublishError, OSError, ValueError) as exc:
            if isinstance(exc, TransportError) and fail_mode is FailMode.FAIL:
                connection_failed = True
            errors.append(
                PublishError(f"Failed to publish the assets to {platform.friendly_name}: {exc}"),
                fail_mode,
            )

    return reports, errors, connection_failed


def _configure_logging(args: Any) -> None:
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def _write_report(reports: Mapping[str, Any], output: Optional[str]) -> None:
    text = json.dumps(reports, indent=2)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text + "\n")
    else:
        sys.stdout.write(text + "\n")


def main(argv: Optional[List[str]] = None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    _configure_logging(args)

    try:
        config = load_config(args.CONFIG)
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        sys.exit(ExitCodes.PUBLISH_ERROR.value)

    overrides = collect_overrides(args.SET)
    if args.files:
        overrides.setdefault("files", list(args.files))

    platforms = [PlatformType(p) for p in args.PLATFORMS] or list(PlatformType)
    reports, errors, connection_failed = publish(platforms, config, overrides)

    if reports:
        _write_report(reports, args.OUTPUT)
        names = ", ".join(PlatformType(p).friendly_name for p in reports)
        logger.info("Successfully published the assets to %s", names)
    elif not errors.has_errors:
        logger.warning("No upload targets were specified. Provide a token for at least one platform.")

    if errors.has_errors:
        if connection_failed:
            sys.exit(ExitCodes.CONNECTION_ERROR.value)
        sys.exit(ExitCodes.PUBLISH_ERROR.value)
    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()

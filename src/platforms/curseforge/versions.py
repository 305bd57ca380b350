"""Resolution of abstract compatibility data into CurseForge game version ids.

CurseForge infers the kind of a project (mod, plugin, pack, addon) from
which identifier namespace an upload populates; there is no explicit field.
The resolver therefore produces every plausible identifier group, most
likely first, and the upload loop walks through them on rejection.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Sequence

from games.models import GameVersion, GameVersionProvider, JavaVersion
from platforms.curseforge.models import (
    CurseForgeGameVersionMap,
    find_ids_by_names,
    format_game_version,
    format_game_version_snapshot,
    plugin_name_comparer,
    snapshot_name_comparer,
)

logger = logging.getLogger(__name__)


def build_version_variants(
    version_map: CurseForgeGameVersionMap,
    game_versions: Sequence[GameVersion],
    loaders: Iterable[str] = (),
    java_versions: Iterable[object] = (),
) -> List[List[int]]:
    """Build the ordered identifier groups for one version.

    Groups, in order: mod (game versions, loaders, Java), plugin, pack (game
    versions only, present when loaders matched) and addon. When no loader
    matched, the plugin group is tried before the mod group. Empty groups are
    dropped; a single empty group is returned when nothing matched at all.
    """
    java_names = [j.name for j in (JavaVersion.parse(x) for x in java_versions) if j]
    game_version_names = [format_game_version_snapshot(x) for x in game_versions]
    plugin_game_version_names = [format_game_version(x) for x in game_versions]

    game_version_ids = find_ids_by_names(
        version_map.game_versions, game_version_names, None, snapshot_name_comparer
    )
    loader_ids = find_ids_by_names(version_map.loaders, list(loaders))
    java_ids = find_ids_by_names(version_map.java_versions, java_names)
    plugin_ids = find_ids_by_names(
        version_map.game_versions_for_plugins, plugin_game_version_names, None, plugin_name_comparer
    )
    addon_ids = find_ids_by_names(
        version_map.game_versions_for_addons, plugin_game_version_names, None, plugin_name_comparer
    )

    variants = [
        game_version_ids + loader_ids + java_ids if loader_ids else list(game_version_ids),
        plugin_ids,
        list(game_version_ids) if loader_ids else [],
        addon_ids,
    ]
    if not loader_ids:
        variants[0], variants[1] = variants[1], variants[0]

    non_empty = [x for x in variants if x]
    return non_empty or [[]]


class VersionVariantResolver:
    """Turns requested names into identifier groups using live reference data."""

    def __init__(
        self,
        version_map_provider: Callable[[], CurseForgeGameVersionMap],
        game_version_provider: GameVersionProvider,
    ):
        self.version_map_provider = version_map_provider
        self.game_version_provider = game_version_provider

    def resolve(
        self,
        game_versions: Iterable[str] = (),
        loaders: Iterable[str] = (),
        java_versions: Iterable[object] = (),
    ) -> List[List[int]]:
        names = [x for x in game_versions or [] if x]
        resolved = self.game_version_provider(names) if names else []
        if names and not resolved:
            logger.warning("None of the game versions %s are known", ", ".join(names))

        variants = build_version_variants(self.version_map_provider(), resolved, loaders, java_versions)
        logger.debug("CurseForge game version variants: %s", variants)
        return variants

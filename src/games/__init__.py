"""Game and runtime version lookups.

- models.py: GameVersion and JavaVersion values
- minecraft.py: Mojang version manifest client and range resolution
"""

from .models import GameVersion, GameVersionProvider, JavaVersion  # noqa: F401
from .minecraft import MojangApiClient, normalize_minecraft_version  # noqa: F401

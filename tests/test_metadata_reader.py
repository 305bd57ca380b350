"""Tests for reading mod metadata from jar files."""

import json
import zipfile

import pytest

from constants import PlatformType
from dependencies.models import DependencyType
from metadata.reader import interval_to_range, read_metadata

FABRIC_MOD = {
    "schemaVersion": 1,
    "id": "examplemod",
    "version": "1.0.0",
    "name": "Example Mod",
    "depends": {
        "fabricloader": ">=0.14",
        "minecraft": ">=1.19",
        "java": ">=17",
        "fabric": "*",
    },
    "recommends": {"modmenu": "*"},
    "breaks": {"optifine": "*"},
    "custom": {
        "mc-publish": {
            "loaders": ["fabric", "quilt"],
            "dependencies": ["modmenu(optional){curseforge:modmenu-cf}"],
        },
    },
}

FORGE_TOML = """
modLoader = "javafml"
loaderVersion = "[41,)"

[[mods]]
modId = "examplemod"
version = "2.0.0"
displayName = "Example Forge Mod"

[[dependencies.examplemod]]
modId = "forge"
mandatory = true
versionRange = "[41,)"

[[dependencies.examplemod]]
modId = "minecraft"
mandatory = true
versionRange = "[1.19,1.20)"

[[dependencies.examplemod]]
modId = "jei"
mandatory = false
versionRange = "[11.0,)"

[dependencies.examplemod.mc-publish]
modrinth = "jei-modrinth"
"""

NEOFORGE_TOML = """
[[mods]]
modId = "neomod"
version = "3.0.0"

[[dependencies.neomod]]
modId = "neoforge"
type = "required"
versionRange = "[20.4,)"

[[dependencies.neomod]]
modId = "curios"
type = "optional"

[[dependencies.neomod]]
modId = "rubidium"
type = "incompatible"
"""

QUILT_MOD = {
    "schema_version": 1,
    "quilt_loader": {
        "id": "quiltmod",
        "version": "0.1.0",
        "metadata": {"name": "Quilt Mod"},
        "depends": [
            "quilt_loader",
            {"id": "minecraft", "versions": "1.20.x"},
            {"id": "qsl", "optional": True},
            {"id": "fabric", "versions": "*", "provided": True},
        ],
        "breaks": [{"id": "sodium", "unless": "indium"}],
    },
}


def _jar(tmp_path, entries, name="mod.jar"):
    path = tmp_path / name
    with zipfile.ZipFile(path, "w") as archive:
        for entry, content in entries.items():
            archive.writestr(entry, content)
    return str(path)


def _by_id(metadata):
    return {d.id: d for d in metadata.dependencies}


class TestFabric:
    """fabric.mod.json"""

    def test_reads_fields(self, tmp_path):
        """Test reads fields."""
        metadata = read_metadata(_jar(tmp_path, {"fabric.mod.json": json.dumps(FABRIC_MOD)}))

        assert metadata.id == "examplemod"
        assert metadata.name == "Example Mod"
        assert metadata.version == "1.0.0"
        assert metadata.loaders == ("fabric", "quilt")
        assert metadata.game_versions == (">=1.19",)

    def test_dependencies(self, tmp_path):
        """Test dependency extraction from fabric.mod.json."""
        dependencies = _by_id(read_metadata(_jar(tmp_path, {"fabric.mod.json": json.dumps(FABRIC_MOD)})))

        assert dependencies["minecraft"].ignore
        assert dependencies["java"].ignore
        assert dependencies["fabricloader"].ignore
        assert dependencies["fabric"].get_project_id(PlatformType.MODRINTH) == "fabric-api"
        assert dependencies["fabric"].get_project_id(PlatformType.CURSEFORGE) == "fabric-api"
        assert dependencies["optifine"].type is DependencyType.INCOMPATIBLE
        assert dependencies["modmenu"].type is DependencyType.OPTIONAL
        assert dependencies["modmenu"].get_project_id(PlatformType.CURSEFORGE) == "modmenu-cf"

    def test_loaders_default_to_fabric(self, tmp_path):
        """Test loaders default to fabric."""
        mod = {"id": "plain", "version": "1", "depends": {"minecraft": "1.19.2"}}

        metadata = read_metadata(_jar(tmp_path, {"fabric.mod.json": json.dumps(mod)}))

        assert metadata.loaders == ("fabric",)
        assert metadata.name == "plain"
        assert metadata.game_versions == ("1.19.2",)


class TestForge:
    """META-INF/mods.toml and META-INF/neoforge.mods.toml"""

    def test_forge(self, tmp_path):
        """Test reading META-INF/mods.toml."""
        metadata = read_metadata(_jar(tmp_path, {"META-INF/mods.toml": FORGE_TOML}))

        assert metadata.id == "examplemod"
        assert metadata.name == "Example Forge Mod"
        assert metadata.version == "2.0.0"
        assert metadata.loaders == ("forge",)
        assert metadata.game_versions == (">=1.19 <1.20",)

        dependencies = _by_id(metadata)
        assert dependencies["forge"].ignore
        assert dependencies["jei"].type is DependencyType.OPTIONAL
        assert dependencies["jei"].versions == (">=11.0",)
        assert dependencies["jei"].get_project_id(PlatformType.MODRINTH) == "jei-modrinth"
        assert dependencies["jei"].get_project_id(PlatformType.CURSEFORGE) == "jei"

    def test_neoforge_wins_over_forge(self, tmp_path):
        """Test neoforge wins over forge."""
        metadata = read_metadata(_jar(tmp_path, {
            "META-INF/mods.toml": FORGE_TOML,
            "META-INF/neoforge.mods.toml": NEOFORGE_TOML,
        }))

        assert metadata.id == "neomod"
        assert metadata.loaders == ("neoforge",)
        dependencies = _by_id(metadata)
        assert dependencies["neoforge"].ignore
        assert dependencies["curios"].type is DependencyType.OPTIONAL
        assert dependencies["rubidium"].type is DependencyType.INCOMPATIBLE


class TestQuilt:
    """quilt.mod.json"""

    def test_reads_fields(self, tmp_path):
        """Test reads fields."""
        metadata = read_metadata(_jar(tmp_path, {"quilt.mod.json": json.dumps(QUILT_MOD)}))

        assert metadata.id == "quiltmod"
        assert metadata.name == "Quilt Mod"
        assert metadata.loaders == ("quilt",)
        assert metadata.game_versions == ("1.20.x",)

        dependencies = _by_id(metadata)
        assert dependencies["quilt_loader"].ignore
        assert dependencies["qsl"].type is DependencyType.OPTIONAL
        assert dependencies["fabric"].type is DependencyType.EMBEDDED
        assert dependencies["sodium"].type is DependencyType.CONFLICTING


class TestReadMetadata:
    """Archive handling."""

    def test_not_an_archive(self, tmp_path):
        """Test not an archive."""
        path = tmp_path / "mod.jar"
        path.write_bytes(b"not a zip")

        assert read_metadata(str(path)) is None

    def test_missing_file(self, tmp_path):
        """Test missing file."""
        assert read_metadata(str(tmp_path / "missing.jar")) is None

    def test_no_known_metadata(self, tmp_path):
        """Test no known metadata."""
        assert read_metadata(_jar(tmp_path, {"plugin.yml": "name: Plugin"})) is None

    def test_broken_metadata_falls_through(self, tmp_path):
        """Test broken metadata falls through."""
        path = _jar(tmp_path, {"fabric.mod.json": "{broken", "META-INF/mods.toml": FORGE_TOML})

        assert read_metadata(path).id == "examplemod"
        assert read_metadata(path).loaders == ("forge",)


@pytest.mark.parametrize("interval,expected", [
    ("[1.19,1.20)", ">=1.19 <1.20"),
    ("(1.18,1.19]", ">1.18 <=1.19"),
    ("[41,)", ">=41"),
    ("[1.19.2]", "1.19.2"),
    ("(,1.20)", "<1.20"),
    ("[1.16,1.17),[1.18,)", ">=1.16 <1.17 || >=1.18"),
    ("1.19", "1.19"),
])
def test_interval_to_range(interval, expected):
    """Test interval to range."""
    assert interval_to_range(interval) == expected

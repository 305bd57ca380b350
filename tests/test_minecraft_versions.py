"""Tests for Minecraft version normalization and lookup."""

from unittest.mock import MagicMock

import pytest
import semantic_version

from games.minecraft import MojangApiClient, find_nearest_release, normalize_minecraft_version
from games.models import GameVersion, JavaVersion

MANIFEST = {
    "versions": [
        {"id": "1.20", "type": "release", "releaseTime": "2023-06-07T00:00:00+00:00"},
        {"id": "1.20-pre2", "type": "snapshot", "releaseTime": "2023-05-16T00:00:00+00:00"},
        {"id": "1.19.2", "type": "release", "releaseTime": "2022-08-05T00:00:00+00:00"},
        {"id": "22w11a", "type": "snapshot", "releaseTime": "2022-03-16T00:00:00+00:00"},
        {"id": "1.19", "type": "release", "releaseTime": "2022-06-07T00:00:00+00:00"},
        {"id": "1.18.2", "type": "release", "releaseTime": "2022-02-28T00:00:00+00:00"},
    ]
}


class TestNormalizeMinecraftVersion:
    """Mapping of manifest ids onto semantic versions."""

    @pytest.mark.parametrize("version_id,release,expected", [
        ("1.20.1", None, "1.20.1"),
        ("1.20", None, "1.20.0"),
        ("1.20-pre2", None, "1.20.0-beta.2"),
        ("1.14-pre1", None, "1.14.0-rc.1"),
        ("1.16-rc1", None, "1.16.0-rc.9"),
        ("1.20.1-rc1", None, "1.20.1-rc.1"),
        ("23w13a", "1.20", "1.20.0-alpha.23.13.a"),
        ("b1.7.3", None, "1.0.0-beta.7.3"),
        ("a1.2.6", None, "1.0.0-alpha.2.6"),
    ])
    def test_normalizes(self, version_id, release, expected):
        """Test normalization of snapshot and pre-release ids."""
        assert normalize_minecraft_version(version_id, release) == expected

    def test_result_is_a_valid_semantic_version(self):
        """Test result is a valid semantic version."""
        semantic_version.Version(normalize_minecraft_version("23w13a", "1.20"))


class TestFindNearestRelease:
    """Release lookup for manifest entries sorted newest first."""

    def test_release_is_its_own_release(self):
        """Test release is its own release."""
        entries = [{"id": "1.19", "type": "release"}]

        assert find_nearest_release(entries, 0) == "1.19"

    def test_snapshot_uses_following_release(self):
        """Test snapshot uses following release."""
        entries = [
            {"id": "1.19", "type": "release"},
            {"id": "22w11a", "type": "snapshot"},
            {"id": "1.18.2", "type": "release"},
        ]

        assert find_nearest_release(entries, 1) == "1.19"

    def test_pre_release_reads_release_from_id(self):
        """Test pre release reads release from id."""
        entries = [{"id": "1.20", "type": "release"}, {"id": "1.19.3-pre1", "type": "snapshot"}]

        assert find_nearest_release(entries, 1) == "1.19.3"

    def test_hardcoded_snapshot_weeks(self):
        """Test hardcoded snapshot weeks."""
        entries = [{"id": "23w18a", "type": "snapshot"}]

        assert find_nearest_release(entries, 0) == "1.20"

    def test_old_alpha_has_no_release(self):
        """Test old alpha has no release."""
        entries = [{"id": "a1.0.4", "type": "old_alpha"}]

        assert find_nearest_release(entries, 0) is None


class TestMojangApiClient:
    """Version lookup against a canned manifest."""

    @pytest.fixture
    def client(self):
        http = MagicMock()
        http.get_json.return_value = MANIFEST
        return MojangApiClient(http)

    def test_all_versions_are_newest_first(self, client):
        """Test all versions are newest first."""
        ids = list(client.get_all_versions())

        assert ids[0] == "1.20"
        assert ids[-1] == "1.18.2"

    def test_snapshot_borrows_following_release(self, client):
        """Test snapshot borrows following release."""
        snapshot = client.get_all_versions()["22w11a"]

        assert snapshot.is_snapshot
        assert snapshot.version == semantic_version.Version("1.19.0-alpha.22.11.a")

    def test_manifest_is_fetched_once(self, client):
        """Test manifest is fetched once."""
        client.get_all_versions()
        client.get_versions(["1.19"])

        assert client.http.get_json.call_count == 1

    def test_exact_id(self, client):
        """Test lookup by exact version id."""
        assert [v.id for v in client.get_versions(["1.19"])] == ["1.19"]

    def test_range(self, client):
        """Test lookup by semantic version range."""
        releases = [v.id for v in client.get_versions([">=1.19 <1.20"]) if v.is_release]

        assert releases == ["1.19.2", "1.19"]

    def test_x_range(self, client):
        """Test lookup by x-range."""
        releases = [v.id for v in client(["1.19.x"]) if v.is_release]

        assert releases == ["1.19.2", "1.19"]

    def test_get_version(self, client):
        """Test fetching a single version by id."""
        assert client.get_version("1.19.2").version == semantic_version.Version("1.19.2")
        assert client.get_version("1.99") is None


class TestJavaVersion:
    """Java runtime version parsing."""

    @pytest.mark.parametrize("value,expected", [
        (17, 17), ("17", 17), ("Java 17", 17), ("java21", 21), ("1.8", 8),
    ])
    def test_parse(self, value, expected):
        """Test Java version parsing."""
        assert JavaVersion.parse(value).version == expected

    @pytest.mark.parametrize("value", [None, "", "latest", 0, True])
    def test_parse_rejects(self, value):
        """Test Java version parsing rejects garbage."""
        assert JavaVersion.parse(value) is None

    def test_name(self):
        """Test Java version catalog name."""
        assert JavaVersion(17).name == "Java 17"


def test_game_version_release_flags():
    """Test game version release flags."""
    release = GameVersion("1.19", semantic_version.Version("1.19.0"))
    snapshot = GameVersion("22w11a", semantic_version.Version("1.19.0-alpha.22.11.a"), type="snapshot")

    assert release.is_release and not release.is_snapshot
    assert snapshot.is_snapshot
    assert str(release) == "1.19"

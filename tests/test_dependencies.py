"""Tests for dependency notation and platform reconciliation."""

from constants import PlatformType
from dependencies.models import (
    Dependency,
    DependencyType,
    create_dependency,
    format_dependency,
    parse_dependencies,
    parse_dependency,
)
from dependencies.reconcile import dedupe_by, simplify
from platforms.curseforge.models import CurseForgeDependencyType
from platforms.modrinth.models import ModrinthDependencyType


class TestParseDependency:
    """String and mapping notation."""

    def test_parses_full_notation(self):
        """Test parses full notation."""
        dependency = parse_dependency("foo@1.0.0(optional){modrinth:foo-fabric}{curseforge:foo-cf}#(ignore:github)")

        assert dependency.id == "foo"
        assert dependency.versions == ("1.0.0",)
        assert dependency.type is DependencyType.OPTIONAL
        assert dependency.get_project_id(PlatformType.MODRINTH) == "foo-fabric"
        assert dependency.get_project_id(PlatformType.CURSEFORGE) == "foo-cf"
        assert dependency.get_project_id(PlatformType.GITHUB) == "foo"
        assert dependency.is_ignored(PlatformType.GITHUB)
        assert not dependency.is_ignored(PlatformType.MODRINTH)
        assert not dependency.ignore

    def test_bare_id_is_required_any_version(self):
        """Test bare id is required any version."""
        dependency = parse_dependency("fabric-api")

        assert dependency.type is DependencyType.REQUIRED
        assert dependency.versions == ("*",)
        assert not dependency.is_ignored()

    def test_ignore_without_platforms_hides_from_all(self):
        """Test ignore without platforms hides from all."""
        dependency = parse_dependency("foo(embedded)#(ignore)")

        assert dependency.type is DependencyType.EMBEDDED
        assert dependency.ignore
        assert all(dependency.is_ignored(p) for p in PlatformType)

    def test_unknown_type_falls_back_to_required(self):
        """Test unknown type falls back to required."""
        assert parse_dependency("foo(sometimes)").type is DependencyType.REQUIRED

    def test_legacy_notation(self):
        """Test legacy notation."""
        dependency = parse_dependency("sodium | suggests | >=0.4")

        assert dependency.id == "sodium"
        assert dependency.type is DependencyType.OPTIONAL
        assert dependency.versions == (">=0.4",)

    def test_legacy_notation_with_fabric_break(self):
        """Test legacy notation with fabric break."""
        dependency = parse_dependency("optifine | breaks")

        assert dependency.type is DependencyType.INCOMPATIBLE
        assert dependency.versions == ("*",)

    def test_mapping(self):
        """Test alias mapping per platform."""
        dependency = parse_dependency({
            "id": "foo",
            "type": "recommended",
            "versions": ["1.0", "*"],
            "ignored_platforms": ["CurseForge"],
            "aliases": {"modrinth": "bar"},
        })

        assert dependency.type is DependencyType.RECOMMENDED
        assert dependency.versions == ("1.0",)
        assert dependency.ignored_platforms == frozenset({PlatformType.CURSEFORGE})
        assert dependency.get_project_id(PlatformType.MODRINTH) == "bar"

    def test_invalid_input(self):
        """Test rejection of malformed notation."""
        assert parse_dependency("") is None
        assert parse_dependency({"type": "required"}) is None
        assert parse_dependency(42) is None

    def test_parse_dependencies_splits_lines_and_drops_garbage(self):
        """Test parse dependencies splits lines and drops garbage."""
        dependencies = parse_dependencies("foo@1.0\n\nbar(optional)\n")

        assert [d.id for d in dependencies] == ["foo", "bar"]

    def test_format_dependency(self):
        """Test formatting a dependency back to notation."""
        dependency = create_dependency(
            "foo", type="optional", versions="1.0.0",
            ignored_platforms=["curseforge"], aliases={"modrinth": "foo-fabric"},
        )

        assert format_dependency(dependency) == "foo@1.0.0(optional){modrinth:foo-fabric}#(ignore:curseforge)"

    def test_ignored_everywhere_counts_as_ignored(self):
        """Test ignored everywhere counts as ignored."""
        dependency = create_dependency("foo", ignored_platforms=[p.value for p in PlatformType])

        assert dependency.is_ignored()
        assert not dependency.ignore


class TestSimplify:
    """Conversion into (project id, platform kind) pairs."""

    def test_skips_ignored_and_applies_aliases(self):
        """Test skips ignored and applies aliases."""
        dependencies = [
            parse_dependency("fabric{modrinth:fabric-api}"),
            parse_dependency("sodium(optional)#(ignore:modrinth)"),
            parse_dependency("iris(recommended)"),
        ]

        pairs = simplify(dependencies, PlatformType.MODRINTH, ModrinthDependencyType.from_dependency_type)

        assert pairs == [
            ("fabric-api", ModrinthDependencyType.REQUIRED),
            ("iris", ModrinthDependencyType.OPTIONAL),
        ]

    def test_drops_pairs_without_kind(self):
        """Test drops pairs without kind."""
        dependencies = [Dependency(id="foo", type=DependencyType.REQUIRED), Dependency(id="bar")]

        pairs = simplify(dependencies, PlatformType.CURSEFORGE, lambda kind: None)

        assert pairs == []

    def test_lossy_curseforge_kinds(self):
        """Test lossy curseforge kinds."""
        dependencies = parse_dependencies(["a(recommended)", "b(optional)", "c(conflicting)", "d(embedded)"])

        pairs = simplify(dependencies, PlatformType.CURSEFORGE, CurseForgeDependencyType.from_dependency_type)

        assert [kind for _, kind in pairs] == [
            CurseForgeDependencyType.OPTIONAL_DEPENDENCY,
            CurseForgeDependencyType.OPTIONAL_DEPENDENCY,
            CurseForgeDependencyType.INCOMPATIBLE,
            CurseForgeDependencyType.EMBEDDED_LIBRARY,
        ]

    def test_keeps_duplicates(self):
        """Test keeps duplicates."""
        dependencies = parse_dependencies(["foo", "FOO"])

        assert len(simplify(dependencies, PlatformType.CURSEFORGE, lambda kind: kind)) == 2

    def test_dedupe_by_keeps_first(self):
        """Test dedupe by keeps first."""
        items = [("Foo", 1), ("foo", 2), ("bar", 3)]

        assert dedupe_by(items, lambda x: x[0].casefold()) == [("Foo", 1), ("bar", 3)]

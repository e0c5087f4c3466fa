#!/usr/bin/env python3
"""
Tests for descriptor loading and dependency graph construction.

Descriptors are written to a temporary directory and loaded into a fresh
registry for every test.
"""

import json
import sys
import tempfile
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent))

from autocheck.errors import ConfigurationError, DescriptorError
from autocheck.graph import load_all, parse_descriptor
from autocheck.registry import RepositoryRegistry


def write_descriptor(config_dir: Path, filename: str, data) -> Path:
    """Write a descriptor file; non-dict data is written verbatim."""
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / filename
    if isinstance(data, str):
        path.write_text(data, encoding='utf-8')
    else:
        path.write_text(json.dumps(data), encoding='utf-8')
    return path


def test_parse_full_descriptor():
    """All descriptor fields are read."""
    print("Testing Full Descriptor")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        source = write_descriptor(Path(temp_dir), "app.json", {
            "name": "app",
            "path": "/srv/app",
            "branch": "stable",
            "depends": {"lib": "vendor/lib", "tools": None},
            "builds": ["make", "make check"]
        })

        descriptor = parse_descriptor(source)

        assert descriptor.name == "app"
        assert descriptor.path == Path("/srv/app")
        assert descriptor.branch == "stable"
        assert descriptor.depends == {"lib": "vendor/lib", "tools": None}
        assert descriptor.builds == ["make", "make check"]
        assert descriptor.source == source

    print("  ✓ name, path, branch, depends and builds parsed")


def test_parse_defaults_and_list_depends():
    """Branch defaults; a plain list of dependency names is accepted."""
    print("\nTesting Descriptor Defaults")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        source = write_descriptor(Path(temp_dir), "app.json", {
            "name": "app",
            "path": "/srv/app",
            "depends": ["lib", "tools"]
        })

        descriptor = parse_descriptor(source, default_branch="trunk")

        assert descriptor.branch == "trunk"
        assert descriptor.depends == {"lib": None, "tools": None}
        assert descriptor.builds == []

    print("  ✓ Default branch applied, list depends normalized")


def test_parse_rejects_bad_descriptors():
    """Malformed descriptors raise DescriptorError."""
    print("\nTesting Malformed Descriptors")
    print("-" * 40)

    bad_cases = {
        "broken.json": "{ not json",
        "array.json": "[1, 2, 3]",
        "noname.json": {"path": "/srv/x"},
        "nopath.json": {"name": "x"},
        "badbuilds.json": {"name": "x", "path": "/srv/x", "builds": "make"},
        "baddepends.json": {"name": "x", "path": "/srv/x", "depends": "lib"},
        "badpath.json": {"name": "x", "path": "/srv/x", "depends": {"lib": 3}},
    }

    with tempfile.TemporaryDirectory() as temp_dir:
        for filename, data in bad_cases.items():
            source = write_descriptor(Path(temp_dir), filename, data)
            try:
                parse_descriptor(source)
            except DescriptorError as e:
                assert e.descriptor_path == source
                print(f"  ✓ {filename} rejected: {e}")
            else:
                raise AssertionError(f"{filename} should have been rejected")


def test_load_wires_reverse_edges():
    """A declaring a dependency on B puts A in B's dependents."""
    print("\nTesting Reverse Edges")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        config_dir = Path(temp_dir) / "configs"
        write_descriptor(config_dir, "a.json", {"name": "A", "path": "/srv/a"})
        write_descriptor(config_dir, "b.json", {"name": "B", "path": "/srv/b", "depends": {"A": None}})
        write_descriptor(config_dir, "c.json", {"name": "C", "path": "/srv/c", "depends": {"B": None, "A": None}})

        registry = RepositoryRegistry()
        loaded = load_all(config_dir, registry)

        assert [repo.name for repo in loaded] == ["A", "B", "C"]
        assert [repo.name for repo in registry.get("A").dependents] == ["B", "C"]
        assert [repo.name for repo in registry.get("B").dependents] == ["C"]
        assert registry.get("C").dependents == []
        assert all(repo.valid for repo in registry)

    print("  ✓ Dependents are the transpose of declared dependencies")


def test_dependency_referenced_before_its_descriptor():
    """A dependency met before its own descriptor ends up as one valid record."""
    print("\nTesting Load Order Independence")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        config_dir = Path(temp_dir) / "configs"
        # "app" sorts before "zlib", so zlib is first seen as a dependency
        write_descriptor(config_dir, "app.json", {"name": "app", "path": "/srv/app", "depends": {"zlib": "deps/zlib"}})
        write_descriptor(config_dir, "zlib.json", {"name": "zlib", "path": "/srv/zlib", "branch": "develop"})

        registry = RepositoryRegistry()
        load_all(config_dir, registry)

        zlib = registry.get("zlib")
        assert len(registry) == 2
        assert registry.names() == ["app", "zlib"]
        assert zlib.valid is True
        assert zlib.path == Path("/srv/zlib")
        assert zlib.branch == "develop"
        assert [repo.name for repo in zlib.dependents] == ["app"]

    print("  ✓ Placeholder record completed by the later descriptor")


def test_dependency_without_descriptor_stays_invalid():
    """A repository only known as a dependency is registered but invalid."""
    print("\nTesting Dependency-Only Repository")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        config_dir = Path(temp_dir) / "configs"
        write_descriptor(config_dir, "app.json", {"name": "app", "path": "/srv/app", "depends": ["external"]})

        registry = RepositoryRegistry()
        load_all(config_dir, registry)

        external = registry.get("external")
        assert external is not None
        assert external.valid is False
        assert external.path is None
        assert [repo.name for repo in registry.valid_repositories()] == ["app"]

    print("  ✓ External dependency registered as invalid")


def test_bad_and_foreign_files_are_skipped():
    """Malformed descriptors and files without the suffix do not stop loading."""
    print("\nTesting Skipped Files")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        config_dir = Path(temp_dir) / "configs"
        write_descriptor(config_dir, "a.json", {"name": "A", "path": "/srv/a"})
        write_descriptor(config_dir, "broken.json", "{ \"name\": ")
        write_descriptor(config_dir, "README.md", "not a descriptor")
        write_descriptor(config_dir, "c.json", {"name": "C", "path": "/srv/c", "depends": ["A"]})
        (config_dir / "dir.json").mkdir()

        registry = RepositoryRegistry()
        loaded = load_all(config_dir, registry)

        assert [repo.name for repo in loaded] == ["A", "C"]
        assert registry.names() == ["A", "C"]

    print("  ✓ Only well-formed descriptors were loaded")


def test_duplicate_descriptor_keeps_first():
    """A second descriptor with the same name is skipped."""
    print("\nTesting Duplicate Descriptor")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        config_dir = Path(temp_dir) / "configs"
        write_descriptor(config_dir, "lib.json", {"name": "lib", "path": "/srv/lib"})
        write_descriptor(config_dir, "lib2.json", {"name": "lib", "path": "/srv/other"})
        write_descriptor(config_dir, "app.json", {"name": "app", "path": "/srv/app", "depends": ["lib"]})

        registry = RepositoryRegistry()
        load_all(config_dir, registry)

        assert registry.get("lib").path == Path("/srv/lib")
        assert len(registry) == 2

    print("  ✓ First descriptor wins")


def test_custom_suffix():
    """Only files with the configured suffix are descriptors."""
    print("\nTesting Custom Suffix")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        config_dir = Path(temp_dir) / "configs"
        write_descriptor(config_dir, "a.repo.json", {"name": "A", "path": "/srv/a"})
        write_descriptor(config_dir, "b.json", {"name": "B", "path": "/srv/b"})

        registry = RepositoryRegistry()
        load_all(config_dir, registry, suffix=".repo.json")

        assert registry.names() == ["A"]

    print("  ✓ Suffix filter applied")


def test_missing_directory_is_configuration_error():
    """An unopenable descriptor directory is fatal."""
    print("\nTesting Missing Directory")
    print("-" * 40)

    with tempfile.TemporaryDirectory() as temp_dir:
        try:
            load_all(Path(temp_dir) / "nope", RepositoryRegistry())
        except ConfigurationError as e:
            assert "nope" in str(e)
            print("  ✓ ConfigurationError raised")
        else:
            raise AssertionError("missing directory should be fatal")


def run_all_tests():
    """Run all graph loading tests."""
    print("Dependency Graph Loading Tests")
    print("=" * 50)

    tests = [
        test_parse_full_descriptor,
        test_parse_defaults_and_list_depends,
        test_parse_rejects_bad_descriptors,
        test_load_wires_reverse_edges,
        test_dependency_referenced_before_its_descriptor,
        test_dependency_without_descriptor_stays_invalid,
        test_bad_and_foreign_files_are_skipped,
        test_duplicate_descriptor_keeps_first,
        test_custom_suffix,
        test_missing_directory_is_configuration_error
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            failed += 1
            print(f"  ✗ {test.__name__} failed with exception: {e}")

    print("\n" + "=" * 50)
    print(f"Test Results: {passed} passed, {failed} failed")
    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)

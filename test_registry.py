#!/usr/bin/env python3
"""
Unit tests for the repository registry.

Covers get-or-create deduplication, creation order, and prefix resolution
of command-line selectors.
"""

import sys
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent))

from autocheck.errors import AmbiguousSelectorError, SelectorNotFoundError, EXIT_SELECTOR
from autocheck.registry import RepositoryRegistry


def test_get_or_create_is_idempotent():
    """Two calls with the same name return the same record."""
    print("Testing get_or_create Idempotence")
    print("-" * 40)

    registry = RepositoryRegistry()
    first = registry.get_or_create("libfoo")
    second = registry.get_or_create("libfoo")

    assert first is second, "same name should return the same record"
    assert len(registry) == 1, "registry should hold a single record"
    assert registry.names() == ["libfoo"]

    print("  ✓ Same record returned for repeated names")


def test_new_records_are_invalid_placeholders():
    """A freshly created record has defaults and is not valid."""
    print("\nTesting New Record Defaults")
    print("-" * 40)

    registry = RepositoryRegistry(default_branch="develop")
    repo = registry.get_or_create("libfoo")

    assert repo.valid is False
    assert repo.todo is False
    assert repo.branch == "develop", "branch should default to the registry default"
    assert repo.path is None
    assert repo.builds == []
    assert repo.dependents == []

    print("  ✓ Placeholder record has default branch and no descriptor data")


def test_creation_order_is_preserved():
    """Iteration follows creation order, not name order."""
    print("\nTesting Creation Order")
    print("-" * 40)

    registry = RepositoryRegistry()
    for name in ["zeta", "alpha", "mid", "alpha"]:
        registry.get_or_create(name)

    assert registry.names() == ["zeta", "alpha", "mid"]
    assert [repo.name for repo in registry] == ["zeta", "alpha", "mid"]
    assert registry.index_of("mid") == 2
    assert "alpha" in registry
    assert "beta" not in registry
    assert registry.get("beta") is None

    print("  ✓ Registry order matches creation order")


def test_names_are_case_sensitive():
    """Lookup is an exact, case-sensitive match."""
    print("\nTesting Case Sensitivity")
    print("-" * 40)

    registry = RepositoryRegistry()
    lower = registry.get_or_create("core")
    upper = registry.get_or_create("Core")

    assert lower is not upper
    assert len(registry) == 2

    print("  ✓ 'core' and 'Core' are distinct repositories")


def test_empty_name_rejected():
    """An empty name is a programming error."""
    print("\nTesting Empty Name")
    print("-" * 40)

    registry = RepositoryRegistry()
    try:
        registry.get_or_create("")
    except ValueError:
        print("  ✓ Empty name raises ValueError")
    else:
        raise AssertionError("empty name should be rejected")


def test_find_candidate_unique_prefix():
    """A prefix matching exactly one repository resolves to it."""
    print("\nTesting Unique Prefix Resolution")
    print("-" * 40)

    registry = RepositoryRegistry()
    registry.get_or_create("efl")
    registry.get_or_create("enlightenment")
    registry.get_or_create("terminology")

    assert registry.find_candidate("term").name == "terminology"
    assert registry.find_candidate("enl").name == "enlightenment"
    assert registry.find_candidate("efl").name == "efl"

    print("  ✓ Unique prefixes resolve to the full repository")


def test_find_candidate_not_found():
    """No match is reported as not found."""
    print("\nTesting Unknown Selector")
    print("-" * 40)

    registry = RepositoryRegistry()
    registry.get_or_create("efl")

    try:
        registry.find_candidate("python")
    except SelectorNotFoundError as e:
        assert e.selector == "python"
        assert e.exit_code == EXIT_SELECTOR
        print("  ✓ Unknown selector raises SelectorNotFoundError")
    else:
        raise AssertionError("unknown selector should not resolve")


def test_find_candidate_ambiguous_lists_all_matches():
    """Several matches are a hard error listing every candidate."""
    print("\nTesting Ambiguous Selector")
    print("-" * 40)

    registry = RepositoryRegistry()
    registry.get_or_create("core")
    registry.get_or_create("core-utils")
    registry.get_or_create("core-net")
    registry.get_or_create("app")

    try:
        registry.find_candidate("core")
    except AmbiguousSelectorError as e:
        assert e.matches == ["core", "core-utils", "core-net"], f"unexpected matches: {e.matches}"
        assert "core-utils" in str(e)
        print("  ✓ Ambiguous selector lists all matching names")
    else:
        raise AssertionError("ambiguous selector should not resolve")


def test_dependents_added_once():
    """Reverse edges are recorded at most once per dependent."""
    print("\nTesting Dependent Deduplication")
    print("-" * 40)

    registry = RepositoryRegistry()
    lib = registry.get_or_create("lib")
    app = registry.get_or_create("app")

    assert lib.add_dependent(app) is True
    assert lib.add_dependent(app) is False
    assert lib.dependents == [app]

    print("  ✓ Dependent edge stored once")


def run_all_tests():
    """Run all registry tests."""
    print("Repository Registry Tests")
    print("=" * 50)

    tests = [
        test_get_or_create_is_idempotent,
        test_new_records_are_invalid_placeholders,
        test_creation_order_is_preserved,
        test_names_are_case_sensitive,
        test_empty_name_rejected,
        test_find_candidate_unique_prefix,
        test_find_candidate_not_found,
        test_find_candidate_ambiguous_lists_all_matches,
        test_dependents_added_once
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

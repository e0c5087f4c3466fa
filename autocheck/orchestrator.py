"""Synchronize every working copy and feed changes into propagation."""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Set, Tuple

from .errors import SyncError
from .git_sync import GitSyncResult, has_git_metadata
from .propagation import mark_dirty
from .registry import Repository, RepositoryRegistry


class Synchronizer(Protocol):
    """Anything that can force a working copy to its remote branch tip."""

    def sync(self, path: Path, branch: str) -> GitSyncResult:
        ...

    def content_id(self, path: Path) -> Optional[str]:
        ...


def parse_selector(selector: str) -> Tuple[str, Optional[str]]:
    """Split ``name-or-prefix[:branch]``; an empty branch means no override."""
    name, _, branch = selector.partition(":")
    return name, (branch or None)


def apply_selectors(registry: RepositoryRegistry, selectors: Iterable[str]) -> List[Repository]:
    """
    Resolve command-line selectors and mark each target dirty.

    Every selector is resolved before anything is marked, so a bad
    selector leaves the registry untouched.

    Raises:
        SelectorError: If a selector matches nothing or several repositories
    """
    logger = logging.getLogger('autocheck.orchestrator')

    resolved = []
    for selector in selectors:
        name, branch = parse_selector(selector)
        resolved.append((registry.find_candidate(name), branch))

    for repository, branch in resolved:
        if branch:
            logger.info(f"Repository {repository.name} will use branch {branch}")
            repository.branch = branch
        if not repository.valid:
            logger.warning(f"Repository {repository.name} has no descriptor, only its dependents will build")
        mark_dirty(repository, reason="requested")

    return [repository for repository, _ in resolved]


class SyncOrchestrator:
    """
    Walks valid repositories in registry order and synchronizes them.

    Nested dependency checkouts are keyed by (parent path, relative path)
    and synced once per run. Any failed sync stops the walk.
    """

    def __init__(self, registry: RepositoryRegistry, synchronizer: Synchronizer):
        self.registry = registry
        self.synchronizer = synchronizer
        self.logger = logging.getLogger('autocheck.orchestrator')
        self._nested_synced: Set[Tuple[Path, str]] = set()

    def _sync_or_raise(self, name: str, path: Path, branch: str) -> GitSyncResult:
        self.logger.debug(f"Synchronizing {name} at {path} on {branch}")
        result = self.synchronizer.sync(path, branch)
        if not result.success:
            raise SyncError(name, path, result)
        return result

    def _nested_targets(self, repository: Repository) -> List[Tuple[str, str, Path]]:
        """(dependency name, relative path, checkout path) not yet synced this run."""
        targets = []
        for dependency_name, rel_path in repository.depends.items():
            if rel_path and (Path(repository.path), rel_path) not in self._nested_synced:
                targets.append((dependency_name, rel_path, Path(repository.path) / rel_path))
        return targets

    def sync_repository(self, repository: Repository) -> bool:
        """
        Synchronize one repository and its nested dependency checkouts.

        Syncing the parent reinitializes its submodules, which moves nested
        checkouts back to the commit the parent records. Their content
        identifiers are therefore read before the parent is touched, and a
        nested checkout counts as changed only if it ends up somewhere else.

        Returns:
            True if the repository's own checkout or a nested one changed

        Raises:
            SyncError: On the first failed synchronization
        """
        targets = self._nested_targets(repository)
        before = {
            rel_path: self.synchronizer.content_id(nested_path)
            for _, rel_path, nested_path in targets
            if has_git_metadata(nested_path)
        }

        result = self._sync_or_raise(repository.name, repository.path, repository.branch)
        changed = result.changed
        if changed:
            mark_dirty(repository, reason=f"{result.old_id or 'none'} -> {result.new_id}")

        for dependency_name, rel_path, nested_path in targets:
            if not has_git_metadata(nested_path):
                self.logger.debug(f"No nested checkout of {dependency_name} at {nested_path}")
                continue

            dependency = self.registry.get(dependency_name)
            branch = dependency.branch if dependency is not None else self.registry.default_branch

            nested_result = self._sync_or_raise(f"{repository.name}/{rel_path}", nested_path, branch)
            self._nested_synced.add((Path(repository.path), rel_path))

            previous_id = before.get(rel_path)
            if nested_result.new_id != previous_id:
                changed = True
                mark_dirty(
                    repository,
                    reason=f"nested {dependency_name} moved from {previous_id or 'nothing'} to {nested_result.new_id}"
                )

        return changed

    def sync_all(self) -> List[Repository]:
        """
        Synchronize every valid repository in registry order.

        Returns:
            Repositories whose working copies changed

        Raises:
            SyncError: On the first failed synchronization
        """
        changed = []
        for repository in self.registry.valid_repositories():
            if self.sync_repository(repository):
                changed.append(repository)

        self.logger.info(
            f"Synchronized {len(self.registry.valid_repositories())} repositories, {len(changed)} changed"
        )
        return changed

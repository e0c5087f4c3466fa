"""Mark changed repositories, and everything depending on them, for rebuild."""

import logging
from typing import List, Optional, Set

from .registry import Repository, RepositoryRegistry


logger = logging.getLogger('autocheck.propagation')


def mark_dirty(repository: Repository, reason: Optional[str] = None) -> List[Repository]:
    """
    Flag ``repository`` and all of its transitive dependents as todo.

    Walks the dependents edges with an explicit stack, so deep chains and
    cycles need no recursion. A repository already flagged before this
    sweep has had its dependents flagged by the sweep that set it, so it
    is not descended into again.

    Returns:
        Repositories that became dirty during this call, in visit order
    """
    newly_dirty = []
    visited: Set[str] = set()
    stack = [repository]

    while stack:
        current = stack.pop()
        if current.name in visited:
            continue
        visited.add(current.name)

        if current.todo:
            continue

        current.todo = True
        newly_dirty.append(current)
        if reason and current is repository:
            logger.info(f"Repository {current.name} to check ({reason})")
        else:
            logger.info(f"Repository {current.name} to check")

        # Reversed so dependents are visited in declaration order
        for dependent in reversed(current.dependents):
            if dependent.name not in visited:
                stack.append(dependent)

    return newly_dirty


def dirty_set(registry: RepositoryRegistry) -> Set[str]:
    """Names of every repository currently flagged todo."""
    return {repo.name for repo in registry if repo.todo}

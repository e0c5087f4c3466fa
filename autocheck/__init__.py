"""
autocheck - dependency-aware continuous builds for a set of git repositories.

Each run synchronizes every described working copy with its remote, works
out which repositories changed directly or through a dependency, and runs
their build commands, reporting failures.
"""

__version__ = "1.0.0"
__description__ = "Dependency-aware continuous build orchestrator"

from .registry import Repository, RepositoryRegistry
from .propagation import mark_dirty

__all__ = ["Repository", "RepositoryRegistry", "mark_dirty", "__version__"]

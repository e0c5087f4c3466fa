"""Repository records and the registry that deduplicates them by name."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .config import DEFAULT_BRANCH
from .errors import AmbiguousSelectorError, SelectorNotFoundError


@dataclass(eq=False)
class Repository:
    """
    One repository known to this run.

    ``dependents`` holds the reverse edges ("who depends on me"). Forward
    dependencies stay as raw names in ``depends`` together with the
    relative path of their nested checkout, if any.
    """
    name: str
    path: Optional[Path] = None
    branch: str = DEFAULT_BRANCH
    depends: Dict[str, Optional[str]] = field(default_factory=dict)
    dependents: List["Repository"] = field(default_factory=list)
    builds: List[str] = field(default_factory=list)
    valid: bool = False
    todo: bool = False
    descriptor: Optional[Path] = None

    def add_dependent(self, repository: "Repository") -> bool:
        """Record a reverse edge once; returns False if it already existed."""
        if any(existing is repository for existing in self.dependents):
            return False
        self.dependents.append(repository)
        return True

    def __repr__(self) -> str:
        flags = []
        if self.valid:
            flags.append("valid")
        if self.todo:
            flags.append("todo")
        return f"Repository({self.name!r}, branch={self.branch!r}, {'|'.join(flags) or '-'})"


class RepositoryRegistry:
    """
    Name-keyed store of Repository records in creation order.

    Records live in a list; a name -> index dict makes lookups O(1)
    without changing the observable creation order.
    """

    def __init__(self, default_branch: str = DEFAULT_BRANCH):
        self.default_branch = default_branch
        self._repositories: List[Repository] = []
        self._index: Dict[str, int] = {}
        self.logger = logging.getLogger('autocheck.registry')

    def get_or_create(self, name: str) -> Repository:
        """Return the record for ``name``, creating an invalid placeholder if needed."""
        if not name:
            raise ValueError("Repository name must not be empty")

        position = self._index.get(name)
        if position is not None:
            return self._repositories[position]

        repository = Repository(name=name, branch=self.default_branch)
        self._index[name] = len(self._repositories)
        self._repositories.append(repository)
        self.logger.debug(f"Registered repository {name}")
        return repository

    def get(self, name: str) -> Optional[Repository]:
        position = self._index.get(name)
        return None if position is None else self._repositories[position]

    def index_of(self, name: str) -> int:
        return self._index[name]

    def find_candidate(self, partial_name: str) -> Repository:
        """
        Resolve a possibly abbreviated repository name.

        Every registered name starting with ``partial_name`` is a candidate;
        exactly one candidate is required.

        Raises:
            SelectorNotFoundError: If nothing matches
            AmbiguousSelectorError: If several repositories match
        """
        matches = [repo for repo in self._repositories if repo.name.startswith(partial_name)]

        if not matches:
            raise SelectorNotFoundError(partial_name)
        if len(matches) > 1:
            raise AmbiguousSelectorError(partial_name, [repo.name for repo in matches])
        return matches[0]

    def valid_repositories(self) -> List[Repository]:
        return [repo for repo in self._repositories if repo.valid]

    def todo_repositories(self) -> List[Repository]:
        return [repo for repo in self._repositories if repo.todo]

    def names(self) -> List[str]:
        return [repo.name for repo in self._repositories]

    def __iter__(self) -> Iterator[Repository]:
        return iter(list(self._repositories))

    def __len__(self) -> int:
        return len(self._repositories)

    def __contains__(self, name: str) -> bool:
        return name in self._index

"""Classification of git failures seen while synchronizing a working copy."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class GitErrorCategory(Enum):
    """Kinds of git failure, decided from git's own message."""
    NETWORK = "network"
    AUTHENTICATION = "authentication"
    REPOSITORY_ACCESS = "repository_access"
    BRANCH = "branch"
    WORKING_COPY_BUSY = "working_copy_busy"
    REPOSITORY_CORRUPTION = "repository_corruption"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ErrorResolution:
    """
    What an operator (or the retry loop) should do about one category.

    Only transient categories are ``retryable``; everything else needs a
    person to look at the working copy or the remote.
    """
    category: GitErrorCategory
    user_message: str
    resolution_steps: List[str] = field(default_factory=list)
    retryable: bool = False

"""Recovery hints for Git synchronization failures."""

import logging
from typing import Dict, Optional

from .error_types import GitErrorCategory, ErrorResolution


def build_error_strategies() -> Dict[GitErrorCategory, ErrorResolution]:
    """Build recovery strategies for each error category."""
    return {
        GitErrorCategory.NETWORK: ErrorResolution(
            category=GitErrorCategory.NETWORK,
            user_message="Network connection issue while talking to the remote",
            resolution_steps=[
                "Check network connectivity to the remote host",
                "Verify the remote URL of the working copy",
                "The next scheduled run will try again"
            ],
            retryable=True
        ),

        GitErrorCategory.AUTHENTICATION: ErrorResolution(
            category=GitErrorCategory.AUTHENTICATION,
            user_message="Authentication with the remote failed",
            resolution_steps=[
                "Verify the credentials or SSH key used by the autocheck account",
                "Check that the account still has read access to the repository"
            ]
        ),

        GitErrorCategory.REPOSITORY_ACCESS: ErrorResolution(
            category=GitErrorCategory.REPOSITORY_ACCESS,
            user_message="The working copy or its remote is not accessible",
            resolution_steps=[
                "Check the 'path' field of the descriptor",
                "Check that the working copy has an 'origin' remote",
                "Verify the remote repository still exists"
            ]
        ),

        GitErrorCategory.BRANCH: ErrorResolution(
            category=GitErrorCategory.BRANCH,
            user_message="The requested branch does not exist",
            resolution_steps=[
                "Check the 'branch' field of the descriptor",
                "Check any branch override given on the command line",
                "Verify the branch was pushed to the remote"
            ]
        ),

        GitErrorCategory.WORKING_COPY_BUSY: ErrorResolution(
            category=GitErrorCategory.WORKING_COPY_BUSY,
            user_message="Another git process is using the working copy",
            resolution_steps=[
                "Inspect the working copy for lock files such as .git/index.lock",
                "Remove stale locks left by an interrupted git process"
            ]
        ),

        GitErrorCategory.REPOSITORY_CORRUPTION: ErrorResolution(
            category=GitErrorCategory.REPOSITORY_CORRUPTION,
            user_message="The working copy appears to be damaged",
            resolution_steps=[
                "Run 'git fsck' in the working copy",
                "Re-clone the working copy if the damage cannot be repaired"
            ]
        ),
    }


def build_error_patterns() -> Dict[str, GitErrorCategory]:
    """Build mapping of error patterns to categories."""
    return {
        # Network errors
        "connection refused": GitErrorCategory.NETWORK,
        "network is unreachable": GitErrorCategory.NETWORK,
        "connection timed out": GitErrorCategory.NETWORK,
        "timed out": GitErrorCategory.NETWORK,
        "no route to host": GitErrorCategory.NETWORK,
        "could not resolve host": GitErrorCategory.NETWORK,
        "temporary failure in name resolution": GitErrorCategory.NETWORK,

        # Authentication errors
        "authentication failed": GitErrorCategory.AUTHENTICATION,
        "permission denied": GitErrorCategory.AUTHENTICATION,
        "invalid credentials": GitErrorCategory.AUTHENTICATION,
        "returned error: 403": GitErrorCategory.AUTHENTICATION,
        "returned error: 401": GitErrorCategory.AUTHENTICATION,

        # Repository access errors
        "repository not found": GitErrorCategory.REPOSITORY_ACCESS,
        "does not appear to be a git repository": GitErrorCategory.REPOSITORY_ACCESS,
        "could not read from remote repository": GitErrorCategory.REPOSITORY_ACCESS,
        "no such file or directory": GitErrorCategory.REPOSITORY_ACCESS,
        "not a git repository": GitErrorCategory.REPOSITORY_CORRUPTION,

        # Branch errors
        "did not match any file(s) known to git": GitErrorCategory.BRANCH,
        "unknown revision": GitErrorCategory.BRANCH,
        "ambiguous argument": GitErrorCategory.BRANCH,
        "couldn't find remote ref": GitErrorCategory.BRANCH,

        # Another git process holds the working copy
        "index.lock": GitErrorCategory.WORKING_COPY_BUSY,

        # Repository corruption
        "corrupt": GitErrorCategory.REPOSITORY_CORRUPTION,
        "invalid object": GitErrorCategory.REPOSITORY_CORRUPTION,
        "loose object": GitErrorCategory.REPOSITORY_CORRUPTION,
    }


_ERROR_PATTERNS = build_error_patterns()
_ERROR_STRATEGIES = build_error_strategies()


def categorize_git_error(error_message: Optional[str]) -> GitErrorCategory:
    """Categorize a git failure from its message."""
    if not error_message:
        return GitErrorCategory.UNKNOWN

    error_lower = error_message.lower()
    for pattern, category in _ERROR_PATTERNS.items():
        if pattern in error_lower:
            logging.getLogger('autocheck.git_sync.errors').debug(
                f"Categorized error as {category.value}: pattern '{pattern}' found"
            )
            return category

    return GitErrorCategory.UNKNOWN


def get_error_resolution(category: GitErrorCategory) -> ErrorResolution:
    """Recovery hints for ``category``; unknown errors get generic advice."""
    resolution = _ERROR_STRATEGIES.get(category)
    if resolution is None:
        resolution = ErrorResolution(
            category=GitErrorCategory.UNKNOWN,
            user_message="An unexpected git error occurred",
            resolution_steps=[
                "Check the error details above",
                "Run the failing git command by hand in the working copy"
            ]
        )
    return resolution

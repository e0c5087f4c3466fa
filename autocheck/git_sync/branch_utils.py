"""Branch and revision helpers built on GitPython."""

import logging
from pathlib import Path
from typing import Optional

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError


logger = logging.getLogger('autocheck.git_sync.branch_utils')


def has_git_metadata(directory: Path) -> bool:
    """
    Whether ``directory`` is a working copy.

    ``.git`` is a directory for clones and a file for submodule checkouts;
    either counts.
    """
    return (Path(directory) / ".git").exists()


def get_content_id(repo: Repo) -> Optional[str]:
    """Abbreviated hash of HEAD, or None when the repository has no commit yet."""
    try:
        return repo.git.rev_parse("--short", "HEAD")
    except GitCommandError:
        return None


def check_remote_branch_exists(git_repo_dir: Path, branch_name: str) -> bool:
    """Check if ``origin/<branch_name>`` is known locally (after a fetch)."""
    try:
        repo = Repo(git_repo_dir)
        remote_refs = [ref.name for ref in repo.remotes.origin.refs]
        return f'origin/{branch_name}' in remote_refs

    except (GitCommandError, InvalidGitRepositoryError, NoSuchPathError, AttributeError, ValueError) as e:
        logger.debug(f"Error checking remote branch existence for '{branch_name}': {e}")
        return False


def get_current_local_branch(git_repo_dir: Path) -> Optional[str]:
    """Get the checked-out branch name, or None for a detached HEAD."""
    if not has_git_metadata(git_repo_dir):
        return None

    try:
        repo = Repo(git_repo_dir)
        if repo.head.is_detached:
            return None
        return repo.active_branch.name

    except (InvalidGitRepositoryError, NoSuchPathError, TypeError) as e:
        logger.debug(f"Error getting current local branch: {e}")
        return None

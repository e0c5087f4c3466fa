"""Force a working copy to mirror its remote branch using GitPython."""

import logging
import time
from pathlib import Path
from typing import Callable, Optional, Tuple

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from ..config import Config
from .branch_utils import (
    check_remote_branch_exists, get_content_id, get_current_local_branch, has_git_metadata
)
from .error_strategies import categorize_git_error, get_error_resolution
from .utils import GitSyncResult, create_failed_sync_result, create_git_sync_result


def _git_error_text(error: Exception) -> str:
    if isinstance(error, GitCommandError) and error.stderr:
        return error.stderr.strip()
    return str(error)


def execute_git_operation_with_retry(
    operation_func: Callable[[], object],
    operation: str,
    git_repo_dir: Path,
    config: Config,
    sleep: Callable[[float], None] = time.sleep
) -> Tuple[Optional[GitSyncResult], int]:
    """
    Execute a GitPython operation with retry logic and exponential backoff.

    Only failures categorized as transient (network) are retried; anything
    else fails on the first attempt.

    Args:
        operation_func: Function that executes the GitPython operation
        operation: Description of the operation for logging
        git_repo_dir: Git repository directory
        config: Run configuration (retry attempts and base delay)
        sleep: Delay function, replaceable in tests

    Returns:
        Tuple of (failure result or None on success, attempts made)
    """
    logger = logging.getLogger('autocheck.git_sync')

    max_attempts = config.git_retry_attempts
    base_delay = config.git_retry_delay

    for attempt in range(1, max_attempts + 1):
        try:
            logger.debug(f"Executing Git operation (attempt {attempt}/{max_attempts}): {operation} in {git_repo_dir}")
            operation_func()
            return None, attempt

        except GitCommandError as e:
            error_text = _git_error_text(e)
            error_msg = f"{operation} failed (attempt {attempt}/{max_attempts}): {error_text}"
            resolution = get_error_resolution(categorize_git_error(error_text))

            if attempt == max_attempts or not resolution.retryable:
                return create_failed_sync_result(
                    message=error_msg,
                    operation=operation,
                    error_code="GIT_COMMAND_FAILED",
                    attempts=attempt
                ), attempt

            delay = base_delay * (2 ** (attempt - 1))
            logger.warning(f"{error_msg}, retrying in {delay:.1f}s")
            sleep(delay)

    # Unreachable while max_attempts >= 1, which Config enforces
    return create_failed_sync_result(
        message=f"{operation} failed after {max_attempts} attempts",
        operation=operation,
        error_code="GIT_COMMAND_MAX_RETRIES_EXCEEDED",
        attempts=max_attempts
    ), max_attempts


class GitSynchronizer:
    """
    Synchronization primitive for working copies.

    ``sync`` discards anything local: it fetches, deinitializes submodules,
    force-checks-out the branch, hard-resets it to ``origin/<branch>`` and
    reinitializes submodules. The outcome compares HEAD before and after.
    """

    def __init__(self, config: Config, sleep: Callable[[float], None] = time.sleep):
        self.config = config
        self.sleep = sleep
        self.logger = logging.getLogger('autocheck.git_sync')

    def _fail(self, path: Path, branch: str, message: str, operation: str, error_code: str,
              attempts: int = 1, old_id: Optional[str] = None) -> GitSyncResult:
        resolution = get_error_resolution(categorize_git_error(message))
        self.logger.error(f"Sync of {path} ({branch}) failed during {operation}: {message}")
        self.logger.error(f"{resolution.user_message}; try: {'; '.join(resolution.resolution_steps)}")
        return create_failed_sync_result(
            message=message,
            operation=operation,
            error_code=error_code,
            attempts=attempts,
            old_id=old_id,
            branch_used=branch
        )

    def _update_submodules(self, repo: Repo, path: Path) -> None:
        # The branch just checked out decides whether submodules exist
        if (path / ".gitmodules").exists():
            repo.git.submodule("update", "--init", "--recursive", "--force")

    def content_id(self, path: Path) -> Optional[str]:
        """Current content identifier of the working copy at ``path``, if any."""
        if not has_git_metadata(path):
            return None
        try:
            return get_content_id(Repo(path))
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            self.logger.debug(f"No readable working copy at {path}: {e}")
            return None

    def sync(self, path: Path, branch: str) -> GitSyncResult:
        """Bring the working copy at ``path`` to the tip of ``origin/<branch>``."""
        path = Path(path)

        if not has_git_metadata(path):
            return self._fail(path, branch, f"No git working copy at {path}", "open", "NO_LOCAL_REPO")

        try:
            repo = Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            return self._fail(path, branch, f"Failed to open repository: {e}", "open", "REPO_ACCESS_ERROR")

        old_id = get_content_id(repo)

        if "origin" not in [remote.name for remote in repo.remotes]:
            return self._fail(path, branch, "remote 'origin' is not configured", "fetch", "NO_REMOTE",
                              old_id=old_id)

        failure, attempts = execute_git_operation_with_retry(
            lambda: repo.git.fetch("origin", "--prune"),
            "fetch",
            path,
            self.config,
            self.sleep
        )
        if failure is not None:
            return self._fail(path, branch, failure.message, failure.operation, "FETCH_FAILED",
                              attempts=attempts, old_id=old_id)

        if not check_remote_branch_exists(path, branch):
            return self._fail(path, branch, f"Branch '{branch}' does not exist on origin", "checkout",
                              "REMOTE_BRANCH_NOT_FOUND", attempts=attempts, old_id=old_id)

        current_branch = get_current_local_branch(path)
        if current_branch != branch:
            self.logger.info(f"Switching {path} from {current_branch or 'detached HEAD'} to {branch}")

        has_submodules = (path / ".gitmodules").exists()
        steps = []
        if has_submodules:
            steps.append(("submodule_deinit", lambda: repo.git.submodule("deinit", "--all", "--force")))
        steps.append(("checkout", lambda: repo.git.checkout("-f", branch)))
        steps.append(("reset", lambda: repo.git.reset("--hard", f"origin/{branch}")))
        steps.append(("submodule_update", lambda: self._update_submodules(repo, path)))

        for operation, step in steps:
            try:
                self.logger.debug(f"Running {operation} in {path}")
                step()
            except GitCommandError as e:
                return self._fail(path, branch, f"{operation} failed: {_git_error_text(e)}", operation,
                                  f"{operation.upper()}_FAILED", attempts=attempts, old_id=old_id)

        new_id = get_content_id(repo)
        result = create_git_sync_result(old_id, new_id, branch, attempts)
        self.logger.info(f"Synchronized {path}: {result.message}")
        return result

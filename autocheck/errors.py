"""Error taxonomy and exit codes for autocheck runs."""

from enum import Enum
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .git_sync.utils import GitSyncResult


EXIT_OK = 0
EXIT_CONFIGURATION = 1
EXIT_SELECTOR = 2
EXIT_SYNC = 3
EXIT_ALREADY_RUNNING = 4


class ErrorCategory(Enum):
    """Categories of errors for structured error handling."""
    CONFIGURATION = "configuration"
    SELECTOR = "selector"
    GIT_SYNC = "git_sync"
    LOCK = "lock"


class AutocheckError(Exception):
    """Base class for errors that stop an autocheck run."""

    category = ErrorCategory.CONFIGURATION
    exit_code = EXIT_CONFIGURATION


class ConfigurationError(AutocheckError):
    """The descriptor directory or a required setting is unusable."""


class DescriptorError(ConfigurationError):
    """A single descriptor file could not be loaded."""

    def __init__(self, descriptor_path, message: str):
        self.descriptor_path = descriptor_path
        super().__init__(f"{descriptor_path}: {message}")


class SelectorError(AutocheckError):
    """A command-line repository selector could not be resolved."""

    category = ErrorCategory.SELECTOR
    exit_code = EXIT_SELECTOR

    def __init__(self, selector: str, message: str):
        self.selector = selector
        super().__init__(message)


class SelectorNotFoundError(SelectorError):
    """No registered repository matches the selector."""

    def __init__(self, selector: str):
        super().__init__(selector, f"No repository matches '{selector}'")


class AmbiguousSelectorError(SelectorError):
    """More than one registered repository matches the selector."""

    def __init__(self, selector: str, matches: List[str]):
        self.matches = list(matches)
        super().__init__(
            selector,
            f"Repository selector '{selector}' is ambiguous, candidates: {', '.join(self.matches)}"
        )


class SyncError(AutocheckError):
    """Synchronizing a working copy failed; the run must stop."""

    category = ErrorCategory.GIT_SYNC
    exit_code = EXIT_SYNC

    def __init__(self, repository: str, path, result: Optional["GitSyncResult"] = None):
        self.repository = repository
        self.path = path
        self.result = result
        detail = f": {result.message}" if result is not None else ""
        super().__init__(f"Unable to synchronize repository {repository} at {path}{detail}")


class AlreadyRunningError(AutocheckError):
    """Another autocheck instance holds the run lock."""

    category = ErrorCategory.LOCK
    exit_code = EXIT_ALREADY_RUNNING

    def __init__(self, lock_file_path):
        self.lock_file_path = lock_file_path
        super().__init__(
            f"autocheck is already running (lock file {lock_file_path} exists), nothing was touched"
        )

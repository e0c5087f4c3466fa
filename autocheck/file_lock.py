"""
Process-wide run lock for autocheck.

Only one autocheck run may operate on a state directory at a time. The
lock is a marker file created atomically; its presence means another run
owns the working copies, so acquisition never waits and never steals.
"""

import os
import logging
from contextlib import contextmanager
from pathlib import Path

from .config import Config
from .errors import AlreadyRunningError


class RunLock:
    """
    Exclusive sentinel-file lock.

    The marker holds the owner's pid for operators inspecting a wedged
    state directory. It is only removed by the instance that created it.
    """

    def __init__(self, lock_file_path: Path):
        """
        Initialize run lock.

        Args:
            lock_file_path: Path to the marker file
        """
        self.lock_file_path = Path(lock_file_path)
        self.logger = logging.getLogger('autocheck.file_lock')
        self._lock_acquired = False

    def acquire(self) -> None:
        """
        Create the marker file.

        Raises:
            AlreadyRunningError: If the marker already exists
        """
        self.lock_file_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            # O_CREAT | O_EXCL makes creation atomic
            fd = os.open(
                self.lock_file_path,
                os.O_CREAT | os.O_EXCL | os.O_WRONLY,
                0o644
            )
        except FileExistsError:
            self.logger.debug(f"Lock already held: {self.lock_file_path}")
            raise AlreadyRunningError(self.lock_file_path)

        with os.fdopen(fd, 'w') as f:
            f.write(f"locked_by_pid_{os.getpid()}\n")

        self._lock_acquired = True
        self.logger.debug(f"Acquired lock: {self.lock_file_path}")

    def release(self) -> bool:
        """
        Remove the marker file if this instance created it.

        Returns:
            True if the lock is no longer held by this instance
        """
        if not self._lock_acquired:
            return True

        try:
            self.lock_file_path.unlink()
            self.logger.debug(f"Released lock: {self.lock_file_path}")
        except FileNotFoundError:
            self.logger.warning(f"Lock file vanished before release: {self.lock_file_path}")
        except OSError as e:
            self.logger.error(f"Error releasing lock {self.lock_file_path}: {e}")
            return False

        self._lock_acquired = False
        return True

    def is_locked(self) -> bool:
        """Check if the lock is currently held by this instance."""
        return self._lock_acquired

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()


@contextmanager
def run_lock(config: Config):
    """
    Hold the run lock for the configured state directory.

    Yields:
        RunLock instance

    Raises:
        AlreadyRunningError: If another run holds the lock
    """
    lock = RunLock(config.lock_file)
    lock.acquire()
    try:
        yield lock
    finally:
        lock.release()

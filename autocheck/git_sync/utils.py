"""Result types for Git synchronization."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SyncOutcome(Enum):
    """What a synchronization did to the working copy."""
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass
class GitSyncResult:
    """Result of a Git synchronization operation."""
    outcome: SyncOutcome
    message: str
    operation: str
    attempts: int = 1
    error_code: Optional[str] = None
    old_id: Optional[str] = None
    new_id: Optional[str] = None
    branch_used: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome != SyncOutcome.FAILED

    @property
    def changed(self) -> bool:
        return self.outcome == SyncOutcome.CHANGED


def create_git_sync_result(
    old_id: Optional[str],
    new_id: Optional[str],
    branch_used: str,
    attempts: int = 1
) -> GitSyncResult:
    """
    Build the result of a completed synchronization from the content
    identifiers seen before and after it.

    A working copy without a previous identifier (no commit yet) counts as
    changed once it has one.
    """
    if old_id == new_id:
        return GitSyncResult(
            outcome=SyncOutcome.UNCHANGED,
            message=f"Already at {new_id} on {branch_used}",
            operation="sync",
            attempts=attempts,
            old_id=old_id,
            new_id=new_id,
            branch_used=branch_used
        )

    return GitSyncResult(
        outcome=SyncOutcome.CHANGED,
        message=f"Moved from {old_id or 'nothing'} to {new_id} on {branch_used}",
        operation="sync",
        attempts=attempts,
        old_id=old_id,
        new_id=new_id,
        branch_used=branch_used
    )


def create_failed_sync_result(
    message: str,
    operation: str,
    error_code: str,
    attempts: int = 1,
    old_id: Optional[str] = None,
    branch_used: Optional[str] = None
) -> GitSyncResult:
    """Build the result of a synchronization that stopped at ``operation``."""
    return GitSyncResult(
        outcome=SyncOutcome.FAILED,
        message=message,
        operation=operation,
        attempts=attempts,
        error_code=error_code,
        old_id=old_id,
        branch_used=branch_used
    )

"""Git synchronization primitive for autocheck working copies."""

from .operations import GitSynchronizer, execute_git_operation_with_retry
from .utils import GitSyncResult, SyncOutcome, create_git_sync_result, create_failed_sync_result
from .branch_utils import has_git_metadata
from .error_strategies import categorize_git_error, get_error_resolution

__all__ = [
    'GitSynchronizer',
    'execute_git_operation_with_retry',
    'GitSyncResult',
    'SyncOutcome',
    'create_git_sync_result',
    'create_failed_sync_result',
    'has_git_metadata',
    'categorize_git_error',
    'get_error_resolution'
]

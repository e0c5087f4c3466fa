"""Platform-dependent defaults and environment checks."""

import platform
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Dict, Any, Tuple, Union


@dataclass(frozen=True)
class PlatformInfo:
    """The operating system autocheck runs on."""
    system: str

    @property
    def is_windows(self) -> bool:
        return self.system == "windows"


@lru_cache(maxsize=None)
def get_platform_info() -> PlatformInfo:
    return PlatformInfo(system=platform.system().lower())


def normalize_path(path: Union[str, Path]) -> Path:
    """Absolute form of ``path`` with ``~`` expanded."""
    return Path(path).expanduser().resolve()


def get_platform_specific_defaults() -> Dict[str, Any]:
    """
    Defaults for settings not given in the environment.

    Descriptors are looked up relative to the working directory and the
    build log goes to the system temp directory, as the shell-script
    predecessor of this tool did.
    """
    defaults = {
        'config_dir': Path("configs"),
        'state_dir': Path.home() / ".autocheck",
        'build_log': Path(tempfile.gettempdir()) / "auto_check.log",
        'log_level': "INFO",
        'git_retry_attempts': 3,
        'git_retry_delay': 1.0,
    }

    if get_platform_info().is_windows:
        # Fetches over corporate proxies fail transiently more often
        defaults['git_retry_attempts'] = 5
        defaults['git_retry_delay'] = 1.5

    return defaults


def get_git_executable() -> str:
    """Resolved git binary, falling back to the bare command name."""
    name = "git.exe" if get_platform_info().is_windows else "git"
    return shutil.which(name) or name


def validate_git_availability() -> Tuple[bool, Optional[str]]:
    """
    Check that git can be run before touching any working copy.

    Returns:
        Tuple of (is_available, error_message)
    """
    git_cmd = get_git_executable()

    try:
        result = subprocess.run(
            [git_cmd, "--version"],
            capture_output=True,
            text=True,
            timeout=10
        )
    except FileNotFoundError:
        return False, f"Git executable '{git_cmd}' not found"
    except subprocess.TimeoutExpired:
        return False, "Git command timed out"
    except OSError as e:
        return False, f"Error checking Git availability: {e}"

    if result.returncode != 0:
        return False, f"Git command failed: {result.stderr.strip()}"
    return True, None

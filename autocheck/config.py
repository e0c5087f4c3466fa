"""Configuration management for autocheck."""

import os
import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

from .platform import get_platform_specific_defaults, normalize_path


DEFAULT_BRANCH = "master"
DESCRIPTOR_SUFFIX = ".json"


@dataclass
class Config:
    """Configuration class for an autocheck run with validation and defaults."""

    # Descriptors
    config_dir: Path = field(default_factory=lambda: Path("configs"))
    descriptor_suffix: str = DESCRIPTOR_SUFFIX
    default_branch: str = DEFAULT_BRANCH

    # Run state
    state_dir: Path = field(default_factory=lambda: Path.home() / ".autocheck")
    build_log: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "auto_check.log")
    build_timeout: Optional[float] = None

    # Git synchronization
    git_retry_attempts: int = 3
    git_retry_delay: float = 1.0

    # Logging
    log_level: str = "INFO"

    # Failure notification
    smtp_host: Optional[str] = None
    smtp_port: int = 25
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_sender: str = "autocheck@localhost"
    smtp_recipients: List[str] = field(default_factory=list)
    smtp_starttls: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.config_dir = normalize_path(self.config_dir)
        self.state_dir = normalize_path(self.state_dir)
        self.build_log = normalize_path(self.build_log)

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        self.log_level = self.log_level.upper()
        if self.log_level not in valid_log_levels:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {valid_log_levels}")

        if not self.descriptor_suffix:
            raise ValueError("descriptor_suffix must not be empty")

        if not self.default_branch:
            raise ValueError("default_branch must not be empty")

        if self.git_retry_attempts < 1:
            raise ValueError("git_retry_attempts must be at least 1")

        if self.git_retry_delay < 0:
            raise ValueError("git_retry_delay must be non-negative")

        if self.build_timeout is not None and self.build_timeout <= 0:
            raise ValueError("build_timeout must be positive")

        if not 0 < self.smtp_port < 65536:
            raise ValueError(f"Invalid SMTP port: {self.smtp_port}")

    @property
    def lock_file(self) -> Path:
        """Sentinel marker guarding against concurrent runs."""
        return self.state_dir / "autocheck.lock"

    @property
    def notification_configured(self) -> bool:
        """Whether failure reports can be mailed to an operator."""
        return bool(self.smtp_host and self.smtp_recipients)


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def load_configuration() -> Config:
    """Load configuration from environment variables with platform-specific defaults."""
    load_dotenv()

    try:
        platform_defaults = get_platform_specific_defaults()

        timeout = os.getenv("AUTOCHECK_BUILD_TIMEOUT")

        return Config(
            config_dir=Path(os.getenv("AUTOCHECK_CONFIG_DIR", str(platform_defaults['config_dir']))),
            descriptor_suffix=os.getenv("AUTOCHECK_DESCRIPTOR_SUFFIX", DESCRIPTOR_SUFFIX),
            default_branch=os.getenv("AUTOCHECK_DEFAULT_BRANCH", DEFAULT_BRANCH),
            state_dir=Path(os.getenv("AUTOCHECK_STATE_DIR", str(platform_defaults['state_dir']))),
            build_log=Path(os.getenv("AUTOCHECK_BUILD_LOG", str(platform_defaults['build_log']))),
            build_timeout=float(timeout) if timeout else None,
            git_retry_attempts=int(os.getenv("AUTOCHECK_GIT_RETRY_ATTEMPTS", str(platform_defaults['git_retry_attempts']))),
            git_retry_delay=float(os.getenv("AUTOCHECK_GIT_RETRY_DELAY", str(platform_defaults['git_retry_delay']))),
            log_level=os.getenv("AUTOCHECK_LOG_LEVEL", platform_defaults['log_level']),
            smtp_host=os.getenv("AUTOCHECK_SMTP_HOST") or None,
            smtp_port=int(os.getenv("AUTOCHECK_SMTP_PORT", "25")),
            smtp_user=os.getenv("AUTOCHECK_SMTP_USER") or None,
            smtp_password=os.getenv("AUTOCHECK_SMTP_PASSWORD") or None,
            smtp_sender=os.getenv("AUTOCHECK_SMTP_SENDER", "autocheck@localhost"),
            smtp_recipients=_split_list(os.getenv("AUTOCHECK_SMTP_RECIPIENTS")),
            smtp_starttls=os.getenv("AUTOCHECK_SMTP_STARTTLS", "false").lower() == "true",
        )
    except (ValueError, TypeError) as e:
        raise ValueError(f"Configuration error: {e}")


def validate_configuration(config: Config) -> List[str]:
    """Check configuration against the filesystem and return any errors or warnings."""
    errors = []

    if not config.config_dir.is_dir():
        errors.append(f"ERROR: Descriptor directory does not exist: {config.config_dir}")

    try:
        config.state_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        errors.append(f"ERROR: Cannot create state directory {config.state_dir}: {e}")

    if not config.build_log.parent.is_dir():
        errors.append(f"ERROR: Build log directory does not exist: {config.build_log.parent}")

    if config.smtp_host and not config.smtp_recipients:
        errors.append("WARNING: SMTP host configured without recipients, failures will not be mailed")

    if config.smtp_user and not config.smtp_password:
        errors.append("WARNING: SMTP user configured without a password")

    if errors:
        logging.getLogger('autocheck.config').debug(f"Configuration validation found {len(errors)} issue(s)")

    return errors

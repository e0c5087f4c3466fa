"""Command-line entry point: one sequential check-and-build run."""

import argparse
import dataclasses
import logging
import sys
from datetime import datetime
from typing import List, Optional

from . import __version__
from .builder import BuildRunner, CommandRunner, ShellCommandRunner
from .config import Config, load_configuration, validate_configuration
from .errors import AutocheckError, ConfigurationError, EXIT_CONFIGURATION, EXIT_OK
from .file_lock import run_lock
from .git_sync import GitSynchronizer
from .graph import load_all
from .notify import Notifier, get_notifier
from .orchestrator import SyncOrchestrator, Synchronizer, apply_selectors
from .platform import validate_git_availability
from .propagation import dirty_set
from .registry import RepositoryRegistry


def setup_logging(log_level: str) -> None:
    """Send all diagnostics to stderr in the operator-facing format."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logging.getLogger('autocheck').setLevel(getattr(logging, log_level))
    # GitPython logs every command it spawns at DEBUG
    logging.getLogger('git').setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autocheck",
        description="Synchronize repositories and rebuild those affected by upstream changes."
    )
    parser.add_argument(
        "selectors",
        nargs="*",
        metavar="REPO[:BRANCH]",
        help="force a rebuild of REPO (a name or unambiguous prefix), optionally on BRANCH"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug output")
    parser.add_argument("-c", "--config-dir", help="directory holding repository descriptors")
    parser.add_argument("--state-dir", help="directory holding the run lock")
    parser.add_argument("--branch", dest="default_branch", help="branch used when a descriptor names none")
    parser.add_argument("--dry-run", action="store_true", help="synchronize and report, but run no builds")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    overrides = {}
    if args.config_dir:
        overrides['config_dir'] = args.config_dir
    if args.state_dir:
        overrides['state_dir'] = args.state_dir
    if args.default_branch:
        overrides['default_branch'] = args.default_branch
    if args.verbose:
        overrides['log_level'] = "DEBUG"
    return dataclasses.replace(config, **overrides) if overrides else config


def _run_locked(
    config: Config,
    selectors: List[str],
    dry_run: bool,
    synchronizer: Optional[Synchronizer],
    runner: Optional[CommandRunner],
    notifier: Optional[Notifier]
) -> int:
    logger = logging.getLogger('autocheck.cli')

    registry = RepositoryRegistry(config.default_branch)
    load_all(config.config_dir, registry, config.descriptor_suffix, config.default_branch)

    apply_selectors(registry, selectors)

    if synchronizer is None:
        git_available, git_error = validate_git_availability()
        if not git_available:
            raise ConfigurationError(git_error)
        synchronizer = GitSynchronizer(config)

    SyncOrchestrator(registry, synchronizer).sync_all()

    todo = sorted(dirty_set(registry))
    if dry_run:
        logger.info(f"Dry run, would build: {', '.join(todo) or 'nothing'}")
        return EXIT_OK

    if not todo:
        logger.info("Nothing changed, no build needed")
        return EXIT_OK

    if notifier is None:
        notifier = get_notifier(config)
    if runner is None:
        runner = ShellCommandRunner(config.build_log, config.build_timeout)

    BuildRunner(registry, runner, notifier).run_all()
    return EXIT_OK


def run(
    argv: Optional[List[str]] = None,
    config: Optional[Config] = None,
    synchronizer: Optional[Synchronizer] = None,
    runner: Optional[CommandRunner] = None,
    notifier: Optional[Notifier] = None
) -> int:
    """
    Perform one autocheck run and return its exit status.

    The sync, build and notify capabilities default to git, the shell and
    SMTP; tests pass fakes instead.
    """
    args = build_parser().parse_args(argv)

    try:
        if config is None:
            config = load_configuration()
        config = _apply_overrides(config, args)
    except ValueError as e:
        print(f"autocheck: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION

    setup_logging(config.log_level)
    logger = logging.getLogger('autocheck.cli')
    logger.info(f"autocheck {__version__} run started at {datetime.now().isoformat(timespec='seconds')}")

    for issue in validate_configuration(config):
        if issue.startswith("ERROR"):
            logger.error(issue)
        else:
            logger.warning(issue)

    try:
        with run_lock(config):
            return _run_locked(config, args.selectors, args.dry_run, synchronizer, runner, notifier)
    except AutocheckError as e:
        logger.error(f"Run aborted ({e.category.value} error): {e}")
        return e.exit_code


def main():
    """Console script entry point."""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        logging.getLogger('autocheck.cli').warning("Run interrupted by user (Ctrl+C)")
        sys.exit(130)


if __name__ == "__main__":
    main()

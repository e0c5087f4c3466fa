"""Run the build commands of every repository flagged for rebuild."""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Tuple

from .notify import Notifier
from .registry import Repository, RepositoryRegistry


@dataclass
class BuildResult:
    """Outcome of one build command line."""
    success: bool
    output: str
    returncode: Optional[int] = None


@dataclass
class BuildReport:
    """Summary of a build pass."""
    passed: int = 0
    failed: int = 0
    failures: List[Tuple[str, int]] = field(default_factory=list)
    repositories: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.passed + self.failed


class CommandRunner(Protocol):
    def run(self, path: Path, command: str) -> BuildResult:
        ...


class ShellCommandRunner:
    """
    Runs one shell command line in a working directory.

    The build log is rewritten for every command: the command line first,
    then its combined stdout/stderr.
    """

    def __init__(self, build_log: Path, timeout: Optional[float] = None):
        self.build_log = Path(build_log)
        self.timeout = timeout
        self.logger = logging.getLogger('autocheck.builder')

    def _write_log(self, path: Path, command: str, output: str) -> None:
        try:
            self.build_log.write_text(f"cd {path}; {command}\n{output}", encoding='utf-8')
        except OSError as e:
            self.logger.warning(f"Unable to write build log {self.build_log}: {e}")

    def run(self, path: Path, command: str) -> BuildResult:
        try:
            completed = subprocess.run(
                command,
                shell=True,
                cwd=str(path),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                timeout=self.timeout
            )
            result = BuildResult(
                success=completed.returncode == 0,
                output=completed.stdout or "",
                returncode=completed.returncode
            )
        except subprocess.TimeoutExpired as e:
            partial = e.output or ""
            if isinstance(partial, bytes):
                partial = partial.decode("utf-8", errors="replace")
            result = BuildResult(
                success=False,
                output=f"{partial}\nCommand timed out after {self.timeout}s\n"
            )
        except OSError as e:
            # Missing working directory or no shell
            result = BuildResult(success=False, output=f"Unable to run command: {e}\n")

        self._write_log(path, command, result.output)
        return result


class BuildRunner:
    """
    Executes build lines of todo repositories in registry order.

    A failing line is reported and notified; later lines and later
    repositories still run.
    """

    def __init__(self, registry: RepositoryRegistry, runner: CommandRunner, notifier: Notifier):
        self.registry = registry
        self.runner = runner
        self.notifier = notifier
        self.logger = logging.getLogger('autocheck.builder')

    def build_repository(self, repository: Repository, report: BuildReport) -> None:
        for build_id, command in enumerate(repository.builds, start=1):
            self.logger.info(f"Check repo {repository.name} - Build {build_id}")
            result = self.runner.run(repository.path, command)

            if result.success:
                report.passed += 1
                self.logger.info(f"Build {build_id} of repo {repository.name} succeeded")
                continue

            report.failed += 1
            report.failures.append((repository.name, build_id))
            self.logger.error(f"Build {build_id} of repo {repository.name} failed")
            self.notifier.notify(
                f"{repository.name}: build {build_id} failed",
                f"cd {repository.path}; {command}\n{result.output}"
            )

    def run_all(self) -> BuildReport:
        report = BuildReport()
        for repository in self.registry.todo_repositories():
            if not repository.valid:
                continue
            report.repositories.append(repository.name)
            self.build_repository(repository, report)

        self.logger.info(
            f"Built {len(report.repositories)} repositories: "
            f"{report.passed} command(s) passed, {report.failed} failed"
        )
        return report

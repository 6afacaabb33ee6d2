"""Lifecycle hook execution.

A hook stage is an ordered list of shell commands declared in a package's
manifest. Commands run one after another inside the package directory and the
first non-zero exit status aborts the stage.
"""

import logging
import subprocess
from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from pathlib import Path

from npack.errors import HookFailure

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of a single shell command.

    Attributes:
        exit_code: Process exit status
        stdout: Captured standard output
        stderr: Captured standard error
    """

    exit_code: int
    stdout: str = ""
    stderr: str = ""


Executor = Callable[[str, Path], CommandResult]


class ShellExecutor:
    """Run commands through the system shell.

    Attributes:
        shell: Shell executable to use instead of the platform default
    """

    def __init__(self, shell: str | None = None):
        self.shell = shell

    def __call__(self, command: str, cwd: Path) -> CommandResult:
        completed = subprocess.run(
            command,
            shell=True,
            cwd=str(cwd),
            executable=self.shell,
            capture_output=True,
            text=True,
        )
        return CommandResult(
            exit_code=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


class HookRunner:
    """Runs lifecycle hook stages through an executor.

    The runner knows nothing about stage ordering: callers decide which stage
    runs when and whether a failure aborts their pipeline.

    Attributes:
        executor: Callable running one command in a directory
    """

    def __init__(self, executor: Executor | None = None):
        self.executor = executor or ShellExecutor()

    def run(
        self,
        stage: str,
        package_dir: Path,
        hooks: Mapping[str, list[str]],
        disabled_hooks: Collection[str] = (),
    ) -> None:
        """Run all commands of a stage.

        Args:
            stage: Stage name (e.g., "preuse")
            package_dir: Directory the commands run in
            hooks: Mapping of stage name to ordered commands
            disabled_hooks: Stages to skip entirely

        Raises:
            HookFailure: On the first command exiting with non-zero status
        """
        if stage in disabled_hooks:
            logger.debug(f"Hook {stage} is disabled, skipping")
            return

        commands = hooks.get(stage) or []
        if not commands:
            return

        logger.info(f"Running {stage} hook ({len(commands)} command(s)) in {package_dir}")

        for command in commands:
            logger.debug(f"Executing {stage} command: {command}")
            result = self.executor(command, Path(package_dir))

            if result.stdout:
                logger.debug(f"{stage} stdout: {result.stdout.rstrip()}")
            if result.stderr:
                logger.debug(f"{stage} stderr: {result.stderr.rstrip()}")

            if result.exit_code != 0:
                logger.warning(
                    f"{stage} command {command!r} failed with exit code {result.exit_code}"
                )
                raise HookFailure(command, result.exit_code, result.stdout, result.stderr)

"""Error types raised by the package lifecycle engine.

Every error carries the exact user-facing message as ``str(err)`` and keeps
the values it was built from as attributes, so callers can branch on them
without parsing the message.
"""


class NpackError(Exception):
    """Base class for all npack errors."""


class OptionRequired(NpackError):
    """A mandatory option was not supplied."""

    def __init__(self, option: str):
        self.option = option
        super().__init__(f'Option "{option}" is required')


class OptionInvalid(NpackError):
    """An option was supplied with a value npack does not accept."""

    def __init__(self, option: str, reason: str):
        self.option = option
        self.reason = reason
        super().__init__(f'Option "{option}" is invalid: {reason}')


class PackageNotFound(NpackError):
    """No installed package with the given name exists in the workspace."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Package "{name}" is not found')


class PackageAlreadyInstalled(NpackError):
    """A package with the same name is already installed in the workspace."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Package "{name}" is already installed')


class ManifestInvalid(NpackError):
    """Package manifest is missing or malformed."""


class ArchiveError(NpackError):
    """Archive could not be read or contains unsafe members."""


class HookFailure(NpackError):
    """A lifecycle hook command exited with a non-zero status.

    Attributes:
        command: Literal command string that failed
        exit_code: Exit status of the command
        stdout: Captured standard output (not interpreted)
        stderr: Captured standard error (not interpreted)
    """

    def __init__(self, command: str, exit_code: int, stdout: str = "", stderr: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f'Command "{command}" failed with exit code: {exit_code}')


class IncompatibleVersion(NpackError):
    """Host version does not satisfy the range required by a package."""

    def __init__(self, host_version: str, required_range: str):
        self.host_version = host_version
        self.required_range = required_range
        super().__init__(
            f'Current npack version "{host_version}" doesn\'t satisfy '
            f'version required by package: "{required_range}"'
        )

"""Package activation ("use").

This module provides the PackageActivator class which switches the live
package of a workspace.
"""

import logging
from collections.abc import Collection

from npack.hooks import HookRunner
from npack.models import PackageInfo
from npack.versioning import check_compatibility
from npack.workspace import Workspace

logger = logging.getLogger(__name__)


class PackageActivator:
    """Activates installed packages.

    Use pipeline:

    1. resolve the package by name
    2. check the host version against the package's compatibility range
    3. run the ``preuse`` hook
    4. swap the current pointer to the package
    5. run the ``postuse`` hook

    Steps 2 and 3 abort before the pointer is touched. A ``postuse`` failure
    is raised to the caller but the swap is kept: the package stays current.

    Attributes:
        workspace: Workspace holding the packages
        hook_runner: Runner for lifecycle hooks
    """

    def __init__(self, workspace: Workspace, hook_runner: HookRunner | None = None):
        self.workspace = workspace
        self.hook_runner = hook_runner or HookRunner()

    def use(
        self, name: str, host_version: str, disabled_hooks: Collection[str] = ()
    ) -> PackageInfo:
        """Make an installed package the current one.

        Args:
            name: Name of an installed package
            host_version: Version of the running npack, checked against the
                package's compatibility range on every call
            disabled_hooks: Hook stages to skip

        Returns:
            PackageInfo of the now-current package

        Raises:
            PackageNotFound: If the package isn't installed
            IncompatibleVersion: If host_version doesn't satisfy the package
            HookFailure: If preuse (pointer untouched) or postuse (pointer
                already swapped) fails
        """
        package = self.workspace.resolve(name)
        manifest = package.manifest

        check_compatibility(host_version, manifest.compatibility)

        self.hook_runner.run("preuse", package.path, manifest.hooks, disabled_hooks)

        previous = self.workspace.current_name()
        self.workspace.set_current(package)
        if previous and previous != package.name:
            logger.info(f"Switched current package from {previous} to {package.name}")

        self.hook_runner.run("postuse", package.path, manifest.hooks, disabled_hooks)

        return package

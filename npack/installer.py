"""Package installer.

This module provides the PackageInstaller class which unpacks an archive
into a workspace, runs the install hooks and registers the package.
"""

import logging
import shutil
from collections.abc import Callable, Collection
from pathlib import Path

from npack.archive import extract_archive
from npack.hooks import HookRunner
from npack.manifest import load_manifest
from npack.models import PackageInfo
from npack.workspace import Workspace

logger = logging.getLogger(__name__)

Extractor = Callable[[str, Path], None]


class PackageInstaller:
    """Installer for packages.

    Install pipeline, each step gated on the previous one:

    1. extract the archive into a fresh staging directory
    2. read the manifest from the staging directory
    3. run the ``preinstall`` hook
    4. run the ``postinstall`` hook
    5. register the package in the workspace

    If any step fails the staging directory is removed and the original
    error is re-raised. Host compatibility is not checked here: a package may
    be installed ahead of a host upgrade and activated later. The installer
    never touches the current pointer.

    Attributes:
        workspace: Workspace to install into
        hook_runner: Runner for lifecycle hooks
        extractor: Callable unpacking an archive into a directory
    """

    def __init__(
        self,
        workspace: Workspace,
        hook_runner: HookRunner | None = None,
        extractor: Extractor | None = None,
    ):
        self.workspace = workspace
        self.hook_runner = hook_runner or HookRunner()
        self.extractor = extractor or extract_archive

    def install(self, src: str, disabled_hooks: Collection[str] = ()) -> PackageInfo:
        """Install package from an archive.

        Args:
            src: Archive path or URL
            disabled_hooks: Hook stages to skip

        Returns:
            PackageInfo for the installed package

        Raises:
            FileNotFoundError: If archive doesn't exist
            ArchiveError: If archive is invalid
            ManifestInvalid: If the package has no valid manifest
            HookFailure: If preinstall or postinstall fails
            PackageAlreadyInstalled: If a package with that name exists
        """
        staging_dir = self.workspace.create_staging_dir()
        logger.debug(f"Staging {src} in {staging_dir}")

        try:
            self.extractor(src, staging_dir)

            manifest = load_manifest(staging_dir)
            logger.info(f"Installing {manifest.name}@{manifest.version} from {src}")

            self.hook_runner.run("preinstall", staging_dir, manifest.hooks, disabled_hooks)
            self.hook_runner.run("postinstall", staging_dir, manifest.hooks, disabled_hooks)

            return self.workspace.register(staging_dir, manifest)
        except Exception:
            self._rollback(staging_dir)
            raise

    def _rollback(self, staging_dir: Path) -> None:
        """Remove a staging directory, logging (not raising) on failure."""
        if not staging_dir.exists():
            return

        logger.info(f"Rolling back install, removing {staging_dir}")
        try:
            shutil.rmtree(staging_dir)
        except OSError as e:
            logger.warning(f"Failed to remove {staging_dir} during rollback: {e}")

"""Workspace registry for installed packages.

A workspace is a directory holding one subdirectory per installed package
and a single ``current`` pointer naming the active package:

    workspace/
        my-app/              installed package
        other-app/           installed package
        current -> my-app    pointer (symlink or marker file)
        .npack-staging-xyz/  install in progress, never resolvable

The pointer is only ever replaced with ``os.replace``, so readers observe
either the previous package or the new one.
"""

import logging
import os
import tempfile
import uuid
from pathlib import Path

from npack.errors import PackageAlreadyInstalled, PackageNotFound
from npack.manifest import PackageManifest, is_valid_name, load_manifest
from npack.models import PackageInfo

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".npack-staging-"
POINTER_MODES = ("symlink", "marker")


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


class Workspace:
    """Registry of packages installed under a workspace root.

    Attributes:
        root: Absolute workspace directory
        pointer_name: File name of the current pointer
        pointer_mode: "symlink" for a relative symlink, "marker" for a small
            file containing the package name
    """

    def __init__(
        self, root: Path, pointer_name: str = "current", pointer_mode: str = "symlink"
    ):
        if pointer_mode not in POINTER_MODES:
            raise ValueError(f"Unknown pointer mode: {pointer_mode}")

        self.root = Path(root).absolute()
        self.pointer_name = pointer_name
        self.pointer_mode = pointer_mode

    @property
    def pointer_path(self) -> Path:
        return self.root / self.pointer_name

    def package_path(self, name: str) -> Path:
        return self.root / name

    def create_staging_dir(self) -> Path:
        """Create a fresh, uniquely named staging directory.

        Returns:
            Path to the new, empty directory
        """
        self.root.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.root))
        # mkdtemp is owner-only; installed packages get the usual umask mode
        os.chmod(staging, 0o777 & ~_current_umask())
        return staging

    def _is_package_name(self, name: str) -> bool:
        return is_valid_name(name) and name != self.pointer_name

    def resolve(self, name: str) -> PackageInfo:
        """Get installed package by name.

        Args:
            name: Package name

        Returns:
            PackageInfo for the installed package

        Raises:
            PackageNotFound: If no package with that name is installed
        """
        if not self._is_package_name(name):
            raise PackageNotFound(name)

        path = self.package_path(name)
        if not path.is_dir() or path.is_symlink():
            raise PackageNotFound(name)

        manifest = load_manifest(path)
        return PackageInfo(
            name=manifest.name,
            version=manifest.version,
            path=path,
            manifest=manifest,
            current=self.current_name() == name,
        )

    def register(self, staging_dir: Path, manifest: PackageManifest) -> PackageInfo:
        """Make a fully installed package resolvable by name.

        Moves the staging directory to its final location with a single
        rename, so the package appears complete or not at all.

        Args:
            staging_dir: Staging directory holding the package files
            manifest: Manifest loaded from staging_dir

        Returns:
            PackageInfo for the registered package

        Raises:
            PackageAlreadyInstalled: If a package with that name exists
        """
        if not self._is_package_name(manifest.name):
            raise ValueError(f"Invalid package name: {manifest.name}")

        target = self.package_path(manifest.name)
        if target.exists() or target.is_symlink():
            raise PackageAlreadyInstalled(manifest.name)

        try:
            os.rename(staging_dir, target)
        except OSError as e:
            # Lost a race with a concurrent install of the same name
            if target.exists():
                raise PackageAlreadyInstalled(manifest.name) from e
            raise

        logger.info(f"Registered package {manifest.name}@{manifest.version} at {target}")

        return PackageInfo(
            name=manifest.name,
            version=manifest.version,
            path=target,
            manifest=manifest,
        )

    def current_name(self) -> str | None:
        """Read the package name the pointer refers to (None if absent)."""
        pointer = self.pointer_path

        if pointer.is_symlink():
            return Path(os.readlink(pointer)).name

        if pointer.is_file():
            return pointer.read_text(encoding="utf-8").strip() or None

        return None

    def get_current(self) -> PackageInfo | None:
        """Get the active package.

        Returns:
            PackageInfo of the current package, or None if nothing has been
            activated yet

        Raises:
            PackageNotFound: If the pointer refers to a package that no
                longer exists
        """
        name = self.current_name()
        if name is None:
            return None

        return self.resolve(name)

    def is_current(self, package: PackageInfo) -> bool:
        """Check whether the pointer resolves to the given package."""
        return self.current_name() == package.name

    def set_current(self, package: PackageInfo) -> None:
        """Atomically point the workspace at a package.

        The new pointer is written under a temporary name and renamed over
        the old one.

        Args:
            package: Installed package to activate
        """
        if package.path.parent != self.root:
            raise ValueError(f"Package {package.name} is not installed in {self.root}")

        tmp_pointer = self.root / f".{self.pointer_name}-{uuid.uuid4().hex}"

        try:
            if self.pointer_mode == "symlink":
                os.symlink(package.name, tmp_pointer, target_is_directory=True)
            else:
                with open(tmp_pointer, "w", encoding="utf-8") as f:
                    f.write(package.name + "\n")
                    f.flush()
                    os.fsync(f.fileno())

            os.replace(tmp_pointer, self.pointer_path)
        except OSError:
            if tmp_pointer.is_symlink() or tmp_pointer.exists():
                tmp_pointer.unlink()
            raise

        package.current = True
        logger.info(f"Current package is now {package.name}@{package.version}")

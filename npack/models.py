"""Installed package data model."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from npack.manifest import PackageManifest


@dataclass
class PackageInfo:
    """Information about an installed package.

    Attributes:
        name: Package name (e.g., "my-app")
        version: Semantic version (e.g., "1.0.0")
        path: Absolute path to the package's install directory
        manifest: Complete PackageManifest object
        current: Whether the workspace pointer resolves to this package
    """

    name: str
    version: str
    path: Path
    manifest: PackageManifest
    current: bool = False

    def __post_init__(self):
        """Validate path is absolute."""
        if not self.path.is_absolute():
            raise ValueError(f"Package path must be absolute: {self.path}")

    def to_dict(self) -> dict[str, Any]:
        """Convert package info to a JSON-friendly dictionary."""
        return {
            "name": self.name,
            "version": self.version,
            "path": str(self.path),
            "current": self.current,
        }

"""Package manifest data model and loading.

A package declares its metadata in ``package.json`` at the package root.
The npack specific part lives under the ``npack`` key:

    {
        "name": "my-app",
        "version": "1.4.0",
        "npack": {
            "compatibility": "1.x.x",
            "hooks": {"preinstall": "npm ci", "postuse": ["./restart.sh"]}
        }
    }
"""

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from npack.errors import ManifestInvalid
from npack.versioning import parse_version, validate_range

MANIFEST_FILENAME = "package.json"

HOOK_STAGES = ("preinstall", "postinstall", "preuse", "postuse")

# Name of the workspace pointer; a package must never shadow it
RESERVED_NAMES = frozenset({"current"})

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_@][A-Za-z0-9_.@+\-]*$")


@dataclass
class PackageManifest:
    """Package manifest containing metadata and lifecycle hooks.

    Attributes:
        name: Package name, also its directory name in the workspace
        version: Semantic version (e.g., "1.2.0")
        compatibility: Range of npack versions the package requires
            (None means any version)
        hooks: Mapping of stage name to ordered list of shell commands
    """

    name: str
    version: str
    compatibility: str | None = None
    hooks: dict[str, list[str]] = field(default_factory=dict)

    def commands(self, stage: str) -> list[str]:
        """Return commands configured for a stage (empty if none)."""
        return list(self.hooks.get(stage, []))

    def to_dict(self) -> dict[str, Any]:
        """Convert manifest to dictionary in package.json layout."""
        npack: dict[str, Any] = {}
        if self.compatibility is not None:
            npack["compatibility"] = self.compatibility
        if self.hooks:
            npack["hooks"] = {stage: list(cmds) for stage, cmds in self.hooks.items()}

        result: dict[str, Any] = {"name": self.name, "version": self.version}
        if npack:
            result["npack"] = npack
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackageManifest":
        """Create manifest from a parsed package.json.

        Args:
            data: Dictionary containing manifest data

        Returns:
            PackageManifest instance

        Raises:
            ManifestInvalid: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise ManifestInvalid("Manifest must be a JSON object")

        npack = data.get("npack") or {}
        if not isinstance(npack, dict):
            raise ManifestInvalid('Manifest field "npack" must be an object')

        manifest = cls(
            name=data.get("name"),
            version=data.get("version"),
            compatibility=npack.get("compatibility"),
            hooks=_normalize_hooks(npack.get("hooks") or {}),
        )

        errors = validate_manifest(manifest)
        if errors:
            raise ManifestInvalid("; ".join(errors))

        return manifest


def _normalize_hooks(hooks: Any) -> dict[str, list[str]]:
    """Accept a command string or list of command strings per stage."""
    if not isinstance(hooks, dict):
        raise ManifestInvalid('Manifest field "npack.hooks" must be an object')

    normalized = {}
    for stage, commands in hooks.items():
        if isinstance(commands, str):
            commands = [commands]
        if not isinstance(commands, list) or not all(isinstance(c, str) for c in commands):
            raise ManifestInvalid(
                f'Hook "{stage}" must be a command string or a list of command strings'
            )
        normalized[stage] = commands

    return normalized


def is_valid_name(name: Any) -> bool:
    """Check that a package name can be used as a workspace directory name."""
    if not isinstance(name, str) or name in RESERVED_NAMES:
        return False
    return bool(_NAME_PATTERN.match(name))


def validate_manifest(manifest: PackageManifest) -> list[str]:
    """Validate package manifest and return list of errors.

    Args:
        manifest: PackageManifest to validate

    Returns:
        List of validation error messages (empty if valid)
    """
    errors = []

    if not manifest.name:
        errors.append('Manifest field "name" is required')
    elif not is_valid_name(manifest.name):
        errors.append(f"Invalid package name: {manifest.name}")

    if not manifest.version:
        errors.append('Manifest field "version" is required')
    else:
        try:
            parse_version(manifest.version)
        except ValueError as e:
            errors.append(str(e))

    if manifest.compatibility is not None:
        try:
            validate_range(manifest.compatibility)
        except ValueError as e:
            errors.append(str(e))

    for stage in manifest.hooks:
        if stage not in HOOK_STAGES:
            errors.append(f"Unknown hook stage: {stage}")

    return errors


def load_manifest(package_dir: Path) -> PackageManifest:
    """Load package manifest from directory.

    Args:
        package_dir: Path to package directory

    Returns:
        Loaded PackageManifest

    Raises:
        ManifestInvalid: If package.json is missing, not valid JSON, or
            does not describe a valid package
    """
    manifest_path = Path(package_dir) / MANIFEST_FILENAME
    if not manifest_path.is_file():
        raise ManifestInvalid(f"{MANIFEST_FILENAME} not found in {package_dir}")

    try:
        with open(manifest_path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestInvalid(f"Invalid JSON in {MANIFEST_FILENAME}: {e}") from e

    return PackageManifest.from_dict(data)


def save_manifest(manifest: PackageManifest, package_dir: Path) -> None:
    """Save package manifest to directory.

    Args:
        manifest: PackageManifest to save
        package_dir: Path to package directory (created if it doesn't exist)
    """
    package_dir = Path(package_dir)
    package_dir.mkdir(parents=True, exist_ok=True)

    with open(package_dir / MANIFEST_FILENAME, "w", encoding="utf-8") as f:
        json.dump(manifest.to_dict(), f, indent=2)
        f.write("\n")

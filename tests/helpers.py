"""Test helpers: package archive builder and executor doubles."""

import io
import json
import tarfile
from pathlib import Path

from npack.hooks import CommandResult


class RecordingExecutor:
    """Executor double that records commands instead of running them.

    Commands listed in ``exit_codes`` return that status, all others succeed.
    """

    def __init__(self, exit_codes: dict[str, int] | None = None):
        self.exit_codes = exit_codes or {}
        self.calls: list[tuple[str, Path]] = []

    def __call__(self, command: str, cwd: Path) -> CommandResult:
        self.calls.append((command, Path(cwd)))
        return CommandResult(exit_code=self.exit_codes.get(command, 0))

    @property
    def commands(self) -> list[str]:
        return [command for command, _ in self.calls]


def make_package_archive(
    dest_dir: Path,
    name: str = "test-app",
    version: str = "1.0.0",
    compatibility: str | None = None,
    hooks: dict | None = None,
    files: dict[str, str] | None = None,
    manifest: dict | None = None,
    wrap: str | None = None,
) -> Path:
    """Build a .tar.gz package archive.

    Args:
        dest_dir: Directory the archive is written to
        name: Package name
        version: Package version
        compatibility: Required npack range
        hooks: Hook table for the manifest
        files: Extra files (relative path -> content)
        manifest: Raw manifest dict overriding the generated one
        wrap: Top-level directory wrapping all members (e.g. "package")
    """
    if manifest is None:
        manifest = {"name": name, "version": version}
        npack = {}
        if compatibility is not None:
            npack["compatibility"] = compatibility
        if hooks:
            npack["hooks"] = hooks
        if npack:
            manifest["npack"] = npack

    members = {"package.json": json.dumps(manifest, indent=2)}
    members.update(files or {"index.js": "console.log('hello');\n"})

    archive_path = Path(dest_dir) / f"{name}-{version}.tar.gz"
    with tarfile.open(archive_path, "w:gz") as tar:
        for rel_path, content in members.items():
            data = content.encode()
            info = tarfile.TarInfo(f"{wrap}/{rel_path}" if wrap else rel_path)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))

    return archive_path

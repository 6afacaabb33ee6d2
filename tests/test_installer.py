"""Tests for package installer."""

import os
import stat
import sys
from pathlib import Path

import pytest
from helpers import RecordingExecutor, make_package_archive

from npack.errors import (
    ArchiveError,
    HookFailure,
    ManifestInvalid,
    PackageAlreadyInstalled,
)
from npack.hooks import HookRunner
from npack.installer import PackageInstaller
from npack.models import PackageInfo
from npack.workspace import STAGING_PREFIX, Workspace

HOOKS = {
    "preinstall": ["echo pre"],
    "postinstall": ["echo post"],
    "preuse": ["echo preuse"],
    "postuse": ["echo postuse"],
}


def workspace_entries(workspace_dir: Path) -> list[str]:
    return sorted(os.listdir(workspace_dir))


class TestPackageInstaller:
    """Test PackageInstaller class."""

    def test_install_from_file(self, archives_dir, workspace_dir, recording_runner):
        """Test installing package from archive."""
        archive_path = make_package_archive(archives_dir, name="app", version="1.2.0")
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        package = installer.install(str(archive_path))

        assert isinstance(package, PackageInfo)
        assert package.name == "app"
        assert package.version == "1.2.0"
        assert package.path == workspace_dir / "app"
        assert (package.path / "package.json").is_file()
        assert (package.path / "index.js").is_file()
        assert workspace_entries(workspace_dir) == ["app"]

    def test_install_runs_install_hooks_only(
        self, archives_dir, workspace_dir, recorder, recording_runner
    ):
        """Test preinstall then postinstall run in the staging directory."""
        archive_path = make_package_archive(archives_dir, hooks=HOOKS)
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        installer.install(str(archive_path))

        assert recorder.commands == ["echo pre", "echo post"]
        for _, cwd in recorder.calls:
            assert cwd.parent == workspace_dir
            assert cwd.name.startswith(STAGING_PREFIX)

    @pytest.mark.parametrize("stage", ["preinstall", "postinstall"])
    def test_disabled_install_hook(
        self, archives_dir, workspace_dir, recorder, recording_runner, stage
    ):
        archive_path = make_package_archive(archives_dir, hooks=HOOKS)
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        installer.install(str(archive_path), disabled_hooks=[stage])

        assert HOOKS[stage][0] not in recorder.commands
        assert len(recorder.commands) == 1

    def test_install_does_not_touch_pointer(self, archives_dir, workspace_dir, recording_runner):
        workspace = Workspace(workspace_dir)
        installer = PackageInstaller(workspace, hook_runner=recording_runner)

        installer.install(str(make_package_archive(archives_dir)))

        assert workspace.get_current() is None
        assert not (workspace_dir / "current").exists()

    def test_install_ignores_compatibility(self, archives_dir, workspace_dir, recording_runner):
        """Test packages are installable whatever host they require."""
        archive_path = make_package_archive(archives_dir, compatibility="99.x.x")
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        package = installer.install(str(archive_path))

        assert package.manifest.compatibility == "99.x.x"

    def test_install_creates_workspace(self, archives_dir, tmp_path, recording_runner):
        workspace_dir = tmp_path / "new" / "workspace"
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        package = installer.install(str(make_package_archive(archives_dir)))

        assert package.path.is_dir()

    def test_install_multiple_packages(self, archives_dir, workspace_dir, recording_runner):
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        installer.install(str(make_package_archive(archives_dir, name="app-v1")))
        installer.install(str(make_package_archive(archives_dir, name="app-v2")))

        assert workspace_entries(workspace_dir) == ["app-v1", "app-v2"]

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_installed_package_is_world_readable(
        self, archives_dir, workspace_dir, recording_runner, umask_022
    ):
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        package = installer.install(str(make_package_archive(archives_dir, name="app")))

        assert stat.S_IMODE(package.path.stat().st_mode) == 0o755


class TestInstallRollback:
    """Test failed installs leave nothing behind."""

    def test_preinstall_failure(self, archives_dir, workspace_dir):
        recorder = RecordingExecutor(exit_codes={"exit 1": 1})
        archive_path = make_package_archive(
            archives_dir, hooks={"preinstall": "exit 1", "postinstall": "echo post"}
        )
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=HookRunner(recorder))

        with pytest.raises(HookFailure, match='Command "exit 1" failed with exit code: 1'):
            installer.install(str(archive_path))

        assert recorder.commands == ["exit 1"]
        assert workspace_entries(workspace_dir) == []

    def test_postinstall_failure(self, archives_dir, workspace_dir):
        recorder = RecordingExecutor(exit_codes={"exit 2": 2})
        archive_path = make_package_archive(archives_dir, hooks={"postinstall": "exit 2"})
        workspace = Workspace(workspace_dir)
        installer = PackageInstaller(workspace, hook_runner=HookRunner(recorder))

        with pytest.raises(HookFailure) as exc_info:
            installer.install(str(archive_path))

        assert exc_info.value.exit_code == 2
        assert workspace_entries(workspace_dir) == []

    def test_missing_manifest(self, archives_dir, workspace_dir, recording_runner):
        archive_path = make_package_archive(archives_dir)

        def extract_without_manifest(src, target):
            (Path(target) / "index.js").write_text("")

        installer = PackageInstaller(
            Workspace(workspace_dir),
            hook_runner=recording_runner,
            extractor=extract_without_manifest,
        )

        with pytest.raises(ManifestInvalid):
            installer.install(str(archive_path))

        assert workspace_entries(workspace_dir) == []

    def test_malformed_manifest(self, archives_dir, workspace_dir, recording_runner):
        archive_path = make_package_archive(archives_dir, manifest={"name": "app"})
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        with pytest.raises(ManifestInvalid, match='"version" is required'):
            installer.install(str(archive_path))

        assert workspace_entries(workspace_dir) == []

    def test_invalid_archive(self, tmp_path, workspace_dir, recording_runner):
        archive_path = tmp_path / "invalid.tar.gz"
        archive_path.write_text("not a tar file")
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        with pytest.raises(ArchiveError):
            installer.install(str(archive_path))

        assert workspace_entries(workspace_dir) == []

    def test_missing_archive(self, tmp_path, workspace_dir, recording_runner):
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)

        with pytest.raises(FileNotFoundError):
            installer.install(str(tmp_path / "nonexistent.tar.gz"))

        assert workspace_entries(workspace_dir) == []

    def test_collaborator_error_propagates_unchanged(self, workspace_dir, recording_runner):
        error = OSError("disk full")

        def failing_extractor(src, target):
            raise error

        installer = PackageInstaller(
            Workspace(workspace_dir), hook_runner=recording_runner, extractor=failing_extractor
        )

        with pytest.raises(OSError) as exc_info:
            installer.install("app.tgz")

        assert exc_info.value is error
        assert workspace_entries(workspace_dir) == []

    def test_already_installed(self, archives_dir, workspace_dir, recorder, recording_runner):
        """Test reinstalling a name keeps the existing package untouched."""
        installer = PackageInstaller(Workspace(workspace_dir), hook_runner=recording_runner)
        installer.install(str(make_package_archive(archives_dir, version="1.0.0")))

        archive_v2 = make_package_archive(archives_dir, version="2.0.0", hooks=HOOKS)
        with pytest.raises(PackageAlreadyInstalled, match="already installed"):
            installer.install(str(archive_v2))

        assert workspace_entries(workspace_dir) == ["test-app"]
        assert Workspace(workspace_dir).resolve("test-app").version == "1.0.0"

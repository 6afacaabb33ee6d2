"""Shared fixtures for npack tests."""

import os

import pytest
from helpers import RecordingExecutor

from npack.config import NpackSettings
from npack.hooks import HookRunner


@pytest.fixture
def archives_dir(tmp_path):
    """Directory holding test archives."""
    path = tmp_path / "archives"
    path.mkdir()
    return path


@pytest.fixture
def workspace_dir(tmp_path):
    """Empty workspace root."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path


@pytest.fixture
def recorder():
    """Recording executor with all commands succeeding."""
    return RecordingExecutor()


@pytest.fixture
def recording_runner(recorder):
    """HookRunner backed by the recording executor."""
    return HookRunner(recorder)


@pytest.fixture
def settings():
    """Settings independent of the environment."""
    return NpackSettings(host_version="1.0.0")


@pytest.fixture
def umask_022():
    """Run with a 022 umask, restoring the previous one afterwards."""
    previous = os.umask(0o022)
    yield
    os.umask(previous)

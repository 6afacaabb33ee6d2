"""npack - package lifecycle engine.

This package installs archived application packages into a workspace and
switches the live one by atomically swapping the workspace's current pointer,
running the package's lifecycle hooks along the way.
"""

__version__ = "1.0.0"

from npack.activator import PackageActivator  # noqa: E402
from npack.api import current, install, use  # noqa: E402
from npack.config import NpackSettings, get_settings  # noqa: E402
from npack.errors import (  # noqa: E402
    ArchiveError,
    HookFailure,
    IncompatibleVersion,
    ManifestInvalid,
    NpackError,
    OptionInvalid,
    OptionRequired,
    PackageAlreadyInstalled,
    PackageNotFound,
)
from npack.hooks import CommandResult, HookRunner, ShellExecutor  # noqa: E402
from npack.installer import PackageInstaller  # noqa: E402
from npack.manifest import (  # noqa: E402
    HOOK_STAGES,
    PackageManifest,
    load_manifest,
    save_manifest,
    validate_manifest,
)
from npack.models import PackageInfo  # noqa: E402
from npack.versioning import (  # noqa: E402
    check_compatibility,
    compare_versions,
    parse_version,
    satisfies,
)
from npack.workspace import Workspace  # noqa: E402

__all__ = [
    "__version__",
    # Entry points
    "install",
    "use",
    "current",
    # Engine
    "PackageInstaller",
    "PackageActivator",
    "Workspace",
    "HookRunner",
    "ShellExecutor",
    "CommandResult",
    # Manifest
    "PackageManifest",
    "PackageInfo",
    "HOOK_STAGES",
    "load_manifest",
    "save_manifest",
    "validate_manifest",
    # Versioning
    "parse_version",
    "compare_versions",
    "satisfies",
    "check_compatibility",
    # Configuration
    "NpackSettings",
    "get_settings",
    # Errors
    "NpackError",
    "OptionRequired",
    "OptionInvalid",
    "PackageNotFound",
    "PackageAlreadyInstalled",
    "ManifestInvalid",
    "ArchiveError",
    "HookFailure",
    "IncompatibleVersion",
]

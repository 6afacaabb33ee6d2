"""Engine entry points: install and use.

Both functions take an options mapping mirroring the command line surface
of higher level tools:

    install({"src": "app-1.2.0.tgz", "dir": "/srv/app"})
    use({"name": "app", "dir": "/srv/app", "disabledHooks": ["postuse"]})

Required options are validated before any filesystem access.
"""

from collections.abc import Mapping
from typing import Any

from npack.activator import PackageActivator
from npack.archive import extract_archive
from npack.config import NpackSettings, get_settings
from npack.errors import OptionInvalid, OptionRequired
from npack.hooks import HookRunner, ShellExecutor
from npack.installer import PackageInstaller
from npack.manifest import HOOK_STAGES
from npack.models import PackageInfo
from npack.workspace import Workspace


def _require(options: Mapping[str, Any], *names: str) -> None:
    for name in names:
        if not options.get(name):
            raise OptionRequired(name)


def _disabled_hooks(options: Mapping[str, Any], settings: NpackSettings) -> frozenset[str]:
    requested = options.get("disabledHooks", options.get("disabled_hooks")) or []
    if isinstance(requested, str):
        requested = [requested]

    unknown = set(requested) - set(HOOK_STAGES)
    if unknown:
        raise OptionInvalid(
            "disabledHooks", f"unknown hook stage(s) {', '.join(sorted(unknown))}"
        )

    return frozenset(requested) | frozenset(settings.disabled_hooks)


def _workspace(options: Mapping[str, Any], settings: NpackSettings) -> Workspace:
    return Workspace(
        options["dir"],
        pointer_name=settings.pointer_name,
        pointer_mode=settings.pointer_mode,
    )


def install(
    options: Mapping[str, Any],
    settings: NpackSettings | None = None,
    hook_runner: HookRunner | None = None,
) -> PackageInfo:
    """Install a package archive into a workspace.

    Args:
        options: "src" (archive path or URL) and "dir" (workspace root) are
            required; "disabledHooks" lists stages to skip
        settings: Engine settings (loaded fresh when omitted)
        hook_runner: Hook runner override

    Returns:
        PackageInfo of the installed package
    """
    _require(options, "src", "dir")
    settings = settings or get_settings()
    disabled_hooks = _disabled_hooks(options, settings)

    installer = PackageInstaller(
        _workspace(options, settings),
        hook_runner=hook_runner or HookRunner(ShellExecutor(settings.shell)),
        extractor=lambda src, target: extract_archive(
            src, target, timeout=settings.download_timeout
        ),
    )
    return installer.install(str(options["src"]), disabled_hooks)


def use(
    options: Mapping[str, Any],
    settings: NpackSettings | None = None,
    hook_runner: HookRunner | None = None,
) -> PackageInfo:
    """Make an installed package the current one.

    The host version is taken from settings at call time, so each call
    checks compatibility against the version in effect right now.

    Args:
        options: "name" (installed package) and "dir" (workspace root) are
            required; "disabledHooks" lists stages to skip
        settings: Engine settings (loaded fresh when omitted)
        hook_runner: Hook runner override

    Returns:
        PackageInfo of the now-current package
    """
    _require(options, "name", "dir")
    settings = settings or get_settings()
    disabled_hooks = _disabled_hooks(options, settings)

    activator = PackageActivator(
        _workspace(options, settings),
        hook_runner=hook_runner or HookRunner(ShellExecutor(settings.shell)),
    )
    return activator.use(
        str(options["name"]),
        host_version=settings.host_version,
        disabled_hooks=disabled_hooks,
    )


def current(
    options: Mapping[str, Any], settings: NpackSettings | None = None
) -> PackageInfo | None:
    """Get the current package of a workspace ("dir" is required)."""
    _require(options, "dir")
    settings = settings or get_settings()
    return _workspace(options, settings).get_current()

from __future__ import annotations

import platform

from prvsix.exceptions import UnsupportedPlatformError, UsageError
from prvsix.models import Platform

SUPPORTED_PLATFORMS = tuple(item.value for item in Platform)


def detect_platform(system: str | None = None) -> Platform:
    """Map the host kernel name onto a build platform."""
    kernel = (system if system is not None else platform.system()).lower()

    if kernel == "darwin":
        return Platform.MACOS
    if kernel == "linux":
        return Platform.LINUX

    raise UnsupportedPlatformError(
        f"Unsupported operating system: {kernel or 'unknown'}"
        f" (supported: {', '.join(SUPPORTED_PLATFORMS)})"
    )


def resolve_platform(explicit: str | None = None, system: str | None = None) -> Platform:
    """Return the explicit platform if given, otherwise detect the host platform."""
    if explicit is None:
        return detect_platform(system)

    try:
        return Platform(explicit.strip().lower())
    except ValueError as exc:
        raise UsageError(
            f"Invalid platform {explicit!r}, expected one of: {', '.join(SUPPORTED_PLATFORMS)}"
        ) from exc

from __future__ import annotations

import os
import platform
from pathlib import Path


def resolve_cache_root() -> Path:
    """Resolve the per-user package cache directory."""
    explicit_root = os.environ.get("PRVSIX_CACHE_DIR", "").strip()
    if explicit_root:
        return Path(explicit_root).expanduser().resolve()

    xdg_cache = os.environ.get("XDG_CACHE_HOME", "").strip()
    if xdg_cache:
        return Path(xdg_cache).expanduser().joinpath("prvsix").resolve()

    home = Path.home()
    if platform.system().lower() == "darwin":
        return home.joinpath("Library/Caches/prvsix").resolve()
    return home.joinpath(".cache/prvsix").resolve()


def resolve_config_path() -> Path:
    """Resolve the optional JSON5 configuration file location."""
    explicit_path = os.environ.get("PRVSIX_CONFIG", "").strip()
    if explicit_path:
        return Path(explicit_path).expanduser().resolve()

    xdg_config = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg_config:
        return Path(xdg_config).expanduser().joinpath("prvsix/config.json5").resolve()
    return Path.home().joinpath(".config/prvsix/config.json5").resolve()

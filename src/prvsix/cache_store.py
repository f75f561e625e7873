from __future__ import annotations

import logging
import os
import re
import shutil
from pathlib import Path

from prvsix.exceptions import CacheError
from prvsix.internal_config import PACKAGE_FILE_PREFIX, PACKAGE_FILE_SUFFIX

logger: logging.Logger = logging.getLogger(__name__)

CACHE_ENTRY_PATTERN = re.compile(
    rf"^{re.escape(PACKAGE_FILE_PREFIX)}.+-\d+{re.escape(PACKAGE_FILE_SUFFIX)}$"
)


class CacheStore(object):
    """Filesystem cache of downloaded packages, one file per (version, PR)."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def ensure(self) -> Path:
        """Create the cache directory if necessary."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CacheError(
                f"Unable to create cache directory {self.root}: {exc}"
            ) from exc
        return self.root

    def entry_path(self, version: str, pr: int) -> Path:
        if not version or "/" in version or os.sep in version:
            raise ValueError(f"Invalid package version for cache entry: {version!r}")
        if int(pr) <= 0:
            raise ValueError(f"Invalid pull request number: {pr!r}")
        return self.root.joinpath(
            f"{PACKAGE_FILE_PREFIX}{version}-{int(pr)}{PACKAGE_FILE_SUFFIX}"
        )

    def put(self, source: Path, version: str, pr: int) -> Path:
        """Move *source* into the cache and return the cache entry path."""
        target_path = self.entry_path(version, pr)
        self.ensure()

        try:
            if target_path.exists():
                logger.warning(f"Overwriting cached package {target_path.name}")
                target_path.unlink()

            shutil.move(str(source), str(target_path))
        except OSError as exc:
            raise CacheError(f"Unable to cache package at {target_path}: {exc}") from exc

        logger.info(f"Cached {target_path}")
        return target_path

    def list(self) -> set[Path]:
        """Return all cached package files."""
        if not self.root.is_dir():
            return set()
        try:
            return {
                path
                for path in self.root.iterdir()
                if path.is_file() and CACHE_ENTRY_PATTERN.match(path.name)
            }
        except OSError as exc:
            raise CacheError(f"Unable to read cache directory {self.root}: {exc}") from exc

    def clear(self) -> int:
        """Remove all cached package files and return how many were removed."""
        removed = 0
        for path in sorted(self.list()):
            try:
                path.unlink()
            except OSError as exc:
                raise CacheError(f"Unable to remove cached package {path}: {exc}") from exc
            logger.debug(f"Removed {path.name}")
            removed += 1
        return removed

from __future__ import annotations

import logging
import re
from pathlib import Path

from prvsix.exceptions import ExtractionError
from prvsix.internal_config import (
    PACKAGE_FILE_PREFIX,
    PACKAGE_FILE_SUFFIX,
    UNKNOWN_VERSION,
)
from prvsix.models import Package

logger: logging.Logger = logging.getLogger(__name__)

PACKAGE_NAME_PATTERN = re.compile(
    rf"^{re.escape(PACKAGE_FILE_PREFIX)}(.+){re.escape(PACKAGE_FILE_SUFFIX)}$"
)


def parse_package_version(filename: str) -> str | None:
    """Return the version embedded in ``continue-<version>.vsix``, else ``None``."""
    match = PACKAGE_NAME_PATTERN.match(filename)
    if match is None:
        return None
    return match.group(1)


def find_package_file(directory: Path) -> Path:
    """Return the first ``.vsix`` file below *directory*."""
    candidates = sorted(
        path for path in directory.rglob(f"*{PACKAGE_FILE_SUFFIX}") if path.is_file()
    )
    if not candidates:
        raise ExtractionError(f"No {PACKAGE_FILE_SUFFIX} file found in {directory}")
    if len(candidates) > 1:
        logger.debug(f"Multiple packages found, using {candidates[0].name}")
    return candidates[0]


def extract_package(directory: Path) -> Package:
    """Locate the installable package in *directory* and derive its version."""
    source_path = find_package_file(directory)
    version = parse_package_version(source_path.name)
    if version is None:
        logger.warning(
            f"Could not parse a version from {source_path.name}, using '{UNKNOWN_VERSION}'"
        )
        version = UNKNOWN_VERSION

    logger.info(f"Found package {source_path.name} (version {version})")
    return Package(source_path=source_path, version=version)

from __future__ import annotations

import platform
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version


def _get_package_version(name: str) -> str:
    """Return the installed version of *name*, or ``"0"`` if not found."""
    try:
        return _pkg_version(name)
    except PackageNotFoundError:
        return "0"


PRVSIX_VERSION = _get_package_version("prvsix")

DEFAULT_USER_AGENT = (
    f"prvsix/{PRVSIX_VERSION}"
    f" ({platform.system()}; {platform.machine()}; compatible)"
)

DEFAULT_REPOSITORY = "continuedev/continue"
DEFAULT_WORKFLOW = "pr-checks.yaml"
DEFAULT_ARTIFACT_PREFIX = "vscode-extension-build-"
DEFAULT_MARKETPLACE_ID = "Continue.continue"
DEFAULT_CODE_BINARY = "code"

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"

# cached packages are named continue-{version}-{pr}.vsix
PACKAGE_FILE_PREFIX = "continue-"
PACKAGE_FILE_SUFFIX = ".vsix"
UNKNOWN_VERSION = "unknown"

RUN_PAGE_SIZE = 50
RUN_MAX_PAGES = 4

HTTP_REQUEST_TIMEOUT_SECONDS = 30
HTTP_STREAM_CONNECT_TIMEOUT_SECONDS = 10
HTTP_STREAM_READ_TIMEOUT_SECONDS = 120

HTTP_RETRY_TOTAL = 3
HTTP_RETRY_BACKOFF_FACTOR = 1
HTTP_RETRY_STATUS_FORCELIST = [429, 500, 502, 503, 504]
HTTP_RETRY_ALLOWED_METHODS = ["HEAD", "GET", "OPTIONS"]

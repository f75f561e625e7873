from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable

from prvsix.exceptions import DependencyMissingError, InstallError

RunCommand = Callable[..., subprocess.CompletedProcess[str]]
WhichCommand = Callable[[str], str | None]

logger: logging.Logger = logging.getLogger(__name__)

CODE_CLI_HINT = (
    "Install the VS Code 'code' command (Command Palette: "
    "\"Shell Command: Install 'code' command in PATH\") or pass --code-path."
)
GH_CLI_HINT = (
    "Set GITHUB_TOKEN, or install the GitHub CLI (https://cli.github.com) "
    "and run 'gh auth login'."
)


def ensure_tool_available(
    name: str,
    hint: str,
    which: WhichCommand = shutil.which,
) -> str:
    """Return the resolved path of *name* or fail with a remediation hint."""
    resolved = which(name)
    if not resolved:
        raise DependencyMissingError(f"Required tool '{name}' not found. {hint}")
    return resolved


def resolve_github_token(
    token: str = "",
    gh_binary: str = "gh",
    which: WhichCommand = shutil.which,
    run_command: RunCommand = subprocess.run,
) -> str:
    """Return *token*, falling back to ``gh auth token`` when it is empty."""
    if token:
        return token

    gh_path = ensure_tool_available(gh_binary, GH_CLI_HINT, which=which)
    process = run_command(
        [gh_path, "auth", "token"],
        capture_output=True,
        check=False,
        text=True,
    )
    resolved = f"{process.stdout or ''}".strip()
    if process.returncode != 0 or not resolved:
        raise DependencyMissingError(
            f"The GitHub CLI is not authenticated. {GH_CLI_HINT}"
        )
    return resolved


def _run_code_cli(cmd: list[str], run_command: RunCommand) -> None:
    logger.debug(f"Running {' '.join(cmd)}")
    try:
        output = run_command(
            cmd,
            capture_output=True,
            check=False,
            text=True,
        )
    except FileNotFoundError as exc:
        raise DependencyMissingError(
            f"Required tool '{cmd[0]}' not found. {CODE_CLI_HINT}"
        ) from exc

    # code sometimes reports failures with a zero exit status
    error_msg = "Error: "
    if (
        output.returncode != 0
        or error_msg in f"{output.stdout}"
        or error_msg in f"{output.stderr}"
    ):
        details = "\n".join(
            item.strip() for item in (output.stdout, output.stderr) if item and item.strip()
        )
        raise InstallError(
            f"'{' '.join(cmd)}' failed with exit status {output.returncode}"
            + (f":\n{details}" if details else "")
        )


def run_code_cli_install(
    *,
    code_binary: str,
    extension_path: Path,
    run_command: RunCommand = subprocess.run,
) -> None:
    cmd = [
        code_binary,
        "--install-extension",
        f"{extension_path}",
        "--force",
    ]
    _run_code_cli(cmd, run_command)


def run_code_cli_install_prerelease(
    *,
    code_binary: str,
    marketplace_id: str,
    run_command: RunCommand = subprocess.run,
) -> None:
    cmd = [
        code_binary,
        "--install-extension",
        marketplace_id,
        "--pre-release",
        "--force",
    ]
    _run_code_cli(cmd, run_command)

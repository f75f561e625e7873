#! /bin/env python3
from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Optional, TypeVar

import typer

from prvsix.api_client import GitHubAPIManager
from prvsix.artifacts import fetch_artifact
from prvsix.build_runs import locate_successful_run
from prvsix.cache_store import CacheStore
from prvsix.exceptions import PrvsixError, UsageError
from prvsix.install_engine import (
    CODE_CLI_HINT,
    RunCommand,
    WhichCommand,
    ensure_tool_available,
    resolve_github_token,
    run_code_cli_install,
    run_code_cli_install_prerelease,
)
from prvsix.internal_config import DEFAULT_USER_AGENT, PRVSIX_VERSION
from prvsix.models import Artifact
from prvsix.package_extractor import extract_package
from prvsix.platform_resolver import SUPPORTED_PLATFORMS, resolve_platform
from prvsix.pull_requests import resolve_branch
from prvsix.settings import Settings, load_settings

T = TypeVar("T")

app: typer.Typer = typer.Typer(
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
    help="Install Continue VS Code extension builds from pull requests.",
)
logger: logging.Logger = logging.getLogger(__name__)


class PullRequestExtensionManager(object):
    """Install extension builds from PR CI runs or the marketplace pre-release channel."""

    api_manager: GitHubAPIManager | None = None

    def __init__(
        self,
        settings: Settings,
        api_manager: GitHubAPIManager | None = None,
        cache: CacheStore | None = None,
        run_command: RunCommand = subprocess.run,
        which: WhichCommand = shutil.which,
    ) -> None:
        self.settings = settings
        self.api_manager = api_manager
        self.cache = cache if cache is not None else CacheStore(settings.cache_root)
        self.run_command = run_command
        self.which = which

    def github(self) -> GitHubAPIManager:
        """Return the GitHub client, resolving credentials on first use."""
        if self.api_manager is None:
            token = resolve_github_token(
                self.settings.github_token,
                which=self.which,
                run_command=self.run_command,
            )
            self.api_manager = GitHubAPIManager(
                self.settings.repository,
                token=token,
                api_url=self.settings.api_url,
            )
        return self.api_manager

    def install_from_pr(self, pr: int, platform: str | None = None) -> Path:
        """Install the build of pull request *pr* and return its cache path."""
        if pr <= 0:
            raise UsageError(f"Pull request number must be positive, got {pr}")

        target_platform = resolve_platform(platform)
        ensure_tool_available(self.settings.code_binary, CODE_CLI_HINT, which=self.which)
        client = self.github()
        self.cache.ensure()

        logger.info(
            f"Installing PR #{pr} from {self.settings.repository} for {target_platform.value}"
        )
        branch = resolve_branch(client, pr)
        run_id = locate_successful_run(client, branch, self.settings.workflow, pr)
        artifact = Artifact.for_platform(
            self.settings.artifact_prefix, target_platform, run_id
        )

        with fetch_artifact(
            client, artifact.run_id, artifact.name, target_platform
        ) as contents_dir:
            package = extract_package(contents_dir)
            cached_path = self.cache.put(package.source_path, package.version, pr)

        logger.info(f"Installing {cached_path.name}")
        run_code_cli_install(
            code_binary=self.settings.code_binary,
            extension_path=cached_path,
            run_command=self.run_command,
        )
        logger.info(f"Installed {cached_path.name}")
        return cached_path

    def install_latest_prerelease(self) -> None:
        """Install the newest marketplace pre-release."""
        ensure_tool_available(self.settings.code_binary, CODE_CLI_HINT, which=self.which)
        self.cache.ensure()

        logger.info(f"Installing latest pre-release of {self.settings.marketplace_id}")
        run_code_cli_install_prerelease(
            code_binary=self.settings.code_binary,
            marketplace_id=self.settings.marketplace_id,
            run_command=self.run_command,
        )
        logger.info(f"Installed latest pre-release of {self.settings.marketplace_id}")

    def clean(self) -> int:
        """Empty the package cache and return the number of removed packages."""
        self.cache.ensure()
        return self.cache.clear()

    def cached_packages(self) -> list[Path]:
        self.cache.ensure()
        return sorted(self.cache.list())


def configure_logging(log_level: str) -> None:
    _log_level = getattr(logging, log_level.upper(), None)
    if not isinstance(_log_level, int):
        raise UsageError(f"Invalid log level: {log_level!r}")
    logging.basicConfig(
        level=_log_level,
        format="%(relativeCreated)d [%(levelname)s] %(message)s",
    )


def run_command_safely(ctx: typer.Context, action: Callable[[], T]) -> T:
    """Run *action*, turning domain errors into exit status 1."""
    try:
        return action()
    except UsageError as exc:
        logger.error(f"{exc}")
        typer.echo(ctx.get_help(), err=True)
        raise typer.Exit(code=1) from exc
    except PrvsixError as exc:
        logger.error(f"{exc}")
        raise typer.Exit(code=1) from exc


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"prvsix {PRVSIX_VERSION}")
        typer.echo(f"User-Agent: {DEFAULT_USER_AGENT}")
        raise typer.Exit()


@app.callback()
def cli(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and User-Agent, then exit.",
    ),
) -> None:
    """Install Continue VS Code extension builds from pull requests."""


@app.command()
def install(
    ctx: typer.Context,
    pr: Optional[int] = typer.Option(
        None, "--pr", min=1, help="Pull request number to install a CI build from."
    ),
    latest: bool = typer.Option(
        False, "--latest", help="Install the latest marketplace pre-release instead."
    ),
    platform: Optional[str] = typer.Option(
        None,
        "--platform",
        help=f"Build platform ({' or '.join(SUPPORTED_PLATFORMS)}), defaults to the host OS.",
    ),
    code_path: str = typer.Option("", "--code-path", help="VS Code CLI to install with."),
    cache_dir: str = typer.Option("", "--cache-dir", help="Package cache directory."),
    repository: str = typer.Option("", "--repository", help="GitHub repository (owner/name)."),
    workflow: str = typer.Option("", "--workflow", help="Workflow file that builds the package."),
    config: str = typer.Option("", "--config", help="JSON5 configuration file."),
    log_level: str = "info",
) -> None:
    """Install a pull request build or the latest pre-release."""

    def _install() -> None:
        configure_logging(log_level)
        if latest == (pr is not None):
            raise UsageError("Pass exactly one of --pr or --latest")
        if latest and platform is not None:
            raise UsageError("--platform can only be used with --pr")
        if platform is not None:
            resolve_platform(platform)

        settings = load_settings(
            config or None,
            code_binary=code_path,
            cache_root=cache_dir,
            repository=repository,
            workflow=workflow,
        )
        manager = PullRequestExtensionManager(settings)
        if latest:
            manager.install_latest_prerelease()
        else:
            manager.install_from_pr(int(pr or 0), platform)

    run_command_safely(ctx, _install)


@app.command()
def clean(
    ctx: typer.Context,
    cache_dir: str = typer.Option("", "--cache-dir", help="Package cache directory."),
    config: str = typer.Option("", "--config", help="JSON5 configuration file."),
    log_level: str = "info",
) -> None:
    """Remove all cached packages."""

    def _clean() -> int:
        configure_logging(log_level)
        settings = load_settings(config or None, cache_root=cache_dir)
        return PullRequestExtensionManager(settings).clean()

    removed = run_command_safely(ctx, _clean)
    typer.echo(f"Removed {removed} cached package(s)")


@app.command("list")
def list_cached(
    ctx: typer.Context,
    cache_dir: str = typer.Option("", "--cache-dir", help="Package cache directory."),
    config: str = typer.Option("", "--config", help="JSON5 configuration file."),
    log_level: str = "info",
) -> None:
    """List cached packages."""

    def _list() -> list[Path]:
        configure_logging(log_level)
        settings = load_settings(config or None, cache_root=cache_dir)
        return PullRequestExtensionManager(settings).cached_packages()

    for path in run_command_safely(ctx, _list):
        typer.echo(f"{path}")


def main() -> None:
    try:
        app()
    except SystemExit as exc:
        # click reports usage errors with status 2
        if exc.code == 2:
            raise SystemExit(1) from None
        raise


if __name__ == "__main__":
    main()

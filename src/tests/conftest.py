from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Any, Callable

import pytest


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="run slow tests that start a local HTTP server",
    )
    parser.addoption(
        "--only-slow",
        action="store_true",
        default=False,
        help="run only tests marked as slow",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: marks tests as slow")


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    only_slow = bool(config.getoption("--only-slow"))
    run_slow = bool(config.getoption("--slow")) or only_slow

    if only_slow:
        selected = [item for item in items if "slow" in item.keywords]
        deselected = [item for item in items if "slow" not in item.keywords]
        if deselected:
            config.hook.pytest_deselected(items=deselected)
        items[:] = selected

    if run_slow:
        return

    skip_slow = pytest.mark.skip(reason="need --slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def build_zip(members: dict[str, bytes]) -> bytes:
    data = io.BytesIO()
    with zipfile.ZipFile(data, "w") as archive:
        for name, payload in members.items():
            archive.writestr(name, payload)
    return data.getvalue()


class FakeGitHub:
    """In-memory stand-in for GitHubAPIManager."""

    def __init__(
        self,
        pull_request: Any = None,
        runs: Any = None,
        artifacts: Any = None,
        archive: bytes = b"",
    ) -> None:
        self.pull_request = pull_request if pull_request is not None else {}
        self.runs = runs if runs is not None else []
        self.artifacts = artifacts if artifacts is not None else []
        self.archive = archive
        self.calls: list[tuple[Any, ...]] = []

    def get_pull_request(self, number: int) -> dict[str, Any]:
        self.calls.append(("get_pull_request", number))
        if isinstance(self.pull_request, Exception):
            raise self.pull_request
        return self.pull_request

    def list_workflow_runs(self, workflow: str, branch: str):
        self.calls.append(("list_workflow_runs", workflow, branch))
        if isinstance(self.runs, Exception):
            raise self.runs
        return list(self.runs)

    def list_run_artifacts(self, run_id: int, name: str = "") -> list[dict[str, Any]]:
        self.calls.append(("list_run_artifacts", run_id, name))
        if isinstance(self.artifacts, Exception):
            raise self.artifacts
        return [item for item in self.artifacts if not name or item.get("name") == name]

    def download_to_file(self, url: str, target_path: Path) -> Path:
        self.calls.append(("download_to_file", url))
        if isinstance(self.archive, Exception):
            raise self.archive
        target_path.write_bytes(self.archive)
        return target_path

    def called(self, name: str) -> bool:
        return any(call[0] == name for call in self.calls)


@pytest.fixture
def zip_bytes() -> Callable[[dict[str, bytes]], bytes]:
    return build_zip


@pytest.fixture
def fake_github() -> type[FakeGitHub]:
    return FakeGitHub


@pytest.fixture
def successful_run() -> Callable[..., dict[str, Any]]:
    def _run(
        run_id: int,
        created_at: str = "2026-01-01T00:00:00Z",
        status: str = "completed",
        conclusion: str | None = "success",
        branch: str = "feature/branch",
    ) -> dict[str, Any]:
        return {
            "id": run_id,
            "status": status,
            "conclusion": conclusion,
            "head_branch": branch,
            "created_at": created_at,
        }

    return _run

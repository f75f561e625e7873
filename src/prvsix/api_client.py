from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Iterator

import requests
from requests.adapters import HTTPAdapter, Retry

from prvsix.internal_config import (
    DEFAULT_USER_AGENT,
    GITHUB_API_URL,
    GITHUB_API_VERSION,
    HTTP_REQUEST_TIMEOUT_SECONDS,
    HTTP_RETRY_ALLOWED_METHODS,
    HTTP_RETRY_BACKOFF_FACTOR,
    HTTP_RETRY_STATUS_FORCELIST,
    HTTP_RETRY_TOTAL,
    HTTP_STREAM_CONNECT_TIMEOUT_SECONDS,
    HTTP_STREAM_READ_TIMEOUT_SECONDS,
    RUN_MAX_PAGES,
    RUN_PAGE_SIZE,
)

logger: logging.Logger = logging.getLogger(__name__)


class GitHubAPIManager(object):
    """Query pull requests, workflow runs and artifacts through the GitHub REST API."""

    session: requests.Session

    def __init__(
        self,
        repository: str,
        token: str = "",
        api_url: str = GITHUB_API_URL,
        session: requests.Session | None = None,
    ) -> None:
        self.repository = repository
        self.token = token
        self.api_url = api_url.rstrip("/")

        if session is None:
            retry_strategy = Retry(
                total=HTTP_RETRY_TOTAL,
                backoff_factor=HTTP_RETRY_BACKOFF_FACTOR,
                status_forcelist=HTTP_RETRY_STATUS_FORCELIST,
                allowed_methods=HTTP_RETRY_ALLOWED_METHODS,
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session = requests.Session()
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self.session = session

    def headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
            "User-Agent": DEFAULT_USER_AGENT,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def repo_url(self, path: str) -> str:
        return f"{self.api_url}/repos/{self.repository}/{path.lstrip('/')}"

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        logger.debug(f"GET {url} {params or ''}")
        response = self.session.get(
            url,
            params=params,
            headers=self.headers(),
            timeout=HTTP_REQUEST_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        return response.json()

    def get_pull_request(self, number: int) -> dict[str, Any]:
        """Return the pull request object for *number*."""
        return dict(self.get_json(self.repo_url(f"pulls/{number}")) or {})

    def list_workflow_runs(
        self,
        workflow: str,
        branch: str,
        page_size: int = RUN_PAGE_SIZE,
        max_page: int = RUN_MAX_PAGES,
    ) -> Iterator[dict[str, Any]]:
        """Yield the runs of *workflow* on *branch*, page by page."""
        url = self.repo_url(f"actions/workflows/{workflow}/runs")
        for page in range(1, max_page + 1):
            response = self.get_json(
                url,
                params={"branch": branch, "per_page": page_size, "page": page},
            )
            runs = list((response or {}).get("workflow_runs", []))
            for run in runs:
                yield run

            if len(runs) != page_size:
                break

    def list_run_artifacts(self, run_id: int, name: str = "") -> list[dict[str, Any]]:
        """Return the artifacts attached to a run, optionally filtered by name."""
        params: dict[str, Any] = {"per_page": 100}
        if name:
            params["name"] = name
        response = self.get_json(
            self.repo_url(f"actions/runs/{run_id}/artifacts"), params=params
        )
        artifacts = list((response or {}).get("artifacts", []))
        if name:
            # older API versions ignore the name filter
            artifacts = [item for item in artifacts if item.get("name") == name]
        return artifacts

    def download_to_file(self, url: str, target_path: Path) -> Path:
        """Stream *url* into *target_path* and return the path."""
        logger.debug(f"Downloading {url} to {target_path}")
        with open(target_path, "wb") as output:
            response: requests.Response = self.session.get(
                url,
                stream=True,
                headers=self.headers(),
                timeout=(
                    HTTP_STREAM_CONNECT_TIMEOUT_SECONDS,
                    HTTP_STREAM_READ_TIMEOUT_SECONDS,
                ),
            )
            response.raise_for_status()

            for chunk in response.iter_content(chunk_size=1024 * 8):
                if chunk:
                    output.write(chunk)
            output.flush()
            os.fsync(output.fileno())

        return target_path

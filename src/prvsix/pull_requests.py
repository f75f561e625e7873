from __future__ import annotations

import logging
from typing import Any, Protocol

import requests

from prvsix.exceptions import ResolutionError

logger: logging.Logger = logging.getLogger(__name__)


class PullRequestSource(Protocol):
    def get_pull_request(self, number: int) -> dict[str, Any]: ...


def resolve_branch(client: PullRequestSource, pr: int) -> str:
    """Return the source branch name of pull request *pr*."""
    try:
        pull_request = client.get_pull_request(pr)
    except requests.HTTPError as exc:
        status = getattr(exc.response, "status_code", None)
        if status == 404:
            raise ResolutionError(f"Pull request #{pr} not found") from exc
        raise ResolutionError(f"Unable to look up pull request #{pr}: {exc}") from exc
    except requests.RequestException as exc:
        raise ResolutionError(f"Unable to look up pull request #{pr}: {exc}") from exc

    head = (pull_request or {}).get("head") or {}
    branch = str(head.get("ref") or "").strip()
    if not branch:
        raise ResolutionError(f"Could not determine the branch for pull request #{pr}")

    logger.info(f"PR #{pr} -> branch {branch}")
    return branch

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

import requests

from prvsix.exceptions import ResolutionError
from prvsix.models import WorkflowRun

logger: logging.Logger = logging.getLogger(__name__)


class WorkflowRunSource(Protocol):
    def list_workflow_runs(
        self, workflow: str, branch: str
    ) -> Iterable[dict[str, Any]]: ...


def select_successful_run(runs: Iterable[WorkflowRun]) -> WorkflowRun | None:
    """Return the most recent completed and successful run, if any.

    When every eligible run carries ``created_at`` they are re-sorted newest
    first, so the selection does not depend on the order the API returned
    them in. Otherwise the API order is used unchanged.
    """
    eligible = [run for run in runs if run.is_successful]
    if eligible and all(run.created_at for run in eligible):
        eligible.sort(key=lambda run: run.created_at, reverse=True)
    return eligible[0] if eligible else None


def locate_successful_run(
    client: WorkflowRunSource,
    branch: str,
    workflow: str,
    pr: int,
) -> int:
    """Return the id of the latest successful *workflow* run on *branch*."""
    try:
        runs = [
            WorkflowRun.from_api(item)
            for item in client.list_workflow_runs(workflow, branch)
        ]
    except requests.RequestException as exc:
        raise ResolutionError(
            f"Unable to list '{workflow}' runs for PR #{pr} (branch {branch}): {exc}"
        ) from exc

    logger.debug(f"Found {len(runs)} '{workflow}' run(s) on {branch}")
    run = select_successful_run(runs)
    if run is None:
        raise ResolutionError(
            f"No successful '{workflow}' run found for PR #{pr} (branch {branch})"
        )

    logger.info(f"Using workflow run {run.run_id} ({run.created_at or 'no timestamp'})")
    return run.run_id

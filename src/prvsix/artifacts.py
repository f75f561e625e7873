from __future__ import annotations

import logging
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol

import requests

from prvsix.exceptions import TransferError
from prvsix.models import Platform

logger: logging.Logger = logging.getLogger(__name__)


class ArtifactSource(Protocol):
    def list_run_artifacts(self, run_id: int, name: str = "") -> list[dict[str, Any]]: ...

    def download_to_file(self, url: str, target_path: Path) -> Path: ...


def find_artifact(client: ArtifactSource, run_id: int, name: str) -> dict[str, Any]:
    """Return the API object of the artifact called *name* on run *run_id*."""
    for artifact in client.list_run_artifacts(run_id, name):
        if artifact.get("name") != name:
            continue
        if artifact.get("expired"):
            raise ValueError(f"artifact '{name}' has expired")
        if not artifact.get("archive_download_url"):
            raise ValueError(f"artifact '{name}' has no download URL")
        return artifact
    raise LookupError(f"artifact '{name}' not found on run {run_id}")


def unpack_archive(archive_path: Path, target_dir: Path) -> Path:
    """Extract a zip archive, refusing members that would land outside *target_dir*."""
    target_dir.mkdir(parents=True, exist_ok=True)
    root = target_dir.resolve()

    with zipfile.ZipFile(archive_path, "r") as archive:
        for member in archive.namelist():
            try:
                root.joinpath(member).resolve().relative_to(root)
            except ValueError as exc:
                raise ValueError(
                    f"archive member {member!r} escapes the extraction directory"
                ) from exc
        archive.extractall(root)

    return target_dir


@contextmanager
def fetch_artifact(
    client: ArtifactSource,
    run_id: int,
    artifact_name: str,
    platform: Platform,
) -> Iterator[Path]:
    """Download and unpack an artifact into a temporary directory.

    The directory only exists for the lifetime of the ``with`` block and is
    removed on every exit path, including download failures.
    """
    with tempfile.TemporaryDirectory(prefix="prvsix-artifact.") as tmp_dir:
        try:
            artifact = find_artifact(client, run_id, artifact_name)
            archive_path = client.download_to_file(
                str(artifact["archive_download_url"]),
                Path(tmp_dir, f"{artifact_name}.zip"),
            )
            contents_dir = unpack_archive(archive_path, Path(tmp_dir, "contents"))
            archive_path.unlink()
        except (
            requests.RequestException,
            zipfile.BadZipFile,
            OSError,
            LookupError,
            ValueError,
        ) as exc:
            raise TransferError(
                f"Failed to fetch artifact '{artifact_name}' for platform"
                f" {platform.value} from run {run_id}: {exc}"
            ) from exc

        logger.info(f"Downloaded artifact {artifact_name} from run {run_id}")
        yield contents_dir

from __future__ import annotations

from pathlib import Path

import requests
import pytest

from prvsix import artifacts
from prvsix.artifacts import fetch_artifact, find_artifact, unpack_archive
from prvsix.exceptions import TransferError
from prvsix.models import Platform

ARTIFACT_NAME = "vscode-extension-build-Linux"


def _artifact(name: str = ARTIFACT_NAME, **extra) -> dict:
    item = {
        "id": 1,
        "name": name,
        "expired": False,
        "archive_download_url": f"https://api.example.test/{name}.zip",
    }
    item.update(extra)
    return item


@pytest.fixture
def tmp_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(artifacts.tempfile, "tempdir", str(root))
    return root


def test_find_artifact_returns_matching_entry(fake_github) -> None:
    client = fake_github(artifacts=[_artifact("other"), _artifact()])

    assert find_artifact(client, 5, ARTIFACT_NAME)["name"] == ARTIFACT_NAME


def test_find_artifact_missing(fake_github) -> None:
    with pytest.raises(LookupError, match="not found"):
        find_artifact(fake_github(artifacts=[_artifact("other")]), 5, ARTIFACT_NAME)


def test_find_artifact_expired(fake_github) -> None:
    with pytest.raises(ValueError, match="expired"):
        find_artifact(fake_github(artifacts=[_artifact(expired=True)]), 5, ARTIFACT_NAME)


def test_unpack_archive_rejects_path_traversal(tmp_path: Path, zip_bytes) -> None:
    archive = tmp_path / "evil.zip"
    archive.write_bytes(zip_bytes({"../evil.vsix": b"x"}))

    with pytest.raises(ValueError, match="escapes"):
        unpack_archive(archive, tmp_path / "out")
    assert not (tmp_path / "evil.vsix").exists()


def test_fetch_artifact_yields_unpacked_contents_and_cleans_up(
    fake_github, zip_bytes, tmp_root: Path
) -> None:
    client = fake_github(
        artifacts=[_artifact()],
        archive=zip_bytes({"continue-2.0.0.vsix": b"vsix"}),
    )

    with fetch_artifact(client, 9, ARTIFACT_NAME, Platform.LINUX) as contents_dir:
        assert contents_dir.joinpath("continue-2.0.0.vsix").read_bytes() == b"vsix"
        assert not any(contents_dir.parent.glob("*.zip"))
        temp_dir = contents_dir.parent

    assert not temp_dir.exists()
    assert list(tmp_root.iterdir()) == []
    assert ("list_run_artifacts", 9, ARTIFACT_NAME) in client.calls


def test_fetch_artifact_cleans_up_when_body_fails(
    fake_github, zip_bytes, tmp_root: Path
) -> None:
    client = fake_github(
        artifacts=[_artifact()],
        archive=zip_bytes({"continue-2.0.0.vsix": b"vsix"}),
    )

    with pytest.raises(RuntimeError, match="body failed"):
        with fetch_artifact(client, 9, ARTIFACT_NAME, Platform.LINUX):
            raise RuntimeError("body failed")

    assert list(tmp_root.iterdir()) == []


@pytest.mark.parametrize(
    "client_kwargs",
    [
        {"artifacts": []},
        {"artifacts": [_artifact(expired=True)]},
        {"artifacts": requests.HTTPError("403 Forbidden")},
        {"artifacts": [_artifact()], "archive": requests.ConnectionError("reset")},
        {"artifacts": [_artifact()], "archive": PermissionError("denied")},
        {"artifacts": [_artifact()], "archive": b"not a zip"},
    ],
)
def test_fetch_artifact_failures_are_transfer_errors(
    fake_github, tmp_root: Path, client_kwargs: dict
) -> None:
    client = fake_github(**client_kwargs)

    with pytest.raises(TransferError) as excinfo:
        with fetch_artifact(client, 9, ARTIFACT_NAME, Platform.LINUX):
            raise AssertionError("body must not run")

    message = str(excinfo.value)
    assert ARTIFACT_NAME in message
    assert "linux" in message
    assert list(tmp_root.iterdir()) == []

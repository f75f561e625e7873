from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any


class Platform(str, Enum):
    MACOS = "macos"
    LINUX = "linux"

    @property
    def artifact_suffix(self) -> str:
        return _ARTIFACT_SUFFIXES[self]


_ARTIFACT_SUFFIXES = {
    Platform.MACOS: "macOS",
    Platform.LINUX: "Linux",
}


@dataclass(frozen=True)
class WorkflowRun:
    run_id: int
    status: str
    conclusion: str
    branch: str
    created_at: str = ""

    @property
    def is_successful(self) -> bool:
        return self.status == "completed" and self.conclusion == "success"

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> WorkflowRun:
        return cls(
            run_id=int(payload.get("id", 0)),
            status=str(payload.get("status") or ""),
            conclusion=str(payload.get("conclusion") or ""),
            branch=str(payload.get("head_branch") or ""),
            created_at=str(payload.get("created_at") or ""),
        )


@dataclass(frozen=True)
class Artifact:
    name: str
    run_id: int

    @classmethod
    def for_platform(cls, prefix: str, platform: Platform, run_id: int) -> Artifact:
        return cls(name=f"{prefix}{platform.artifact_suffix}", run_id=run_id)


@dataclass(frozen=True)
class Package:
    source_path: Path
    version: str

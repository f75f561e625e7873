from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

# configuration files may contain comments and trailing commas
import json5

from prvsix.cache_paths import resolve_cache_root, resolve_config_path
from prvsix.exceptions import ConfigurationError
from prvsix.internal_config import (
    DEFAULT_ARTIFACT_PREFIX,
    DEFAULT_CODE_BINARY,
    DEFAULT_MARKETPLACE_ID,
    DEFAULT_REPOSITORY,
    DEFAULT_WORKFLOW,
    GITHUB_API_URL,
)


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration threaded through every component."""

    repository: str = DEFAULT_REPOSITORY
    workflow: str = DEFAULT_WORKFLOW
    artifact_prefix: str = DEFAULT_ARTIFACT_PREFIX
    marketplace_id: str = DEFAULT_MARKETPLACE_ID
    code_binary: str = DEFAULT_CODE_BINARY
    api_url: str = GITHUB_API_URL
    cache_root: Path = field(default_factory=resolve_cache_root)
    github_token: str = field(default="", repr=False)

    def with_token(self, token: str) -> Settings:
        return replace(self, github_token=token)


SETTING_NAMES = frozenset(item.name for item in fields(Settings))

# first non-empty variable wins
ENVIRONMENT_VARIABLES: dict[str, tuple[str, ...]] = {
    "repository": ("PRVSIX_REPOSITORY",),
    "workflow": ("PRVSIX_WORKFLOW",),
    "artifact_prefix": ("PRVSIX_ARTIFACT_PREFIX",),
    "code_binary": ("PRVSIX_CODE_PATH",),
    "github_token": ("GITHUB_TOKEN", "GH_TOKEN"),
}


def read_config_file(path: Path, required: bool = False) -> dict[str, object]:
    """Read a JSON5 configuration file, returning an empty mapping if absent."""
    if not path.is_file():
        if required:
            raise ConfigurationError(f"Configuration file not found: {path}")
        return {}

    try:
        data = json5.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Unable to parse configuration {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration {path} must contain an object")

    unknown = sorted(set(data) - SETTING_NAMES)
    if unknown:
        raise ConfigurationError(
            f"Unknown configuration keys in {path}: {', '.join(unknown)}"
        )
    # null means "use the default"
    return {key: value for key, value in data.items() if value is not None}


def read_environment() -> dict[str, object]:
    values: dict[str, object] = {}
    for name, variables in ENVIRONMENT_VARIABLES.items():
        for variable in variables:
            value = os.environ.get(variable, "").strip()
            if value:
                values[name] = value
                break
    return values


def load_settings(config_path: str | Path | None = None, **overrides: object) -> Settings:
    """Build settings from defaults, config file, environment and overrides.

    Later sources win: defaults < config file < environment < ``overrides``.
    Overrides that are ``None`` or empty strings are ignored so unset CLI
    options fall through to the other sources.
    """
    unknown = sorted(set(overrides) - SETTING_NAMES)
    if unknown:
        raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")

    if config_path:
        path = Path(os.path.expandvars(str(config_path))).expanduser().resolve()
        values = read_config_file(path, required=True)
    else:
        values = read_config_file(resolve_config_path())

    values.update(read_environment())
    values.update(
        {key: value for key, value in overrides.items() if value not in (None, "")}
    )

    if "cache_root" in values:
        values["cache_root"] = (
            Path(os.path.expandvars(str(values["cache_root"]))).expanduser().resolve()
        )
    for key, value in values.items():
        if key != "cache_root":
            values[key] = str(value)

    repository = str(values.get("repository", DEFAULT_REPOSITORY))
    owner, _, name = repository.partition("/")
    if not owner or not name or "/" in name:
        raise ConfigurationError(
            f"Repository must look like 'owner/name', got {repository!r}"
        )

    return Settings(**values)  # type: ignore[arg-type]

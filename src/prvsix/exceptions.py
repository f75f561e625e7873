from __future__ import annotations


class PrvsixError(Exception):
    """Base class for all prvsix domain errors."""


class UsageError(ValueError, PrvsixError):
    """Raised when command line arguments are missing or invalid."""


class ConfigurationError(ValueError, PrvsixError):
    """Raised when the configuration file or environment is invalid."""


class UnsupportedPlatformError(RuntimeError, PrvsixError):
    """Raised when the host operating system has no matching build artifact."""


class DependencyMissingError(RuntimeError, PrvsixError):
    """Raised when a required external tool or credential is not available."""


class ResolutionError(LookupError, PrvsixError):
    """Raised when a pull request, branch or successful workflow run is not found."""


class TransferError(RuntimeError, PrvsixError):
    """Raised when a build artifact cannot be downloaded or unpacked."""


class ExtractionError(FileNotFoundError, PrvsixError):
    """Raised when a downloaded artifact contains no installable package."""


class InstallError(RuntimeError, PrvsixError):
    """Raised when the VS Code CLI fails to install an extension."""


class CacheError(OSError, PrvsixError):
    """Raised when the package cache directory cannot be read or written."""

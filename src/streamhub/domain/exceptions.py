"""StreamHub domain exceptions."""

from __future__ import annotations


class StreamHubError(Exception):
    """Base class for all StreamHub errors."""


class InvalidQuery(StreamHubError):
    """Raised when a query has neither free text nor an external identifier."""


# --- Sources -------------------------------------------------------------


class SourceError(StreamHubError):
    """A single source failed; recorded per source, never fails a request."""


class UpstreamError(SourceError):
    """Unrecoverable fetch/parse failure inside a source adapter."""


class SourceTimeout(SourceError):
    """A source exceeded the gateway's per-call bound."""


# --- Source registry -----------------------------------------------------


class SourceRegistryError(StreamHubError):
    """Base class for source discovery/loading errors."""


class SourceValidationError(SourceRegistryError):
    """Raised when a YAML site definition fails schema validation."""


class SourceLoadError(SourceRegistryError):
    """Raised when a Python source fails to import or lacks the contract."""


class SourceNotFoundError(SourceRegistryError):
    """Raised when a source name is not known to the registry."""


class DuplicateSourceError(SourceRegistryError):
    """Raised when two definitions resolve to the same name."""


# --- Link resolution -----------------------------------------------------


class ResolutionError(StreamHubError):
    """A link-resolution step failed; the original stream is kept."""


class NoVideoFile(ResolutionError):
    """The job's file listing holds no known video file."""


class NoGeneratedLink(ResolutionError):
    """The job produced no intermediate link after file selection."""

from __future__ import annotations

from pathlib import Path


class WebError(Exception):
    """Base exception for the web layer."""


class ServerConfigurationError(WebError):
    """Raised when web server configuration is invalid."""


class PathTraversalError(WebError):
    """Raised when a configured location escapes its root directory."""

    def __init__(self, root: Path, candidate: Path):
        self.root = root
        self.candidate = candidate
        super().__init__(
            f"Directory traversal detected: {candidate} is outside of {root}"
        )


class ResourceResolutionError(WebError):
    """Raised when a declared static resource cannot be read at request time."""

    def __init__(self, resource: Path, reason: str, *, status_code: int = 500):
        self.resource = resource
        self.status_code = status_code
        super().__init__(f"Unable to resolve resource {resource}: {reason}")

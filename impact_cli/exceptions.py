"""Exception hierarchy for impact-cli."""

from typing import Dict, Optional


class ImpactError(Exception):
    """Base exception for all impact-cli errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class RepositoryNotFoundError(ImpactError):
    """Raised when a path does not exist or is not a git repository."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Not a git repository: {path}",
            details={"path": str(path), "reason": reason},
        )
        self.path = path
        self.reason = reason


class DiffComputationError(ImpactError):
    """Raised when the diff of a single commit cannot be computed.

    Carries the offending commit id (and path, when known) so the caller
    can decide whether to skip the commit or abort the whole pass.
    """

    def __init__(self, commit_id: str, reason: str, path: Optional[str] = None):
        details = {"commit": commit_id, "reason": reason}
        if path is not None:
            details["path"] = path
        super().__init__(f"Failed to compute diff for commit {commit_id}", details=details)
        self.commit_id = commit_id
        self.reason = reason
        self.path = path


class ConfigurationError(ImpactError):
    """Raised for invalid configuration values."""

    def __init__(self, message: str, key: Optional[str] = None):
        details = {"key": key} if key else None
        super().__init__(message, details=details)
        self.key = key


class InvalidRevisionError(ImpactError):
    """Raised when a revision or range cannot be resolved in the repository."""

    def __init__(self, revision: str, reason: str):
        super().__init__(
            f"Cannot resolve revision: {revision}",
            details={"revision": revision, "reason": reason},
        )
        self.revision = revision
        self.reason = reason

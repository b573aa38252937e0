"""Error taxonomy for a comparison run.

Every error is terminal for the run: the first one recorded by the
pipeline wins and the rest are ignored.
"""

from typing import Optional


class ReleaseCompareError(Exception):
    """Base class for all run errors."""

    category = "error"

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


class InputValidationError(ReleaseCompareError):
    """Malformed repository id, missing tag or invalid exclusion pattern."""

    category = "validation"


class NotFoundError(ReleaseCompareError):
    """A tag or a registry tarball does not exist."""

    category = "not-found"


class AccessForbiddenError(ReleaseCompareError):
    """The hosting API refused the request (401/403)."""

    category = "access"


class NetworkError(ReleaseCompareError):
    """Transport failure, unexpected status or malformed response."""

    category = "network"


class FilesystemError(ReleaseCompareError):
    """Extraction, directory walk or cleanup failure."""

    category = "filesystem"

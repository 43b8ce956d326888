# errors.py
# Named failures surfaced by the analysis pipeline and the history store.

from typing import Optional


class ResumeAnalyzerError(Exception):
    """Base class for every error raised by the resume analyzer."""


class ConfigurationError(ResumeAnalyzerError):
    """The AI path is not configured (missing or implausible credential)."""


class ProviderError(ResumeAnalyzerError):
    """The completion provider failed or returned an unusable payload."""

    def __init__(self, message: str, retryable: bool = False, status_code: Optional[int] = None):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code


class UnknownRoleError(ResumeAnalyzerError, KeyError):
    def __init__(self, role_id: str):
        super().__init__(role_id)
        self.role_id = role_id

    def __str__(self) -> str:
        return f"Unknown job role: {self.role_id!r}"


class PersistenceError(ResumeAnalyzerError):
    """The history backing store could not be read or written."""

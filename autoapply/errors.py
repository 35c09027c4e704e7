"""Exception hierarchy.

Only ``ConfigurationError`` is allowed to escape a batch run; the rest are
caught at job granularity by the processor.
"""
from __future__ import annotations


class AutoApplyError(Exception):
    """Base class for all autoapply errors."""


class ConfigurationError(AutoApplyError):
    """Settings make processing impossible for any job (unknown provider, missing key)."""


class ExternalToolError(AutoApplyError):
    """The headless browser failed to navigate, render or capture."""


class ProviderError(AutoApplyError):
    """An OCR or LLM backend returned a non-success response or a malformed payload."""

    def __init__(self, provider: str, message: str, status: int | None = None) -> None:
        self.provider = provider
        self.status = status
        self.message = message
        prefix = f"{provider} error {status}" if status is not None else f"{provider} error"
        super().__init__(f"{prefix}: {message}")


class ParseError(AutoApplyError, ValueError):
    """LLM output did not contain the structure we asked for."""


class ResourceUnavailable(AutoApplyError):
    """A local resource (the base resume) could not be read."""


class JobNotReady(AutoApplyError):
    """Delivery was requested for a job that has not completed."""

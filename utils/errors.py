"""
Error types raised inside the dialogue pipeline.
"""
from typing import Optional

class LLMUnconfigured(RuntimeError):
    """No API credential is configured; no request was attempted."""

    def __init__(self, message: str = "LLM API key not configured"):
        super().__init__(message)

class LLMRateLimited(RuntimeError):
    """The LLM service answered HTTP 429."""

class LLMRequestFailed(RuntimeError):
    """The LLM service answered a non-success status or could not be reached."""

    def __init__(self, status_code: Optional[int], message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"LLM API error: {status_code}")

class ExtractionParseFailure(ValueError):
    """No usable JSON object could be read from a structured extraction reply."""

class PersonalizationWriteFailure(RuntimeError):
    """Search history or preferences could not be persisted."""

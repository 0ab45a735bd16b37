"""
Error taxonomy for the submission pipeline.

- ValidationError: request rejected before any side effect
- CacheWriteError: the result cache could not be written
- DurableWriteError: the durable log append failed (non-fatal for submit)
- DispatchError: the dispatch notification could not be published
- MessageDecodeError: a bus payload is not an integer index
"""

from typing import Any, Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(PipelineError, ValueError):
    """Raised when a submitted index is missing, malformed or out of bounds."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(message)
        self.message = message
        self.value = value


class CacheWriteError(PipelineError):
    """Raised when the result cache rejects a write."""

    def __init__(self, key: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to write cache entry {key!r}: {cause}")
        self.key = key
        self.cause = cause


class DurableWriteError(PipelineError):
    """Raised when a record could not be appended to the durable log."""

    def __init__(self, number: int, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to append record {number}: {cause}")
        self.number = number
        self.cause = cause


class DispatchError(PipelineError):
    """Raised when a dispatch message could not be published."""

    def __init__(self, channel: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to publish on channel {channel!r}: {cause}")
        self.channel = channel
        self.cause = cause


class MessageDecodeError(PipelineError, ValueError):
    """Raised when a dispatch payload cannot be decoded."""

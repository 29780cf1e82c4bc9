"""
Error taxonomy for the call-flow engine.

- ValidationError: malformed input graph, fatal to the current generation
- ExtractionError: the text-generation reply could not be used, fatal
- CacheReadError: stored record unreadable, recovered as a cache miss
- CacheWriteError: record could not be persisted, result is still returned
"""

from typing import Iterable, List, Optional


class CallFlowError(Exception):
    """Base class for all call-flow engine errors."""


class ValidationError(CallFlowError, ValueError):
    """
    Raised when a raw flow description cannot be turned into a valid Graph.

    `problems` holds one human-readable message per violation so the caller
    can display all of them at once.
    """

    def __init__(self, problems: Iterable[str]):
        self.problems: List[str] = list(problems)
        if len(self.problems) == 1:
            message = self.problems[0]
        else:
            message = f"{len(self.problems)} problems in call flow: " + "; ".join(self.problems)
        super().__init__(message)


class ExtractionError(CallFlowError, ValueError):
    """Raised when the extraction service returns an unusable reply."""


class CacheReadError(CallFlowError):
    """Raised by a cache store when a stored record cannot be parsed."""

    def __init__(self, key: str, reason: Optional[str] = None):
        self.key = key
        super().__init__(f"Unreadable cache record '{key}'" + (f": {reason}" if reason else ""))


class CacheWriteError(CallFlowError):
    """Raised by a cache store when a record cannot be persisted."""

    def __init__(self, key: str, reason: Optional[str] = None):
        self.key = key
        super().__init__(f"Failed to write cache record '{key}'" + (f": {reason}" if reason else ""))

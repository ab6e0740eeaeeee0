"""Error definitions and failure bookkeeping for LinguaLive."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises recoverable failures reported to the failure sink."""

    NETWORK = auto()
    MALFORMED_RESPONSE = auto()
    WRITE_BACK = auto()
    CONFIGURATION = auto()
    FILE_IO = auto()
    OTHER = auto()


class LinguaLiveError(Exception):
    """Base exception for all custom errors."""


class UnsupportedFileTypeError(LinguaLiveError):
    """Raised when a given file extension is not supported."""


class OverwriteRefusedError(LinguaLiveError):
    """Raised when attempting to overwrite an output without consent."""


class WatcherError(LinguaLiveError):
    """Raised when mutation batches cannot be scheduled."""


class TranslationProviderConfigurationError(LinguaLiveError):
    """Raised when the translation provider is misconfigured."""


class TranslationProviderError(LinguaLiveError):
    """Raised when the translation provider fails a request."""

    category = ErrorCategory.OTHER


class OracleUnavailableError(TranslationProviderError):
    """Raised when the oracle cannot be reached or answers with an error status."""

    category = ErrorCategory.NETWORK


class MalformedResponseError(TranslationProviderError):
    """Raised when the oracle answers with an unexpected payload."""

    category = ErrorCategory.MALFORMED_RESPONSE


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    details: Optional[str] = None


class ErrorTracker:
    """Tracks consecutive and aggregate errors against warning thresholds."""

    CONSECUTIVE_LIMIT = 3
    TOTAL_LIMIT = 10

    def __init__(self) -> None:
        self.last_category: Optional[ErrorCategory] = None
        self.consecutive: int = 0
        self.total: int = 0

    def register(self, category: ErrorCategory) -> tuple[int, int, bool]:
        """Register a new error and return counters."""

        if self.last_category == category:
            self.consecutive += 1
        else:
            self.last_category = category
            self.consecutive = 1

        self.total += 1

        threshold_reached = (
            self.consecutive >= self.CONSECUTIVE_LIMIT
            or self.total >= self.TOTAL_LIMIT
        )

        return self.consecutive, self.total, threshold_reached

    def reset_consecutive(self) -> None:
        """Reset the consecutive counter after successful work."""

        self.consecutive = 0
        self.last_category = None

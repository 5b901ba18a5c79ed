"""
Centralized error handling for the CV assessment service.

Defines the error taxonomy raised by collaborators and services, plus
structured per-item error records used by batch operations so that one
failed candidate never rejects the whole batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional


# ===== ERROR TAXONOMY =====

class AssessmentError(Exception):
    """Base class for all assessment failures."""


class ExtractionError(AssessmentError):
    """Requirement extraction failed or returned unusable output."""


class AlignmentError(AssessmentError):
    """Per-candidate analysis failed after retries or the name could not be resolved."""


# Raised by the CV analyzer; kept as a distinct name for callers
AnalysisError = AlignmentError


class StateValidationError(AssessmentError):
    """A persisted record failed schema validation on load."""

    def __init__(self, key: str, index: int, message: str):
        self.key = key
        self.index = index
        super().__init__(f"{key}[{index}]: {message}")


class ConflictError(AssessmentError):
    """An item already exists in the target session or database."""

    def __init__(self, identity: str, target: str, message: Optional[str] = None):
        self.identity = identity
        self.target = target
        super().__init__(message or f"'{identity}' already exists in {target}")


class SessionNotFoundError(AssessmentError):
    """No assessment session with the given id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Assessment session not found: {session_id}")


class CandidateNotFoundError(AssessmentError):
    """No candidate with the given key in the session or CV database."""

    def __init__(self, key: str, target: str):
        self.key = key
        self.target = target
        super().__init__(f"Candidate '{key}' not found in {target}")


class SessionBusyError(AssessmentError):
    """The session has analyses in flight; the operation must wait."""


class SummaryError(AssessmentError):
    """Summary generation failed."""


class ParseError(AssessmentError):
    """Structured CV parsing failed or produced no usable email."""


class QueryError(AssessmentError):
    """A question about a candidate or the knowledge base could not be answered."""


# ===== PER-ITEM ERROR RECORDS =====

@dataclass
class ItemError:
    """
    Structured error information for one failed item in a batch.

    Keyed by the caller-supplied identifier (usually the CV file name).
    """

    item_id: str
    operation: str  # e.g., "analysis", "cv_parse", "relevance_check"
    message: str
    exception_type: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "item_id": self.item_id,
            "operation": self.operation,
            "message": self.message,
            "exception_type": self.exception_type,
            "timestamp": self.timestamp,
        }


class ErrorCollector:
    """
    Collects per-item errors during a batch operation.

    Provides aggregation and summary capabilities for error reporting.
    """

    def __init__(self):
        self.errors: List[ItemError] = []

    def add(self, error: ItemError) -> None:
        """Add an error to the collection."""
        self.errors.append(error)

    def add_error(
        self,
        item_id: str,
        operation: str,
        message: str,
        exception: Optional[BaseException] = None,
    ) -> ItemError:
        """Convenience method to add an error with parameters."""
        error = ItemError(
            item_id=item_id,
            operation=operation,
            message=message,
            exception_type=type(exception).__name__ if exception else None,
        )
        self.errors.append(error)
        return error

    def has_errors(self) -> bool:
        return bool(self.errors)

    def get_error_messages(self) -> List[str]:
        """Get list of error messages."""
        return [e.message for e in self.errors]

    def summary(self) -> dict:
        """Get error summary statistics."""
        by_operation: dict = {}
        for error in self.errors:
            by_operation[error.operation] = by_operation.get(error.operation, 0) + 1
        return {
            "total": len(self.errors),
            "by_operation": by_operation,
            "items": [e.item_id for e in self.errors],
        }


def log_on_exception(
    logger: logging.Logger,
    operation: str,
    level: int = logging.WARNING,
    include_traceback: bool = False,
):
    """
    Context manager for logging exceptions without swallowing them silently.

    Usage:
        with log_on_exception(logger, "Requirement extraction", level=logging.ERROR):
            jd = await extractor.extract(text)

    Args:
        logger: Logger instance to use
        operation: Operation description for the log message
        level: Log level (default: WARNING)
        include_traceback: Whether to include stack trace in log
    """

    class ExceptionLogger:
        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc_val, exc_tb):
            if exc_val is not None:
                logger.log(level, f"[{operation}] Failed: {exc_val}", exc_info=include_traceback)
            # Never suppress
            return False

    return ExceptionLogger()

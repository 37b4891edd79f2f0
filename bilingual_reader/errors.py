"""
Error handling system for the Bilingual Reader.

This module provides centralized error definitions and actionable error
messages for article alignment, reading session transitions and session
persistence.
"""

import logging
from enum import Enum
from typing import List, Optional, Dict, Any
from dataclasses import dataclass


class ErrorSeverity(Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Categories of errors that can occur."""
    INPUT = "input"
    VALIDATION = "validation"
    SESSION_STATE = "session_state"
    SYNC = "sync"
    STORAGE = "storage"


@dataclass
class ProcessingError:
    """Represents an error with context and guidance."""
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    details: str
    suggested_actions: List[str]
    error_code: str
    context: Dict[str, Any] = None

    def __post_init__(self):
        if self.context is None:
            self.context = {}


class ReaderError(Exception):
    """Base exception for Bilingual Reader errors."""

    def __init__(self, processing_error: ProcessingError):
        self.processing_error = processing_error
        super().__init__(processing_error.message)

    @property
    def error_code(self) -> str:
        return self.processing_error.error_code


class InputError(ReaderError):
    """Raised when an article cannot be turned into a reading session."""
    pass


class ValidationError(ReaderError):
    """Raised when settings or a payload fail validation."""
    pass


class StateError(ReaderError):
    """Raised when a transition is not allowed in the current session state."""
    pass


class SyncError(ReaderError):
    """Raised when a local transition could not be written to the session store."""
    pass


class StoreError(ReaderError):
    """Raised when the session or article store fails to read or write."""
    pass


class SessionNotFoundError(StoreError):
    """Raised when a reading session does not exist."""
    pass


class ArticleNotFoundError(StoreError):
    """Raised when a processed article does not exist."""
    pass


class ErrorHandler:
    """
    Centralized error handling and reporting system.

    Builds ProcessingError records with error codes and suggested actions,
    and keeps a log of the errors and warnings reported to it.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.errors: List[ProcessingError] = []
        self.warnings: List[ProcessingError] = []

    def add_error(self, error: ProcessingError) -> None:
        """Add an error to the collection."""
        if error.severity in [ErrorSeverity.ERROR, ErrorSeverity.CRITICAL]:
            self.errors.append(error)
        elif error.severity == ErrorSeverity.WARNING:
            self.warnings.append(error)

        log_level = {
            ErrorSeverity.INFO: logging.INFO,
            ErrorSeverity.WARNING: logging.WARNING,
            ErrorSeverity.ERROR: logging.ERROR,
            ErrorSeverity.CRITICAL: logging.CRITICAL
        }[error.severity]

        self.logger.log(log_level, f"[{error.error_code}] {error.message}")
        if error.details:
            self.logger.log(log_level, f"Details: {error.details}")

    def has_errors(self) -> bool:
        """Check if any errors have been recorded."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been recorded."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> Dict[str, Any]:
        """Get a summary of all errors and warnings."""
        return {
            'error_count': len(self.errors),
            'warning_count': len(self.warnings),
            'errors': [self._format_error_for_summary(e) for e in self.errors],
            'warnings': [self._format_error_for_summary(e) for e in self.warnings]
        }

    def _format_error_for_summary(self, error: ProcessingError) -> Dict[str, Any]:
        """Format error for summary display."""
        return {
            'code': error.error_code,
            'category': error.category.value,
            'severity': error.severity.value,
            'message': error.message,
            'suggested_actions': error.suggested_actions
        }

    def clear_errors(self) -> None:
        """Clear all recorded errors and warnings."""
        self.errors.clear()
        self.warnings.clear()

    def handle_empty_article(self, article_id: Optional[str] = None,
                             context: Dict[str, Any] = None) -> ProcessingError:
        """Handle an article that produced no sentence cards."""
        return ProcessingError(
            category=ErrorCategory.INPUT,
            severity=ErrorSeverity.ERROR,
            message="Article has no sentence cards",
            details=(
                f"Article {article_id or '(unsaved)'} aligned to 0 sentence cards, "
                "so a reading session cannot be started"
            ),
            suggested_actions=[
                "Check that both the Chinese and English texts are present",
                "Make sure sentences end with punctuation such as 。 or .",
                "Process the article again after fixing its content"
            ],
            error_code="INPUT_001",
            context=context
        )

    def handle_article_mismatch(self, total_cards: int, sentence_count: int,
                                context: Dict[str, Any] = None) -> ProcessingError:
        """Handle a session whose card count no longer matches its article."""
        return ProcessingError(
            category=ErrorCategory.INPUT,
            severity=ErrorSeverity.ERROR,
            message="Session does not match its article",
            details=f"Session has {total_cards} cards but the article has {sentence_count} sentence cards",
            suggested_actions=[
                "Start a new reading session for the article"
            ],
            error_code="INPUT_003",
            context=context
        )

    def handle_invalid_cards(self, card_issues: Dict[int, List[str]],
                             context: Dict[str, Any] = None) -> ProcessingError:
        """Handle a card sequence that failed validation."""
        if not card_issues:
            details = "Card sequence is empty"
        else:
            issues = [f"card {index}: {', '.join(messages)}"
                      for index, messages in sorted(card_issues.items())]
            details = f"{len(issues)} invalid card(s): {'; '.join(issues[:3])}{'...' if len(issues) > 3 else ''}"

        return ProcessingError(
            category=ErrorCategory.INPUT,
            severity=ErrorSeverity.ERROR,
            message="Failed to process article into valid sentences",
            details=details,
            suggested_actions=[
                "Check the article for empty paragraphs",
                "Process the article again"
            ],
            error_code="INPUT_002",
            context=context
        )

    def handle_validation_error(self, validation_errors: List[str],
                                context: Dict[str, Any] = None) -> ProcessingError:
        """Handle invalid settings or request payloads."""
        error_count = len(validation_errors)

        return ProcessingError(
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.ERROR,
            message="Invalid input data",
            details=f"{error_count} validation error(s) found: {', '.join(validation_errors[:3])}{'...' if error_count > 3 else ''}",
            suggested_actions=[
                "Check the field names and value types",
                "Keep the TTS speed between 0.25 and 4.0"
            ],
            error_code="VALID_001",
            context={'validation_errors': validation_errors, **(context or {})}
        )

    def handle_state_error(self, message: str, details: str,
                           context: Dict[str, Any] = None) -> ProcessingError:
        """Handle a transition requested in a state that does not allow it."""
        return ProcessingError(
            category=ErrorCategory.SESSION_STATE,
            severity=ErrorSeverity.WARNING,
            message=message,
            details=details,
            suggested_actions=[
                "Reload the session to see its current state"
            ],
            error_code="STATE_001",
            context=context
        )

    def handle_sync_error(self, error: Exception, operation: str,
                          context: Dict[str, Any] = None) -> ProcessingError:
        """Handle a failed write of local session state to the store."""
        return ProcessingError(
            category=ErrorCategory.SYNC,
            severity=ErrorSeverity.ERROR,
            message="Failed to save progress",
            details=f"{operation} failed: {error}",
            suggested_actions=[
                "Retry saving progress",
                "Reload the session to discard unsaved changes"
            ],
            error_code="SYNC_001",
            context={'operation': operation, **(context or {})}
        )

    def handle_storage_error(self, error: Exception, operation: str,
                             context: Dict[str, Any] = None) -> ProcessingError:
        """Handle a failure reading or writing a stored record."""
        return ProcessingError(
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.ERROR,
            message=f"Storage operation failed: {operation}",
            details=str(error),
            suggested_actions=[
                "Check that the storage directory exists and is writable",
                "Check available disk space"
            ],
            error_code="STORE_001",
            context=context
        )

    def handle_not_found(self, kind: str, identifier: str) -> ProcessingError:
        """Handle a lookup of a session or article that does not exist."""
        return ProcessingError(
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.WARNING,
            message=f"{kind} not found: {identifier}",
            details=f"No stored {kind.lower()} has id {identifier}",
            suggested_actions=[
                f"Check the {kind.lower()} id",
                "Start a new reading session"
            ],
            error_code="STORE_404",
            context={'id': identifier}
        )


# Global error handler instance
error_handler = ErrorHandler()

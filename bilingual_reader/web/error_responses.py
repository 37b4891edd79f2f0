"""Centralized error response formatting for web API endpoints.

This module provides consistent error response formatting across all API endpoints,
including error codes, messages, and action_required fields.
"""

from typing import Dict, Any, Optional, Tuple
from flask import jsonify
import logging

from bilingual_reader.errors import (
    ReaderError,
    InputError,
    ValidationError,
    StateError,
    SessionNotFoundError,
    ArticleNotFoundError
)

logger = logging.getLogger(__name__)


class ErrorCode:
    """Standard error codes for API responses."""

    # Article errors
    ARTICLE_NOT_FOUND = "ARTICLE_NOT_FOUND"
    ARTICLE_NOT_PROCESSED = "ARTICLE_NOT_PROCESSED"
    INVALID_SENTENCES = "INVALID_SENTENCES"
    EMPTY_ARTICLE = "EMPTY_ARTICLE"

    # Session errors
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_SESSION_STATE = "INVALID_SESSION_STATE"

    # Data validation errors
    INVALID_JSON = "INVALID_JSON"
    INVALID_INPUT = "INVALID_INPUT"
    MISSING_FIELDS = "MISSING_FIELDS"

    # General errors
    STORAGE_ERROR = "STORAGE_ERROR"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ActionRequired:
    """Standard action_required values for error responses."""

    PROCESS_ARTICLE = "process_article"
    START_SESSION = "start_session"
    FIX_INPUT = "fix_input"
    RELOAD = "reload"
    RETRY = "retry"
    CONTACT_SUPPORT = "contact_support"


def format_error_response(
    error_message: str,
    error_code: str,
    action_required: Optional[str] = None,
    additional_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Format a consistent error response for API endpoints.

    Args:
        error_message: Human-readable error message
        error_code: Machine-readable error code (use ErrorCode constants)
        action_required: Specific user action needed (use ActionRequired constants)
        additional_data: Additional data to include in response

    Returns:
        Dictionary formatted for JSON response

    Example:
        >>> format_error_response(
        ...     "Reading session not found",
        ...     ErrorCode.SESSION_NOT_FOUND,
        ...     action_required=ActionRequired.START_SESSION
        ... )
        {
            'success': False,
            'error': 'Reading session not found',
            'error_code': 'SESSION_NOT_FOUND',
            'action_required': 'start_session'
        }
    """
    response = {
        'success': False,
        'error': error_message,
        'error_code': error_code
    }

    if action_required:
        response['action_required'] = action_required

    if additional_data:
        response.update(additional_data)

    return response


def missing_json_response() -> Tuple[Any, int]:
    """Create a standardized response for a request without a JSON object body."""
    response = format_error_response(
        error_message='No JSON data provided',
        error_code=ErrorCode.INVALID_JSON,
        action_required=ActionRequired.FIX_INPUT
    )
    return jsonify(response), 400


def session_not_found_response(session_id: str) -> Tuple[Any, int]:
    """
    Create a standardized session not found error response.

    Args:
        session_id: The session ID that was not found

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    response = format_error_response(
        error_message=f"Reading session not found: {session_id}",
        error_code=ErrorCode.SESSION_NOT_FOUND,
        action_required=ActionRequired.START_SESSION
    )
    return jsonify(response), 404


def article_not_found_response(article_id: str) -> Tuple[Any, int]:
    """Create a standardized article not found error response."""
    response = format_error_response(
        error_message=f"Article not found: {article_id}",
        error_code=ErrorCode.ARTICLE_NOT_FOUND,
        action_required=ActionRequired.PROCESS_ARTICLE
    )
    return jsonify(response), 404


def reader_error_response(error: ReaderError) -> Tuple[Any, int]:
    """
    Translate a ReaderError into a JSON error response.

    Validation and input problems are 400, state conflicts 409, missing
    records 404 and storage failures 500.
    """
    processing_error = error.processing_error
    additional_data = {'details': processing_error.details}
    if 'validation_errors' in processing_error.context:
        additional_data['validation_errors'] = processing_error.context['validation_errors']

    if isinstance(error, SessionNotFoundError):
        error_code, action, status = ErrorCode.SESSION_NOT_FOUND, ActionRequired.START_SESSION, 404
    elif isinstance(error, ArticleNotFoundError):
        error_code, action, status = ErrorCode.ARTICLE_NOT_FOUND, ActionRequired.PROCESS_ARTICLE, 404
    elif isinstance(error, ValidationError):
        error_code, action, status = ErrorCode.INVALID_INPUT, ActionRequired.FIX_INPUT, 400
    elif isinstance(error, InputError):
        error_code, action, status = ErrorCode.EMPTY_ARTICLE, ActionRequired.PROCESS_ARTICLE, 400
    elif isinstance(error, StateError):
        error_code, action, status = ErrorCode.INVALID_SESSION_STATE, ActionRequired.RELOAD, 409
    else:
        error_code, action, status = ErrorCode.STORAGE_ERROR, ActionRequired.RETRY, 500

    logger.warning(f"[{processing_error.error_code}] {processing_error.message}: {processing_error.details}")
    response = format_error_response(
        error_message=processing_error.message,
        error_code=error_code,
        action_required=action,
        additional_data=additional_data
    )
    return jsonify(response), status


def unexpected_error_response(
    error_details: Optional[str] = None,
    include_details: bool = False
) -> Tuple[Any, int]:
    """
    Create a standardized unexpected error response.

    Args:
        error_details: Details about the error (for logging)
        include_details: Whether to include error details in response (dev mode)

    Returns:
        Tuple of (jsonify response, HTTP status code)
    """
    if include_details and error_details:
        message = f"An unexpected error occurred: {error_details}"
    else:
        message = (
            "An unexpected error occurred. "
            "Please try again or contact support if the problem persists."
        )

    response = format_error_response(
        error_message=message,
        error_code=ErrorCode.UNEXPECTED_ERROR,
        action_required=ActionRequired.CONTACT_SUPPORT
    )

    return jsonify(response), 500

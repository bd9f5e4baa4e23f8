"""
Standardized Error Handling for Cellarwise

The readiness and recommendation engine never raises on bad bottle data; the
errors here belong to the external collaborators (AI profile generation) and
are converted into heuristic fallbacks by the profile chain.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

logger = logging.getLogger(__name__)


class CellarError(Exception):
    """Base exception for Cellarwise."""
    pass


class ProfileGenerationError(CellarError):
    """AI profile generation failed (API failure, timeout, rate limit)."""
    pass


class DataValidationError(CellarError):
    """Data validation errors."""
    pass


def handle_llm_error(error: Exception, operation: str, fallback_value: Any = None) -> Any:
    """
    Standardized LLM error handling.

    Args:
        error: Exception that occurred
        operation: Description of operation
        fallback_value: Value to return on error

    Returns:
        fallback_value if error is recoverable, otherwise raises
        ProfileGenerationError
    """
    error_type = type(error).__name__

    # Malformed but delivered responses - log and return fallback
    if isinstance(error, ValidationError):
        logger.error(f"LLM response validation failed during {operation}: {error}")
        return fallback_value

    if error_type == "JSONDecodeError":
        logger.error(f"Invalid JSON from LLM during {operation}: {error}")
        return fallback_value

    if "rate limit" in str(error).lower() or error_type == "RateLimitError":
        logger.warning(f"Rate limit hit during {operation}: {error}")
        raise ProfileGenerationError(f"Rate limit during {operation}") from error

    if "timeout" in error_type.lower():
        logger.warning(f"Timed out during {operation}: {error}")
        raise ProfileGenerationError(f"Timeout during {operation}") from error

    if "api" in error_type.lower():
        logger.error(f"API error during {operation}: {error}")
        raise ProfileGenerationError(f"API error during {operation}") from error

    logger.error(f"Unexpected error during {operation}: {error_type} - {error}")
    raise ProfileGenerationError(f"Unexpected error during {operation}") from error


def validate_llm_response(
    response: Dict,
    expected_keys: list,
    operation: str
) -> bool:
    """
    Validate LLM response has expected structure.

    Args:
        response: LLM response dict
        expected_keys: List of required keys
        operation: Operation name for logging

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(response, dict):
        logger.error(f"LLM response is not a dict during {operation}: {type(response)}")
        return False

    missing_keys = [key for key in expected_keys if key not in response]
    if missing_keys:
        logger.error(f"LLM response missing keys during {operation}: {missing_keys}")
        return False

    return True


__all__ = [
    'CellarError',
    'ProfileGenerationError',
    'DataValidationError',
    'handle_llm_error',
    'validate_llm_response',
]

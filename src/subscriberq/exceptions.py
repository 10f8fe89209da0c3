"""Custom exceptions for the subscriberq library.

This module defines all custom exceptions used throughout the library for
consistent error handling and clear error messaging.
"""

from typing import Any, Dict


# Base exception
class SubscriberQueryError(Exception):
    """Base exception for all subscriberq errors.

    Attributes:
        message: Error message
        details: Additional error context as key-value pairs
    """

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        """Initialize exception with message and additional details.

        Args:
            message: Human-readable error message
            **kwargs: Additional context (e.g., field, table, dialect)
        """
        self.message = message
        self.details: Dict[str, Any] = kwargs
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the complete error message with details."""
        if not self.details:
            return self.message

        details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
        if self.message:
            return f"{self.message} ({details_str})"
        return details_str

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# Validation exceptions
class ValidationError(SubscriberQueryError):
    """Raised when a query fragment is malformed before it reaches the database."""


class InvalidFieldError(ValidationError):
    """Raised when a field name cannot be resolved to a SQL expression.

    Example:
        >>> raise InvalidFieldError("Unresolvable field name", field="a.b.c")
    """


class InvalidConditionError(ValidationError):
    """Raised when a filter condition uses an unknown lookup or an unusable value.

    Example:
        >>> raise InvalidConditionError("Unsupported lookup", field="store_id", lookup="between")
    """


# Configuration exceptions
class ConfigurationError(SubscriberQueryError):
    """Raised when configuration is invalid or missing."""


class MissingConfigError(ConfigurationError):
    """Raised when required configuration values are not set.

    Example:
        >>> raise MissingConfigError("Configuration not set", config_key="DB_NAME")
    """


class UnsupportedDialectError(ConfigurationError):
    """Raised when no compiler exists for the requested SQL dialect.

    Example:
        >>> raise UnsupportedDialectError("Unknown dialect", dialect="oracle")
    """


# Metadata exceptions
class AttributeNotFoundError(SubscriberQueryError):
    """Raised when an attribute is not defined for the given entity type.

    Example:
        >>> raise AttributeNotFoundError("Attribute not found", entity_type="customer", attribute_code="nickname")
    """


# Database exceptions
class ConnectionError(SubscriberQueryError):
    """Raised when the database connection fails or is not initialized.

    Example:
        >>> raise ConnectionError("Database not connected", adapter="Postgres", host="localhost")
    """


class QueryExecutionError(SubscriberQueryError):
    """Raised when the database rejects a compiled statement.

    Example:
        >>> raise QueryExecutionError("Query failed", sql="SELECT ...", original_error="syntax error")
    """


class DuplicateAliasError(ValidationError):
    """Raised when a table alias is joined into the same statement twice.

    Example:
        >>> raise DuplicateAliasError("Alias already joined", alias="link")
    """

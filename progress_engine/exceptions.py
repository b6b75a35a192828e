"""
Standardized exception hierarchy for progress-engine
Provides rich context, consistent logging, and host-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class ProgressEngineError(Exception):
    """
    Base exception for all progress-engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - Host-facing messages
    - Structured context
    - Automatic logging

    Example:
        raise ProgressEngineError(
            message="Failed to rehydrate engine state",
            user_id="123456",
            operation="from_state",
            context={"unlock_count": 12}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for host applications"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Caller Input)
# ==========================================

class ValidationError(ProgressEngineError):
    """
    Raised when caller input fails validation

    Examples:
    - Non-numeric metric delta
    - Empty metric name

    Example:
        raise ValidationError(
            message="Delta must be a number",
            field="amount",
            value="ten"
        )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Catalog Errors
# ==========================================

class CatalogValidationError(ProgressEngineError):
    """
    An achievement definition failed validation at catalog load

    Only raised when the catalog is loaded in strict mode; otherwise the
    failure is collected as a CatalogIssue and the rule is excluded.
    """

    def __init__(
        self,
        message: str,
        rule_id: Optional[str] = None,
        reason: Optional[str] = None,
        **kwargs
    ):
        self.rule_id = rule_id
        self.reason = reason
        super().__init__(
            message=message,
            user_message=f"Achievement '{rule_id or 'unknown'}' is misconfigured.",
            context={"rule_id": rule_id, "reason": reason},
            **kwargs
        )


class RuleNotFoundError(ProgressEngineError):
    """Requested achievement id is not in the catalog"""

    def __init__(
        self,
        message: str,
        rule_id: Optional[str] = None,
        **kwargs
    ):
        self.rule_id = rule_id
        super().__init__(
            message=message,
            user_message=f"Achievement '{rule_id}' not found.",
            context={"rule_id": rule_id},
            **kwargs
        )


# ==========================================
# Persistence Boundary Errors
# ==========================================

class StateError(ProgressEngineError):
    """Persisted engine state could not be rehydrated"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            user_message="Saved progress could not be loaded.",
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(ProgressEngineError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The achievement engine is not properly configured.",
            context={"config_key": config_key},
            **kwargs
        )

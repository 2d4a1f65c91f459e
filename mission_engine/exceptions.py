"""
Standardized exception hierarchy for the mission engine
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

import psycopg

logger = logging.getLogger(__name__)


class MissionEngineError(Exception):
    """
    Base exception for all mission engine errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise MissionEngineError(
            message="Failed to save mission progress",
            user_id="42",
            operation="manual_update",
            context={"instance_id": 17}
        )
    """

    log_level = logging.ERROR

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
        self.timestamp = datetime.utcnow()

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
            "error_context": self.context,  # Avoid conflict with logging's 'context'
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.log(
                self.log_level,
                f"{self.__class__.__name__}: {self.message}",
                extra=log_data,
                exc_info=self.cause
            )
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(MissionEngineError):
    """
    Raised when user input fails validation

    Examples:
    - Negative progress value
    - Unknown metric key on a tracking event
    """

    log_level = logging.WARNING

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
# Mission Lifecycle Errors
# ==========================================

_CONFLICT_GUIDANCE = {
    "active": "You already have this mission active for that date. Update its progress instead.",
    "completed": "You already completed this mission for that date. Pick another date.",
    "abandoned": "You already abandoned this mission for that date. Pick another date.",
}


class ConflictError(MissionEngineError):
    """An instance already exists for the (user, template, date) triple"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: Optional[str] = None,
        existing_status: Optional[str] = None,
        existing_instance_id: Optional[int] = None,
        **kwargs
    ):
        self.existing_status = existing_status
        self.existing_instance_id = existing_instance_id
        super().__init__(
            message=message or f"Mission already {existing_status or 'accepted'} for this date",
            user_message=_CONFLICT_GUIDANCE.get(
                existing_status, "You already accepted this mission for that date."
            ),
            context={
                "existing_status": existing_status,
                "existing_instance_id": existing_instance_id
            },
            **kwargs
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["existing_status"] = self.existing_status
        data["existing_instance_id"] = self.existing_instance_id
        return data


class RecordNotFoundError(MissionEngineError):
    """Requested mission template or instance does not exist"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[Any] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context={"record_type": record_type, "record_id": record_id},
            **kwargs
        )


class InvalidStateError(MissionEngineError):
    """Operation is not legal for the instance's current status"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        **kwargs
    ):
        self.current_status = current_status
        super().__init__(
            message=message,
            user_message=f"This mission is already {current_status} and can no longer be changed."
            if current_status else "This mission can no longer be changed.",
            context={"current_status": current_status},
            **kwargs
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["current_status"] = self.current_status
        return data


class InvalidTargetError(MissionEngineError):
    """Mission template has a non-positive target value (catalog misconfiguration)"""

    def __init__(
        self,
        message: str,
        target_value: Optional[Any] = None,
        template_id: Optional[int] = None,
        **kwargs
    ):
        self.target_value = target_value
        self.template_id = template_id
        super().__init__(
            message=message,
            context={"target_value": target_value, "template_id": template_id},
            **kwargs
        )


# ==========================================
# Store Errors
# ==========================================

class StoreError(MissionEngineError):
    """
    Base class for persistence errors
    """
    pass


class StoreUnavailableError(StoreError):
    """Transient failure talking to the instance store or tracking store"""

    retryable = True

    def __init__(self, message: str = "Mission store unavailable", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble reaching our servers. Please try again in a moment.",
            **kwargs
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["retryable"] = self.retryable
        return data


class QueryError(StoreError):
    """Database query execution failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your mission. Please try again.",
            context={"query": query},
            **kwargs
        )


class StaleWriteError(StoreError):
    """Compare-and-swap save lost against a concurrent writer"""

    log_level = logging.INFO

    def __init__(
        self,
        message: str = "Instance was modified concurrently",
        instance_id: Optional[int] = None,
        expected_version: Optional[int] = None,
        **kwargs
    ):
        self.instance_id = instance_id
        self.expected_version = expected_version
        super().__init__(
            message=message,
            context={"instance_id": instance_id, "expected_version": expected_version},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> MissionEngineError:
    """
    Wrap external exceptions (psycopg, timeouts) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate MissionEngineError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="save_instance")
    """
    if isinstance(error, MissionEngineError):
        return error

    if isinstance(error, (psycopg.OperationalError, TimeoutError, OSError)):
        return StoreUnavailableError(
            message=f"Store unavailable during {operation}: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            cause=error
        )

    return MissionEngineError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )

"""
cachebench Exceptions
=====================

Exception hierarchy for the benchmark suite.

Exception Hierarchy:
    CacheBenchError (base)
    ├── RecoverableError (per-call, absorbed by the adapter)
    │   └── OperationError
    └── IrrecoverableError (aborts the run)
        ├── BackendConnectionError
        └── ConfigurationError

Usage Guidelines:
    - Data-plane failures never propagate past a CacheAdapter; they become
      OperationError instances that are counted and returned.
    - Only connection setup and configuration loading raise to the caller.
"""

from typing import Optional


class CacheBenchError(Exception):
    """
    Base exception for all cachebench errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        context: Additional context about the error
        recoverable: Whether the run can continue after this error
    """

    error_code: str = "CACHEBENCH_ERROR"
    recoverable: bool = True

    def __init__(
        self,
        message: str,
        context: Optional[dict] = None,
        error_code: Optional[str] = None,
        recoverable: Optional[bool] = None
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        if error_code is not None:
            self.error_code = error_code
        if recoverable is not None:
            self.recoverable = recoverable

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message

    def to_dict(self) -> dict:
        """Convert exception to a dictionary (used in JSON result dumps)."""
        result = {
            "error": self.message,
            "code": self.error_code,
            "recoverable": self.recoverable,
        }
        if self.context:
            result["context"] = self.context
        return result


class RecoverableError(CacheBenchError):
    """Base class for errors that do not abort a timed run."""
    recoverable = True


class IrrecoverableError(CacheBenchError):
    """Base class for errors that abort the benchmark."""
    recoverable = False


class BackendConnectionError(IrrecoverableError):
    """Raised when a cache backend cannot be reached or authenticated."""
    error_code = "BACKEND_CONNECTION_ERROR"

    def __init__(self, backend: str, message: str = "Connection failed", context: Optional[dict] = None):
        ctx = {"backend": backend}
        if context:
            ctx.update(context)
        super().__init__(f"[{backend}] {message}", ctx)
        self.backend = backend


class OperationError(RecoverableError):
    """A single cache operation failed."""
    error_code = "OPERATION_ERROR"

    def __init__(self, backend: str, operation: str, reason: str, context: Optional[dict] = None):
        ctx = {"backend": backend, "operation": operation}
        if context:
            ctx.update(context)
        super().__init__(f"[{backend}] {operation} failed: {reason}", ctx)
        self.backend = backend
        self.operation = operation
        self.reason = reason


class ConfigurationError(IrrecoverableError):
    """Raised when configuration is invalid or missing."""
    error_code = "CONFIGURATION_ERROR"

    def __init__(self, config_key: str, reason: str, context: Optional[dict] = None):
        ctx = {"config_key": config_key}
        if context:
            ctx.update(context)
        super().__init__(f"Configuration error for '{config_key}': {reason}", ctx)
        self.config_key = config_key


def wrap_operation_exception(backend: str, operation: str, exc: Exception) -> OperationError:
    """Wrap a client library exception into an OperationError."""
    reason = str(exc) or type(exc).__name__
    return OperationError(
        backend,
        operation,
        reason,
        context={"exception_type": type(exc).__name__},
    )


__all__ = [
    "CacheBenchError",
    "RecoverableError",
    "IrrecoverableError",
    "BackendConnectionError",
    "OperationError",
    "ConfigurationError",
    "wrap_operation_exception",
]

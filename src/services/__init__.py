"""
🏗️ Service Layer
================

Services sit between the HTTP routes and the alarm scheduler. Every
operation returns a ``ServiceResult`` instead of raising, so routes only map
``error_code`` values onto HTTP statuses.
"""

import logging
from abc import ABC
from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ServiceResult:
    """Outcome of a service operation."""
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error_code: Optional[str] = None


class BaseService(ABC):
    """Shared lifecycle and result helpers for services."""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(f"alarmist.service.{name}")
        self._initialized = False

    def initialize(self) -> ServiceResult:
        self._initialized = True
        self.logger.info(f"🔧 {self.name} service initialized")
        return self._success_result(message=f"{self.name} service initialized")

    def health_check(self) -> ServiceResult:
        """Fails with ``NOT_INITIALIZED`` until ``initialize`` ran; subclasses add component checks."""
        if not self._initialized:
            return self._error_result(f"{self.name} service not initialized", error_code="NOT_INITIALIZED")
        return self._success_result(data={"status": "healthy", "service": self.name})

    def _handle_error(self, error: Exception, operation: str) -> ServiceResult:
        """Log an unexpected failure with traceback and report ``OPERATION_FAILED``."""
        error_msg = f"Error in {self.name}.{operation}: {error}"
        self.logger.error(error_msg, exc_info=True)
        return self._error_result(error_msg, error_code="OPERATION_FAILED")

    def _success_result(self, data: Any = None, message: Optional[str] = None) -> ServiceResult:
        return ServiceResult(success=True, data=data, message=message)

    def _error_result(self, message: str, error_code: str = "ERROR", data: Any = None) -> ServiceResult:
        return ServiceResult(success=False, data=data, message=message, error_code=error_code)

"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from loguru import logger


class DaybookError(Exception):
    """Base exception for the application."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(DaybookError):
    """Required configuration (VAPID keys, cron secret) is missing."""
    pass


class AuthenticationError(DaybookError):
    """Authentication and authorization errors."""
    pass


class SubscriptionError(DaybookError):
    """Push subscription payload or persistence errors."""
    pass


class DeliveryError(DaybookError):
    """A push message could not be delivered to an endpoint."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)


class GoneDeliveryError(DeliveryError):
    """The push service reports the endpoint will never accept messages again."""
    pass


class TransientDeliveryError(DeliveryError):
    """Timeouts, connection failures and retryable push service responses."""
    pass


class DispatchError(DaybookError):
    """Dispatcher-level fault, such as failing to read profiles."""
    pass


def handle_configuration_error(error: ConfigurationError) -> HTTPException:
    """Handle missing configuration."""
    logger.error(f"Configuration error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=error.message,
    )


def handle_authentication_error(error: AuthenticationError) -> HTTPException:
    """Handle authentication errors."""
    logger.warning(f"Authentication error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=error.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def handle_database_error(error: Exception) -> HTTPException:
    """Handle database errors and return appropriate HTTP response."""
    logger.error(f"Database error: {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Database operation failed. Please try again later."
    )


def handle_subscription_error(error: SubscriptionError) -> HTTPException:
    """Handle subscription persistence errors."""
    logger.warning(f"Subscription error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=error.message,
    )


def handle_dispatch_error(error: DispatchError) -> HTTPException:
    """Handle dispatcher-level faults."""
    logger.error(f"Dispatch error: {error.message}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Reminder dispatch failed. Please try again later.",
    )

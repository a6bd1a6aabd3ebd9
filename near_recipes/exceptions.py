"""
Exception hierarchy for the NEAR recipes engine.

Provides specific exception types for the failure modes of transaction
construction so callers can abort a recipe step on the right condition.
"""

from typing import Any, Dict, Optional


class RecipeError(Exception):
    """Base exception for all recipe engine errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(RecipeError):
    """Raised when network configuration is missing or invalid."""

    pass


class ValidationError(RecipeError):
    """Raised when a view-call result does not match its expected schema."""

    pass


class NoMatchingKeyError(RecipeError):
    """Raised when no access key of the account may sign for a receiver."""

    def __init__(
        self,
        message: str,
        receiver_id: Optional[str] = None,
        account_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.receiver_id = receiver_id
        self.account_id = account_id


class NetworkError(RecipeError):
    """Raised when the RPC transport fails."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.endpoint = endpoint
        self.status_code = status_code


class ViewCallError(NetworkError):
    """Raised when a read-only contract call fails on the node."""

    def __init__(
        self,
        message: str,
        contract: Optional[str] = None,
        method: Optional[str] = None,
        endpoint: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, endpoint, status_code, details)
        self.contract = contract
        self.method = method

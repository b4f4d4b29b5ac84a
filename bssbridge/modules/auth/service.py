"""
Authentication result types following Black Box Design principles.

This module provides:
- Standardized authentication results
- Error kinds the API layer maps onto HTTP status codes
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional


class AuthError(str, Enum):
    """Reasons an authentication check can fail."""

    MISSING_API_KEY = "MISSING_API_KEY"
    INVALID_API_KEY = "INVALID_API_KEY"
    SERVER_MISCONFIGURED = "SERVER_MISCONFIGURED"


@dataclass
class AuthResult:
    """Standardized authentication result."""
    ok: bool
    identity: Optional[str]
    method: Optional[Literal["api_key", "anonymous"]]
    error: Optional[AuthError] = None
    message: Optional[str] = None

    @property
    def status_code(self) -> int:
        """HTTP status the API layer should answer a failed check with."""
        if self.ok:
            return 200
        if self.error == AuthError.SERVER_MISCONFIGURED:
            return 500
        return 401

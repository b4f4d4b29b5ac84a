"""
Authentication module for the bssbridge API.

This module checks the static shared secret sent by the producer script
and the mobile client. It's designed as a black box that can be replaced
with any auth system without affecting the queue.
"""

import logging
import secrets
from typing import Optional

from bssbridge.config.provider import AuthConfig

from .service import AuthError, AuthResult

logger = logging.getLogger(__name__)


class ApiKeyAuth:
    """
    Shared-secret authentication for the X-API-Key header.

    Behaviour:
    - no key configured and not required: every request passes (dev mode)
    - required but no key configured: server misconfiguration
    - required and header missing: rejected
    - header present but wrong: rejected, even when auth is optional
    """

    @staticmethod
    def generate_api_key(length: int = 32) -> str:
        """
        Generate a secure API key.

        Args:
            length: Number of random bytes (the key is hex, twice as long)

        Returns:
            Random hex string

        Example:
            >>> len(ApiKeyAuth.generate_api_key(16))
            32
        """
        return secrets.token_hex(length)

    @classmethod
    def from_config(cls, auth_config: AuthConfig) -> "ApiKeyAuth":
        return cls(api_key=auth_config.api_key, required=auth_config.require_auth)

    def __init__(self, api_key: Optional[str] = None, required: bool = True):
        """
        Initialize auth module.

        Args:
            api_key: Expected shared secret, None if not configured
            required: Whether callers must present the secret
        """
        self.api_key = api_key
        self.required = required

    def verify(self, provided_key: Optional[str]) -> AuthResult:
        """
        Verify the caller-supplied API key.

        Args:
            provided_key: Value of the X-API-Key header, if any

        Returns:
            AuthResult describing the outcome
        """
        if not self.api_key and not self.required:
            return AuthResult(ok=True, identity=None, method="anonymous")

        if self.required and not self.api_key:
            logger.error("API key authentication is required but API_KEY is not set")
            return AuthResult(
                ok=False,
                identity=None,
                method=None,
                error=AuthError.SERVER_MISCONFIGURED,
                message="API key authentication is required but not configured",
            )

        if self.required and not provided_key:
            return AuthResult(
                ok=False,
                identity=None,
                method=None,
                error=AuthError.MISSING_API_KEY,
                message="API key is required. Provide X-API-Key header.",
            )

        if provided_key:
            # Use constant-time comparison for security
            if not self.api_key or not secrets.compare_digest(
                provided_key.encode("utf-8"), self.api_key.encode("utf-8")
            ):
                logger.warning("Rejected request with invalid API key")
                return AuthResult(
                    ok=False,
                    identity=None,
                    method=None,
                    error=AuthError.INVALID_API_KEY,
                    message="Invalid API key provided",
                )
            return AuthResult(ok=True, identity="api_key", method="api_key")

        return AuthResult(ok=True, identity=None, method="anonymous")

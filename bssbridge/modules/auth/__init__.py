"""
Authentication Module - Black Box Interface

Purpose: Validate the shared-secret API key
Interface: ApiKeyAuth.verify(), ApiKeyAuth.generate_api_key()
Hidden: Comparison logic, configuration rules

This module can be completely replaced with any other auth implementation
without affecting the queue or the routes.
"""

from .auth import ApiKeyAuth
from .service import AuthError, AuthResult

__all__ = ["ApiKeyAuth", "AuthError", "AuthResult"]

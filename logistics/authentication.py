"""
Token authentication for the API.

Kept in its own module so ``REST_FRAMEWORK['DEFAULT_AUTHENTICATION_CLASSES']``
can point at it without importing any view code.
"""
from __future__ import annotations

from rest_framework import authentication, exceptions


class TokenAuthentication(authentication.TokenAuthentication):
    """``Authorization: Token <key>``, backed by ``rest_framework.authtoken``."""

    keyword = 'Token'

    def authenticate_credentials(self, key):
        user, token = super().authenticate_credentials(key)
        # users whose role was cleared cannot act on the API
        if not getattr(user, 'role', None):
            raise exceptions.AuthenticationFailed('User has no role assigned.')
        return user, token

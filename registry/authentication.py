"""
Authentication backend for bearer JWT access tokens.

Kept separate from any view definitions so that Django REST framework can
import it during initialisation without circular imports.  The project's
settings reference this class rather than the library one so that later
customisation stays in one place.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication


class BearerJWTAuthentication(JWTAuthentication):
    """Bearer token authentication that also loads the user's role and location."""

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        return type(user).objects.select_related('role', 'location').get(pk=user.pk)

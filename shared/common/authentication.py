# shared/common/authentication.py
"""
JWT Authentication

Accounts receive bearer tokens from the identity provider; the booking API
only verifies them. The ``sub`` claim is the account id and ``roles`` decides
whether the caller may act on other accounts' bookings.
"""

import jwt
import logging
from typing import Optional, Dict, Any, Iterable, Tuple
from django.conf import settings
from rest_framework import authentication, exceptions
from rest_framework.request import Request

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = ('ADMIN', 'STAFF')
REQUIRED_CLAIMS = ['exp', 'iat', 'sub', 'iss']


class JWTAuthentication(authentication.BaseAuthentication):
    """
    Bearer token authentication.

    Algorithm, verifying key and issuer are read from ``settings.JWT_SETTINGS``.
    Requests without an ``Authorization`` header fall through as anonymous and
    are rejected with 401 by the default ``IsAuthenticated`` permission.
    """

    keyword = 'Bearer'

    def authenticate(self, request: Request) -> Optional[Tuple['TokenUser', Dict]]:
        header = authentication.get_authorization_header(request)
        if not header:
            return None

        try:
            scheme, _, token = header.decode('utf-8').partition(' ')
        except UnicodeDecodeError:
            raise exceptions.AuthenticationFailed('Invalid token header encoding')

        if scheme.lower() != self.keyword.lower():
            return None
        token = token.strip()
        if not token or ' ' in token:
            raise exceptions.AuthenticationFailed('Invalid token header format')

        payload = self.decode(token)
        return TokenUser(payload), payload

    def decode(self, token: str) -> Dict[str, Any]:
        jwt_settings = settings.JWT_SETTINGS
        try:
            payload = jwt.decode(
                token,
                jwt_settings['VERIFYING_KEY'],
                algorithms=[jwt_settings['ALGORITHM']],
                issuer=jwt_settings['ISSUER'],
                options={'require': REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise exceptions.AuthenticationFailed('Token has expired')
        except jwt.InvalidTokenError as e:
            logger.warning(f"Rejected bearer token: {e}")
            raise exceptions.AuthenticationFailed('Invalid token')

        try:
            int(payload['sub'])
        except (TypeError, ValueError):
            raise exceptions.AuthenticationFailed('Token subject is not an account id')
        return payload

    def authenticate_header(self, request: Request) -> str:
        return self.keyword


class TokenUser:
    """
    The calling account, built from verified token claims.

    Services receive this as ``actor``; ``id`` is the account id.
    """

    is_active = True
    is_authenticated = True
    is_anonymous = False

    def __init__(self, payload: Dict[str, Any]):
        self.payload = payload
        self.id = int(payload['sub'])
        self.email = payload.get('email')
        self.roles = [role.upper() for role in payload.get('roles', [])]

    def __str__(self) -> str:
        return f"TokenUser({self.id})"

    def has_any_role(self, roles: Iterable[str]) -> bool:
        return bool(set(self.roles) & {r.upper() for r in roles})

    @property
    def is_privileged(self) -> bool:
        """Staff and admins may act on any account's events."""
        return self.has_any_role(PRIVILEGED_ROLES)

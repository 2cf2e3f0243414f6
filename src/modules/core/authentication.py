"""Auth0 JWT authentication for Django REST Framework.

Shoppers and staff signing in through Auth0 present RS256 access tokens.
They are verified with PyJWT against the tenant's JWKS; the key set is
cached for ``JWKS_CACHE_SECONDS`` so most requests never hit the network.

Only tokens whose (unverified) ``iss`` names the configured tenant are
judged here.  Anything else, or every token while ``AUTH0_DOMAIN`` /
``AUTH0_AUDIENCE`` are unset, falls through to SimpleJWT.  Once a token is
ours, any verification error is a 401.
"""

from functools import lru_cache

import jwt
import structlog
from django.conf import settings
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError
from rest_framework.authentication import BaseAuthentication, get_authorization_header
from rest_framework.exceptions import AuthenticationFailed

from modules.core.context import ADMIN_PERMISSION

logger = structlog.get_logger(__name__)

JWKS_CACHE_SECONDS = 300


def auth0_issuer() -> str:
    return f"https://{settings.AUTH0_DOMAIN}/" if settings.AUTH0_DOMAIN else ""


@lru_cache(maxsize=None)
def jwks_client(domain: str) -> PyJWKClient:
    return PyJWKClient(
        f"https://{domain}/.well-known/jwks.json",
        cache_jwk_set=True,
        lifespan=JWKS_CACHE_SECONDS,
    )


class Auth0User:
    """Principal for an Auth0 token; ``sub`` is the identity.

    No local ``User`` row exists.  The ``permissions`` claim decides the
    role: ``admin`` maps to staff.
    """

    is_authenticated = True
    is_active = True

    def __init__(self, claims: dict):
        self.claims = claims
        self.sub = claims.get("sub", "")
        self.permissions = list(claims.get("permissions", []))

    @property
    def pk(self) -> str:
        return self.sub

    @property
    def is_staff(self) -> bool:
        return ADMIN_PERMISSION in self.permissions

    def __str__(self) -> str:
        return self.sub


class Auth0JSONWebTokenAuthentication(BaseAuthentication):
    keyword = b"bearer"

    def authenticate(self, request):
        if not (settings.AUTH0_DOMAIN and settings.AUTH0_AUDIENCE):
            return None

        parts = get_authorization_header(request).split()
        if not parts:
            return None
        if len(parts) != 2 or parts[0].lower() != self.keyword:
            raise AuthenticationFailed("Authorization header must be 'Bearer <token>'.")

        token = parts[1].decode("latin-1")
        if self._claimed_issuer(token) != auth0_issuer():
            return None

        user = Auth0User(self._verify(token))
        logger.info("auth0.authenticated", sub=user.sub)
        return user, token

    def authenticate_header(self, request):
        return 'Bearer realm="api"'

    @staticmethod
    def _claimed_issuer(token: str) -> str:
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except PyJWTError:
            return ""
        return claims.get("iss", "")

    @staticmethod
    def _verify(token: str) -> dict:
        try:
            key = jwks_client(settings.AUTH0_DOMAIN).get_signing_key_from_jwt(token)
            return jwt.decode(
                token,
                key.key,
                # Never taken from the token header.
                algorithms=[settings.AUTH0_ALGORITHM],
                audience=settings.AUTH0_AUDIENCE,
                issuer=auth0_issuer(),
            )
        except PyJWTError as exc:
            logger.warning("auth0.rejected", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc

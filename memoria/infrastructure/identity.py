"""Identity Gateway - resolves a bearer credential to a stable user identity.

Invariants:
    - The provider is external: tokens are only decoded and verified here
    - `sub` is the stable user id; profile claims are optional
    - Any decode/verification failure resolves to None (caller maps to 401)

Design Decisions:
    - HS256 shared-secret JWT via python-jose; algorithm and audience are config
"""

import logging

from jose import JWTError, jwt

from memoria.core.repository_protocols import Identity

logger = logging.getLogger(__name__)


class JWTIdentityGateway:
    """IdentityGateway backed by signed JWTs from the identity provider."""

    def __init__(self, secret: str, algorithm: str = "HS256", audience: str | None = None):
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    def resolve(self, credential: str) -> Identity | None:
        try:
            claims = jwt.decode(
                credential, self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                options={"verify_aud": self._audience is not None},
            )
        except JWTError as e:
            logger.info(f"Rejected bearer token: {e}")
            return None

        user_id = claims.get("sub")
        if not user_id:
            return None
        handle = claims.get("username") or f"user-{user_id[-8:]}"
        return Identity(
            user_id=user_id,
            display_name=claims.get("name") or handle,
            handle=handle,
            avatar_url=claims.get("picture"),
        )

    def issue(self, identity: Identity) -> str:
        """Mint a token for an identity (development tooling and tests)."""
        claims = {
            "sub": identity.user_id,
            "name": identity.display_name,
            "username": identity.handle,
        }
        if identity.avatar_url:
            claims["picture"] = identity.avatar_url
        if self._audience:
            claims["aud"] = self._audience
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

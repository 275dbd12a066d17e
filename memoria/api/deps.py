"""Request Dependencies - resolve the acting user once per request.

Invariants:
    - Every authenticated route receives the caller's User row; services get
      its id as an explicit acting_user_id, never from ambient state
    - Missing or invalid bearer credentials raise UnauthenticatedError (401)
    - First authenticated request creates the User row (ensure_user)

Design Decisions:
    - Gateway built from settings and cached: swapping providers means
      overriding get_identity_gateway, nothing else
"""

from functools import lru_cache

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.config import get_settings
from memoria.core.errors import UnauthenticatedError
from memoria.core.repository_protocols import IdentityGateway
from memoria.infrastructure.database import get_db
from memoria.infrastructure.identity import JWTIdentityGateway
from memoria.models.user import User
from memoria.services.user_directory import UserDirectory

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache
def get_identity_gateway() -> IdentityGateway:
    settings = get_settings()
    return JWTIdentityGateway(
        settings.identity_jwt_secret,
        algorithm=settings.identity_jwt_algorithm,
        audience=settings.identity_jwt_audience,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    gateway: IdentityGateway = Depends(get_identity_gateway),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise UnauthenticatedError()
    identity = gateway.resolve(credentials.credentials)
    if identity is None:
        raise UnauthenticatedError("Invalid or expired credentials")
    return await UserDirectory(db).ensure_user(identity)

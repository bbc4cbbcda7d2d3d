from typing import Optional
from uuid import UUID
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from attendance.db.session import get_session
from attendance.db.models.user import User, RoleEnum
from attendance.db import repositories as repo
from attendance.core.errors import ForbiddenError, UnauthorizedError
from attendance.core.security import decode_token, is_token_revoked

# auto_error is off so a missing header is reported as 401 rather than 403
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session: AsyncSession = Depends(get_session)
) -> User:
    """
    Get current user from JWT token with revocation check.

    Args:
        credentials: HTTP Bearer credentials containing the JWT token
        session: Database session (injected)

    Returns:
        User object

    Raises:
        UnauthorizedError: If the token is missing, invalid, revoked or the user is unknown
    """
    if credentials is None:
        raise UnauthorizedError("Not authenticated")
    token = credentials.credentials

    if await is_token_revoked(token):
        raise UnauthorizedError("Token has been revoked")

    try:
        payload = decode_token(token)
    except ValueError:
        raise UnauthorizedError("Could not validate credentials")

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")

    user_id = payload.get("sub") or payload.get("user_id")
    try:
        user = await repo.get_user(session, UUID(str(user_id)))
    except ValueError:
        raise UnauthorizedError("Could not validate credentials")
    if not user:
        raise UnauthorizedError("Could not validate credentials")
    return user


def role_required(required_role: RoleEnum):
    """
    Dependency to require a platform role for endpoint access.

    Admins pass every role check.
    """
    async def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.role != required_role and user.role != RoleEnum.admin:
            raise ForbiddenError("Forbidden")
        return user
    return role_checker

"""
Admin Dependencies for Authentication and Authorization

Tokens are issued by the auth service; here they are only verified and the
caller's identity and role are read from the claims.
"""
import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from catalog.config import settings
from catalog.utils.security import decode_token

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)


class CurrentAdmin(BaseModel):
    id: str
    role: str


async def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> CurrentAdmin:
    """Get current authenticated caller from the bearer token"""
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        logger.debug("Token decode failed - invalid or expired token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentAdmin(id=str(payload["sub"]), role=str(payload.get("role", "")))


async def require_admin(admin: CurrentAdmin = Depends(get_current_admin)) -> CurrentAdmin:
    """Require the admin role"""
    if admin.role != settings.ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required"
        )
    return admin

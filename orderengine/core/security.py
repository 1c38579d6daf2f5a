"""
Identity verification for incoming requests
Tokens are issued elsewhere; this module only checks them
"""

from typing import Any, Dict
from jose import JWTError, jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import Settings
from .exceptions import UnauthorizedException, ForbiddenException

# Security scheme
security = HTTPBearer(auto_error=False)


class SecurityUtils:
    """Security utility functions"""

    @staticmethod
    def decode_token(token: str, settings: Settings) -> Dict[str, Any]:
        """Decode and validate JWT token"""
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise UnauthorizedException("Invalid authentication credentials")


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Dict[str, Any]:
    """Extract the verified user from the bearer token"""
    if credentials is None:
        raise UnauthorizedException("Authentication required")

    payload = SecurityUtils.decode_token(credentials.credentials, request.app.state.settings)

    if payload.get("type", "access") != "access" or not payload.get("sub"):
        raise UnauthorizedException("Invalid token type")

    return {
        "id": payload["sub"],
        "role": payload.get("role", "customer"),
    }


# Role-based access control
def require_role(allowed_roles: list[str]):
    """Dependency factory checking the user role"""
    async def role_checker(current_user: dict = Depends(get_current_user)):
        if current_user.get("role") not in allowed_roles:
            raise ForbiddenException("Insufficient permissions")
        return current_user
    return role_checker


require_admin = require_role(["admin"])

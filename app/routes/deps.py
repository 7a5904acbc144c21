"""
Request dependencies: bearer-token authentication and the admin check.
"""

from typing import Dict, Optional

from fastapi import Depends, Header

from app.core.errors import AuthenticationFailed, PermissionDenied
from app.models.user import UserRole
from app.utils.security import decode_access_token


def _claims_from_header(authorization: Optional[str]) -> Optional[Dict]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationFailed("Invalid authorization header")
    claims = decode_access_token(token.strip())
    if claims is None or not claims.get("sub"):
        raise AuthenticationFailed("Invalid or expired token")
    return claims


def optional_user(authorization: Optional[str] = Header(None)) -> Optional[Dict]:
    """Claims of the caller if a bearer token was sent, else None (anonymous)."""
    return _claims_from_header(authorization)


def current_user(authorization: Optional[str] = Header(None)) -> Dict:
    claims = _claims_from_header(authorization)
    if claims is None:
        raise AuthenticationFailed("Access token required")
    return claims


def admin_user(claims: Dict = Depends(current_user)) -> Dict:
    if claims.get("role") != UserRole.ADMIN.value:
        raise PermissionDenied("Admin access required")
    return claims

"""Authentication utilities: bearer JWT -> Principal"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from judging.core.config import settings
from judging.db.enums import Role


# Security scheme
security = HTTPBearer(auto_error=False)


class AuthError(Exception):
    """Authentication error"""
    pass


@dataclass(frozen=True)
class Principal:
    """Authenticated caller: user id plus the role claimed in the token"""
    user_id: str
    role: Role


def create_access_token(
    user_id: str,
    role: Role,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create JWT access token for a user acting in a role"""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode = {"sub": str(user_id), "role": role.value, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and verify JWT token"""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        raise AuthError("Invalid authentication credentials")


def principal_from_token(token: str) -> Principal:
    """
    Build a Principal from a bearer token.

    Raises:
        AuthError: If the token is invalid, has no subject, or names an unknown role
    """
    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Token has no subject")
    role = Role.parse(payload.get("role"))
    if role is None:
        raise AuthError("Token role is not recognized")
    return Principal(user_id=user_id, role=role)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """
    Get the authenticated principal from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing or invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return principal_from_token(credentials.credentials)
    except AuthError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

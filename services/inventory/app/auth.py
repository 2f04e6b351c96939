"""
Authentication utilities for the Inventory service.

Validates JWT bearer tokens issued by the external users service. The verified
user id scopes every inventory read and write; no further identity checks are made.
"""
import logging
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from .config import SECRET_KEY, ALGORITHM

logger = logging.getLogger(__name__)

# Security scheme for JWT bearer tokens
security = HTTPBearer()


class CurrentUser(BaseModel):
    """Current authenticated user information."""
    id: str
    email: Optional[str] = None
    role: Optional[str] = None
    token: str


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> CurrentUser:
    """
    FastAPI dependency to get the current authenticated user from JWT token.
    
    Args:
        credentials: HTTP Authorization credentials (injected)
        
    Returns:
        Current authenticated user information
        
    Raises:
        HTTPException: 401 if token is invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    
    try:
        token = credentials.credentials
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        
        if not user_id:
            raise credentials_exception
        
        return CurrentUser(
            id=str(user_id),
            email=payload.get("email"),
            role=payload.get("role"),
            token=token
        )
    except JWTError as e:
        logger.error(f"JWT validation error: {e}")
        raise credentials_exception

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from recode.core.errors import AuthenticationRequired, AdminRequired
from recode.core.security import decode_token
from recode.db.session import get_db
from recode.db.models.user import User

# auto_error=False so a missing header surfaces as AuthenticationRequired, not a bare 403
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> str:
    """Get current user email from JWT token."""
    if credentials is None:
        raise AuthenticationRequired()

    payload = decode_token(credentials.credentials)
    email = payload.get("sub") if payload else None
    if not email:
        raise AuthenticationRequired("Invalid token")

    return email


def get_current_user_obj(
    email: str = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> User:
    """Get current User object from JWT token."""
    user = db.query(User).filter(User.email == email).first()
    if not user:
        # Token was issued for an account this service does not know
        raise AuthenticationRequired("User not found")
    return user


def require_admin(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> dict:
    """Verify an admin token; separate from the regular user session."""
    if credentials is None:
        raise AuthenticationRequired("Unauthorized - No token provided")

    payload = decode_token(credentials.credentials)
    if payload is None:
        raise AuthenticationRequired("Unauthorized - Invalid token")
    if not payload.get("admin"):
        raise AdminRequired()

    return payload

# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User
from utils.errors import Forbidden, Unauthorized

# Bearer scheme; missing headers are reported by get_current_user, not by FastAPI
bearer_scheme = HTTPBearer(auto_error=False)

# Sign a JWT access token. Tokens are issued by the identity service in production;
# this helper is used by the seed script and the test-suite.
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    if credentials is None:
        raise Unauthorized("Access denied. No token provided.")

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid token.")

    email: str = payload.get("sub")
    # Ensure email is present in the token payload
    if email is None:
        raise Unauthorized("Invalid token.")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise Unauthorized("Invalid token. User not found.")
    if not user.is_active:
        raise Unauthorized("Account is deactivated.")
    return user

# Dependency factory for Role-Based Access Control
def role_required(*allowed_roles):
    allowed = {r.lower() for r in allowed_roles}

    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if allowed and (current_user.role or "").lower() not in allowed:
            raise Forbidden("Access denied. Admin privileges required." if allowed == {"admin"} else "Forbidden")
        return current_user
    return _checker

require_admin = role_required("admin")

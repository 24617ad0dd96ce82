import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from services.auth import SECRET_KEY, ALGORITHM
from utils.exceptions import AuthenticationError, AuthorizationError

bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except JWTError:
        raise AuthenticationError("Invalid token")
    if not payload.get("userId") or not payload.get("role"):
        raise AuthenticationError("Invalid token payload")
    return payload


def _load_user(token: str, db: Session) -> User:
    payload = decode_access_token(token)
    try:
        user_id = uuid.UUID(str(payload["userId"]))
    except ValueError:
        raise AuthenticationError("Invalid token payload")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthenticationError("User no longer exists")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required")
    return _load_user(credentials.credentials, db)


def require_roles(*roles: str):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise AuthorizationError("Insufficient permissions")
        return current_user
    return checker


require_user = require_roles("user", "admin")
require_admin = require_roles("admin")

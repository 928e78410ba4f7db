from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.errors import Forbidden, Unauthorized
from app.core.security import decode_token
from app.models.user import User
from app.services.bid_queue import BidQueue, get_bid_queue

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise Unauthorized("Not authenticated")
    try:
        payload = decode_token(creds.credentials)
    except JWTError:
        raise Unauthorized("Invalid token")
    user_id = payload.get("sub")
    user = db.get(User, user_id) if user_id else None
    if not user or not user.is_active:
        raise Unauthorized("User not found or inactive")
    return user

def require_roles(*roles: str):
    def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise Forbidden("Forbidden")
        return user
    return _guard

def bid_queue() -> BidQueue:
    return get_bid_queue()

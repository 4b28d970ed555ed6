"""
Authentication helpers

Tokens are issued by the hosted auth provider; this service only verifies
them and resolves the caller's roles into an explicit LearnerSession.
"""
import logging
from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.models import UserRole
from app.utils.timeutils import utc_now

logger = logging.getLogger(__name__)

ADMIN_ROLES = {"super_admin", "client_admin"}
ANALYTICS_ROLES = ADMIN_ROLES | {"manager"}

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Identity claims from a verified access token"""
    id: UUID
    email: Optional[str] = None


class LearnerSession(BaseModel):
    """Caller identity and roles, passed explicitly into services"""
    user_id: UUID
    email: Optional[str] = None
    roles: List[str] = []

    @property
    def is_admin(self) -> bool:
        return any(role in ADMIN_ROLES for role in self.roles)

    @property
    def can_access_analytics(self) -> bool:
        return any(role in ANALYTICS_ROLES for role in self.roles)


def create_access_token(user_id: UUID, email: Optional[str] = None, expires_minutes: int = 60) -> str:
    """Mint a token shaped like the auth provider's (local development and tests)"""
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.AUTH_JWT_AUDIENCE,
        "exp": utc_now() + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def current_user(token: Optional[str]) -> Optional[CurrentUser]:
    """
    Verify an access token

    Returns:
        CurrentUser, or None when the token is missing or invalid
    """
    if not token:
        return None

    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE
        )
        return CurrentUser(id=UUID(payload["sub"]), email=payload.get("email"))
    except (JWTError, KeyError, ValueError) as e:
        logger.warning(f"Rejected access token: {str(e)}")
        return None


def get_user_roles(db: Session, user_id: UUID) -> List[str]:
    rows = db.query(UserRole.role).filter(UserRole.user_id == user_id).all()
    return [row[0] for row in rows]


def get_learner_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> LearnerSession:
    """FastAPI dependency resolving the authenticated learner"""
    user = current_user(credentials.credentials if credentials else None)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return LearnerSession(
        user_id=user.id,
        email=user.email,
        roles=get_user_roles(db, user.id)
    )

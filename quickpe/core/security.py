"""JWT helpers and authentication dependencies."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.config import Settings
from quickpe.interfaces.http.deps import get_app_settings, get_db_session
from quickpe.modules.users import User, UserService
from quickpe.schemas import TokenData

security = HTTPBearer(auto_error=False)

CREDENTIALS_ERROR = "Could not validate credentials"


def create_access_token(
    user: User,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": user.id,
        "username": user.username,
        "role": user.role,
        "exp": datetime.now(timezone.utc) + expire_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> TokenData:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=CREDENTIALS_ERROR) from exc

    user_id = payload.get("sub")
    username = payload.get("username")
    role = payload.get("role")
    if not all([user_id, username, role]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=CREDENTIALS_ERROR)
    return TokenData(user_id=user_id, username=username, role=role)


async def resolve_token_user(token: str, db: AsyncSession, settings: Settings) -> User:
    """Decode ``token`` and load its active user, raising 401 otherwise."""
    token_data = decode_access_token(token, settings)
    user = await UserService.with_session(db, settings).get_by_id(token_data.user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await resolve_token_user(credentials.credentials, db, settings)


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin privileges required")
    return user

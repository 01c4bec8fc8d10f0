"""Signup and signin endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.config import Settings
from quickpe.core.security import create_access_token
from quickpe.interfaces.http.deps import get_app_settings, get_db_session
from quickpe.modules.users import (
    InvalidCredentialsError,
    UserAlreadyExistsError,
    UserCreateInput,
    UserError,
    UserService,
)
from quickpe.schemas import AuthResponse, SigninRequest, SignupRequest, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED, summary="Create a wallet user")
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    service = UserService.with_session(db, settings)
    try:
        user = await service.signup(
            UserCreateInput(
                username=payload.username,
                password=payload.password,
                first_name=payload.first_name,
                last_name=payload.last_name,
            )
        )
    except UserAlreadyExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already taken") from exc
    except UserError as exc:
        logger.error("Signup failed for %s: %s", payload.username, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Signup failed") from exc
    await db.commit()

    return AuthResponse(
        access_token=create_access_token(user, settings),
        user=UserResponse.model_validate(user),
    )


@router.post("/signin", response_model=AuthResponse, summary="Exchange credentials for a bearer token")
async def signin(
    payload: SigninRequest,
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AuthResponse:
    service = UserService.with_session(db, settings)
    try:
        user = await service.authenticate(payload.username, payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password") from exc
    await db.commit()

    return AuthResponse(
        access_token=create_access_token(user, settings),
        user=UserResponse.model_validate(user),
    )

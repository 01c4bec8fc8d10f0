"""HTTP routers grouped under the API prefix."""

from fastapi import APIRouter

from . import account, admin, auth, health, money_requests, notifications, users, websocket


def create_api_router() -> APIRouter:
    api_router = APIRouter()
    api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
    api_router.include_router(users.router, prefix="/users", tags=["users"])
    api_router.include_router(account.router, prefix="/account", tags=["account"])
    api_router.include_router(money_requests.router, prefix="/money-requests", tags=["money-requests"])
    api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
    api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
    return api_router


__all__ = ["create_api_router", "health", "websocket"]

"""Container and settings providers."""

from fastapi import Request

from quickpe.core.config import Settings
from quickpe.core.container import ApplicationContainer
from quickpe.modules.notifications.dispatcher import NotificationDispatcher
from quickpe.modules.transfers.service import TransferService


def get_container(request: Request) -> ApplicationContainer:
    return request.app.state.container


def get_app_settings(request: Request) -> Settings:
    return get_container(request).settings


def get_transfer_service(request: Request) -> TransferService:
    return get_container(request).transfer_service


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return get_container(request).dispatcher


__all__ = ["get_container", "get_app_settings", "get_transfer_service", "get_dispatcher"]

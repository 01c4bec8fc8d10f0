"""User domain services and models."""

from .exceptions import InvalidCredentialsError, UserAlreadyExistsError, UserError, UserNotFoundError
from .models import UNSET, User, UserCreateInput, UserPage, UserUpdateInput
from .service import UserService

__all__ = [
    "User",
    "UserCreateInput",
    "UserUpdateInput",
    "UserPage",
    "UserService",
    "UserError",
    "UserAlreadyExistsError",
    "UserNotFoundError",
    "InvalidCredentialsError",
    "UNSET",
]

"""User domain specific exceptions."""


class UserError(Exception):
    """Base class for user domain errors."""


class UserAlreadyExistsError(UserError):
    """Raised when attempting to sign up with a username that is already taken."""


class UserNotFoundError(UserError):
    """Raised when the requested user cannot be found."""


class InvalidCredentialsError(UserError):
    """Raised when a password check fails."""

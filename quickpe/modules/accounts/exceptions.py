"""Account domain specific exceptions."""


class AccountError(Exception):
    """Base class for account domain errors."""


class AccountNotFoundError(AccountError):
    """Raised when no wallet account exists for the given id or user."""

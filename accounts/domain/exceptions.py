"""Errors raised by the account service and its collaborators."""


class AccountError(RuntimeError):
    """Base class for account failures surfaced to the caller."""


class EmailTakenError(AccountError):
    """Another account already owns the requested email address."""


class RegistrationDisabledError(AccountError):
    """Open registration is turned off for this deployment."""


class PasswordMismatchError(AccountError):
    """The supplied current password does not match the stored one."""


class PersistenceError(AccountError):
    """The user store refused to save or delete a record."""


class ProtectedAccountError(AccountError):
    """The super administrator account cannot be deleted."""


class UserNotFoundError(AccountError):
    """No account exists for the requested identifier."""


class AuthenticationFailed(AccountError):
    """Failed to authenticate user with provided credentials."""


class SessionUnknown(AccountError):
    """The bearer token does not point to a live session."""


class InvalidPasswordError(AccountError):
    """The password cannot be hashed, usually because it exceeds 72 bytes."""

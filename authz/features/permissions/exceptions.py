"""
Errors raised by the authorization core.

A denied request is not an error: it is reported as a Decision. These
exceptions cover the cases where no decision can be made.
"""


class AuthzError(Exception):
    """Base class for authorization engine errors."""


class StoreUnavailable(AuthzError):
    """A permission, role or principal lookup failed."""

    def __init__(self, store: str, cause: Exception | None = None):
        self.store = store
        self.cause = cause
        message = f"{store} store unavailable"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class PrincipalNotFound(AuthzError):
    """No principal exists for the given id."""

    def __init__(self, principal_id: str):
        self.principal_id = principal_id
        super().__init__(f"Principal not found: {principal_id}")

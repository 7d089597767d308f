"""Error taxonomy shared by the stores, services and API layer."""


class DocVaultError(Exception):
    """Base exception for DocVault."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(DocVaultError):
    """Raised when a required field is empty. Always raised before any network call."""
    pass


class ConflictError(DocVaultError):
    """Raised when a storage path or row key already exists."""
    pass


class NotFoundError(DocVaultError):
    """Raised when an id or storage path is no longer present."""
    pass


class ForbiddenError(DocVaultError):
    """Raised when the caller's role does not allow the operation."""
    pass


class TransportError(DocVaultError):
    """Raised when an external service is unreachable or returned an error."""
    pass


class AuthError(DocVaultError):
    """Raised when the identity service rejects credentials."""
    pass


HTTP_STATUS = {
    ValidationError: 422,
    ConflictError: 409,
    NotFoundError: 404,
    ForbiddenError: 403,
    AuthError: 401,
    TransportError: 502,
}


def status_for(exc: DocVaultError) -> int:
    """HTTP status code for a DocVault error, walking the class hierarchy."""
    for klass in type(exc).__mro__:
        if klass in HTTP_STATUS:
            return HTTP_STATUS[klass]
    return 400

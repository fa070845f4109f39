# marketplace/domain/errors.py


class DomainError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError, ValueError):
    status_code = 400


class NotFoundError(DomainError, LookupError):
    status_code = 404


class AuthorizationError(DomainError, PermissionError):
    status_code = 403


class ConflictError(DomainError):
    status_code = 409

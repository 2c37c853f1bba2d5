"""Error taxonomy shared by the API routes and the startup path."""

from fastapi import HTTPException, status


class ConfigError(Exception):
    """Raised when the process cannot resolve its configuration at startup."""


class InvalidInput(HTTPException):
    def __init__(self, detail: str = 'Invalid input') -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class NotFound(HTTPException):
    def __init__(self, detail: str = 'Not found') -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Unauthenticated(HTTPException):
    def __init__(self, detail: str = 'Missing or invalid authorization header') -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={'WWW-Authenticate': 'Bearer'},
        )


class Forbidden(HTTPException):
    def __init__(self, detail: str = 'Forbidden: insufficient permissions') -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


# Duplicate signups are reported as a plain 400, like other signup input errors.
class DuplicateEmail(HTTPException):
    def __init__(self, detail: str = 'Email already exists') -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidCredentials(HTTPException):
    def __init__(self, detail: str = 'Invalid credentials') -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class EmailNotVerified(HTTPException):
    def __init__(self, detail: str = 'Please verify your email before logging in.') -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class DependencyFailure(HTTPException):
    def __init__(self, detail: str = 'Database unavailable. Verify the database configuration.') -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

class DomainError(Exception):
    """Базовая ошибка предметной области."""

    status_code = 400

    def __init__(self, message: str = "", errors: dict[str, list[str]] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class ValidationFailed(DomainError):
    status_code = 422

    def __init__(self, errors: dict[str, list[str]]):
        super().__init__("validation failed", errors)


class NotFound(DomainError):
    status_code = 404


class Unauthenticated(DomainError):
    status_code = 401


class Conflict(DomainError):
    status_code = 409

    def __init__(self, errors: dict[str, list[str]]):
        super().__init__("conflict", errors)


class Unexpected(DomainError):
    status_code = 500

    def __init__(self, message: str = "An unexpected error occurred. Please try again."):
        super().__init__(message)

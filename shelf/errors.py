"""Error kinds raised by the services.

Each kind carries a human-readable ``message`` and an HTTP ``status_code``
that the API layer uses when turning the error into a response.
"""


class ShelfError(Exception):
    status_code = 400
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class ValidationError(ShelfError):
    status_code = 422
    kind = "validation_error"

    def __init__(self, message: str, errors: dict | None = None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.errors:
            data["errors"] = self.errors
        return data


class CategoryError(ShelfError):
    """Refusals of the category tree engine."""

    kind = "category_error"


class NotFound(CategoryError):
    status_code = 404
    kind = "not_found"


class Forbidden(CategoryError):
    status_code = 403
    kind = "forbidden"


class InvalidOperation(CategoryError):
    status_code = 400
    kind = "invalid_operation"

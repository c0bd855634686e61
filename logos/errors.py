"""
Error taxonomy shared by the service layer.

Services raise these instead of returning sentinels; ``main.py`` installs a
single exception handler that renders them as ``{"detail": ...}`` with the
status code carried by the class, mirroring FastAPI's ``HTTPException``
response shape.
"""


class BlogError(Exception):
    """Base class for every domain error surfaced to the request layer."""

    status_code: int = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(BlogError):
    """A referenced post, tag, comment or link does not exist."""

    status_code = 404


class ConflictError(BlogError):
    """A unique constraint was violated or a status transition is illegal."""

    status_code = 409


class ValidationError(BlogError):
    """A caller-supplied value breaks a domain rule."""

    status_code = 400


class StoreError(BlogError):
    """Unclassified failure raised by the underlying database."""

    status_code = 500

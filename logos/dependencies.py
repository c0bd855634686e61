import hmac

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from logos.config import settings
from logos.ratelimit import SlidingWindowRateLimiter

_bearer = HTTPBearer(auto_error=False)


class PaginationParams:
    """
    Reusable FastAPI dependency for ``page`` / ``page_size`` query params.

    Usage in a router::

        @router.get("/posts")
        async def list_posts(pagination: PaginationParams = Depends()):
            ...

    ``page_size`` is clamped to ``settings.MAX_PAGE_SIZE`` even when the
    query validation would allow more, so a settings change is enough to
    tighten it.
    """

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-based)."),
        page_size: int = Query(
            20,
            ge=1,
            le=100,
            description="Number of items returned per page (max 100).",
        ),
    ) -> None:
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# ---------------------------------------------------------------------------
# Admin capability check
# ---------------------------------------------------------------------------

def is_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> bool:
    """True when the request carries ``Authorization: Bearer <ADMIN_TOKEN>``."""
    if credentials is None:
        return False
    return hmac.compare_digest(
        credentials.credentials.encode(), settings.ADMIN_TOKEN.encode()
    )


def require_admin(admin: bool = Depends(is_admin)) -> None:
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin credentials required",
            headers={"WWW-Authenticate": "Bearer"},
        )


# ---------------------------------------------------------------------------
# Comment throttling
# ---------------------------------------------------------------------------

def client_identity(request: Request) -> str:
    """Network identity used as the rate-limit key."""
    return request.client.host if request.client else "unknown"


def get_comment_limiter(request: Request) -> SlidingWindowRateLimiter:
    """The limiter built by ``create_app`` and owned by the application."""
    return request.app.state.comment_limiter


def enforce_comment_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_comment_limiter),
) -> None:
    """Reject the request with 429 once the client has used its quota."""
    identity = client_identity(request)
    if limiter.should_limit(identity):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please try again later",
            headers={"Retry-After": str(int(limiter.window_seconds))},
        )

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from logos.cache import cache
from logos.config import settings
from logos.errors import BlogError
from logos.middleware import TimingMiddleware
from logos.ratelimit import SlidingWindowRateLimiter
from logos.routers import comments, links, metrics, posts, rss, search, tags

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Startup: the API keeps working without Redis, reads just skip the cache.
    await cache.connect()
    logger.info("Logos %s started (env=%s)", VERSION, settings.APP_ENV)
    yield
    # Shutdown
    await cache.disconnect()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Logos Blog API",
        description="Blog content backend: posts, tags, comments, links, search and RSS",
        version=VERSION,
        lifespan=lifespan,
    )

    # One limiter per application; handlers reach it through request.app.state.
    app.state.comment_limiter = SlidingWindowRateLimiter(
        window_seconds=settings.COMMENT_RATE_LIMIT_WINDOW,
        max_requests=settings.COMMENT_RATE_LIMIT_MAX,
    )

    # Middleware
    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BlogError)
    async def blog_error_handler(request: Request, exc: BlogError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    # Routers
    app.include_router(posts.router)
    app.include_router(comments.router)
    app.include_router(tags.router)
    app.include_router(links.router)
    app.include_router(search.router)
    app.include_router(rss.router)
    app.include_router(metrics.router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": VERSION}

    return app


app = create_app()

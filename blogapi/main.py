import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.ext.asyncio import AsyncEngine

from blogapi.config import Settings
from blogapi.database import build_engine, build_session_factory
from blogapi.errors import install_exception_handlers
from blogapi.log import configure_logging
from blogapi.middleware import RequestLoggingMiddleware, install_query_counter
from blogapi.routers import auth, blogs, comments, likes, users
from blogapi.security import TokenService

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, engine: AsyncEngine | None = None) -> FastAPI:
    """
    Build the application and everything it shares across requests.

    The engine, session factory, token service and settings live on
    ``app.state``; nothing is read from module globals at request time.
    Pass *engine* to reuse an existing one (tests do, for in-memory SQLite).
    """
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    owns_engine = engine is None
    engine = engine or build_engine(settings)
    install_query_counter(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
        logger.info("Blog API started (env=%s)", settings.APP_ENV)
        yield
        # Shutdown
        if owns_engine:
            await engine.dispose()

    app = FastAPI(
        title="Blog API",
        description="Blogging platform backend: accounts, posts, comments and likes",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_service = TokenService(
        settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        default_ttl=timedelta(seconds=settings.TOKEN_TTL_SECONDS),
    )

    install_exception_handlers(app)

    # Middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(blogs.router)
    app.include_router(comments.router)
    app.include_router(likes.router)

    app.mount(
        settings.UPLOAD_URL_PREFIX,
        StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
        name="uploads",
    )

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": "1.0.0"}

    return app


app = create_app()

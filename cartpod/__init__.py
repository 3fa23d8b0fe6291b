"""
CartPod Directory Backend

A location-based directory of cart pods (clusters of food carts) and the food
carts inside them. The platform features:
1. Account registration and login with signed session tokens
2. Email-based password reset with single-use reset tokens
3. Role-based access control for owners and admins
4. Cart pod and food cart management with nearest-first location search
"""

from contextlib import asynccontextmanager
from typing import Optional, TYPE_CHECKING

from fastapi import FastAPI

if TYPE_CHECKING:
    from cartpod.common.notifications import Notifier
    from cartpod.config import Settings

__version__ = "0.1.0"


def create_app(settings: Optional["Settings"] = None, notifier: Optional["Notifier"] = None) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        settings: Application settings; loaded from the environment when omitted
        notifier: Mail collaborator; an SMTP notifier built from the settings
            when omitted

    Returns:
        Configured FastAPI application
    """
    from fastapi.middleware.cors import CORSMiddleware

    from cartpod.accounts import router as accounts_router
    from cartpod.api import register_exception_handlers
    from cartpod.common.auth.jwt import TokenService
    from cartpod.common.auth.reset import PasswordResetService
    from cartpod.common.auth.service import AuthService
    from cartpod.common.auth.store import CredentialStore
    from cartpod.common.logger import ROOT_LOGGER_NAME, configure_logger
    from cartpod.common.notifications import SMTPNotifier
    from cartpod.config import get_settings
    from cartpod.database.init_db import Database
    from cartpod.directory import DirectoryRepository, cart_pod_router, food_cart_router

    settings = settings or get_settings()
    logger = configure_logger(
        name=ROOT_LOGGER_NAME,
        level=settings.LOG_LEVEL,
        use_json=settings.LOG_JSON,
        log_file=settings.LOG_FILE,
    ).getChild("main")

    database = Database(settings.DATABASE_URL, echo=settings.SQL_ECHO, pool_size=settings.DB_POOL_SIZE)
    tokens = TokenService(settings.jwt_config())
    store = CredentialStore(database, iterations=settings.PASSWORD_HASH_ITERATIONS)
    notifier = notifier or SMTPNotifier(settings.mail_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the schema and seed the admin on startup; release the pool on shutdown."""
        logger.info("Application startup sequence initiated.")
        await database.create_all()
        if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
            await store.ensure_admin(settings.ADMIN_NAME, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
        else:
            logger.warning("ADMIN_EMAIL/ADMIN_PASSWORD not set; no admin will be seeded")
        logger.info("Application startup complete")
        yield
        await database.dispose()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Directory of cart pods and food carts",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.database = database
    app.state.token_service = tokens
    app.state.credential_store = store
    app.state.notifier = notifier
    app.state.auth_service = AuthService(store, tokens)
    app.state.reset_service = PasswordResetService(store, tokens, notifier)
    app.state.directory = DirectoryRepository(database, settings.DEFAULT_IMAGE_URL)

    register_exception_handlers(app)

    app.include_router(accounts_router)
    app.include_router(cart_pod_router)
    app.include_router(food_cart_router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "Welcome to the CartPod API"}

    @app.get("/health")
    async def health_check():
        """Report whether the database is reachable."""
        database_ok = await database.ping()
        return {"status": "ok" if database_ok else "degraded", "database": database_ok}

    logger.info(f"Application initialized with {len(app.routes)} routes")
    return app

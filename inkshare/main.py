"""
inkshare/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Builds the credential store, gateways and dispatcher once at startup
- Registers API routes (webhook, health)
- No business logic should be written here
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from inkshare.core.config import settings, validate_settings
from inkshare.core.errors import add_exception_handlers
from inkshare.core.logging import setup_logging, get_logger
from inkshare.db.store import CredentialStore, FileCredentialStore, MemoryCredentialStore
from inkshare.flow.dispatcher import Dispatcher
from inkshare.services.ratelimit_service import RateLimiter
from inkshare.services.remarkable_service import RemarkableGateway
from inkshare.services.telegram_service import TelegramService
from inkshare.api import webhook

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


async def build_store() -> CredentialStore:
    """Creates the credential store selected by STORE_BACKEND."""
    if settings.STORE_BACKEND == "mongo":
        from inkshare.db.mongo import MongoCredentialStore
        from inkshare.db.indexes import create_indexes

        store = await MongoCredentialStore.connect(settings.MONGODB_URL, settings.MONGODB_DB_NAME)
        await create_indexes(store.collection)
        return store
    if settings.STORE_BACKEND == "memory":
        logger.warning("⚠️ Using the in-memory credential store; records are lost on restart")
        return MemoryCredentialStore()
    return FileCredentialStore(settings.STORE_DIR)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("🚀 Starting InkShare...")

    try:
        logger.info("Validating configuration...")
        validate_settings()
        logger.info("✅ Configuration validated")

        store = await build_store()
        logger.info(f"✅ Credential store ready ({settings.STORE_BACKEND})")

        telegram = TelegramService(settings.BOT_TOKEN, api_url=settings.TELEGRAM_API_URL)
        gateway = RemarkableGateway(
            auth_url=settings.REMARKABLE_AUTH_URL,
            service_manager_url=settings.REMARKABLE_SERVICE_MANAGER_URL,
            device_desc=settings.REMARKABLE_DEVICE_DESC,
            timeout=settings.REMARKABLE_TIMEOUT_SECONDS,
        )

        app.state.store = store
        app.state.telegram = telegram
        app.state.gateway = gateway
        app.state.dispatcher = Dispatcher(
            store=store,
            gateway=gateway,
            messenger=telegram,
            whitelisted_handles=settings.whitelisted_handles,
            rate_limiter=RateLimiter(
                limit=settings.RATE_LIMIT_MAX_MESSAGES,
                window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            ),
        )

        if settings.TELEGRAM_WEBHOOK_URL:
            await telegram.set_webhook(settings.TELEGRAM_WEBHOOK_URL, settings.TELEGRAM_WEBHOOK_SECRET)

        logger.info("🎉 InkShare started successfully!")
        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Whitelisted handles: {len(settings.whitelisted_handles)}")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    logger.info("🛑 Shutting down InkShare...")

    try:
        await app.state.gateway.close()
        await app.state.telegram.close()
        logger.info("✅ HTTP clients closed")

        await app.state.store.close()
        logger.info("✅ Credential store closed")

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title="InkShare",
    description="Telegram relay between chats and reMarkable cloud accounts",
    version=VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)


add_exception_handlers(app)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    if process_time > 5.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


app.include_router(webhook.router, prefix=settings.API_PREFIX, tags=["Webhook"])


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - basic info."""
    return {
        "name": "InkShare API",
        "version": VERSION,
        "description": "Telegram relay for reMarkable documents",
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """
    Health check endpoint.
    Checks credential store reachability.
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "version": VERSION,
        "checks": {}
    }

    try:
        store_healthy = await request.app.state.store.ping()
        health_status["checks"]["store"] = "healthy" if store_healthy else "unhealthy"
        if not store_healthy:
            health_status["status"] = "degraded"
    except Exception as e:
        logger.error(f"Store health check failed: {str(e)}")
        health_status["checks"]["store"] = "unhealthy"
        health_status["status"] = "unhealthy"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/ready", tags=["Health"])
async def readiness_check(request: Request):
    """
    Readiness probe - indicates if app is ready to receive traffic.
    """
    if getattr(request.app.state, "dispatcher", None) is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": "dispatcher_not_initialized"}
        )
    return {"status": "ready"}


@app.get("/live", tags=["Health"])
async def liveness_check():
    """
    Liveness probe - indicates if app is alive.
    """
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "inkshare.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )

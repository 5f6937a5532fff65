"""VentureHUB Backend API - Main Application"""
import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from venturehub.config import get_settings
from venturehub.api.v1.router import api_router
from venturehub.errors import RelayError
from venturehub.models.database import init_db, close_db
from venturehub.services.chain_client import close_chain_client, get_chain_client
from venturehub.services.content_store import close_content_store
from venturehub.services.sequencer import reset_sequencer

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting VentureHUB API", version=settings.app_version)

    await init_db()
    logger.info("Database initialized")

    yield

    # Cleanup
    reset_sequencer()
    await close_chain_client()
    await close_content_store()
    await close_db()
    logger.info("VentureHUB API shutdown complete")


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Render domain errors with their status and reason"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("Request failed", path=request.url.path, error=exc.code, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app() -> FastAPI:
    """Create FastAPI application"""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Relay and aggregation API for the VentureHUB venture platform",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RelayError, relay_error_handler)

    app.include_router(api_router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": settings.app_version,
            "rpc_url": settings.json_rpc_url,
        }

    @app.get("/block")
    async def get_current_block():
        """Get the current ledger block number"""
        try:
            chain = await get_chain_client()
            block = await chain.get_block_number()
            return {"block": block, "rpc_url": settings.json_rpc_url}
        except RelayError as e:
            logger.error("Failed to get current block", error=e.details)
            return {"block": None, "rpc_url": settings.json_rpc_url, "error": e.details}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "venturehub.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )

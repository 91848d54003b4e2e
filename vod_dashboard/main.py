"""Main FastAPI Application

This is the entry point for the VOD Dashboard.
Initializes FastAPI, configures middleware, and sets up routes.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, HTMLResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from vod_dashboard.api.v1.health import VERSION
from vod_dashboard.core.config import get_config
from vod_dashboard.core.errors import DashboardError
from vod_dashboard.core.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events (startup and shutdown)"""
    config = get_config()
    logger.info("=" * 60)
    logger.info("VOD Dashboard starting up...")
    logger.info(f"Version: {app.version}")
    logger.info("=" * 60)

    logger.info(f"Server: {config.server.host}:{config.server.port}")
    logger.info(f"Data directory: {config.storage.data_directory}")
    logger.info(f"Xtream timeout: {config.xtream.timeout}s")
    logger.info(f"Search threshold: {config.search.threshold}")
    logger.info(f"Log level: {config.logging.level}")

    errors = config.validate_paths()
    if errors:
        logger.warning("Configuration validation warnings:")
        for error in errors:
            logger.warning(f"  - {error}")

    logger.info("Server startup complete")
    logger.info("=" * 60)

    yield

    logger.info("VOD Dashboard shutting down...")


app = FastAPI(
    title="VOD Dashboard",
    description="Manage Xtream Codes IPTV servers, browse their VOD catalogs "
                "and export aria2c download commands",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    """Log all incoming requests and responses"""
    start_time = time.time()
    request_id = getattr(request.state, "request_id", "unknown")

    logger.info(
        f"Request {request_id}: {request.method} {request.url.path} "
        f"from {request.client.host if request.client else 'unknown'}"
    )

    try:
        response = await call_next(request)
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Error {request_id}: {str(e)} after {duration:.3f}s",
            exc_info=True
        )
        raise

    duration = time.time() - start_time
    logger.info(
        f"Response {request_id}: {response.status_code} "
        f"in {duration:.3f}s"
    )
    return response


# Registered last so it wraps the logging middleware and the id is set first
@app.middleware("http")
async def add_request_id_middleware(request: Request, call_next):
    """Add unique request ID to each request for tracing"""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    """Render expected service errors as the standard error envelope"""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning(f"Request {request_id} failed ({exc.error_code}): {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.message,
            "error_code": exc.error_code,
            "request_id": request_id,
        }
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Render request validation failures as a 400 error envelope"""
    request_id = getattr(request.state, "request_id", "unknown")
    errors = exc.errors()

    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ())[1:])
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))

    logger.warning(f"Validation error {request_id}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": message,
            "error_code": "validation_error",
            "request_id": request_id,
        }
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        f"Unhandled exception {request_id}: {str(exc)}",
        exc_info=True
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "An unexpected error occurred",
            "error_code": "internal_error",
            "request_id": request_id,
        }
    )


@app.get("/", tags=["Root"], response_class=HTMLResponse)
async def root():
    """Root endpoint - landing page with quick links"""
    html = f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <title>VOD Dashboard</title>
        <style>
            body {{
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
                background: #16213e;
                color: #e0e0e0;
                padding: 40px 20px;
            }}
            .container {{ max-width: 600px; margin: 0 auto; }}
            a {{ color: #64b5f6; text-decoration: none; }}
            li {{ margin: 8px 0; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1>VOD Dashboard</h1>
            <p>v{app.version}</p>
            <ul>
                <li><a href="/docs">API Documentation</a></li>
                <li><a href="/api/v1/servers">Servers</a></li>
                <li><a href="/api/v1/logs">Activity Log</a></li>
                <li><a href="/api/v1/health">Health Check</a></li>
            </ul>
        </div>
    </body>
    </html>
    """
    return HTMLResponse(content=html)


# Include API routers
from vod_dashboard.api.v1 import health, servers, catalog, export, logs
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(servers.router, prefix="/api/v1", tags=["Servers"])
app.include_router(catalog.router, prefix="/api/v1", tags=["Catalog"])
app.include_router(export.router, prefix="/api/v1", tags=["Export"])
app.include_router(logs.router, prefix="/api/v1", tags=["Logs"])


def run_server():
    """Run the server with uvicorn

    This function is called from server.py and manage.py
    """
    setup_logging()
    config = get_config()

    uvicorn.run(
        "vod_dashboard.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
        reload=False,
        access_log=True,
    )


if __name__ == "__main__":
    run_server()

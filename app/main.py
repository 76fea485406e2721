"""
Main FastAPI application
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import json
import logging
import time

from app.config.database import db_config
from app.config.settings import settings
from app.routes import auth, builder, form, records, tables
from app.utils.errors import FormEngineError, ValidationFailed

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events"""
    # Startup
    await db_config.connect_db()
    print(f"🚀 {settings.APP_NAME} v{settings.VERSION} started")
    yield
    # Shutdown
    await db_config.close_db()
    print("👋 Application shutdown")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "errors": [e.model_dump() for e in exc.errors]},
    )

@app.exception_handler(FormEngineError)
async def form_engine_error_handler(request: Request, exc: FormEngineError):
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Round-trip through json with default=str to handle non-serializable objects (e.g. ValueError)
    safe_errors = json.loads(json.dumps(exc.errors(), default=str))
    logger.warning("422 VALIDATION ERROR on %s %s: %s", request.method, request.url.path,
                   json.dumps(safe_errors))
    return JSONResponse(status_code=422, content={"detail": safe_errors})

# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    logger.info("%s %s - %s (%.2fs)", request.method, request.url.path, response.status_code, duration)
    return response

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(tables.router, prefix="/api")
app.include_router(records.router, prefix="/api")
app.include_router(builder.router, prefix="/api")
app.include_router(form.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

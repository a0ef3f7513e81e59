from dotenv import load_dotenv

load_dotenv()


from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .api import auth, application, analytics, export, resumes, user, ai, health
from .models.db.database import engine, Base
from .models.db import user as user_model
from .models.db import application as application_model
from .models.db import resume as resume_model
from .utils.api_helpers import format_validation_errors
from .utils.logging_config import setup_logging, get_logger
from .config.settings import get_settings

# Initialize settings
settings = get_settings()

# Setup logging configuration
setup_logging(
    level=settings.log_level,
    log_file=settings.log_file
)
logger = get_logger(__name__)

# Validate configuration on startup
missing_settings = settings.validate_required_settings()
if missing_settings:
    for setting in missing_settings:
        logger.error("Configuration error: %s", setting)
    if settings.is_production():
        raise RuntimeError("Invalid configuration for production environment")

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    docs_url="/docs" if settings.api_docs_enabled else None,
    redoc_url="/redoc" if settings.api_docs_enabled else None,
)

if settings.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if settings.is_production():
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": format_validation_errors(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    detail = "Something went wrong" if settings.is_production() else str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": detail})


# Routers
app.include_router(health.router, prefix="/api", tags=["Health Check"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(application.router, prefix="/api/applications", tags=["Application Tracker"])
app.include_router(resumes.router, prefix="/api/resumes", tags=["Resumes"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(export.router, prefix="/api/export", tags=["Export"])
app.include_router(user.router, prefix="/api/user", tags=["User Settings"])
app.include_router(ai.router, prefix="/api/ai", tags=["AI Tools"])


@app.on_event("startup")
def on_startup():
    """Initialize database tables and log application startup."""
    logger.info("Starting ApplyTrack API...")
    # Model modules are imported above so every table is registered on Base.
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized successfully")


@app.get("/")
def read_root():
    return {"message": "Welcome to the ApplyTrack API"}

"""
DIY Project Planner - Main Application
FastAPI application for AI-generated DIY project plans
"""
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import sys

from app.core.config import settings
from app.core.errors import (
    AuthenticationRequiredError,
    AuthorizationError,
    ConfigurationError,
    GenerationError,
    MissingInputError,
    NotFoundError,
    PlannerError,
    PrivacyError,
)
from app.api.v1.router import api_router

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="DIY Project Planner API",
    description="Backend API for generating, saving and tracking DIY project plans",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
origins = [
    settings.FRONTEND_URL,
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Status codes for planner errors; subclasses are listed before their parents
ERROR_STATUS = [
    (MissingInputError, status.HTTP_400_BAD_REQUEST),
    (AuthenticationRequiredError, status.HTTP_401_UNAUTHORIZED),
    (PrivacyError, status.HTTP_403_FORBIDDEN),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConfigurationError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (GenerationError, status.HTTP_502_BAD_GATEWAY),
]


@app.exception_handler(PlannerError)
async def planner_error_handler(request: Request, exc: PlannerError):
    """Convert planner errors into JSON responses"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
    else:
        logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")

    content = {"detail": str(exc)}
    details = getattr(exc, "details", "")
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# Include API routes
app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint - API health check"""
    return {
        "message": "DIY Project Planner API is running",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "diy-planner-backend",
    }


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting DIY Project Planner Backend...")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"Frontend URL: {settings.FRONTEND_URL}")
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY is not set; plan generation will fail")

    # Create database tables
    if settings.DATABASE_URL:
        from app.database import engine, Base
        from app.models import Project
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created/verified")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down DIY Project Planner Backend...")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app import settings
from app.database.config.db import engine, Base
from app.routers import api_router
from app.services.gateway import build_gateway
from app.services.storage import build_storage
from app.workflow.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    WorkflowError,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables for development; migrations own production schemas
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    app.state.gateway = build_gateway()
    app.state.storage = build_storage()
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title="University Admissions Portal",
    description="Application drafts, submission, fee payment and admin review",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

WORKFLOW_ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
}


@app.exception_handler(WorkflowError)
async def workflow_error_handler(request: Request, exc: WorkflowError):
    status_code = WORKFLOW_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "errors": getattr(exc, "errors", [])},
    )


# Include the API router
app.include_router(api_router)

os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/health")
def health():
    return {"status": "healthy"}

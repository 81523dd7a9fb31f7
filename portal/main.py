"""Accelerator portal FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.api.applications import router as applications_router
from portal.api.evaluations import router as evaluations_router
from portal.api.health import router as health_router
from portal.config import settings
from portal.errors import PersistenceFailure, PortalError

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Accelerator Portal",
    description="Startup accelerator applications: submission, status workflow, reviewer scoring",
    version="0.1.0",
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


@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if isinstance(exc, PersistenceFailure):
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.__cause__)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing input is a 400, not FastAPI's default 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


app.include_router(health_router, tags=["Health"])
app.include_router(applications_router, prefix="/application", tags=["Applications"])
app.include_router(evaluations_router, prefix="/application", tags=["Evaluations"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "accelerator-portal", "version": "0.1.0", "docs": "/docs"}

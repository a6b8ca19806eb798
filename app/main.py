# app/main.py — FastAPI app entry point

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.logging_config import configure_logging
from app.routers import health, pages, pengajuan


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging(get_settings().log_level)
    yield


app = FastAPI(
    title="tera-ulang-admin",
    description="Pengajuan tera ulang UTTP: submission form and admin review",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(HTTPException)
async def http_exception_handler(_: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(
    pengajuan.router,
    prefix="/api/pengajuan",
    tags=["pengajuan"],
)
app.include_router(pages.router, tags=["pages"], include_in_schema=False)

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from vibing_storage import __version__
from vibing_storage.core.config import load_config
from vibing_storage.core.database import close_pool, get_pool, init_database
from vibing_storage.core.exceptions import NotFound, PersistenceError, ValidationError
from vibing_storage.core.logging import setup_logging_from_config


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    setup_logging_from_config(config.logging)
    init_database(get_pool())
    logger.info("Vibing Storage API started")
    yield
    close_pool()


app = FastAPI(title="Vibing Storage API", version=__version__, lifespan=lifespan)

# CORS: Allow environment override for production
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
allowed_origins = (
    allowed_origins_env.split(",")
    if allowed_origins_env
    else load_config().server.cors_origins
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed ({exc.kind}): {exc}")
    return JSONResponse(status_code=500, content={"detail": "Database error"})


# Include routers
from web.backend.routers import tracks, vibes

app.include_router(tracks.router, prefix="/api", tags=["tracks"])
app.include_router(vibes.router, prefix="/api", tags=["vibes"])


@app.get("/")
async def root():
    return "hello viber!"


@app.get("/health")
async def health_check():
    return {"status": "healthy"}

"""Workout PDF API — main application."""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import config
from app.artifact_store import artifact_store
from app.routers.pdf import router as pdf_router

# --- Logging ---
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger("workoutpdf.api")


def _log_startup_config() -> None:
    logger.info(
        "Artifacts dir=%s cleanup_max_age_s=%.0f sweep_interval_s=%.0f",
        config.ARTIFACT_DIR,
        config.CLEANUP_MAX_AGE_SECONDS,
        config.CLEANUP_INTERVAL_SECONDS,
    )
    if not config.CLEANUP_TOKEN:
        logger.warning("CLEANUP_TOKEN is not set; /api/cleanup is unauthenticated.")


def _prepare_artifact_dir() -> None:
    try:
        artifact_store.primary.ensure_directory()
    except OSError:
        logger.warning(
            "Artifact directory %s is not writable; downloads rely on the memory fallback",
            config.ARTIFACT_DIR,
            exc_info=True,
        )


async def _sweep_once() -> None:
    result = await asyncio.to_thread(artifact_store.sweep, config.CLEANUP_MAX_AGE_SECONDS)
    logger.info(
        "Sweep cycle scanned=%d cleaned=%d errors=%d",
        result.scanned,
        result.cleaned,
        result.errors,
    )


async def _sweep_loop() -> None:
    while True:
        try:
            await _sweep_once()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Sweep cycle failed")
        await asyncio.sleep(config.CLEANUP_INTERVAL_SECONDS)


@asynccontextmanager
async def _lifespan(_: FastAPI):
    _log_startup_config()
    _prepare_artifact_dir()
    sweep_task = None
    if config.CLEANUP_INTERVAL_SECONDS > 0:
        sweep_task = asyncio.create_task(_sweep_loop(), name="artifact-sweep-loop")
    try:
        yield
    finally:
        if sweep_task is not None:
            sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await sweep_task


# --- App ---
app = FastAPI(
    title="Workout PDF",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    lifespan=_lifespan,
)

if config.CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )

app.include_router(pdf_router)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}

"""Workout PDF router — generation, download and cleanup."""

import asyncio
import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response, status

from app import config
from app.artifact_store import artifact_store, is_valid_artifact_name
from app.lifecycle import artifact_name, expires_at, lifecycle, new_identifier
from app.models import (
    CleanupDetails,
    CleanupResponse,
    GeneratedPdfInfo,
    GeneratePdfRequest,
    GeneratePdfResponse,
)
from app.pdf import render_workout_pdf

logger = logging.getLogger("workoutpdf.api")

router = APIRouter(prefix="/api", tags=["pdf"])

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _pdf_response(data: bytes, filename: str) -> Response:
    headers = {"Content-Disposition": f'attachment; filename="{filename}"', **_NO_CACHE_HEADERS}
    return Response(content=data, media_type="application/pdf", headers=headers)


def _require_cleanup_token(authorization: str = Header(default="")) -> None:
    if not config.CLEANUP_TOKEN:
        return

    prefix = "Bearer "
    token = authorization[len(prefix):] if authorization.startswith(prefix) else ""
    if not hmac.compare_digest(token, config.CLEANUP_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid cleanup token",
            headers={"WWW-Authenticate": "Bearer"},
        )


@router.post("/generate-pdf", response_model=GeneratePdfResponse)
async def generate_pdf(payload: GeneratePdfRequest):
    try:
        artifact = await asyncio.to_thread(lifecycle.generate, payload.data)
    except OSError as exc:
        logger.exception("Failed storing generated PDF")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error occurred while generating PDF",
        ) from exc

    expiry = None
    if payload.options.auto_cleanup:
        delay_ms = payload.options.cleanup_delay_ms
        if delay_ms is None:
            delay_ms = config.DEFAULT_CLEANUP_DELAY_MS
        expiry = expires_at(delay_ms)
        lifecycle.schedule_expiry(artifact.name, delay_ms)

    return GeneratePdfResponse(
        data=GeneratedPdfInfo(
            filename=artifact.name,
            download_url=artifact.download_reference,
            expires_at=expiry,
        )
    )


@router.get("/download")
async def download_pdf(file: str = Query(default="")):
    if not file:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing required parameter: file")
    if not is_valid_artifact_name(file):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid filename format")

    data = await asyncio.to_thread(lifecycle.retrieve, file)
    if data is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found or has expired")
    return _pdf_response(data, file)


@router.post("/download-direct")
async def download_direct(payload: GeneratePdfRequest):
    data = await asyncio.to_thread(render_workout_pdf, payload.data)
    return _pdf_response(data, artifact_name(new_identifier()))


@router.get("/cleanup", response_model=CleanupResponse)
async def cleanup_artifacts(_: None = Depends(_require_cleanup_token)):
    store = artifact_store.primary
    if not store.directory.is_dir():
        return CleanupResponse(message="No artifact directory found, nothing to clean")

    result = await asyncio.to_thread(store.sweep, config.CLEANUP_MAX_AGE_SECONDS)
    logger.info(
        "Cleanup sweep scanned=%d cleaned=%d errors=%d",
        result.scanned,
        result.cleaned,
        result.errors,
    )
    return CleanupResponse(
        message="Cleanup completed",
        details=CleanupDetails(
            files_scanned=result.scanned,
            files_cleaned=result.cleaned,
            errors=result.errors,
        ),
    )

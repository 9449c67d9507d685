"""Headshot processing API routes.

This module provides the API endpoints for batch headshot processing,
handling image uploads, framing and returning the results as one archive.
"""

import logging
from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response
from typing import Dict, List, Optional
from ..core.processing import process_batch, resolve_target_size
from ..models.types import ErrorResponse

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter()

ARCHIVE_FILENAME = "headshots.zip"


@router.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@router.post("/process")
async def process_headshots(
    files: Optional[List[UploadFile]] = File(None),
    size: Optional[str] = Form(None)
) -> Response:
    """Frame uploaded portraits and return them as a ZIP archive.

    Args:
        files: Uploaded images (.jpg, .jpeg, .png, .webp).
        size: Output side length; 500 or 1000, anything else means 500.

    Returns:
        application/zip response with one PNG per processed upload, in
        upload order. ``X-Processed-Count`` holds the number of entries.

    Raises:
        HTTPException: 400 if nothing was uploaded or no image could be
            processed, 500 on unexpected failures.
    """
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No files uploaded"
        )

    target_size = resolve_target_size(size)

    try:
        uploads = []
        for upload in files:
            uploads.append((upload.filename or "unknown", await upload.read()))

        logger.info(f"Processing {len(uploads)} upload(s) at {target_size}px...")
        # Framing is CPU bound
        result = await run_in_threadpool(process_batch, uploads, target_size)

    except Exception as e:
        import traceback
        error_details: ErrorResponse = {
            'error': str(e),
            'traceback': traceback.format_exc()
        }
        logger.error("Error details:", extra=error_details)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_details
        )

    if result['processed'] == 0:
        message = "No images processed"
        if result['errors']:
            message = f"{message}: {'; '.join(result['errors'])}"
        logger.warning(f"Validation error: {message}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=message
        )

    for error in result['errors']:
        logger.warning(f"Skipped upload: {error}")

    return Response(
        content=result['archive'],
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{ARCHIVE_FILENAME}"',
            "X-Processed-Count": str(result['processed'])
        }
    )

import os
import uuid
import logging
from pathlib import Path
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from starlette.concurrency import run_in_threadpool
from typing import List, Optional

from movefinder.db.session import get_db
from movefinder.models.media_file import MediaFile
from movefinder.schemas.upload import MediaListOut, ProcessedFile, UploadOut
from movefinder.core.config import settings
from movefinder.core.guards import check_not_found
from movefinder.core.response_builders import build_media_response, build_media_response_list
from movefinder.services.detection import ObjectDetectionService, get_detection_service, prepare_image
from movefinder.services.quotes import (
    get_quote_or_404, load_media_files, add_detected_items, reprice_with_rules,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/upload", tags=["upload"])


def upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def safe_upload_path(filename: str) -> Path:
    """Resolve a stored file name inside the upload directory, refusing anything outside it."""
    root = upload_dir().resolve()
    path = (root / filename).resolve()
    if path.parent != root:
        raise HTTPException(status_code=403, detail="Access denied")
    return path


def _is_media(content_type: Optional[str]) -> bool:
    return bool(content_type) and (content_type.startswith("image/") or content_type.startswith("video/"))


@router.post("/{quote_id}", response_model=UploadOut)
async def upload_media(
    quote_id: int,
    media: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db),
    detector: ObjectDetectionService = Depends(get_detection_service),
):
    if not media:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(media) > settings.MAX_UPLOAD_FILES:
        raise HTTPException(
            status_code=400,
            detail=f"Too many files. Maximum {settings.MAX_UPLOAD_FILES} per upload"
        )

    quote = await get_quote_or_404(db, quote_id)

    payloads = []
    for file in media:
        if not _is_media(file.content_type):
            raise HTTPException(status_code=400, detail="Invalid file type. Only images and videos allowed.")
        content = await file.read()
        if len(content) > settings.MAX_UPLOAD_SIZE:
            raise HTTPException(
                status_code=400,
                detail=f"File too large. Maximum size: {settings.MAX_UPLOAD_SIZE / (1024*1024)}MB"
            )
        payloads.append((file, content))

    target_dir = upload_dir()
    processed = []
    written = []
    total_detected = 0

    try:
        for file, content in payloads:
            ext = os.path.splitext(file.filename or "")[1].lower()
            stored_name = f"{uuid.uuid4().hex}{ext}"
            path = target_dir / stored_name

            with open(path, "wb") as f:
                f.write(content)
            written.append(path)

            if file.content_type.startswith("image/"):
                prepared = await run_in_threadpool(prepare_image, content)
                objects = await detector.detect_objects(prepared)
            else:
                objects = await detector.detect_objects_from_video(content)

            record = MediaFile(
                quote_id=quote.id,
                filename=stored_name,
                original_name=file.filename or stored_name,
                file_type=file.content_type,
                file_size=len(content),
                file_path=str(path),
                processed=True,
            )
            db.add(record)
            add_detected_items(db, quote, [(obj.label, obj.score, obj.quantity) for obj in objects])
            await db.flush()
            await db.refresh(record)

            total_detected += len(objects)
            processed.append(ProcessedFile(media_file=build_media_response(record), detected_objects=objects))

        updated_cost = None
        if total_detected:
            updated_cost = await reprice_with_rules(db, quote)

        await db.commit()
    except Exception:
        await db.rollback()
        for path in written:
            path.unlink(missing_ok=True)
        raise

    logger.info(f"Quote {quote.id}: stored {len(processed)} files, {total_detected} item types detected")

    return UploadOut(
        files=processed,
        total_detected_items=total_detected,
        updated_cost=updated_cost,
        message=f"{len(processed)} file(s) uploaded",
    )


@router.get("/{quote_id}/files", response_model=MediaListOut)
async def list_media(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
):
    quote = await get_quote_or_404(db, quote_id)
    files = await load_media_files(db, quote.id)
    return MediaListOut(quote_id=quote.id, files=build_media_response_list(files))


@router.get("/file/{filename}")
async def get_media_file(filename: str):
    path = safe_upload_path(filename)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(path, headers={"Cache-Control": "public, max-age=86400"})


@router.delete("/file/{filename}")
async def delete_media_file(
    filename: str,
    db: AsyncSession = Depends(get_db),
):
    path = safe_upload_path(filename)

    res = await db.execute(select(MediaFile).where(MediaFile.filename == filename))
    record = res.scalars().first()
    if record is None and not path.is_file():
        check_not_found(record, "File")

    if record is not None:
        await db.delete(record)
        await db.commit()
    path.unlink(missing_ok=True)

    return {"deleted": True, "filename": filename}

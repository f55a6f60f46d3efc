"""REST endpoints for health, uploads, frames and export."""
import asyncio
from typing import Optional
from fastapi import APIRouter, File, Form, HTTPException, Query, Response, UploadFile
from pydantic import BaseModel
from podcast_animator.export.exporter import FrameExporter
from podcast_animator.services.podcast_service import create_podcast_session, create_podcast_session_from_url
from podcast_animator.services.session_store import PodcastSession, session_store
from podcast_animator.core.errors import DecodeFailure, ExportFailure, InvalidInput
from podcast_animator.core.logging import logger

router = APIRouter()


class PodcastUrlRequest(BaseModel):
    """Remote recording to download and diarize."""
    url: str
    handle1: str
    handle2: str


async def _require_session(session_id: str) -> PodcastSession:
    session = await session_store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return session


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    
    Returns:
        Status, version and live session count
    """
    return {
        "status": "ok",
        "version": "0.1.0",
        "sessions": await session_store.count(),
    }


@router.post("/podcasts")
async def upload_podcast(
    file: UploadFile = File(...),
    handle1: str = Form(...),
    handle2: str = Form(...),
):
    """
    Upload a two-speaker recording and diarize it.
    
    Returns:
        Session summary with the canonical speaker timeline
    """
    if not handle1.strip("@ ") or not handle2.strip("@ "):
        raise HTTPException(status_code=422, detail="Both speaker handles are required")
    
    data = await file.read()
    try:
        session = await create_podcast_session(data, file.filename or "", [handle1, handle2])
    except DecodeFailure as e:
        logger.warning(f"Could not decode {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=f"Could not decode audio: {e}")
    except InvalidInput as e:
        logger.warning(f"Rejected {file.filename}: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    
    return session.summary()


@router.post("/podcasts/url")
async def podcast_from_url(request: PodcastUrlRequest):
    """
    Download a remote video's audio track and diarize it.
    
    Returns:
        Session summary with the canonical speaker timeline
    """
    if not request.handle1.strip("@ ") or not request.handle2.strip("@ "):
        raise HTTPException(status_code=422, detail="Both speaker handles are required")
    
    try:
        session = await create_podcast_session_from_url(request.url, [request.handle1, request.handle2])
    except DecodeFailure as e:
        logger.warning(f"Could not process {request.url}: {e}")
        raise HTTPException(status_code=400, detail=f"Could not decode audio: {e}")
    except InvalidInput as e:
        logger.warning(f"Rejected {request.url}: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    
    return session.summary()


@router.get("/podcasts/{session_id}")
async def get_podcast(session_id: str):
    """Session summary and current playback snapshot."""
    session = await _require_session(session_id)
    return session.summary()


@router.get("/podcasts/{session_id}/frame")
async def get_frame(session_id: str, t: float = Query(0.0, ge=0.0)):
    """
    Render the scene at a position.
    
    Args:
        session_id: Session identifier
        t: Position in seconds
        
    Returns:
        PNG image
    """
    session = await _require_session(session_id)
    render_session = session.render_session
    position = min(t, render_session.duration)
    
    try:
        png = await asyncio.to_thread(
            render_session.frame_png, position, None, render_session.new_renderer()
        )
    except Exception as e:
        logger.error(f"Frame render failed for {session_id} at {position:.2f}s: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to render frame")
    
    return Response(content=png, media_type="image/png")


@router.post("/podcasts/{session_id}/export")
async def export_podcast(session_id: str, fps: Optional[int] = Query(None, ge=1, le=60)):
    """
    Export the animation.
    
    Returns:
        MP4 video when a video backend is available, otherwise a PNG still
    """
    session = await _require_session(session_id)
    exporter = FrameExporter(fps=fps)
    position = session.playback.position
    
    try:
        artifact = await asyncio.to_thread(exporter.export, session.render_session, session.buffer, position)
    except ExportFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    
    return Response(
        content=artifact.data,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.filename}"',
            "X-Frame-Count": str(artifact.frame_count),
        },
    )


@router.delete("/podcasts/{session_id}")
async def delete_podcast(session_id: str):
    """Stop playback and drop the session."""
    if not await session_store.remove(session_id):
        raise HTTPException(status_code=404, detail=f"Session {session_id} not found")
    return {"session_id": session_id, "removed": True}

"""FastAPI application entrypoint."""
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from podcast_animator.api import rest_podcasts, ws_playback
from podcast_animator.core.config import settings
from podcast_animator.core.logging import setup_logging

# Setup logging
setup_logging()

# Create FastAPI app
app = FastAPI(
    title="Podcast Animator Backend",
    description="Two-speaker diarization and animated speaker visualization",
    version="0.1.0"
)

# CORS middleware (allow frontend connections)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify allowed origins
    allow_credentials=False,  # Must be False when using "*" origins
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(rest_podcasts.router)


# WebSocket endpoint
@app.websocket("/ws/podcasts/{session_id}/playback")
async def websocket_endpoint(websocket: WebSocket, session_id: str):
    """WebSocket endpoint for playback control and tick streaming."""
    await ws_playback.websocket_playback_endpoint(websocket, session_id)


@app.on_event("startup")
async def startup_event():
    """Initialize on startup."""
    import os
    import shutil
    from podcast_animator.core.logging import logger
    
    port = os.getenv("PORT", settings.port)
    logger.info(f"Starting Podcast Animator Backend on {settings.host}:{port}")
    logger.info(
        f"Diarization: bias={settings.consistency_bias}, threshold={settings.activity_threshold}, "
        f"weights=({settings.volume_weight}, {settings.energy_weight})"
    )
    
    if settings.enable_video_export and shutil.which(settings.ffmpeg_binary) is None:
        logger.warning(f"⚠ {settings.ffmpeg_binary} not found, exports will be PNG snapshots")
    if not settings.x_bearer_token:
        logger.info("X_BEARER_TOKEN not set, avatars will use placeholders")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    from podcast_animator.core.logging import logger
    from podcast_animator.services.session_store import session_store
    
    await session_store.clear()
    logger.info("Shutting down Podcast Animator Backend")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "podcast_animator.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )

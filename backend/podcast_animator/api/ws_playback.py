"""WebSocket endpoint driving a playback session and streaming its ticks."""
import asyncio
import io
import json
import numpy as np
from fastapi import WebSocket, WebSocketDisconnect
from matplotlib import image as mpimg
from podcast_animator.render.models import PlaybackSnapshot
from podcast_animator.services.session_store import session_store
from podcast_animator.core.logging import logger

ACTIONS = ("play", "seek", "stop", "status")


def frame_to_png(frame: np.ndarray) -> bytes:
    """Encode RGBA pixels as PNG."""
    out = io.BytesIO()
    mpimg.imsave(out, frame, format="png")
    return out.getvalue()


async def websocket_playback_endpoint(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket handler for /ws/podcasts/{session_id}/playback.
    
    Protocol:
    - Client sends JSON commands: {"action": "play"|"seek"|"stop"|"status", "offset": seconds}
      and optionally "frames": true to also receive rendered frames
    - Server sends a JSON snapshot on every tick and after every command
      (command replies carry the "action" they answer);
      with frames enabled each tick snapshot is followed by a binary PNG
    - The most recent connection drives the session; an older connection
      closing does not stop it
    """
    await websocket.accept()
    
    session = await session_store.get(session_id)
    if session is None:
        await websocket.send_json({"error": f"Session {session_id} not found"})
        await websocket.close(code=4404)
        return
    
    playback = session.playback
    send_frames = False
    
    async def on_tick(snapshot: PlaybackSnapshot, frame: np.ndarray) -> None:
        await websocket.send_json(snapshot.to_dict())
        if send_frames and frame is not None:
            await websocket.send_bytes(await asyncio.to_thread(frame_to_png, frame))
    
    playback.on_tick = on_tick
    logger.info(f"Playback connection opened for {session_id}")
    
    try:
        while True:
            message = await websocket.receive_text()
            try:
                command = json.loads(message)
            except json.JSONDecodeError:
                await websocket.send_json({"error": "Invalid JSON command"})
                continue
            
            action = command.get("action")
            if action not in ACTIONS:
                await websocket.send_json({"error": f"Unknown action: {action}"})
                continue
            
            send_frames = bool(command.get("frames", send_frames))
            offset = command.get("offset")
            try:
                offset = None if offset is None else float(offset)
            except (TypeError, ValueError):
                await websocket.send_json({"error": f"Invalid offset: {offset}"})
                continue
            
            if action == "play":
                await playback.start(offset)
            elif action == "seek":
                await playback.seek(offset or 0.0)
            elif action == "stop":
                await playback.stop()
            
            status = playback.snapshot().to_dict()
            status["action"] = action
            if playback.last_error:
                status["error"] = playback.last_error
            await websocket.send_json(status)
    
    except WebSocketDisconnect:
        logger.info(f"Playback connection closed for {session_id}")
    except Exception as e:
        logger.error(f"Error in playback connection for {session_id}: {e}")
    finally:
        # A newer connection owns the session once it has replaced on_tick
        if playback.on_tick is on_tick:
            await playback.stop()
            playback.on_tick = None
            logger.info(f"Stopped playback for {session_id}")

"""Podcast session registry: one entry per uploaded recording."""
import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional
from podcast_animator.audio.models import DiarizationResult, WaveformBuffer
from podcast_animator.render.audio_output import SoundDeviceOutput
from podcast_animator.render.playback import PlaybackSession
from podcast_animator.render.session import RenderSession
from podcast_animator.core.config import settings
from podcast_animator.core.logging import logger


@dataclass
class PodcastSession:
    """Decoded audio, its timeline, and the render/playback state built on it."""
    session_id: str
    buffer: WaveformBuffer
    result: DiarizationResult
    render_session: RenderSession
    playback: PlaybackSession
    created_at: float = field(default_factory=time.time)
    
    def summary(self) -> dict:
        return {
            "session_id": self.session_id,
            "handles": self.render_session.handles,
            "avatar_refs": [slot.avatar_ref for slot in self.render_session.slots],
            "avatar_status": [avatar.status.value for avatar in self.render_session.avatars],
            "sample_rate": self.buffer.sample_rate,
            **self.result.to_dict(),
            "playback": self.playback.snapshot().to_dict(),
        }


class PodcastSessionStore:
    """Manages all live podcast sessions."""
    
    def __init__(self, max_sessions: Optional[int] = None):
        """Initialize the session store."""
        self._sessions: Dict[str, PodcastSession] = {}
        self._lock = asyncio.Lock()
        self.max_sessions = max_sessions or settings.max_sessions
    
    async def create(
        self,
        buffer: WaveformBuffer,
        result: DiarizationResult,
        render_session: RenderSession,
    ) -> PodcastSession:
        """Register a new session, evicting the oldest when full."""
        session = PodcastSession(
            session_id=f"pod-{uuid.uuid4().hex[:8]}",
            buffer=buffer,
            result=result,
            render_session=render_session,
            playback=PlaybackSession(
                render_session,
                audio_output=SoundDeviceOutput(buffer) if settings.local_playback else None,
            ),
        )
        async with self._lock:
            if len(self._sessions) >= self.max_sessions:
                oldest = min(self._sessions.values(), key=lambda s: s.created_at)
                await self._retire(oldest.session_id)
            self._sessions[session.session_id] = session
            logger.info(f"Created session {session.session_id} ({len(result.timeline)} segments)")
        return session
    
    async def get(self, session_id: str) -> Optional[PodcastSession]:
        """Get a session if it exists."""
        async with self._lock:
            return self._sessions.get(session_id)
    
    async def _retire(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.playback.close()
        logger.info(f"Removed session {session_id}")
        return True
    
    async def remove(self, session_id: str) -> bool:
        """Stop a session's playback and drop it."""
        async with self._lock:
            return await self._retire(session_id)
    
    async def clear(self) -> None:
        """Retire every session (on shutdown)."""
        async with self._lock:
            for session_id in list(self._sessions):
                await self._retire(session_id)
    
    async def count(self) -> int:
        """Get number of live sessions."""
        async with self._lock:
            return len(self._sessions)


# Global session store instance
session_store = PodcastSessionStore()

"""Upload-to-session workflow: decode, diarize, resolve avatars, register."""
import asyncio
from typing import Optional, Sequence
from podcast_animator.audio.ingestion import decode_audio_bytes
from podcast_animator.audio.pipeline import run_diarization
from podcast_animator.render.avatars import load_session_avatars
from podcast_animator.render.models import SpeakerSlot
from podcast_animator.render.session import RenderSession
from podcast_animator.services.media_download import download_audio
from podcast_animator.services.avatar_resolver import AvatarResolver, avatar_resolver, clean_handle
from podcast_animator.services.session_store import PodcastSession, PodcastSessionStore, session_store
from podcast_animator.core.logging import logger


async def create_podcast_session(
    data: bytes,
    filename: str,
    handles: Sequence[str],
    resolver: Optional[AvatarResolver] = None,
    store: Optional[PodcastSessionStore] = None,
) -> PodcastSession:
    """
    Build a playable session from an uploaded recording.
    
    Decoding and diarization run in a worker thread; avatar lookups and
    image loads run concurrently and never fail the upload.
    
    Args:
        data: Uploaded media bytes
        filename: Original filename
        handles: Two speaker handles, in slot order
        resolver: Avatar resolver (defaults to the global instance)
        store: Session store (defaults to the global instance)
        
    Returns:
        The registered session
        
    Raises:
        DecodeFailure: If the media cannot be decoded
        InvalidInput: If the audio is not usable two-channel audio
    """
    resolver = resolver or avatar_resolver
    store = store or session_store
    cleaned = [clean_handle(handle) for handle in handles]
    
    buffer = await asyncio.to_thread(decode_audio_bytes, data, filename)
    result = await asyncio.to_thread(run_diarization, buffer)
    
    avatar_refs = await resolver.resolve_all(cleaned)
    slots = [
        SpeakerSlot(index=i, handle=handle, avatar_ref=ref)
        for i, (handle, ref) in enumerate(zip(cleaned, avatar_refs))
    ]
    render_session = RenderSession(result.timeline, buffer.duration, slots)
    await load_session_avatars(render_session)
    
    session = await store.create(buffer, result, render_session)
    logger.info(f"Session {session.session_id} ready for @{cleaned[0]} and @{cleaned[1]}")
    return session


async def create_podcast_session_from_url(
    url: str,
    handles: Sequence[str],
    resolver: Optional[AvatarResolver] = None,
    store: Optional[PodcastSessionStore] = None,
) -> PodcastSession:
    """
    Build a playable session from a remote video's audio track.
    
    The download runs in a worker thread; the bytes then follow the upload path.
    
    Raises:
        InvalidInput: If the URL is not http(s) or the audio is unusable
        DecodeFailure: If the download or decode fails
    """
    data, filename = await asyncio.to_thread(download_audio, url)
    return await create_podcast_session(data, filename, handles, resolver=resolver, store=store)

"""Asynchronous avatar image loading with placeholder fallback."""
import asyncio
import io
from typing import Optional
import httpx
import numpy as np
from matplotlib import image as mpimg
from podcast_animator.render.models import AvatarStatus
from podcast_animator.render.session import RenderSession
from podcast_animator.core.config import settings
from podcast_animator.core.errors import AvatarUnavailable
from podcast_animator.core.logging import logger

PLACEHOLDER_PREFIX = "/placeholder.svg"


def placeholder_ref(handle: str) -> str:
    """Placeholder image reference for a handle."""
    return f"{PLACEHOLDER_PREFIX}?height=400&width=400&text={handle}"


def is_placeholder(ref: Optional[str]) -> bool:
    return not ref or ref.startswith(PLACEHOLDER_PREFIX)


async def load_avatar_image(ref: str, client: httpx.AsyncClient) -> np.ndarray:
    """
    Fetch and decode an avatar image.
    
    Args:
        ref: Absolute image URL
        client: HTTP client to fetch with
        
    Returns:
        Decoded pixels
        
    Raises:
        AvatarUnavailable: If the image cannot be fetched or decoded
    """
    try:
        response = await client.get(ref)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise AvatarUnavailable(f"Could not fetch avatar {ref}: {e}") from e
    
    try:
        return mpimg.imread(io.BytesIO(response.content))
    except Exception as e:
        raise AvatarUnavailable(f"Could not decode avatar {ref}: {e}") from e


async def _load_slot(session: RenderSession, index: int, client: httpx.AsyncClient) -> None:
    slot = session.slots[index]
    if is_placeholder(slot.avatar_ref):
        session.set_avatar(index, AvatarStatus.FAILED)
        return
    
    try:
        pixels = await load_avatar_image(slot.avatar_ref, client)
    except AvatarUnavailable as e:
        logger.warning(f"{e}, drawing placeholder for @{slot.handle}")
        session.set_avatar(index, AvatarStatus.FAILED)
        return
    
    session.set_avatar(index, AvatarStatus.LOADED, pixels)


async def load_session_avatars(session: RenderSession, client: Optional[httpx.AsyncClient] = None) -> None:
    """
    Load both avatar slots of a session independently.
    
    Failures are absorbed: the affected slot is marked FAILED and the
    renderer draws its placeholder.
    """
    if client is not None:
        await asyncio.gather(*(_load_slot(session, i, client) for i in range(len(session.slots))))
        return
    
    async with httpx.AsyncClient(timeout=settings.avatar_timeout_seconds, follow_redirects=True) as owned:
        await asyncio.gather(*(_load_slot(session, i, owned) for i in range(len(session.slots))))

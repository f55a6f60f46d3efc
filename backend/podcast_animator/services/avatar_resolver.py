"""Resolves speaker handles to avatar image references via the X API."""
import asyncio
from typing import List, Optional, Sequence
import httpx
from podcast_animator.render.avatars import placeholder_ref
from podcast_animator.core.config import settings
from podcast_animator.core.logging import logger


def clean_handle(handle: str) -> str:
    """Strip whitespace and a leading @ from a handle."""
    return handle.strip().lstrip("@").strip()


def original_size_url(url: str) -> str:
    """X serves 48px avatars with a _normal suffix; drop it for the full image."""
    return url.replace("_normal", "") if "_normal." in url else url


class AvatarResolver:
    """Looks up profile image URLs, falling back to placeholders."""
    
    def __init__(
        self,
        bearer_token: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.bearer_token = bearer_token if bearer_token is not None else settings.x_bearer_token
        self.api_url = api_url or settings.x_api_url
        self.timeout = timeout or settings.avatar_timeout_seconds
    
    async def resolve(self, handle: str, client: httpx.AsyncClient) -> str:
        """
        Resolve one handle to an image reference.
        
        Never raises: every failure returns the placeholder reference.
        
        Args:
            handle: Speaker handle, with or without @
            client: HTTP client to query with
            
        Returns:
            Image URL or placeholder reference
        """
        username = clean_handle(handle)
        fallback = placeholder_ref(username)
        
        if not self.bearer_token:
            logger.warning("X_BEARER_TOKEN is not set, using fallback avatar")
            return fallback
        
        try:
            response = await client.get(
                f"{self.api_url}{username}",
                params={"user.fields": "profile_image_url"},
                headers={"Authorization": f"Bearer {self.bearer_token}"},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Error fetching X user data for {username}: {e}")
            return fallback
        
        if response.status_code != 200:
            logger.warning(f"X API returned error for username {username}: {response.status_code}")
            return fallback
        
        try:
            data = response.json()
        except ValueError:
            logger.warning(f"X API returned invalid JSON for username {username}")
            return fallback
        
        user = data.get("data") if isinstance(data, dict) else None
        if not isinstance(user, dict) or not user.get("profile_image_url"):
            logger.warning(f"X API returned unexpected data format for username {username}")
            return fallback
        
        return original_size_url(user["profile_image_url"])
    
    async def resolve_all(self, handles: Sequence[str], client: Optional[httpx.AsyncClient] = None) -> List[str]:
        """Resolve every handle concurrently, preserving order."""
        if client is not None:
            return list(await asyncio.gather(*(self.resolve(h, client) for h in handles)))
        
        async with httpx.AsyncClient(timeout=self.timeout) as owned:
            return list(await asyncio.gather(*(self.resolve(h, owned) for h in handles)))


# Global avatar resolver instance
avatar_resolver = AvatarResolver()

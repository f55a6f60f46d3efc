"""Remote media acquisition: fetch the audio track of a video page with yt-dlp."""
import os
import tempfile
from typing import Tuple
import yt_dlp
from podcast_animator.core.config import settings
from podcast_animator.core.errors import DecodeFailure, InvalidInput
from podcast_animator.core.logging import logger


def validate_media_url(url: str) -> str:
    """
    Check that a media URL is an absolute http(s) URL.
    
    Raises:
        InvalidInput: If the URL is empty or uses another scheme
    """
    url = (url or "").strip()
    if not url.startswith(("http://", "https://")):
        raise InvalidInput(f"Expected an http(s) media URL, got {url!r}")
    return url


def download_audio(url: str) -> Tuple[bytes, str]:
    """
    Download the best audio stream of a remote video.
    
    Blocking; callers on the event loop run it in a worker thread.
    
    Args:
        url: Video page URL (YouTube or any site yt-dlp supports)
        
    Returns:
        Tuple of (media bytes, filename with the container extension)
        
    Raises:
        InvalidInput: If the URL is not an http(s) URL
        DecodeFailure: If the download fails or exceeds the upload limit
    """
    url = validate_media_url(url)
    max_bytes = settings.max_upload_mb * 1024 * 1024
    
    with tempfile.TemporaryDirectory(prefix="podcast-download-") as temp_dir:
        options = {
            "format": "bestaudio/best",
            "outtmpl": os.path.join(temp_dir, "media.%(ext)s"),
            "noplaylist": True,
            "quiet": True,
            "no_warnings": True,
            "max_filesize": max_bytes,
            "socket_timeout": settings.download_timeout_seconds,
        }
        try:
            with yt_dlp.YoutubeDL(options) as ydl:
                info = ydl.extract_info(url, download=True)
                path = ydl.prepare_filename(info)
        except yt_dlp.utils.DownloadError as e:
            logger.warning(f"Download failed for {url}: {e}")
            raise DecodeFailure(f"Could not download media: {e}") from e
        
        # yt-dlp skips files over max_filesize without raising
        if not os.path.exists(path):
            raise DecodeFailure(f"No media was downloaded from {url}")
        
        with open(path, "rb") as f:
            data = f.read()
    
    logger.info(f"Downloaded {len(data)} bytes of media from {url}")
    return data, os.path.basename(path)

"""Configuration settings for the Podcast Animator Backend."""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    
    # Decoding settings
    default_sample_rate: int = 44100  # Hz, target rate when transcoding with ffmpeg
    ffmpeg_binary: str = "ffmpeg"
    max_upload_mb: int = 200
    download_timeout_seconds: float = 30.0  # Socket timeout for remote media downloads
    
    # Diarization settings (defaults match the reference heuristic)
    consistency_bias: float = 0.1  # Added to the previous speaker's score
    activity_threshold: float = 0.1  # Blended score above which a channel counts as active
    volume_weight: float = 0.7
    energy_weight: float = 0.3
    
    # Rendering settings
    canvas_width: int = 800
    canvas_height: int = 450
    avatar_size: int = 80
    pulse_period_seconds: float = 2.0
    pulse_wave_count: int = 3
    tick_rate: int = 30  # Playback ticks per second
    local_playback: bool = False  # Play session audio on this machine's speakers (needs sounddevice)
    
    # Export settings
    export_fps: int = 30
    enable_video_export: bool = True  # Falls back to a PNG snapshot when ffmpeg is missing
    
    # Avatar resolution (X API)
    x_bearer_token: Optional[str] = None
    x_api_url: str = "https://api.twitter.com/2/users/by/username/"
    avatar_timeout_seconds: float = 10.0
    
    # Session settings
    max_sessions: int = 10
    
    # Logging
    log_level: str = "INFO"
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()

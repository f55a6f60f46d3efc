"""Rendering and playback data models."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional
import numpy as np


class AvatarStatus(str, Enum):
    """Load state of one avatar slot."""
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class PlaybackState(str, Enum):
    """Playback clock state."""
    STOPPED = "stopped"
    PLAYING = "playing"


@dataclass(frozen=True)
class SpeakerSlot:
    """One of the two fixed speaker identities."""
    index: int
    handle: str
    avatar_ref: Optional[str] = None  # URL-like reference, or None when no image exists


@dataclass
class AvatarState:
    """Avatar image state owned by a render session."""
    status: AvatarStatus = AvatarStatus.LOADING
    image: Optional[np.ndarray] = None  # RGB(A) pixels when LOADED
    
    @property
    def drawable(self) -> bool:
        return self.status == AvatarStatus.LOADED and self.image is not None


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Read-only view of a playback session, polled per tick."""
    position: float
    duration: float
    state: PlaybackState
    active_speaker: Optional[int]
    
    def to_dict(self) -> dict:
        return {
            "position": round(self.position, 3),
            "duration": self.duration,
            "state": self.state.value,
            "active_speaker": self.active_speaker,
        }

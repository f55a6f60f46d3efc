"""Audio data models and structures."""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import numpy as np
from podcast_animator.core.errors import InvalidInput

SPEAKER_COUNT = 2

SpeakerTimeline = Tuple[int, ...]


@dataclass(frozen=True, eq=False)
class WaveformBuffer:
    """Decoded two-channel waveform, immutable once constructed."""
    channels: np.ndarray  # float32 samples in [-1.0, 1.0], shape (2, n)
    sample_rate: int
    
    def __post_init__(self):
        """Validate and freeze buffer data."""
        data = np.asarray(self.channels, dtype=np.float32)
        if data.ndim != 2 or data.shape[0] == 0:
            raise InvalidInput(f"Expected a (channels, samples) array, got shape {data.shape}")
        if data.shape[0] != SPEAKER_COUNT:
            raise InvalidInput(f"Expected {SPEAKER_COUNT} channels, got {data.shape[0]}")
        if data.shape[1] == 0:
            raise InvalidInput("Buffer has zero length")
        if int(self.sample_rate) <= 0:
            raise InvalidInput(f"Sample rate must be positive, got {self.sample_rate}")
        
        data = np.clip(data, -1.0, 1.0)
        data.setflags(write=False)
        object.__setattr__(self, "channels", data)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))
    
    @property
    def channel_count(self) -> int:
        return self.channels.shape[0]
    
    @property
    def length(self) -> int:
        """Number of samples per channel."""
        return self.channels.shape[1]
    
    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.length / self.sample_rate


@dataclass(frozen=True)
class Segment:
    """Half-open sample range [start, end) covering second `index`."""
    index: int
    start: int
    end: int
    
    @property
    def size(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class SegmentScore:
    """Activity measures of one channel over one segment."""
    volume: float  # mean absolute sample value
    energy: float  # mean squared sample value
    
    def blended(self, volume_weight: float, energy_weight: float) -> float:
        """Weighted combination of volume and energy."""
        return volume_weight * self.volume + energy_weight * self.energy


@dataclass
class DiarizationState:
    """Running statistics carried forward strictly in segment order."""
    last_speaker: Optional[int] = None
    first_speaker: Optional[int] = None
    total_time: List[int] = field(default_factory=lambda: [0] * SPEAKER_COUNT)
    consecutive_count: int = 0
    longest_run: int = 0


@dataclass(frozen=True)
class DiarizationResult:
    """Canonical speaker timeline plus the statistics that produced it."""
    timeline: SpeakerTimeline
    first_speaker: Optional[int]  # after normalization: 0, or None for silent recordings
    total_time: Tuple[int, int]  # seconds per canonical speaker
    longest_run: int
    duration: float
    
    def to_dict(self) -> dict:
        return {
            "timeline": list(self.timeline),
            "first_speaker": self.first_speaker,
            "total_time": list(self.total_time),
            "longest_run": self.longest_run,
            "duration": self.duration,
        }

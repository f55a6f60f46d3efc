"""Audio sources that a playback session starts and stops."""
from abc import ABC, abstractmethod
from typing import Optional
from podcast_animator.audio.models import WaveformBuffer
from podcast_animator.core.logging import logger


class AudioOutput(ABC):
    """Plays a buffer from an offset. Only the playback session drives it."""
    
    @abstractmethod
    def start(self, offset: float) -> None:
        """Start playback at `offset` seconds."""
    
    @abstractmethod
    def stop(self) -> None:
        """Stop playback. Safe to call when already stopped."""


class NullAudioOutput(AudioOutput):
    """Silent output for headless sessions (the client plays the audio)."""
    
    def __init__(self):
        self.started_at: Optional[float] = None
    
    def start(self, offset: float) -> None:
        self.started_at = offset
    
    def stop(self) -> None:
        self.started_at = None


class SoundDeviceOutput(AudioOutput):
    """Local speaker output through sounddevice."""
    
    def __init__(self, buffer: WaveformBuffer):
        self.buffer = buffer
    
    def start(self, offset: float) -> None:
        import sounddevice as sd
        
        start_sample = max(0, int(offset * self.buffer.sample_rate))
        samples = self.buffer.channels[:, start_sample:].T
        if samples.shape[0] == 0:
            return
        sd.play(samples, samplerate=self.buffer.sample_rate)
        logger.debug(f"Started local playback at {offset:.2f}s")
    
    def stop(self) -> None:
        import sounddevice as sd
        
        sd.stop()

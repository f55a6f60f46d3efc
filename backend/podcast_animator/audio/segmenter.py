"""Slicing of a decoded waveform into whole-second segments."""
from typing import Iterator
from podcast_animator.audio.models import Segment, WaveformBuffer
from podcast_animator.core.errors import InvalidInput


class SegmentSequence:
    """
    Lazy, restartable sequence of one-second segments over a buffer.
    
    Segment i covers samples [i * sample_rate, (i + 1) * sample_rate).
    A trailing partial second is dropped, so the sequence has exactly
    floor(duration) segments.
    """
    
    def __init__(self, buffer: WaveformBuffer):
        """
        Initialize the sequence for a buffer.
        
        Args:
            buffer: Decoded waveform to segment
        
        Raises:
            InvalidInput: If the buffer has no channels or no samples
        """
        if buffer.channel_count == 0 or buffer.length == 0:
            raise InvalidInput("Cannot segment a buffer with no channels or no samples")
        self.buffer = buffer
        self.samples_per_segment = buffer.sample_rate
    
    def __len__(self) -> int:
        return self.buffer.length // self.samples_per_segment
    
    def __iter__(self) -> Iterator[Segment]:
        step = self.samples_per_segment
        for index in range(len(self)):
            yield Segment(index=index, start=index * step, end=(index + 1) * step)


def segment_buffer(buffer: WaveformBuffer) -> SegmentSequence:
    """Return the whole-second segments of a buffer."""
    return SegmentSequence(buffer)

"""Per-channel activity scoring of a segment."""
from typing import List
import numpy as np
from podcast_animator.audio.models import Segment, SegmentScore, WaveformBuffer


def score_samples(samples: np.ndarray) -> SegmentScore:
    """
    Compute volume and energy of a slice of samples.
    
    Args:
        samples: Float samples in [-1.0, 1.0]
        
    Returns:
        SegmentScore with mean absolute value and mean squared value
    """
    if samples.size == 0:
        return SegmentScore(volume=0.0, energy=0.0)
    
    values = samples.astype(np.float64)
    volume = np.mean(np.abs(values))
    energy = np.mean(values * values)
    return SegmentScore(volume=float(volume), energy=float(energy))


def score_segment(buffer: WaveformBuffer, segment: Segment) -> List[SegmentScore]:
    """Score every channel of the buffer over one segment."""
    return [
        score_samples(channel[segment.start:segment.end])
        for channel in buffer.channels
    ]

"""Canonical relabeling so the first active speaker is always 0."""
from typing import Iterable, Optional
from podcast_animator.audio.models import SpeakerTimeline


def flip_label(label: int) -> int:
    return 1 - label


def normalize_timeline(labels: Iterable[int], first_speaker: Optional[int]) -> SpeakerTimeline:
    """
    Relabel a finished timeline so the first speaker is reported as 0.
    
    Needs global knowledge of the first speaker, so it only runs once all
    segments have been classified. If no speaker was ever active the labels
    are returned unchanged.
    
    Args:
        labels: Raw labels in segment order
        first_speaker: Label of the first active segment, or None
        
    Returns:
        Immutable canonical timeline
    """
    if first_speaker == 1:
        return tuple(flip_label(label) for label in labels)
    return tuple(labels)


def canonical_first_speaker(first_speaker: Optional[int]) -> Optional[int]:
    """First speaker after normalization: 0 when known, else None."""
    return None if first_speaker is None else 0

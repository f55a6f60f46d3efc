"""Unit tests for canonical relabeling."""
from podcast_animator.audio.normalizer import canonical_first_speaker, normalize_timeline


def test_flip_when_first_speaker_is_one():
    """Test that every label is flipped when speaker 1 spoke first."""
    assert normalize_timeline([1, 0, 1, 1], first_speaker=1) == (0, 1, 0, 0)


def test_unchanged_when_first_speaker_is_zero():
    """Test that a timeline already starting with 0 is kept."""
    assert normalize_timeline([0, 1, 1], first_speaker=0) == (0, 1, 1)


def test_unchanged_when_first_speaker_unknown():
    """Test that silent recordings are left as classified."""
    assert normalize_timeline([1, 1], first_speaker=None) == (1, 1)


def test_normalizer_is_idempotent():
    """Test that normalizing a normalized timeline changes nothing."""
    once = normalize_timeline([1, 0, 0, 1], first_speaker=1)
    twice = normalize_timeline(once, canonical_first_speaker(1))
    
    assert twice == once


def test_empty_timeline():
    """Test that an empty timeline stays empty."""
    assert normalize_timeline([], first_speaker=1) == ()
    assert canonical_first_speaker(None) is None

"""Diarization pipeline orchestrator: segment, score, classify, normalize."""
import time
from typing import Optional
from podcast_animator.audio.models import DiarizationResult, WaveformBuffer
from podcast_animator.audio.segmenter import segment_buffer
from podcast_animator.audio.scoring import score_segment
from podcast_animator.audio.diarization import SpeakerDiarizer
from podcast_animator.audio.normalizer import normalize_timeline, canonical_first_speaker
from podcast_animator.core.logging import logger


def run_diarization(buffer: WaveformBuffer, diarizer: Optional[SpeakerDiarizer] = None) -> DiarizationResult:
    """
    Turn a decoded two-channel buffer into a canonical speaker timeline.
    
    The pipeline is a single linear pass over the immutable buffer:
    1. Segment into whole seconds (trailing partial second dropped)
    2. Score volume and energy per channel
    3. Classify each segment with consistency bias (in order)
    4. Relabel globally so the first active speaker is 0
    
    Args:
        buffer: Decoded waveform
        diarizer: Classifier to use (defaults to configured constants)
        
    Returns:
        DiarizationResult with timeline length == floor(duration)
        
    Raises:
        InvalidInput: If the buffer cannot be segmented. No partial
            timeline is produced.
    """
    start_time = time.time()
    diarizer = diarizer or SpeakerDiarizer()
    
    segments = segment_buffer(buffer)
    scores = (score_segment(buffer, segment) for segment in segments)
    labels, state = diarizer.run(scores)
    
    timeline = normalize_timeline(labels, state.first_speaker)
    total_time = tuple(state.total_time)
    if state.first_speaker == 1:
        total_time = (total_time[1], total_time[0])
    
    if state.first_speaker is None:
        logger.warning(f"No active segment above threshold {diarizer.activity_threshold}; labels left as classified")
    
    processing_time = (time.time() - start_time) * 1000
    logger.info(
        f"Diarized {len(timeline)} segments ({buffer.duration:.2f}s) in {processing_time:.1f}ms: "
        f"first_speaker={state.first_speaker}, totals={total_time}, longest_run={state.longest_run}"
    )
    
    return DiarizationResult(
        timeline=timeline,
        first_speaker=canonical_first_speaker(state.first_speaker),
        total_time=total_time,
        longest_run=state.longest_run,
        duration=buffer.duration,
    )

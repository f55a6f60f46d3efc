"""Two-channel speaker activity classification with consistency bias."""
from typing import Iterable, List, Optional, Sequence, Tuple
from podcast_animator.audio.models import DiarizationState, SegmentScore
from podcast_animator.core.config import settings


class SpeakerDiarizer:
    """
    Assigns one speaker label (0 or 1) per segment.
    
    Each channel is assumed to carry one speaker. The louder channel wins,
    with a fixed additive bias toward the previous segment's speaker so a
    single noisy second does not flip the label. This is an energy
    heuristic, not acoustic diarization.
    """
    
    def __init__(
        self,
        consistency_bias: Optional[float] = None,
        activity_threshold: Optional[float] = None,
        volume_weight: Optional[float] = None,
        energy_weight: Optional[float] = None,
    ):
        """
        Initialize the classifier.
        
        Args:
            consistency_bias: Score added to the previous speaker's channel
            activity_threshold: Raw blended score that marks a channel active
            volume_weight: Weight of mean absolute value in the blended score
            energy_weight: Weight of mean squared value in the blended score
        
        Unset arguments fall back to the configured defaults.
        """
        self.consistency_bias = settings.consistency_bias if consistency_bias is None else consistency_bias
        self.activity_threshold = settings.activity_threshold if activity_threshold is None else activity_threshold
        self.volume_weight = settings.volume_weight if volume_weight is None else volume_weight
        self.energy_weight = settings.energy_weight if energy_weight is None else energy_weight
    
    def blend(self, scores: Sequence[SegmentScore]) -> Tuple[float, float]:
        """Raw blended score for each of the two channels."""
        return (
            scores[0].blended(self.volume_weight, self.energy_weight),
            scores[1].blended(self.volume_weight, self.energy_weight),
        )
    
    def step(self, state: DiarizationState, scores: Sequence[SegmentScore]) -> int:
        """
        Classify one segment and advance the state.
        
        Must be called in strictly increasing segment order.
        
        Args:
            state: Accumulator carried from the previous segment (mutated)
            scores: Per-channel scores of this segment
            
        Returns:
            Speaker label for this segment
        """
        raw0, raw1 = self.blend(scores)
        
        adjusted0 = raw0 + (self.consistency_bias if state.last_speaker == 0 else 0.0)
        adjusted1 = raw1 + (self.consistency_bias if state.last_speaker == 1 else 0.0)
        
        # Channel 0 has to strictly win; ties go to channel 1
        label = 0 if adjusted0 > adjusted1 else 1
        
        if state.first_speaker is None and (raw0 > self.activity_threshold or raw1 > self.activity_threshold):
            state.first_speaker = label
        
        state.total_time[label] += 1
        if label == state.last_speaker:
            state.consecutive_count += 1
        else:
            state.consecutive_count = 1
        state.longest_run = max(state.longest_run, state.consecutive_count)
        state.last_speaker = label
        
        return label
    
    def run(self, segment_scores: Iterable[Sequence[SegmentScore]]) -> Tuple[List[int], DiarizationState]:
        """
        Fold the classifier over an ordered stream of segment scores.
        
        Args:
            segment_scores: Per-channel scores, one entry per segment, in order
            
        Returns:
            Raw (un-normalized) labels and the final state
        """
        state = DiarizationState()
        labels = [self.step(state, scores) for scores in segment_scores]
        return labels, state

"""Render session: timeline, speaker slots and avatar state for one podcast."""
import time
from typing import List, Optional, Sequence
import numpy as np
from podcast_animator.audio.models import SpeakerTimeline
from podcast_animator.render.models import AvatarState, AvatarStatus, SpeakerSlot
from podcast_animator.render.scene import SceneRenderer, active_speaker_at, pulse_phase
from podcast_animator.core.logging import logger


class RenderSession:
    """
    Everything needed to draw a frame of one podcast.
    
    The timeline and slots are fixed for the session. Avatar state is
    mutated only through set_avatar().
    """
    
    def __init__(
        self,
        timeline: SpeakerTimeline,
        duration: float,
        slots: Sequence[SpeakerSlot],
        renderer: Optional[SceneRenderer] = None,
        session_start: Optional[float] = None,
    ):
        if len(slots) != 2:
            raise ValueError(f"Expected 2 speaker slots, got {len(slots)}")
        self.timeline = tuple(timeline)
        self.duration = duration
        self.slots = list(slots)
        self.renderer = renderer or SceneRenderer()
        self.session_start = time.monotonic() if session_start is None else session_start
        self.avatars: List[AvatarState] = [
            AvatarState(status=AvatarStatus.LOADING if slot.avatar_ref else AvatarStatus.FAILED)
            for slot in self.slots
        ]
    
    @property
    def handles(self) -> List[str]:
        return [slot.handle for slot in self.slots]
    
    def set_avatar(self, index: int, status: AvatarStatus, image: Optional[np.ndarray] = None) -> None:
        """
        Transition the avatar state of one slot.
        
        Args:
            index: Slot index (0 or 1)
            status: New status
            image: Pixels, required when status is LOADED
        """
        if status == AvatarStatus.LOADED and image is None:
            logger.warning(f"Slot {index} marked loaded without an image, using placeholder")
            status = AvatarStatus.FAILED
        self.avatars[index] = AvatarState(status=status, image=image if status == AvatarStatus.LOADED else None)
        logger.debug(f"Avatar slot {index} ({self.slots[index].handle}) -> {status.value}")
    
    def active_speaker(self, position: float) -> Optional[int]:
        return active_speaker_at(self.timeline, position)
    
    def _frame_args(self, position: float, now: Optional[float]) -> dict:
        if now is None:
            now = self.session_start + position
        return {
            "position": position,
            "duration": self.duration,
            "slots": self.slots,
            "avatars": list(self.avatars),
            "active_speaker": self.active_speaker(position),
            "pulse_progress": pulse_phase(self.session_start, now),
        }
    
    def draw_frame(
        self,
        position: float,
        now: Optional[float] = None,
        renderer: Optional[SceneRenderer] = None,
    ) -> np.ndarray:
        """
        Draw the frame for a playback position.
        
        Args:
            position: Playback position in seconds
            now: Clock time driving the pulse; defaults to session_start + position,
                which makes the frame a pure function of position
            renderer: Alternate renderer (e.g. a dedicated export canvas)
            
        Returns:
            RGBA pixels
        """
        return (renderer or self.renderer).draw(**self._frame_args(position, now))
    
    def frame_png(
        self,
        position: float,
        now: Optional[float] = None,
        renderer: Optional[SceneRenderer] = None,
    ) -> bytes:
        """Same as draw_frame() but PNG-encoded."""
        return (renderer or self.renderer).render_png(**self._frame_args(position, now))
    
    def new_renderer(self) -> SceneRenderer:
        """Independent canvas with the same geometry."""
        r = self.renderer
        return SceneRenderer(width=r.width, height=r.height, avatar_size=r.avatar_size, wave_count=r.wave_count)

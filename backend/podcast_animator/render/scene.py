"""Off-screen drawing of the two-speaker scene."""
import io
import math
from typing import Optional, Sequence
import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import Circle, Rectangle
from podcast_animator.audio.models import SpeakerTimeline
from podcast_animator.render.models import AvatarState, SpeakerSlot
from podcast_animator.core.config import settings

BACKGROUND_COLOR = "#f9fafb"
TRACK_COLOR = "#e5e7eb"
ACCENT_COLOR = "#3b82f6"
TEXT_COLOR = "#111827"
PLACEHOLDER_TEXT_COLOR = "#6b7280"
FONT_FAMILY = "sans-serif"

DPI = 100


def pulse_phase(session_start: float, now: float, period: Optional[float] = None) -> float:
    """
    Free-running pulse progress in [0, 1).
    
    Args:
        session_start: Reference time of the render session (seconds)
        now: Current time on the same clock
        period: Length of one pulse cycle in seconds
        
    Returns:
        Fraction of the current cycle elapsed
    """
    if period is None:
        period = settings.pulse_period_seconds
    return ((now - session_start) % period) / period


def active_speaker_at(timeline: SpeakerTimeline, position: float) -> Optional[int]:
    """
    Look up the speaker for a playback position.
    
    The index is floor(position), clamped to the last segment so positions
    in the dropped trailing partial second still resolve.
    
    Returns:
        Speaker label, or None for an empty timeline or negative position
    """
    if not timeline or position < 0:
        return None
    index = min(int(math.floor(position)), len(timeline) - 1)
    return timeline[index]


def _px_to_pt(pixels: float) -> float:
    return pixels * 72.0 / DPI


class SceneRenderer:
    """Draws frames of the scene onto a fixed-size matplotlib canvas."""
    
    def __init__(
        self,
        width: Optional[int] = None,
        height: Optional[int] = None,
        avatar_size: Optional[int] = None,
        wave_count: Optional[int] = None,
    ):
        self.width = width or settings.canvas_width
        self.height = height or settings.canvas_height
        self.avatar_size = avatar_size or settings.avatar_size
        self.wave_count = wave_count or settings.pulse_wave_count
        
        self.figure = Figure(figsize=(self.width / DPI, self.height / DPI), dpi=DPI)
        self.canvas = FigureCanvasAgg(self.figure)
        self.axes = self.figure.add_axes([0, 0, 1, 1])
    
    def slot_center_x(self, index: int) -> float:
        return self.width * (index + 1) / 3
    
    @property
    def avatar_top(self) -> float:
        return self.height / 2 - self.avatar_size / 2 - 40
    
    def _reset_axes(self) -> None:
        ax = self.axes
        ax.clear()
        ax.set_axis_off()
        ax.set_xlim(0, self.width)
        ax.set_ylim(self.height, 0)  # canvas coordinates: y grows downward
    
    def _draw_timeline(self, position: float, duration: float) -> None:
        ax = self.axes
        ax.add_patch(Rectangle((0, self.height - 30), self.width, 2, color=TRACK_COLOR, linewidth=0))
        
        x = (position / duration) * self.width if duration > 0 else 0.0
        ax.add_patch(Rectangle((x, self.height - 35), 2, 10, color=ACCENT_COLOR, linewidth=0))
    
    def _draw_avatar(self, slot: SpeakerSlot, avatar: AvatarState) -> None:
        ax = self.axes
        size = self.avatar_size
        cx = self.slot_center_x(slot.index)
        top = self.avatar_top
        cy = top + size / 2
        
        if avatar.drawable:
            clip = Circle((cx, cy), size / 2, transform=ax.transData)
            ax.imshow(
                avatar.image,
                extent=(cx - size / 2, cx + size / 2, top + size, top),
                aspect="auto",
                clip_path=clip,
                interpolation="bilinear",
            )
        else:
            # Placeholder: filled circle labeled with the handle
            ax.add_patch(Circle((cx, cy), size / 2, color=TRACK_COLOR, linewidth=0))
            ax.text(
                cx, cy, f"@{slot.handle}",
                ha="center", va="center",
                fontsize=_px_to_pt(size / 4),
                family=FONT_FAMILY,
                color=PLACEHOLDER_TEXT_COLOR,
            )
        
        ax.text(
            cx, top + size + 25, f"@{slot.handle}",
            ha="center", va="baseline",
            fontsize=_px_to_pt(16),
            family=FONT_FAMILY,
            color=TEXT_COLOR,
        )
    
    def _draw_highlight(self, speaker: int, pulse_progress: float) -> None:
        ax = self.axes
        cx = self.slot_center_x(speaker)
        cy = self.avatar_top + self.avatar_size / 2
        min_radius = self.avatar_size / 2 + 10
        max_radius = self.avatar_size / 2 + 30
        
        ax.add_patch(Circle((cx, cy), min_radius, fill=False, edgecolor=ACCENT_COLOR, linewidth=_px_to_pt(4)))
        
        for i in range(self.wave_count):
            wave_progress = (pulse_progress + i / self.wave_count) % 1
            radius = min_radius + (max_radius - min_radius) * wave_progress
            ax.add_patch(Circle(
                (cx, cy), radius,
                fill=False,
                edgecolor=ACCENT_COLOR,
                alpha=1 - wave_progress,
                linewidth=_px_to_pt(2),
            ))
    
    def compose(
        self,
        position: float,
        duration: float,
        slots: Sequence[SpeakerSlot],
        avatars: Sequence[AvatarState],
        active_speaker: Optional[int],
        pulse_progress: float,
    ) -> None:
        """
        Lay out one frame on the figure.
        
        Args:
            position: Playback position in seconds
            duration: Total duration in seconds
            slots: The two speaker slots
            avatars: Avatar state per slot
            active_speaker: Highlighted slot, or None
            pulse_progress: Pulse phase in [0, 1)
        """
        self._reset_axes()
        self.figure.set_facecolor(BACKGROUND_COLOR)
        self.axes.add_patch(Rectangle((0, 0), self.width, self.height, color=BACKGROUND_COLOR, linewidth=0))
        
        self._draw_timeline(position, duration)
        for slot, avatar in zip(slots, avatars):
            self._draw_avatar(slot, avatar)
        if active_speaker is not None:
            self._draw_highlight(active_speaker, pulse_progress)
    
    def draw(self, *args, **kwargs) -> np.ndarray:
        """Compose a frame and return its RGBA pixels, shape (height, width, 4)."""
        self.compose(*args, **kwargs)
        self.canvas.draw()
        return np.asarray(self.canvas.buffer_rgba()).copy()
    
    def render_png(self, *args, **kwargs) -> bytes:
        """Compose a frame and return it encoded as PNG."""
        self.compose(*args, **kwargs)
        out = io.BytesIO()
        self.canvas.print_png(out)
        return out.getvalue()

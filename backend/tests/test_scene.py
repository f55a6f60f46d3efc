"""Unit tests for scene drawing and speaker lookup."""
import pytest
import numpy as np
from podcast_animator.render.models import AvatarState, AvatarStatus, SpeakerSlot
from podcast_animator.render.scene import SceneRenderer, active_speaker_at, pulse_phase
from podcast_animator.render.session import RenderSession

SLOTS = [SpeakerSlot(0, "alice"), SpeakerSlot(1, "bob")]


def test_lookup_clamps_to_last_segment():
    """Test that 9.99s into a 10s recording resolves to index 9."""
    timeline = (0, 0, 0, 0, 0, 0, 0, 0, 0, 1)
    
    assert active_speaker_at(timeline, 9.99) == 1
    assert active_speaker_at(timeline, 10.4) == 1
    assert active_speaker_at(timeline, 8.5) == 0


def test_lookup_without_timeline():
    """Test that empty timelines and negative positions have no speaker."""
    assert active_speaker_at((), 1.0) is None
    assert active_speaker_at((0, 1), -0.5) is None


def test_pulse_phase_is_periodic():
    """Test that the pulse phase is a pure function of elapsed time."""
    assert pulse_phase(100.0, 100.0, period=2.0) == 0.0
    assert pulse_phase(100.0, 101.0, period=2.0) == pytest.approx(0.5)
    assert pulse_phase(100.0, 103.5, period=2.0) == pytest.approx(0.75)


def test_draw_returns_canvas_sized_rgba():
    """Test frame geometry and background color."""
    renderer = SceneRenderer(width=800, height=450)
    avatars = [AvatarState(AvatarStatus.FAILED), AvatarState(AvatarStatus.LOADING)]
    
    frame = renderer.draw(0.0, 10.0, SLOTS, avatars, None, 0.0)
    
    assert frame.shape == (450, 800, 4)
    assert tuple(frame[5, 5, :3]) == (249, 250, 251)


def test_highlight_changes_frame():
    """Test that the active speaker ring is drawn."""
    renderer = SceneRenderer()
    avatars = [AvatarState(AvatarStatus.FAILED), AvatarState(AvatarStatus.FAILED)]
    
    idle = renderer.draw(1.0, 10.0, SLOTS, avatars, None, 0.0)
    speaking = renderer.draw(1.0, 10.0, SLOTS, avatars, 0, 0.0)
    other = renderer.draw(1.0, 10.0, SLOTS, avatars, 1, 0.0)
    
    assert not np.array_equal(idle, speaking)
    assert not np.array_equal(speaking, other)


def test_loaded_avatar_replaces_placeholder():
    """Test that a loaded image is drawn instead of the placeholder."""
    renderer = SceneRenderer()
    image = np.zeros((40, 40, 3), dtype=np.uint8)
    image[..., 0] = 255
    placeholder = [AvatarState(AvatarStatus.FAILED), AvatarState(AvatarStatus.FAILED)]
    loaded = [AvatarState(AvatarStatus.LOADED, image), AvatarState(AvatarStatus.FAILED)]
    
    a = renderer.draw(0.0, 10.0, SLOTS, placeholder, None, 0.0)
    b = renderer.draw(0.0, 10.0, SLOTS, loaded, None, 0.0)
    
    assert not np.array_equal(a, b)


def test_render_session_frames_are_deterministic():
    """Test that a frame depends only on the position."""
    session = RenderSession((0, 1, 0), 3.0, SLOTS, session_start=0.0)
    
    first = session.draw_frame(1.5)
    second = session.draw_frame(1.5)
    
    assert np.array_equal(first, second)
    assert session.frame_png(1.5)[:8] == b"\x89PNG\r\n\x1a\n"


def test_set_avatar_without_image_falls_back():
    """Test that a LOADED transition without pixels becomes FAILED."""
    session = RenderSession((0,), 1.0, [SpeakerSlot(0, "a", "http://x/a.png"), SpeakerSlot(1, "b")])
    
    assert session.avatars[0].status == AvatarStatus.LOADING
    assert session.avatars[1].status == AvatarStatus.FAILED
    
    session.set_avatar(0, AvatarStatus.LOADED, None)
    assert session.avatars[0].status == AvatarStatus.FAILED
    assert not session.avatars[0].drawable

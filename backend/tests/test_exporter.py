"""Unit tests for the frame exporter."""
import subprocess
import tempfile
import pytest
import numpy as np
from podcast_animator.audio.models import WaveformBuffer
from podcast_animator.export.exporter import FrameExporter, export_filename, frame_schedule
from podcast_animator.render.models import SpeakerSlot
from podcast_animator.render.scene import SceneRenderer
from podcast_animator.render.session import RenderSession
from podcast_animator.core.errors import ExportFailure


def make_session():
    buffer = WaveformBuffer(channels=np.full((2, 200), 0.2, dtype=np.float32), sample_rate=100)
    render_session = RenderSession(
        (0, 1),
        buffer.duration,
        [SpeakerSlot(0, "alice"), SpeakerSlot(1, "bob")],
        renderer=SceneRenderer(width=160, height=90, avatar_size=20),
        session_start=0.0,
    )
    return render_session, buffer


def test_export_filename():
    """Test the deterministic download name."""
    assert export_filename(["alice", "bob"], "mp4") == "podcast-animation-alice-bob.mp4"


def test_frame_schedule():
    """Test floor(fps * duration) frames at i / fps."""
    assert len(frame_schedule(10.0, 30)) == 300
    assert frame_schedule(2.5, 2) == [0.0, 0.5, 1.0, 1.5, 2.0]
    assert frame_schedule(0.2, 2) == []


def test_snapshot_export_without_video_backend():
    """Test that a PNG still is exported when video is disabled."""
    render_session, buffer = make_session()
    
    artifact = FrameExporter(enable_video=False).export(render_session, buffer, position=1.2)
    
    assert artifact.media_type == "image/png"
    assert artifact.filename == "podcast-animation-alice-bob.png"
    assert artifact.frame_count == 1
    assert artifact.data[:8] == b"\x89PNG\r\n\x1a\n"


def test_missing_ffmpeg_falls_back_to_snapshot():
    """Test that a missing ffmpeg binary is treated as no video backend."""
    render_session, buffer = make_session()
    exporter = FrameExporter(enable_video=True, ffmpeg_binary="definitely-not-ffmpeg-binary")
    
    assert not exporter.video_available()
    assert exporter.export(render_session, buffer).media_type == "image/png"


def test_render_error_becomes_export_failure(monkeypatch):
    """Test that drawing errors surface as ExportFailure."""
    render_session, buffer = make_session()
    
    def broken(*args, **kwargs):
        raise RuntimeError("canvas gone")
    
    monkeypatch.setattr(render_session, "frame_png", broken)
    
    with pytest.raises(ExportFailure):
        FrameExporter(enable_video=False).export(render_session, buffer)


def test_failed_mux_leaves_nothing_behind(monkeypatch, tmp_path):
    """Test that a failed video export raises and removes its frames."""
    render_session, buffer = make_session()
    calls = []
    
    def fake_run(cmd, **kwargs):
        calls.append(cmd)
        return subprocess.CompletedProcess(cmd, returncode=1, stdout="", stderr="encoder missing")
    
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
    monkeypatch.setattr("podcast_animator.export.exporter.shutil.which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr("podcast_animator.export.exporter.subprocess.run", fake_run)
    exporter = FrameExporter(fps=2, enable_video=True)
    
    with pytest.raises(ExportFailure):
        exporter.export(render_session, buffer)
    
    assert len(calls) == 1
    assert "-framerate" in calls[0]
    assert list(tmp_path.iterdir()) == []

"""Frame export: PNG snapshot or frame sequence muxed with the audio."""
import math
import os
import shutil
import subprocess
import tempfile
import time
import wave
from dataclasses import dataclass
from typing import Optional, Sequence
import numpy as np
from matplotlib import image as mpimg
from podcast_animator.audio.models import WaveformBuffer
from podcast_animator.render.session import RenderSession
from podcast_animator.core.config import settings
from podcast_animator.core.errors import ExportFailure
from podcast_animator.core.logging import logger


@dataclass(frozen=True)
class ExportArtifact:
    """A finished, downloadable export."""
    data: bytes
    filename: str
    media_type: str
    frame_count: int


def export_filename(handles: Sequence[str], extension: str) -> str:
    """Deterministic download name, e.g. podcast-animation-alice-bob.mp4."""
    return f"podcast-animation-{'-'.join(handles)}.{extension}"


def frame_schedule(duration: float, fps: int) -> list[float]:
    """Timestamps of every exported frame: i / fps for i < floor(fps * duration)."""
    return [i / fps for i in range(int(math.floor(fps * duration)))]


def write_wav(path: str, buffer: WaveformBuffer) -> None:
    """Write the buffer as 16-bit PCM stereo WAV."""
    pcm = (np.clip(buffer.channels, -1.0, 1.0) * 32767.0).astype(np.int16)
    with wave.open(path, "wb") as wav_file:
        wav_file.setnchannels(buffer.channel_count)
        wav_file.setsampwidth(2)
        wav_file.setframerate(buffer.sample_rate)
        wav_file.writeframes(pcm.T.tobytes())


class FrameExporter:
    """
    Turns a render session into a downloadable artifact.
    
    With ffmpeg available every scheduled frame is drawn at a synthetic,
    monotonically increasing position (no audio, no early stop) and muxed
    with the original audio into MP4. Without it, the frame at the current
    position is captured as PNG.
    """
    
    def __init__(
        self,
        fps: Optional[int] = None,
        ffmpeg_binary: Optional[str] = None,
        enable_video: Optional[bool] = None,
    ):
        self.fps = fps or settings.export_fps
        self.ffmpeg_binary = ffmpeg_binary or settings.ffmpeg_binary
        self.enable_video = settings.enable_video_export if enable_video is None else enable_video
    
    def video_available(self) -> bool:
        """True when a time-series backend can be used."""
        return self.enable_video and shutil.which(self.ffmpeg_binary) is not None
    
    def export(
        self,
        render_session: RenderSession,
        buffer: WaveformBuffer,
        position: float = 0.0,
    ) -> ExportArtifact:
        """
        Produce the artifact for a session.
        
        Args:
            render_session: Timeline, slots and avatars to draw
            buffer: Original audio, muxed into video exports
            position: Position of the snapshot when exporting a still image
            
        Returns:
            ExportArtifact
            
        Raises:
            ExportFailure: If the artifact could not be produced. Nothing
                partial is returned or left on disk.
        """
        try:
            if self.video_available():
                return self._export_video(render_session, buffer)
            logger.info("No video backend available, exporting a still frame")
            return self.export_snapshot(render_session, position)
        except ExportFailure:
            raise
        except Exception as e:
            logger.error(f"Export failed: {e}", exc_info=True)
            raise ExportFailure(f"Failed to export animation: {e}") from e
    
    def export_snapshot(self, render_session: RenderSession, position: float = 0.0) -> ExportArtifact:
        """Capture one frame as PNG."""
        renderer = render_session.new_renderer()
        data = render_session.frame_png(position, renderer=renderer)
        if not data:
            raise ExportFailure("Failed to create image from canvas")
        return ExportArtifact(
            data=data,
            filename=export_filename(render_session.handles, "png"),
            media_type="image/png",
            frame_count=1,
        )
    
    def _export_video(self, render_session: RenderSession, buffer: WaveformBuffer) -> ExportArtifact:
        start_time = time.time()
        schedule = frame_schedule(render_session.duration, self.fps)
        if not schedule:
            raise ExportFailure("Audio is too short to export any frames")
        
        renderer = render_session.new_renderer()
        
        with tempfile.TemporaryDirectory(prefix="podcast-export-") as temp_dir:
            for i, position in enumerate(schedule):
                pixels = render_session.draw_frame(position, renderer=renderer)
                mpimg.imsave(os.path.join(temp_dir, f"frame_{i:06d}.png"), pixels)
            
            audio_path = os.path.join(temp_dir, "audio.wav")
            output_path = os.path.join(temp_dir, "output.mp4")
            write_wav(audio_path, buffer)
            
            cmd = [
                self.ffmpeg_binary, "-y",
                "-framerate", str(self.fps),
                "-i", os.path.join(temp_dir, "frame_%06d.png"),
                "-i", audio_path,
                "-c:v", "libx264",
                "-pix_fmt", "yuv420p",
                "-c:a", "aac",
                "-shortest",
                output_path,
            ]
            result = subprocess.run(cmd, capture_output=True, text=True)
            if result.returncode != 0:
                logger.error(f"Error muxing video: {result.stderr}")
                raise ExportFailure("ffmpeg failed to mux the frame sequence")
            
            with open(output_path, "rb") as f:
                data = f.read()
        
        logger.info(
            f"Exported {len(schedule)} frames at {self.fps} fps in {time.time() - start_time:.1f}s "
            f"({len(data)} bytes)"
        )
        return ExportArtifact(
            data=data,
            filename=export_filename(render_session.handles, "mp4"),
            media_type="video/mp4",
            frame_count=len(schedule),
        )

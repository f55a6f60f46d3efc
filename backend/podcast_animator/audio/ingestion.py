"""Helper functions for decoding uploaded media into a waveform buffer."""
import io
import os
import subprocess
import tempfile
from typing import Optional
import numpy as np
import soundfile
from podcast_animator.audio.models import WaveformBuffer
from podcast_animator.core.config import settings
from podcast_animator.core.errors import DecodeFailure
from podcast_animator.core.logging import logger


def is_wav(data: bytes) -> bool:
    """Check for a RIFF/WAVE header."""
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WAVE"


def validate_upload(data: bytes, max_bytes: Optional[int] = None) -> None:
    """
    Validate uploaded media before decoding.
    
    Args:
        data: Raw uploaded bytes
        max_bytes: Size limit (defaults to config value)
        
    Raises:
        DecodeFailure: If the upload is empty or too large
    """
    if max_bytes is None:
        max_bytes = settings.max_upload_mb * 1024 * 1024
    
    if len(data) == 0:
        raise DecodeFailure("Received empty upload")
    if len(data) > max_bytes:
        raise DecodeFailure(f"Upload size {len(data)} exceeds limit of {max_bytes} bytes")


def decode_wav_bytes(data: bytes) -> WaveformBuffer:
    """
    Decode WAV bytes into a float waveform buffer.
    
    Integer PCM of any width libsndfile supports (8/16/24/32-bit) and IEEE
    float WAV are both accepted.
    
    Args:
        data: Complete WAV file contents
        
    Returns:
        WaveformBuffer with samples scaled to [-1.0, 1.0]
        
    Raises:
        DecodeFailure: If the data is not a readable WAV file
        InvalidInput: If the decoded audio is not two-channel or is empty
    """
    try:
        samples, sample_rate = soundfile.read(io.BytesIO(data), dtype="float32", always_2d=True)
    except (soundfile.SoundFileError, RuntimeError) as e:
        raise DecodeFailure(f"Could not read WAV data: {e}") from e
    
    # (frames, channels) -> (channels, samples)
    channels = np.ascontiguousarray(samples.T)
    
    logger.debug(f"Decoded WAV: {channels.shape[0]} channels, {sample_rate} Hz, {channels.shape[1]} samples")
    return WaveformBuffer(channels=channels, sample_rate=sample_rate)


def transcode_to_wav(data: bytes, suffix: str = "", sample_rate: Optional[int] = None) -> bytes:
    """
    Transcode arbitrary media to 32-bit float WAV with ffmpeg.
    
    The channel layout is preserved; no up- or down-mixing is applied.
    
    Args:
        data: Raw media bytes
        suffix: Original file extension, used as a container hint
        sample_rate: Output sample rate (defaults to config value)
        
    Returns:
        WAV file contents
        
    Raises:
        DecodeFailure: If ffmpeg is missing or cannot decode the media
    """
    if sample_rate is None:
        sample_rate = settings.default_sample_rate
    
    with tempfile.TemporaryDirectory(prefix="podcast-decode-") as temp_dir:
        input_path = os.path.join(temp_dir, f"input{suffix}")
        output_path = os.path.join(temp_dir, "output.wav")
        with open(input_path, "wb") as f:
            f.write(data)
        
        cmd = [
            settings.ffmpeg_binary, "-y",
            "-i", input_path,
            "-vn",
            "-c:a", "pcm_f32le",
            "-ar", str(sample_rate),
            output_path,
        ]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise DecodeFailure(f"ffmpeg not available: {settings.ffmpeg_binary}") from e
        
        if result.returncode != 0:
            logger.error(f"Error converting media: {result.stderr}")
            raise DecodeFailure("ffmpeg could not decode the uploaded media")
        
        with open(output_path, "rb") as f:
            return f.read()


def decode_audio_bytes(data: bytes, filename: str = "") -> WaveformBuffer:
    """
    Decode uploaded media into a two-channel waveform buffer.
    
    WAV files are decoded in-process; anything else, and WAV variants that
    libsndfile cannot read, goes through ffmpeg.
    
    Args:
        data: Raw uploaded bytes
        filename: Original filename (for the container hint and logging)
        
    Returns:
        Decoded WaveformBuffer
    """
    validate_upload(data)
    name = filename or "upload"
    suffix = os.path.splitext(filename)[1]
    
    if is_wav(data):
        try:
            buffer = decode_wav_bytes(data)
        except DecodeFailure as e:
            logger.info(f"In-process WAV decode failed for {name} ({e}), transcoding with ffmpeg")
            buffer = decode_wav_bytes(transcode_to_wav(data, suffix=suffix or ".wav"))
    else:
        logger.info(f"Transcoding {name} with ffmpeg")
        buffer = decode_wav_bytes(transcode_to_wav(data, suffix=suffix))
    
    logger.info(f"Decoded {name}: {buffer.duration:.2f}s at {buffer.sample_rate} Hz")
    return buffer

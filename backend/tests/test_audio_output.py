"""Tests for the local speaker output and its wiring into sessions."""
import asyncio
import sys
import types
import numpy as np
from podcast_animator.audio.models import WaveformBuffer
from podcast_animator.audio.pipeline import run_diarization
from podcast_animator.render.audio_output import NullAudioOutput, SoundDeviceOutput
from podcast_animator.render.models import SpeakerSlot
from podcast_animator.render.session import RenderSession
from podcast_animator.services.session_store import PodcastSessionStore
from podcast_animator.core.config import settings


def fake_sounddevice():
    """Stand-in for the sounddevice module that records calls."""
    module = types.ModuleType("sounddevice")
    module.calls = []
    module.play = lambda samples, samplerate: module.calls.append(("play", samples, samplerate))
    module.stop = lambda: module.calls.append(("stop",))
    return module


def make_buffer() -> WaveformBuffer:
    channels = np.zeros((2, 300), dtype=np.float32)
    channels[0, :100] = 0.5
    channels[1, 100:] = 0.5
    return WaveformBuffer(channels=channels, sample_rate=100)


def test_sounddevice_output_plays_from_offset(monkeypatch):
    """Test that playback starts at the sample for the offset, frames first."""
    sd = fake_sounddevice()
    monkeypatch.setitem(sys.modules, "sounddevice", sd)
    output = SoundDeviceOutput(make_buffer())
    
    output.start(1.5)
    output.stop()
    
    action, samples, samplerate = sd.calls[0]
    assert action == "play"
    assert samplerate == 100
    assert samples.shape == (150, 2)
    assert sd.calls[1] == ("stop",)


def test_sounddevice_output_past_end_is_silent(monkeypatch):
    """Test that starting at the end plays nothing."""
    sd = fake_sounddevice()
    monkeypatch.setitem(sys.modules, "sounddevice", sd)
    
    SoundDeviceOutput(make_buffer()).start(3.0)
    
    assert sd.calls == []


def test_session_store_uses_local_output_when_enabled(monkeypatch):
    """Test that local playback routes session audio to sounddevice."""
    sd = fake_sounddevice()
    monkeypatch.setitem(sys.modules, "sounddevice", sd)
    buffer = make_buffer()
    result = run_diarization(buffer)
    
    def render_session():
        return RenderSession(result.timeline, buffer.duration, [SpeakerSlot(0, "alice"), SpeakerSlot(1, "bob")])
    
    async def scenario():
        store = PodcastSessionStore(max_sessions=4)
        
        monkeypatch.setattr(settings, "local_playback", False)
        headless = await store.create(buffer, result, render_session())
        assert isinstance(headless.playback.audio_output, NullAudioOutput)
        
        monkeypatch.setattr(settings, "local_playback", True)
        local = await store.create(buffer, result, render_session())
        assert isinstance(local.playback.audio_output, SoundDeviceOutput)
        
        local.playback.play(1.0)
        local.playback.pause()
        await store.clear()
    
    asyncio.run(scenario())
    
    assert sd.calls[0][0] == "play"
    assert sd.calls[0][1].shape == (200, 2)
    assert ("stop",) in sd.calls

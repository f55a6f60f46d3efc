"""Playback clock and tick loop synchronized to the audio source."""
import asyncio
import contextlib
import time
from typing import Awaitable, Callable, Optional
import numpy as np
from podcast_animator.render.audio_output import AudioOutput, NullAudioOutput
from podcast_animator.render.models import PlaybackSnapshot, PlaybackState
from podcast_animator.render.session import RenderSession
from podcast_animator.core.config import settings
from podcast_animator.core.logging import logger

TickCallback = Callable[[PlaybackSnapshot, np.ndarray], Awaitable[None]]


class PlaybackSession:
    """
    Stopped/Playing state machine phase-locked to a clock.
    
    While playing, position = clock() - origin + offset. Each tick computes
    the position, stops at the end of the audio, and otherwise draws one
    frame for the active speaker. Ticks come from run(), an asyncio task
    that draws in a worker thread; a seek retires the running task (waiting
    out an in-flight draw) before restarting it, so no two ticks of one
    session ever draw at the same time.
    """
    
    def __init__(
        self,
        render_session: RenderSession,
        audio_output: Optional[AudioOutput] = None,
        clock: Callable[[], float] = time.monotonic,
        tick_rate: Optional[int] = None,
        on_tick: Optional[TickCallback] = None,
    ):
        """
        Initialize a stopped session at position 0.
        
        Args:
            render_session: Timeline, slots and canvas to draw with
            audio_output: Audio source to start/stop (silent by default)
            clock: Monotonic clock in seconds
            tick_rate: Ticks per second for run()
            on_tick: Awaited after every drawn frame
        """
        self.render_session = render_session
        self.audio_output = audio_output or NullAudioOutput()
        self.clock = clock
        self.tick_rate = tick_rate or settings.tick_rate
        self.on_tick = on_tick
        
        self.state = PlaybackState.STOPPED
        self.last_frame: Optional[np.ndarray] = None
        self.last_error: Optional[str] = None
        self._position = 0.0
        self._offset = 0.0
        self._origin = 0.0
        self._task: Optional[asyncio.Task] = None
        self._tick_lock = asyncio.Lock()
    
    @property
    def duration(self) -> float:
        return self.render_session.duration
    
    @property
    def position(self) -> float:
        """Seconds since the start of the audio."""
        if self.state == PlaybackState.PLAYING:
            return self.clock() - self._origin + self._offset
        return self._position
    
    def snapshot(self) -> PlaybackSnapshot:
        """Read-only view for progress bars and controls."""
        position = self.position
        active = self.render_session.active_speaker(position) if self.state == PlaybackState.PLAYING else None
        return PlaybackSnapshot(
            position=position,
            duration=self.duration,
            state=self.state,
            active_speaker=active,
        )
    
    def _clamp(self, offset: float) -> float:
        return min(max(0.0, offset), self.duration)
    
    def play(self, offset: Optional[float] = None) -> None:
        """
        Stopped -> Playing: start the source and anchor the clock.
        
        Does not schedule ticks; use start() for that, or call tick() from
        the host's own timer.
        """
        if offset is None:
            offset = self._position
        offset = self._clamp(offset)
        
        if self.state == PlaybackState.PLAYING:
            self.audio_output.stop()
        
        self.audio_output.start(offset)
        self._offset = offset
        self._origin = self.clock()
        self.last_error = None
        self.state = PlaybackState.PLAYING
        logger.debug(f"Playback started at {offset:.2f}s")
    
    def pause(self) -> None:
        """Playing -> Stopped, keeping the current position."""
        if self.state != PlaybackState.PLAYING:
            return
        self._position = self._clamp(self.position)
        self.audio_output.stop()
        self.state = PlaybackState.STOPPED
    
    def _finish(self) -> None:
        self.audio_output.stop()
        self.state = PlaybackState.STOPPED
        self._position = 0.0
    
    def tick(self) -> Optional[PlaybackSnapshot]:
        """
        Run one tick.
        
        Returns:
            Snapshot of the drawn frame, or None when playback has ended,
            the session is stopped, or drawing failed
        """
        if self.state != PlaybackState.PLAYING:
            return None
        
        now = self.clock()
        position = now - self._origin + self._offset
        
        if position >= self.duration:
            self._finish()
            logger.debug("Playback reached end of audio")
            return None
        
        try:
            self.last_frame = self.render_session.draw_frame(position, now=now)
        except Exception as e:
            logger.error(f"Tick failed at {position:.2f}s, stopping playback: {e}", exc_info=True)
            self.last_error = str(e)
            self.audio_output.stop()
            self._position = self._clamp(position)
            self.state = PlaybackState.STOPPED
            return None
        
        return PlaybackSnapshot(
            position=position,
            duration=self.duration,
            state=self.state,
            active_speaker=self.render_session.active_speaker(position),
        )
    
    async def _tick_in_thread(self) -> Optional[PlaybackSnapshot]:
        """
        Run tick() in a worker thread.
        
        A cancelled caller still waits for the draw to finish, so whoever
        retires the task never overlaps an in-flight tick.
        """
        draw = asyncio.ensure_future(asyncio.to_thread(self.tick))
        try:
            return await asyncio.shield(draw)
        except asyncio.CancelledError:
            await asyncio.wait([draw])
            raise
    
    async def run(self) -> None:
        """Tick chain: draw, notify, sleep until the next tick deadline."""
        loop = asyncio.get_running_loop()
        interval = 1.0 / self.tick_rate
        deadline = loop.time()
        while self.state == PlaybackState.PLAYING:
            async with self._tick_lock:
                snapshot = await self._tick_in_thread()
                if snapshot is None:
                    break
                if self.on_tick is not None:
                    try:
                        await self.on_tick(snapshot, self.last_frame)
                    except Exception as e:
                        logger.error(f"Tick consumer failed, stopping playback: {e}")
                        self.last_error = str(e)
                        self.pause()
                        break
            # Deadlines are fixed steps from the start; a late tick does not queue a burst
            now = loop.time()
            deadline = max(deadline + interval, now)
            await asyncio.sleep(deadline - now)
    
    async def _retire(self) -> None:
        """Cancel the current tick chain and wait for an in-flight tick to finish."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
    
    async def start(self, offset: Optional[float] = None) -> None:
        """Start playing at `offset` and schedule ticks."""
        await self._retire()
        async with self._tick_lock:
            self.play(offset)
        self._task = asyncio.create_task(self.run())
    
    async def seek(self, offset: float) -> None:
        """
        Jump to `offset`.
        
        While playing this cancels the tick chain and restarts it from the
        new position; while stopped it only moves the position.
        """
        if self.state == PlaybackState.PLAYING:
            await self.start(offset)
            return
        await self._retire()
        self._position = self._clamp(offset)
    
    async def stop(self) -> None:
        """Cancel ticks and stop the source, keeping the position."""
        await self._retire()
        self.pause()
    
    async def close(self) -> None:
        """Retire the session completely."""
        await self.stop()
        self._position = 0.0

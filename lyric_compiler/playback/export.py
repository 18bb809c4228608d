"""Fixed-step offline export of a compiled scene.

WHY: An export has to reproduce the live preview frame for frame, but it
runs on its own clock: exactly 1/fps per step, possibly paused or
throttled by the encoder. It also has to stop cleanly when the user
cancels, without leaving half a frame behind.

HOW: Frame k is sampled at song_start + k / fps, the same timestamp the
live sampler would use, so frames match bit for bit. Between frames the
exporter checks a threading.Event. When a physics source is attached,
beats crossed since the previous frame are fed to it before each tick.

RULES:
- Frame count = floor(duration × fps) + 1 (both ends included)
- Cancellation is checked before every frame; a cancelled export keeps
  the frames produced so far and reports cancelled=True
- physics.reset() is called once before the first frame
- progress(done, total) is called after every frame
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional

from lyric_compiler.config import DEFAULT_EXPORT_FPS
from lyric_compiler.core.ir import CompiledScene
from lyric_compiler.playback.physics import PhysicsSource
from lyric_compiler.playback.sampler import FrameState, sample_frame

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
FrameCallback = Callable[[int, FrameState], None]


@dataclass
class ExportResult:
    frames: list[FrameState] = field(default_factory=list)
    total_frames: int = 0
    cancelled: bool = False

    @property
    def frame_count(self) -> int:
        return len(self.frames)


class FrameExporter:
    """Steps a CompiledScene at a fixed frame rate.

    WHY: Keeps the offline loop (timestamps, beat feeding, cancellation)
    in one place so encoders only receive finished FrameStates.

    RULES:
    - One exporter runs one export at a time
    - cancel() may be called from any thread
    - collect=False skips keeping frames in memory (use on_frame instead)
    """

    def __init__(
        self,
        scene: CompiledScene,
        fps: int = DEFAULT_EXPORT_FPS,
        physics: Optional[PhysicsSource] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        if fps <= 0:
            raise ValueError("fps must be positive, got {}".format(fps))
        self.scene = scene
        self.fps = fps
        self.physics = physics
        self.progress = progress
        self._cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def total_frames(self) -> int:
        return int(math.floor(self.scene.duration_sec * self.fps)) + 1

    def frame_time(self, index: int) -> float:
        return self.scene.song_start + index / self.fps

    def run(self, on_frame: Optional[FrameCallback] = None, collect: bool = True) -> ExportResult:
        """Sample every frame of the scene in order.

        Args:
            on_frame: Called with (index, FrameState) after each frame.
            collect: Keep the frames in the returned result.

        Returns:
            ExportResult with the frames produced and the cancel flag.
        """
        total = self.total_frames()
        result = ExportResult(total_frames=total)
        beats = self.scene.beat_events
        next_beat = 0
        if self.physics is not None:
            self.physics.reset()

        logger.info("Exporting %d frames at %d fps", total, self.fps)
        for index in range(total):
            if self._cancel_event.is_set():
                result.cancelled = True
                logger.info("Export cancelled after %d of %d frames", index, total)
                break

            t = self.frame_time(index)
            state = None
            if self.physics is not None:
                while next_beat < len(beats) and beats[next_beat].time <= t:
                    beat = beats[next_beat]
                    self.physics.on_beat(beat.strength, beat.is_downbeat)
                    next_beat += 1
                state = self.physics.tick()

            frame = sample_frame(self.scene, t, state)
            if collect:
                result.frames.append(frame)
            if on_frame is not None:
                on_frame(index, frame)
            if self.progress is not None:
                self.progress(index + 1, total)

        return result

"""Baked keyframes formatter — every frame of the song, pre-sampled.

WHY: Some consumers (video encoders, motion-graphics imports) cannot run
the curve library at all. They need the finished per-frame transform of
every visible word, at a fixed frame rate.

HOW: A FrameExporter steps the scene at ``fps`` and each FrameState is
written as one keyframe. Frame k's timestamp is song_start + k / fps, so
the keyframes match what a live preview shows at those times.

RULES:
- Suffix: -keyframes.json
- Values are rounded to ``precision`` decimals to keep files small
- An empty scene still produces its frames (with no words)
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from lyric_compiler.config import DEFAULT_EXPORT_FPS
from lyric_compiler.core.ir import CompiledScene
from lyric_compiler.formatters.base import BaseFormatter, FormatterOutput, to_jsonable
from lyric_compiler.playback.export import FrameExporter, ProgressCallback
from lyric_compiler.playback.physics import PhysicsSource

logger = logging.getLogger(__name__)


def _round(value: Any, precision: int) -> Any:
    if isinstance(value, float):
        return round(value, precision)
    if isinstance(value, dict):
        return {k: _round(v, precision) for k, v in value.items()}
    if isinstance(value, list):
        return [_round(v, precision) for v in value]
    return value


class KeyframesFormatter(BaseFormatter):
    def __init__(
        self,
        fps: int = DEFAULT_EXPORT_FPS,
        precision: int = 3,
        physics: Optional[PhysicsSource] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.fps = fps
        self.precision = precision
        self.physics = physics
        self.progress = progress

    @property
    def name(self) -> str:
        return "Baked keyframes JSON"

    def format(self, scene: CompiledScene) -> list[FormatterOutput]:
        exporter = FrameExporter(scene, fps=self.fps, physics=self.physics, progress=self.progress)
        result = exporter.run()
        frames = [_round(to_jsonable(frame), self.precision) for frame in result.frames]
        data = {
            "fps": self.fps,
            "song_start": scene.song_start,
            "song_end": scene.song_end,
            "canvas": {"width": scene.canvas_width, "height": scene.canvas_height},
            "frame_count": len(frames),
            "frames": frames,
        }
        logger.debug("Baked %d keyframes at %d fps", len(frames), self.fps)
        content = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
        return [FormatterOutput(suffix="-keyframes.json", content=content, media_type="application/json")]

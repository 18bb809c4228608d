"""Frame sampling: CompiledScene + time → per-word draw state.

WHY: Live preview and offline export must draw the same frame for the
same timestamp. Both call sample_frame(), which reads only the immutable
scene, the time, and an optional physics state, so it can be evaluated
at any t in any order (seek, loop, scrub).

HOW: For each compiled word, find which phase it is in at t:
  appear   = group.start − entry + word_position × stagger + letter_delay
  entered  = appear + entry × entry_duration_mult
  hold_end = group.end + linger
  gone     = hold_end + exit
Entry and exit use the curve library. Between entered and hold_end the
word sits at rest with its idle behavior layered on. Words outside
[appear, gone) are not in the frame.

RULES:
- Behavior partials: offsets, skew, blur and rotation add; scale and
  alpha multiply
- Behavior intensity = group intensity × (1 + 0.5 × physics heat)
- Glow = curve glow × word glow × (1 + physics glow / 40)
- Alpha is capped by the word's alpha_max and clamped to [0, 1]
- Beat phase comes from the beat grid; outside it, from the bpm
- Physics never moves a word's layout position
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, replace
from typing import Optional

from lyric_compiler.core.chapters import find_chapter_index
from lyric_compiler.core.curves import behavior_state, entry_state, exit_state
from lyric_compiler.core.ir import NEUTRAL_STATE, AnimState, CompiledPhraseGroup, CompiledScene, CompiledWord
from lyric_compiler.playback.physics import REST_STATE, PhysicsState

HEAT_INTENSITY_GAIN = 0.5
GLOW_DIVISOR = 40.0

_ADDITIVE = ("offset_x", "offset_y", "skew_x", "blur", "rotation")
_MULTIPLICATIVE = ("scale_x", "scale_y", "alpha")


@dataclass(frozen=True)
class WordFrame:
    id: str
    text: str
    x: float
    y: float
    font_size: float
    font_weight: int
    font_family: str
    color: str
    scale_x: float
    scale_y: float
    alpha: float
    skew_x: float
    rotation: float
    blur: float
    glow: float
    emitter: str
    phase: str


@dataclass(frozen=True)
class FrameState:
    time: float
    words: tuple[WordFrame, ...]
    chapter_index: int
    zoom: float
    palette: tuple[str, ...]
    beat_index: int
    beat_phase: float


def beat_position(scene: CompiledScene, t: float) -> tuple[int, float]:
    """(index of the last beat at or before t, phase 0–1 inside that beat).

    The index is -1 before the first beat. Phase falls back to the bpm
    period before the first beat, after the last one, and when the scene
    has no beats.
    """
    times = [event.time for event in scene.beat_events]
    period = 60.0 / scene.bpm if scene.bpm > 0 else 0.5
    index = bisect.bisect_right(times, t) - 1
    if 0 <= index < len(times) - 1:
        span = times[index + 1] - times[index]
        if span > 0:
            return index, (t - times[index]) / span
    origin = times[index] if index >= 0 else (times[0] if times else scene.song_start)
    return index, ((t - origin) / period) % 1.0


def _apply_behavior(state: AnimState, partial: dict[str, float]) -> AnimState:
    changes = {}
    for name, value in partial.items():
        if name in _ADDITIVE:
            changes[name] = getattr(state, name) + value
        elif name in _MULTIPLICATIVE:
            changes[name] = getattr(state, name) * value
    return replace(state, **changes) if changes else state


def _word_state(
    group: CompiledPhraseGroup,
    word: CompiledWord,
    t: float,
    beat_phase: float,
    physics: PhysicsState,
) -> Optional[tuple[str, AnimState]]:
    appear = group.start - group.entry_duration + word.word_index * group.stagger_delay + word.letter_delay
    entry_len = group.entry_duration * word.entry_duration_mult
    entered = appear + entry_len
    hold_end = group.end + group.linger_duration
    gone = hold_end + group.exit_duration

    if t < appear or t >= gone:
        return None
    if t < entered and entry_len > 0:
        return "entry", entry_state(word.entry, (t - appear) / entry_len)
    if t < hold_end:
        intensity = group.behavior_intensity * (1 + HEAT_INTENSITY_GAIN * physics.heat)
        partial = behavior_state(word.behavior, t, group.start, beat_phase, intensity)
        return "hold", _apply_behavior(NEUTRAL_STATE, partial)
    progress = (t - hold_end) / group.exit_duration if group.exit_duration > 0 else 1.0
    letter_index = word.letter_index if word.letter_index is not None else 0
    letter_total = word.letter_total if word.letter_total is not None else 1
    return "exit", exit_state(word.exit, progress, 1.0, letter_index, letter_total)


def sample_frame(scene: CompiledScene, t: float, physics: Optional[PhysicsState] = None) -> FrameState:
    """Evaluate every visible word of ``scene`` at song time ``t``.

    Args:
        scene: The compiled scene (read only).
        t: Song time in seconds.
        physics: Current physics state, or None for the rest state.

    Returns:
        FrameState with words in group order, plus chapter and beat info.
    """
    physics = physics or REST_STATE
    beat_index, beat_phase = beat_position(scene, t)
    glow_gain = 1 + physics.glow / GLOW_DIVISOR

    frames: list[WordFrame] = []
    for group, word in scene.iter_words():
        sampled = _word_state(group, word, t, beat_phase, physics)
        if sampled is None:
            continue
        phase, state = sampled
        frames.append(WordFrame(
            id=word.id,
            text=word.text,
            x=word.x + state.offset_x,
            y=word.y + state.offset_y,
            font_size=word.base_font_size,
            font_weight=word.font_weight,
            font_family=word.font_family,
            color=word.color,
            scale_x=state.scale_x * word.scale_x,
            scale_y=state.scale_y * word.scale_y,
            alpha=max(0.0, min(1.0, state.alpha * word.alpha_max)),
            skew_x=state.skew_x,
            rotation=state.rotation,
            blur=state.blur,
            glow=state.glow_mult * word.glow * glow_gain,
            emitter=word.emitter.value,
            phase=phase,
        ))

    ratio = (t - scene.song_start) / scene.duration_sec if scene.duration_sec > 0 else 0.0
    ratio = max(0.0, min(1.0, ratio))
    if scene.chapters:
        chapter_index = find_chapter_index(scene.chapters, ratio)
        chapter = scene.chapters[chapter_index]
        zoom, palette = chapter.target_zoom, chapter.palette
    else:
        chapter_index, zoom, palette = 0, 1.0, scene.palette

    return FrameState(
        time=t,
        words=tuple(frames),
        chapter_index=chapter_index,
        zoom=zoom,
        palette=palette,
        beat_index=beat_index,
        beat_phase=beat_phase,
    )

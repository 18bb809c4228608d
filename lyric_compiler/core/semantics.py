"""Semantic effect bundles and letter-sequence expansion.

WHY: Some words carry meaning the animation should act out: "burn"
should glow and smoulder away, "fall" should drop and sink, "break"
should shatter. The direction tags such words with a visual metaphor;
this module turns each metaphor into a complete override bundle. Words
flagged letterSequence are exploded into one compiled word per letter
so each letter can break away on its own.

HOW: SEMANTIC_EFFECTS is a frozen table with one SemanticEffect per
VisualMetaphor, checked on import. expand_letters() re-measures the
parent word letter by letter and emits one CompiledWord per character
centered on that character's own advance.

RULES:
- A bundle wins over the per-line motion-profile defaults, but an
  explicit entry/behavior/exit on the directive wins over the bundle
- color is None when the bundle keeps the palette text color
- Letters: id suffix "-L{i}", letter_delay = i × LETTER_DELAY_STEP,
  same styling as the parent, x clamped to the padded canvas
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from lyric_compiler.config import CompilerSettings
from lyric_compiler.core.ir import CompiledWord
from lyric_compiler.core.layout import TextMeasurer
from lyric_compiler.core.payload import WordDirective
from lyric_compiler.core.styles import (
    BehaviorStyle,
    EmitterType,
    EntryStyle,
    ExitStyle,
    VisualMetaphor,
    require_complete,
)

LETTER_DELAY_STEP = 0.012


@dataclass(frozen=True)
class SemanticEffect:
    entry: EntryStyle
    behavior: BehaviorStyle
    exit: ExitStyle
    color: Optional[str]
    glow: float
    scale_x: float
    scale_y: float
    emitter: EmitterType
    alpha_max: float
    entry_duration_mult: float
    font_weight: int


def _effect(entry, behavior, exit, color, glow, sx, sy, emitter, alpha_max, dur_mult, weight) -> SemanticEffect:
    return SemanticEffect(
        entry=EntryStyle(entry),
        behavior=BehaviorStyle(behavior),
        exit=ExitStyle(exit),
        color=color,
        glow=glow,
        scale_x=sx,
        scale_y=sy,
        emitter=EmitterType(emitter),
        alpha_max=alpha_max,
        entry_duration_mult=dur_mult,
        font_weight=weight,
    )


# entry, behavior, exit, color, glow, scale x/y, emitter, alpha max, entry duration ×, weight
SEMANTIC_EFFECTS: dict[VisualMetaphor, SemanticEffect] = {
    VisualMetaphor.EMBER_BURST: _effect("rise", "float", "burn-out", "#FF8C00", 2.0, 1.0, 1.15, "ember", 1.0, 0.8, 800),
    VisualMetaphor.FROST_FORM: _effect("materialize", "flicker", "dissolve", "#A8D8EA", 0.8, 1.0, 1.0, "frost", 0.9, 1.4, 400),
    VisualMetaphor.LENS_FOCUS: _effect("surface", "none", "dissolve", "#FFFFFF", 1.2, 1.0, 1.0, "none", 1.0, 1.6, 700),
    VisualMetaphor.GRAVITY_DROP: _effect("slam-down", "none", "sink", None, 0.5, 1.3, 0.7, "dust-impact", 1.0, 0.6, 900),
    VisualMetaphor.ASCENT: _effect("rise", "float", "drift-up", None, 1.3, 1.0, 1.15, "light-rays", 1.0, 1.0, 700),
    VisualMetaphor.FRACTURE: _effect("shatter-in", "vibrate", "shatter", "#CCCCCC", 0.6, 1.0, 1.0, "spark-burst", 0.9, 0.7, 700),
    VisualMetaphor.HEARTBEAT: _effect("bloom", "pulse", "exhale", "#FFB4B4", 1.5, 1.0, 1.0, "memory-orbs", 1.0, 1.2, 700),
    VisualMetaphor.PAIN_WEIGHT: _effect("plant", "flicker", "linger", "#8B0000", 0.4, 1.0, 0.9, "none", 0.85, 0.8, 800),
    VisualMetaphor.ISOLATION: _effect("whisper", "float", "evaporate", "#888888", 0.2, 1.0, 1.0, "none", 0.7, 2.0, 400),
    VisualMetaphor.CONVERGENCE: _effect("breathe-in", "pulse", "linger", "#FFF5E4", 1.4, 1.05, 1.0, "converge", 1.0, 1.1, 700),
    VisualMetaphor.SHOCKWAVE: _effect("explode-in", "vibrate", "shatter", "#FFFFFF", 2.5, 1.6, 0.65, "shockwave-ring", 1.0, 0.4, 900),
    VisualMetaphor.VOID_ABSORB: _effect("surface", "flicker", "snap-out", "#1a1a1a", 0.0, 1.0, 1.0, "dark-absorb", 0.95, 1.0, 700),
    VisualMetaphor.RADIANCE: _effect("bloom", "pulse", "burn-out", "#FFD700", 3.0, 1.1, 1.0, "light-rays", 1.0, 0.9, 800),
    VisualMetaphor.GOLD_RAIN: _effect("cut-in", "grow", "punch-out", "#FFD700", 1.8, 1.0, 1.0, "gold-coins", 1.0, 0.6, 900),
    VisualMetaphor.SPEED_BLUR: _effect("punch-in", "lean", "punch-out", None, 1.0, 1.2, 0.85, "motion-trail", 1.0, 0.5, 700),
    VisualMetaphor.SLOW_DRIFT: _effect("whisper", "float", "evaporate", "#CCCCCC", 0.3, 1.0, 1.0, "none", 0.8, 2.5, 400),
    VisualMetaphor.POWER_SURGE: _effect("slam-down", "pulse", "burn-out", None, 2.0, 1.1, 1.1, "spark-burst", 1.0, 0.5, 900),
    VisualMetaphor.DREAM_FLOAT: _effect("materialize", "float", "dissolve", None, 0.9, 1.0, 1.0, "memory-orbs", 0.8, 1.8, 400),
    VisualMetaphor.TRUTH_SNAP: _effect("snap-in", "none", "snap-out", "#FFFFFF", 0.0, 1.0, 1.0, "none", 1.0, 1.0, 700),
    VisualMetaphor.MOTION_STREAK: _effect("punch-in", "lean", "cut-out", None, 1.2, 1.15, 0.9, "motion-trail", 1.0, 0.6, 700),
}

require_complete(SEMANTIC_EFFECTS, VisualMetaphor, "SEMANTIC_EFFECTS")


def resolve_semantic_effect(directive: Optional[WordDirective]) -> Optional[SemanticEffect]:
    """The bundle for the directive's visual metaphor, or None."""
    if directive is None or directive.visual_metaphor is None:
        return None
    return SEMANTIC_EFFECTS[directive.visual_metaphor]


def expand_letters(
    word: CompiledWord,
    measurer: TextMeasurer,
    settings: CompilerSettings,
) -> list[CompiledWord]:
    """Explode one compiled word into one CompiledWord per character.

    WHY: Letter-sequenced words animate each character separately
    (staggered entry, per-letter exit phases), so each letter needs its
    own position and id while keeping the parent's styling.

    HOW: The parent's text is measured as a whole and letter by letter
    at the parent's font. Letter i is centered at
    parent_left + width(text[:i]) + width(text[i]) / 2, then clamped to
    the padded canvas.

    Args:
        word: The fully styled parent word.
        measurer: Same measurer used for layout.
        settings: Canvas geometry for clamping.

    Returns:
        One CompiledWord per character of ``word.text``, in order. An
        empty text returns ``[word]`` unchanged.
    """
    letters = list(word.text)
    if not letters:
        return [word]

    def width(text: str) -> float:
        return measurer.measure(text, word.font_family, word.font_weight, word.base_font_size)

    total = len(letters)
    left = word.x - width(word.text) / 2.0
    pad = settings.padding
    expanded: list[CompiledWord] = []
    for index, letter in enumerate(letters):
        center = left + width(word.text[:index]) + width(letter) / 2.0
        x = max(pad, min(settings.canvas_width - pad, center))
        expanded.append(replace(
            word,
            id="{}-L{}".format(word.id, index),
            text=letter,
            x=x,
            letter_index=index,
            letter_total=total,
            letter_offset_x=x - word.x,
            letter_delay=index * LETTER_DELAY_STEP,
        ))
    return expanded

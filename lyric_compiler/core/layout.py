"""Word placement for phrase groups, plus the text-measurement capability.

WHY: Every phrase group needs a screen position for each of its words
before anything can be animated. The anchor word goes to one of ten
deterministic slots; the remaining ("support") words sit on a row under
it, centered and spaced by their measured widths. Layout must not depend
on any global drawing context, so measurement is an injected object.

HOW:
  1. compute_layout_hints() assigns each group a horizontal slot
     (reused once its previous occupant is off screen) and a vertical
     offset that separates lyric lines shown at the same time.
  2. layout_group() picks the anchor slot from the visual mode's table,
     applies the hints, sizes the anchor by emphasis, lays out support
     words below, and clamps everything to the padded canvas.

RULES:
- Slot index = (line×3 + group×5) mod 10
- Explosive mode adds ((line × 0.618033) mod 0.2) − 0.1 to both axes
- position_slot shifts x by slot × 0.22 × canvas width
- Fonts never go below MIN_FONT_SIZE (30)
- Single word: font = base × 1.2; anchor: base × EMPHASIS_CURVE[emphasis];
  support row: base × 0.82, placed anchor_font × 1.25 below the anchor
- Every word's box is kept inside [padding, dim − padding]
- A TextMeasurer instance is single-owner: do not share one across threads
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Protocol, Sequence

from PIL import ImageFont

from lyric_compiler.config import CompilerSettings
from lyric_compiler.core.grouping import is_filler_word
from lyric_compiler.core.ir import GroupPosition, LayoutHint, PhraseGroup
from lyric_compiler.core.payload import LyricLine
from lyric_compiler.core.styles import ShotType, VisualMode, require_complete

logger = logging.getLogger(__name__)

MIN_FONT_SIZE = 30.0
SINGLE_WORD_SCALE = 1.2
SUPPORT_WORD_SCALE = 0.82
SUPPORT_ROW_GAP = 1.25
SLOT_SPACING = 0.22
LINE_SPACING = 90.0
HORIZONTAL_SLOTS = 3
GOLDEN_STEP = 0.618033

EMPHASIS_CURVE: dict[int, float] = {1: 0.78, 2: 0.92, 3: 1.18, 4: 1.55, 5: 1.95}

SHOT_FONT_SIZE: dict[ShotType, float] = {
    ShotType.WIDE: 56.0,
    ShotType.MEDIUM: 68.0,
    ShotType.CLOSE: 84.0,
    ShotType.CLOSE_UP: 96.0,
    ShotType.EXTREME_CLOSE: 108.0,
    ShotType.FLOATING_IN_WORLD: 64.0,
}
DEFAULT_BASE_FONT_SIZE = SHOT_FONT_SIZE[ShotType.MEDIUM]

# Normalized (x, y) anchor slots per visual mode.
ANCHOR_SLOTS: dict[VisualMode, tuple[tuple[float, float], ...]] = {
    VisualMode.CINEMATIC: (
        (0.50, 0.42), (0.30, 0.38), (0.70, 0.38),
        (0.35, 0.60), (0.65, 0.60), (0.50, 0.55),
        (0.42, 0.45), (0.58, 0.45), (0.25, 0.50), (0.75, 0.50),
    ),
    VisualMode.INTIMATE: (
        (0.50, 0.50), (0.42, 0.48), (0.58, 0.52),
        (0.38, 0.45), (0.62, 0.45), (0.35, 0.43),
        (0.50, 0.37), (0.50, 0.60), (0.65, 0.50), (0.45, 0.58),
    ),
    VisualMode.EXPLOSIVE: (
        (0.50, 0.50), (0.22, 0.42), (0.78, 0.58),
        (0.15, 0.35), (0.55, 0.65), (0.85, 0.30),
        (0.82, 0.28), (0.18, 0.70), (0.80, 0.68), (0.50, 0.25),
    ),
}

require_complete(SHOT_FONT_SIZE, ShotType, "SHOT_FONT_SIZE")
require_complete(ANCHOR_SLOTS, VisualMode, "ANCHOR_SLOTS")


# ---------------------------------------------------------------------------
# Text measurement
# ---------------------------------------------------------------------------


class TextMeasurer(Protocol):
    """Returns the rendered width of ``text`` in layout units."""

    def measure(self, text: str, family: str, weight: int, size: float) -> float:
        ...


class CharWidthMeasurer:
    """Deterministic measurer: every character advances ``size × ratio``.

    Used in tests and when no font file is available. Heavier weights get
    a slightly wider advance so bold presets still measure wider.
    """

    def __init__(self, char_ratio: float = 0.55, space_ratio: float = 0.3):
        self.char_ratio = char_ratio
        self.space_ratio = space_ratio

    def measure(self, text: str, family: str, weight: int, size: float) -> float:
        weight_factor = 1.0 + max(0, weight - 400) / 4000.0
        width = 0.0
        for ch in text:
            ratio = self.space_ratio if ch.isspace() else self.char_ratio
            width += size * ratio * weight_factor
        return width


class PillowMeasurer:
    """Font-metric measurer backed by Pillow's ImageFont.

    WHY: Layout needs real advance widths to center support rows and to
    size collision boxes. Pillow is the same library the renderers use
    to draw the glyphs, so measuring with it keeps layout and drawing in
    agreement.

    HOW: One FreeTypeFont per size is loaded lazily and cached. With no
    font file, Pillow's bundled default font is measured and scaled to
    the requested size.

    RULES:
    - Not thread-safe: the font cache is unsynchronized
    - family/weight select a file only through ``font_paths``; otherwise
      ``font_path`` (or the default font) is used for every family
    """

    def __init__(self, font_path: Optional[str] = None, font_paths: Optional[dict[str, str]] = None):
        self.font_path = font_path
        self.font_paths = dict(font_paths or {})
        self._cache: dict[tuple[str, int], object] = {}
        self._default_font = None

    def _font_for(self, family: str, size: float):
        path = self.font_paths.get(family, self.font_path)
        if path is None:
            return None
        key = (path, int(round(size)))
        font = self._cache.get(key)
        if font is None:
            font = ImageFont.truetype(path, key[1])
            self._cache[key] = font
            logger.debug("Loaded font %s at %dpx", path, key[1])
        return font

    def measure(self, text: str, family: str, weight: int, size: float) -> float:
        font = self._font_for(family, size)
        if font is not None:
            return float(font.getlength(text))
        if self._default_font is None:
            self._default_font = ImageFont.load_default()
        native_size = getattr(self._default_font, "size", 11)
        return float(self._default_font.getlength(text)) * size / native_size


# ---------------------------------------------------------------------------
# Layout hints
# ---------------------------------------------------------------------------


def compute_layout_hints(
    groups: Sequence[PhraseGroup],
    lines: Sequence[LyricLine],
    entry_duration: float,
    exit_duration: float,
    linger: float,
    stagger: float,
) -> dict[str, LayoutHint]:
    """Assign each group a reusable horizontal slot and a line offset.

    WHY: Groups shown at the same time must not stack on one slot, and
    two lyric lines sung over each other need vertical separation.

    HOW: Greedy interval packing over the groups in time order: a slot is
    reused when its last occupant's visible window ended at or before
    this group's visible window starts. The vertical offset centers the
    set of lyric lines whose [start, end) contains the group's start.

    Args:
        groups: Phrase groups in time order.
        lines: Lyric lines (a line with no end time is never "visible").
        entry_duration / exit_duration / linger / stagger: Timing used
            to widen each group's on-screen window.

    Returns:
        Map from group key ("line-group") to LayoutHint.
    """
    hints: dict[str, LayoutHint] = {}
    slot_ends: list[float] = []

    for group in groups:
        vis_start = group.start - entry_duration - stagger * len(group.words)
        vis_end = group.end + linger + exit_duration
        slot = next((i for i, end in enumerate(slot_ends) if vis_start >= end), len(slot_ends))
        if slot == len(slot_ends):
            slot_ends.append(vis_end)
        else:
            slot_ends[slot] = vis_end

        visible = [
            i for i, line in enumerate(lines)
            if (line.start or 0.0) <= group.start < (line.end if line.end is not None else 0.0)
        ]
        line_pos = visible.index(group.line_index) if group.line_index in visible else 0
        visible_count = max(1, len(visible))
        line_offset = (line_pos - (visible_count - 1) * 0.5) * LINE_SPACING

        hints[group.key] = LayoutHint(position_slot=slot % HORIZONTAL_SLOTS, line_offset=line_offset)

    return hints


def base_font_size_for(shot_type: Optional[ShotType]) -> float:
    if shot_type is None:
        return DEFAULT_BASE_FONT_SIZE
    return SHOT_FONT_SIZE[shot_type]


# ---------------------------------------------------------------------------
# Group layout
# ---------------------------------------------------------------------------


def _clamp(value: float, low: float, high: float) -> float:
    if low > high:
        return (low + high) / 2.0
    return max(low, min(high, value))


def _round_half_up(value: float) -> float:
    """Round to the nearest unit with halves going up (270.5 → 271)."""
    return float(math.floor(value + 0.5))


def anchor_center(
    group: PhraseGroup,
    visual_mode: VisualMode,
    settings: CompilerSettings,
    hint: Optional[LayoutHint] = None,
) -> tuple[float, float]:
    """Anchor slot center in layout units, before any clamping."""
    slots = ANCHOR_SLOTS[visual_mode]
    nx, ny = slots[(group.line_index * 3 + group.group_index * 5) % len(slots)]
    if visual_mode is VisualMode.EXPLOSIVE:
        spread = ((group.line_index * GOLDEN_STEP) % 0.2) - 0.1
        nx += spread
        ny += spread
    hint = hint or LayoutHint()
    cx = settings.canvas_width * nx + hint.position_slot * SLOT_SPACING * settings.canvas_width
    cy = settings.canvas_height * ny + hint.line_offset
    return cx, cy


def display_text(word: str, text_transform: str) -> str:
    return word.upper() if text_transform == "uppercase" else word


def layout_group(
    group: PhraseGroup,
    visual_mode: VisualMode,
    base_font_size: float,
    font_weight: int,
    font_family: str,
    measurer: TextMeasurer,
    settings: Optional[CompilerSettings] = None,
    hint: Optional[LayoutHint] = None,
    text_transform: str = "none",
) -> list[GroupPosition]:
    """Lay out every word of one phrase group.

    WHY: The anchor word carries the phrase; support words read as a
    caption underneath. Keeping this a pure function of its inputs (plus
    the measurer) makes layout reproducible between preview and export.

    HOW: Single-word groups are placed at the slot directly. Otherwise
    the anchor sits at the slot with an emphasis-scaled font, support
    words are centered on a row below using measured widths plus one
    measured space between words, and each word is clamped so its box
    stays inside the padded canvas.

    Args:
        group: The phrase group to place.
        visual_mode: Selects the anchor slot table and explosive spread.
        base_font_size: Line base font size (from the shot type).
        font_weight / font_family: Typography used for measuring.
        measurer: Injected TextMeasurer.
        settings: Canvas geometry (defaults to CompilerSettings()).
        hint: Slot/line offset from compute_layout_hints().
        text_transform: "uppercase" measures the upper-cased text.

    Returns:
        One GroupPosition per word, in group order.
    """
    settings = settings or CompilerSettings()
    width, height, pad = settings.canvas_width, settings.canvas_height, settings.padding
    cx, cy = anchor_center(group, visual_mode, settings, hint)
    texts = [display_text(w.word, text_transform) for w in group.words]

    def measure(text: str, size: float) -> float:
        return measurer.measure(text, font_family, font_weight, size)

    if len(group.words) == 1:
        return [GroupPosition(
            x=_clamp(cx, pad, width - pad),
            y=_round_half_up(_clamp(cy, pad, height - pad)),
            font_size=max(MIN_FONT_SIZE, base_font_size * SINGLE_WORD_SCALE),
            is_anchor=True,
            is_filler=is_filler_word(group.words[0].word),
        )]

    anchor_idx = group.anchor_word_idx
    anchor_entry = group.words[anchor_idx]
    anchor_font = max(MIN_FONT_SIZE, base_font_size * EMPHASIS_CURVE.get(anchor_entry.emphasis_level, 1.0))
    raw: list[tuple[float, float, float]] = [(0.0, 0.0, 0.0)] * len(group.words)
    raw[anchor_idx] = (cx, _round_half_up(cy), anchor_font)

    support = [i for i in range(len(group.words)) if i != anchor_idx]
    support_font = max(MIN_FONT_SIZE, base_font_size * SUPPORT_WORD_SCALE)
    widths = [measure(texts[i], support_font) for i in support]
    space = measure(" ", support_font)
    total = sum(widths) + space * max(0, len(support) - 1)
    row_y = _round_half_up(cy + anchor_font * SUPPORT_ROW_GAP)
    start_x = max(pad, min(width - pad - total, cx - total * 0.5))
    acc = 0.0
    for i, word_width in zip(support, widths):
        raw[i] = (start_x + acc + word_width * 0.5, row_y, support_font)
        acc += word_width + space

    positions: list[GroupPosition] = []
    for i, (x, y, font_size) in enumerate(raw):
        half_w = measure(texts[i], font_size) * 0.5
        positions.append(GroupPosition(
            x=_clamp(x, pad + half_w, width - pad - half_w),
            y=_round_half_up(_clamp(y, pad, height - pad)),
            font_size=font_size,
            is_anchor=i == anchor_idx,
            is_filler=is_filler_word(group.words[i].word),
        ))
    return positions

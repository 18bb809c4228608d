"""Tests for word placement and text measurement (core/layout.py).

WHY: Layout must be reproducible between preview and export and must
never push a word off the padded canvas, whatever the slot table and
font sizes say.

HOW: Use CharWidthMeasurer (deterministic) and hand-built phrase groups.
The default 960x540 canvas with 80 units of padding applies throughout.

RULES:
- Anchor slot index = (line×3 + group×5) mod 10
- Font sizes never drop below 30
- Support words share one row below the anchor
"""

import math

import pytest

from lyric_compiler.config import CompilerSettings
from lyric_compiler.core.ir import LayoutHint, PhraseGroup, WordMetaEntry
from lyric_compiler.core.layout import (
    ANCHOR_SLOTS,
    EMPHASIS_CURVE,
    GOLDEN_STEP,
    LINE_SPACING,
    MIN_FONT_SIZE,
    SHOT_FONT_SIZE,
    SLOT_SPACING,
    SUPPORT_ROW_GAP,
    SUPPORT_WORD_SCALE,
    CharWidthMeasurer,
    PillowMeasurer,
    anchor_center,
    base_font_size_for,
    compute_layout_hints,
    display_text,
    layout_group,
)
from lyric_compiler.core.payload import LyricLine
from lyric_compiler.core.styles import ShotType, VisualMode
from lyric_compiler.core.timeline import clean_word


def _group(words, line=0, group=0, anchor=0, start=0.0, end=1.0):
    entries = tuple(
        WordMetaEntry(word=w, start=start, end=end, clean_word=clean_word(w), line_index=line, word_index=i)
        for i, w in enumerate(words)
    )
    return PhraseGroup(
        line_index=line, group_index=group, words=entries, anchor_word_idx=anchor, start=start, end=end,
    )


def _layout(group, mode=VisualMode.CINEMATIC, base=68.0, settings=None, hint=None, transform="none"):
    return layout_group(
        group, mode, base, 600, "Inter", CharWidthMeasurer(),
        settings=settings, hint=hint, text_transform=transform,
    )


class TestMeasurers:
    def test_char_width_is_linear(self):
        m = CharWidthMeasurer()
        assert m.measure("abcd", "Inter", 400, 40) == pytest.approx(4 * 40 * 0.55)

    def test_spaces_are_narrower(self):
        m = CharWidthMeasurer()
        assert m.measure(" ", "Inter", 400, 40) < m.measure("a", "Inter", 400, 40)

    def test_heavier_weight_measures_wider(self):
        m = CharWidthMeasurer()
        assert m.measure("word", "Inter", 900, 40) > m.measure("word", "Inter", 400, 40)

    def test_pillow_default_font_scales_with_size(self):
        m = PillowMeasurer()
        small = m.measure("hello", "Inter", 400, 20)
        large = m.measure("hello", "Inter", 400, 40)
        assert small > 0
        assert large == pytest.approx(small * 2)

    def test_pillow_missing_font_file_raises(self, tmp_path):
        m = PillowMeasurer(font_path=str(tmp_path / "missing.ttf"))
        with pytest.raises(OSError):
            m.measure("hello", "Inter", 400, 20)


class TestAnchorCenter:
    def test_slot_index_formula(self, settings):
        group = _group(["word"], line=1, group=0)
        nx, ny = ANCHOR_SLOTS[VisualMode.CINEMATIC][3]
        cx, cy = anchor_center(group, VisualMode.CINEMATIC, settings)
        assert cx == pytest.approx(960 * nx)
        assert cy == pytest.approx(540 * ny)

    def test_slot_wraps_at_ten(self, settings):
        group = _group(["word"], line=5, group=1)
        nx, ny = ANCHOR_SLOTS[VisualMode.INTIMATE][0]
        assert anchor_center(group, VisualMode.INTIMATE, settings) == pytest.approx((960 * nx, 540 * ny))

    def test_explosive_spread(self, settings):
        group = _group(["word"], line=1, group=0)
        nx, ny = ANCHOR_SLOTS[VisualMode.EXPLOSIVE][3]
        spread = (GOLDEN_STEP % 0.2) - 0.1
        cx, cy = anchor_center(group, VisualMode.EXPLOSIVE, settings)
        assert cx == pytest.approx(960 * (nx + spread))
        assert cy == pytest.approx(540 * (ny + spread))

    def test_hint_shifts_slot_and_line(self, settings):
        group = _group(["word"])
        base_x, base_y = anchor_center(group, VisualMode.CINEMATIC, settings)
        cx, cy = anchor_center(group, VisualMode.CINEMATIC, settings, LayoutHint(position_slot=1, line_offset=45.0))
        assert cx == pytest.approx(base_x + SLOT_SPACING * 960)
        assert cy == pytest.approx(base_y + 45.0)


class TestLayoutGroup:
    def test_single_word_is_anchor_at_slot(self, settings):
        positions = _layout(_group(["hello"]))
        assert len(positions) == 1
        pos = positions[0]
        assert pos.is_anchor
        assert pos.font_size == pytest.approx(68.0 * 1.2)
        assert pos.x == pytest.approx(960 * 0.50)
        assert pos.y == round(540 * 0.42)

    def test_half_pixel_rounds_up(self):
        """Intimate slot 0 sits at y=270; a 0.5 offset lands on 270.5 → 271."""
        settings = CompilerSettings(canvas_width=960, canvas_height=540)
        group = _group(["hello"])
        pos = _layout(group, mode=VisualMode.INTIMATE, settings=settings, hint=LayoutHint(line_offset=0.5))[0]
        assert pos.y == 271.0
        two = _layout(
            _group(["hello", "world"]), mode=VisualMode.INTIMATE, settings=settings,
            hint=LayoutHint(line_offset=0.5),
        )
        assert two[0].y == 271.0

    def test_minimum_font_size(self):
        positions = _layout(_group(["tiny", "words", "here"]), base=10.0)
        assert all(p.font_size >= MIN_FONT_SIZE for p in positions)

    def test_anchor_font_follows_emphasis(self):
        positions = _layout(_group(["we", "burn"], anchor=1))
        assert positions[1].is_anchor
        assert positions[1].font_size == pytest.approx(68.0 * EMPHASIS_CURVE[1])
        assert not positions[0].is_anchor

    def test_support_row_below_anchor(self):
        positions = _layout(_group(["we", "burn", "tonight"], anchor=1))
        anchor = positions[1]
        support = [positions[0], positions[2]]
        expected_y = math.floor(anchor.y + anchor.font_size * SUPPORT_ROW_GAP + 0.5)
        for pos in support:
            assert pos.y == expected_y
            assert pos.font_size == pytest.approx(68.0 * SUPPORT_WORD_SCALE)
        # support words keep their reading order left to right
        assert support[0].x < support[1].x

    def test_filler_flags(self):
        positions = _layout(_group(["the", "storm"], anchor=1))
        assert positions[0].is_filler
        assert not positions[1].is_filler

    def test_words_stay_inside_padding(self, settings):
        long_words = ["incomprehensibilities", "extraordinarily", "unbelievable", "uncharacteristically"]
        for mode in VisualMode:
            for line in range(6):
                positions = _layout(_group(long_words, line=line), mode=mode, base=SHOT_FONT_SIZE[ShotType.EXTREME_CLOSE])
                for pos in positions:
                    assert settings.padding <= pos.x <= settings.canvas_width - settings.padding
                    assert settings.padding <= pos.y <= settings.canvas_height - settings.padding

    def test_custom_canvas(self):
        big = CompilerSettings(canvas_width=1920.0, canvas_height=1080.0)
        positions = _layout(_group(["hello"]), settings=big)
        assert positions[0].x == pytest.approx(1920 * 0.50)

    def test_uppercase_measures_transformed_text(self):
        assert display_text("burn", "uppercase") == "BURN"
        assert display_text("burn", "none") == "burn"

    def test_deterministic(self):
        group = _group(["so", "much", "for", "the", "afterglow"], anchor=4, line=3, group=2)
        assert _layout(group) == _layout(group)


class TestBaseFontSize:
    def test_shot_types(self):
        assert base_font_size_for(ShotType.CLOSE) == SHOT_FONT_SIZE[ShotType.CLOSE]

    def test_default_is_medium(self):
        assert base_font_size_for(None) == SHOT_FONT_SIZE[ShotType.MEDIUM]


class TestComputeLayoutHints:
    LINES = [
        LyricLine(text="first", start=0.0, end=4.0),
        LyricLine(text="second", start=1.0, end=5.0),
    ]

    def _hints(self, groups):
        return compute_layout_hints(groups, self.LINES, 0.1, 0.1, 0.1, 0.0)

    def test_disjoint_groups_reuse_slot(self):
        first = _group(["a"], line=0, start=0.0, end=1.0)
        second = _group(["b"], line=1, start=1.5, end=2.5)
        hints = self._hints([first, second])
        assert hints["0-0"].position_slot == 0
        assert hints["1-0"].position_slot == 0

    def test_overlapping_groups_get_new_slot(self):
        first = _group(["a"], line=0, start=0.0, end=1.0)
        second = _group(["b"], line=1, start=1.0, end=2.0)
        hints = self._hints([first, second])
        assert hints["1-0"].position_slot == 1

    def test_line_offset_separates_visible_lines(self):
        first = _group(["a"], line=0, start=0.0, end=1.0)
        second = _group(["b"], line=1, start=1.0, end=2.0)
        hints = self._hints([first, second])
        # only line 0 is visible at 0.0; both lines at 1.0
        assert hints["0-0"].line_offset == pytest.approx(0.0)
        assert hints["1-0"].line_offset == pytest.approx(0.5 * LINE_SPACING)

    def test_line_without_end_is_never_visible(self):
        lines = [LyricLine(text="open", start=0.0)]
        hints = compute_layout_hints([_group(["a"])], lines, 0.1, 0.1, 0.1, 0.0)
        assert hints["0-0"].line_offset == pytest.approx(0.0)

    def test_slots_wrap_at_three(self):
        groups = [_group([str(i)], line=i, start=0.0, end=5.0) for i in range(4)]
        hints = compute_layout_hints(groups, [], 0.1, 0.1, 0.1, 0.0)
        assert [hints["{}-0".format(i)].position_slot for i in range(4)] == [0, 1, 2, 0]

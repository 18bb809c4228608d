"""Tests for semantic effect bundles and letter expansion (core/semantics.py).

WHY: A visual metaphor replaces a word's whole look at once (styles,
color, glow, scale, emitter). Letter-sequenced words must split into
correctly placed, correctly delayed letters or the per-letter exits
look scrambled.

HOW: Check the bundle table against its enum, then expand a hand-built
CompiledWord with a fixed-width measurer so letter centers are exact.

RULES:
- Every VisualMetaphor has exactly one bundle
- Letter ids are "{word id}-L{i}", delays i × 0.012s
- Letters keep the parent's styling and stay inside the padding
"""

import pytest

from lyric_compiler.core.ir import CompiledWord
from lyric_compiler.core.layout import CharWidthMeasurer
from lyric_compiler.core.payload import WordDirective
from lyric_compiler.core.semantics import (
    LETTER_DELAY_STEP,
    SEMANTIC_EFFECTS,
    expand_letters,
    resolve_semantic_effect,
)
from lyric_compiler.core.styles import (
    BehaviorStyle,
    EmitterType,
    EntryStyle,
    ExitStyle,
    VisualMetaphor,
)

# 40px at weight 400 → every character is exactly 20 units wide
HALF_WIDTH = CharWidthMeasurer(char_ratio=0.5)


def _word(text="shatter", x=480.0, **overrides):
    fields = dict(
        id="1-0-1",
        text=text,
        clean_word=text.lower(),
        word_index=1,
        x=x,
        y=270.0,
        base_font_size=40.0,
        font_weight=400,
        font_family="Inter",
        color="#ff0000",
        entry=EntryStyle.SHATTER_IN,
        behavior=BehaviorStyle.VIBRATE,
        exit=ExitStyle.SCATTER_LETTERS,
        behavior_intensity=1.4,
        emphasis_level=4,
        is_anchor=True,
    )
    fields.update(overrides)
    return CompiledWord(**fields)


class TestSemanticEffects:
    def test_table_covers_every_metaphor(self):
        assert set(SEMANTIC_EFFECTS) == set(VisualMetaphor)

    def test_shockwave_bundle(self):
        effect = SEMANTIC_EFFECTS[VisualMetaphor.SHOCKWAVE]
        assert effect.entry is EntryStyle.EXPLODE_IN
        assert effect.exit is ExitStyle.SHATTER
        assert effect.emitter is EmitterType.SHOCKWAVE_RING
        assert effect.scale_x == pytest.approx(1.6)
        assert effect.font_weight == 900

    def test_colorless_bundles(self):
        """Some bundles leave color to the palette."""
        assert SEMANTIC_EFFECTS[VisualMetaphor.ASCENT].color is None

    def test_resolve_from_directive(self):
        directive = WordDirective.model_validate({"word": "fire", "visualMetaphor": "ember-burst"})
        assert resolve_semantic_effect(directive) is SEMANTIC_EFFECTS[VisualMetaphor.EMBER_BURST]

    def test_resolve_without_metaphor(self):
        assert resolve_semantic_effect(None) is None
        assert resolve_semantic_effect(WordDirective(word="fire")) is None

    def test_unknown_metaphor_is_ignored(self):
        directive = WordDirective.model_validate({"word": "fire", "visualMetaphor": "laser-eyes"})
        assert resolve_semantic_effect(directive) is None


class TestExpandLetters:
    def test_one_entry_per_letter(self, settings):
        letters = expand_letters(_word(), HALF_WIDTH, settings)
        assert [w.text for w in letters] == list("shatter")
        assert [w.id for w in letters] == ["1-0-1-L{}".format(i) for i in range(7)]
        assert all(w.letter_total == 7 for w in letters)
        assert [w.letter_index for w in letters] == list(range(7))

    def test_letter_delays(self, settings):
        letters = expand_letters(_word(), HALF_WIDTH, settings)
        for i, letter in enumerate(letters):
            assert letter.letter_delay == pytest.approx(i * LETTER_DELAY_STEP)
        assert LETTER_DELAY_STEP == 0.012

    def test_letter_centers(self, settings):
        """'shatter' is 140 wide around x=480, so letters sit at 420, 440, ... 540."""
        letters = expand_letters(_word(), HALF_WIDTH, settings)
        assert [w.x for w in letters] == pytest.approx([420.0 + 20.0 * i for i in range(7)])
        assert letters[0].letter_offset_x == pytest.approx(-60.0)

    def test_letters_keep_parent_styling(self, settings):
        parent = _word()
        for letter in expand_letters(parent, HALF_WIDTH, settings):
            assert letter.color == parent.color
            assert letter.exit is parent.exit
            assert letter.y == parent.y
            assert letter.word_index == parent.word_index
            assert letter.is_letter

    def test_letters_clamped_to_padding(self, settings):
        letters = expand_letters(_word(x=settings.padding), HALF_WIDTH, settings)
        assert all(w.x >= settings.padding for w in letters)
        assert letters[0].x == pytest.approx(settings.padding)

    def test_empty_text_returns_parent(self, settings):
        parent = _word(text="")
        assert expand_letters(parent, HALF_WIDTH, settings) == [parent]

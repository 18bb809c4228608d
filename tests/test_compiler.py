"""Tests for the compile pipeline end to end (core/compiler.py).

WHY: compile_scene() is the contract every renderer consumes. These tests
pin the resolved scene for a small but fully directed song: grouping,
letter expansion, per-line motion, style precedence, color, and bounds.

HOW: Compile the shared sample payload (conftest.py) with the
character-width measurer and inspect the CompiledScene.

RULES:
- Same payload + same measurer → byte-identical serialized scene
- Every word lies inside the padded canvas
- word_count counts letters of letter-sequenced words individually
- Every group's anchor index points into its source words
"""

import pytest

from lyric_compiler.config import CompilerSettings
from lyric_compiler.core.compiler import compile_scene, line_motion_profiles
from lyric_compiler.core.payload import parse_payload
from lyric_compiler.core.styles import (
    BehaviorStyle,
    EmitterType,
    EntryStyle,
    ExitStyle,
    MotionProfile,
    VisualMode,
)
from lyric_compiler.formatters.scene_json import SceneJsonFormatter


class TestSceneShape:
    def test_groups(self, sample_scene):
        assert [g.key for g in sample_scene.phrase_groups] == ["0-0", "1-0", "2-0"]
        assert [g.anchor_word_idx for g in sample_scene.phrase_groups] == [1, 1, 3]

    def test_groups_sorted_by_start(self, sample_scene):
        starts = [g.start for g in sample_scene.phrase_groups]
        assert starts == sorted(starts)

    def test_word_count_includes_letters(self, sample_scene):
        assert sample_scene.word_count == 16
        assert sum(len(g.words) for g in sample_scene.phrase_groups) == 16

    def test_each_timed_word_appears_once(self, sample_scene):
        plain = [w for _, w in sample_scene.iter_words() if not w.is_letter]
        letters = [w for _, w in sample_scene.iter_words() if w.is_letter]
        assert len(plain) == 9
        assert len(letters) == 7
        assert {w.id.rsplit("-L", 1)[0] for w in letters} == {"1-0-1"}

    def test_short_group_end_is_stretched(self, sample_scene):
        assert sample_scene.phrase_groups[0].end == pytest.approx(0.4)

    def test_scene_constants(self, sample_scene):
        assert sample_scene.song_start == 0.0
        assert sample_scene.duration_sec == pytest.approx(6.0)
        assert sample_scene.bpm == 120
        assert sample_scene.motion_profile is MotionProfile.FLUID
        assert sample_scene.visual_mode is VisualMode.CINEMATIC
        assert sample_scene.anim_params.linger == pytest.approx(0.55)
        assert sample_scene.anim_params.stagger == pytest.approx(0.05)
        assert sample_scene.emotional_arc == "surge"
        assert sample_scene.climax_ratio == pytest.approx(0.65)


class TestChaptersAndBeats:
    def test_chapters(self, sample_scene):
        assert len(sample_scene.chapters) == 2
        assert [c.target_zoom for c in sample_scene.chapters] == pytest.approx([0.82, 1.0])

    def test_line_motion_profiles(self, sample_payload, sample_scene):
        profiles = line_motion_profiles(sample_payload, sample_scene.chapters, MotionProfile.FLUID)
        assert profiles == {0: MotionProfile.DRIFT, 1: MotionProfile.GLITCH, 2: MotionProfile.GLITCH}

    def test_group_timing_follows_line_profile(self, sample_scene):
        drift, glitch, _ = sample_scene.phrase_groups
        assert drift.motion_profile is MotionProfile.DRIFT
        assert (drift.entry_duration, drift.exit_duration, drift.linger_duration) == pytest.approx((0.5, 0.6, 0.8))
        assert drift.behavior_intensity == pytest.approx(0.4)
        assert glitch.motion_profile is MotionProfile.GLITCH
        assert (glitch.entry_duration, glitch.exit_duration, glitch.linger_duration) == pytest.approx(
            (0.05, 0.06, 0.05)
        )
        assert glitch.behavior_intensity == pytest.approx(1.4)

    def test_beats(self, sample_scene):
        events = sample_scene.beat_events
        assert len(events) == 13
        assert [i for i, e in enumerate(events) if e.is_downbeat] == [0, 4, 8, 12]
        assert events[0].spring_velocity == pytest.approx(0.4)
        assert events[0].glow_max == pytest.approx(0.3)


class TestWordStyles:
    def test_plain_word(self, sample_words):
        word = sample_words["0-0-0"]
        assert (word.entry, word.behavior, word.exit) == (
            EntryStyle.WHISPER, BehaviorStyle.FLOAT, ExitStyle.EVAPORATE,
        )
        assert word.color == "#ffffff"
        assert not word.has_semantic_color
        assert word.glow == 1.0
        assert word.trail == "none"

    def test_pool_rotation(self, sample_words):
        assert sample_words["0-0-1"].entry is EntryStyle.BLOOM
        assert sample_words["0-0-1"].behavior is BehaviorStyle.GROW
        assert sample_words["0-0-2"].entry is EntryStyle.DRIFT_IN
        assert sample_words["0-0-2"].exit is ExitStyle.SINK

    def test_glitch_line(self, sample_words):
        word = sample_words["1-0-0"]
        assert (word.entry, word.behavior, word.exit) == (
            EntryStyle.SNAP_IN, BehaviorStyle.ORBIT, ExitStyle.CUT_OUT,
        )

    def test_letter_sequenced_word(self, sample_words):
        letters = [sample_words["1-0-1-L{}".format(i)] for i in range(7)]
        assert "".join(w.text for w in letters) == "shatter"
        assert all(w.exit is ExitStyle.SCATTER_LETTERS for w in letters)
        assert all(w.entry is EntryStyle.SHATTER_IN for w in letters)
        assert [w.letter_delay for w in letters] == pytest.approx([i * 0.012 for i in range(7)])
        assert "1-0-1" not in sample_words

    def test_storyboard_and_color_override(self, sample_words):
        word = sample_words["2-0-0"]
        assert word.entry is EntryStyle.SLAM_DOWN
        assert word.behavior is BehaviorStyle.VIBRATE
        assert word.exit is ExitStyle.BURN_OUT
        assert word.color == "#00ff00"
        assert word.has_semantic_color
        assert word.icon_glyph == "bolt"

    def test_semantic_bundle(self, sample_words):
        word = sample_words["2-0-3"]
        assert (word.entry, word.behavior, word.exit) == (
            EntryStyle.EXPLODE_IN, BehaviorStyle.VIBRATE, ExitStyle.SHATTER,
        )
        assert word.emitter is EmitterType.SHOCKWAVE_RING
        assert word.trail == "shockwave-ring"
        assert word.font_weight == 900
        assert word.glow == pytest.approx(2.5)
        assert word.scale_x == pytest.approx(1.6)
        assert word.color == "#FFFFFF"
        assert word.emphasis_level == 5
        assert word.is_anchor


class TestInvariants:
    def test_words_inside_padding(self, sample_scene, settings):
        pad = settings.padding
        for _, word in sample_scene.iter_words():
            assert pad <= word.x <= settings.canvas_width - pad
            assert pad <= word.y <= settings.canvas_height - pad

    def test_anchor_index_valid(self, sample_payload, measurer):
        scene = compile_scene(sample_payload, measurer=measurer)
        for group in scene.phrase_groups:
            source_words = {w.word_index for w in group.words}
            assert 0 <= group.anchor_word_idx < len(source_words)

    def test_deterministic(self, sample_payload, measurer):
        formatter = SceneJsonFormatter()
        first = formatter.format(compile_scene(sample_payload, measurer=measurer))[0].content
        second = formatter.format(compile_scene(sample_payload, measurer=measurer))[0].content
        assert first == second

    def test_custom_canvas(self, sample_payload, measurer):
        settings = CompilerSettings(canvas_width=1920, canvas_height=1080)
        scene = compile_scene(sample_payload, measurer=measurer, settings=settings)
        assert (scene.canvas_width, scene.canvas_height) == (1920, 1080)
        for _, word in scene.iter_words():
            assert settings.padding <= word.x <= 1920 - settings.padding
            assert settings.padding <= word.y <= 1080 - settings.padding


class TestEdgeCases:
    def test_empty_payload(self, measurer):
        scene = compile_scene(parse_payload({}), measurer=measurer)
        assert scene.phrase_groups == ()
        assert scene.word_count == 0
        assert len(scene.chapters) == 3
        assert scene.duration_sec == pytest.approx(0.01)

    def test_frame_state_manifest(self, sample_payload_data, measurer):
        sample_payload_data["frame_state"] = {"wordDirectives": {"0-0": [{"entryStyle": "spin-in"}]}}
        scene = compile_scene(parse_payload(sample_payload_data), measurer=measurer)
        words = {w.id: w for _, w in scene.iter_words()}
        assert words["0-0-0"].entry is EntryStyle.SPIN_IN
        assert words["0-0-0"].behavior is BehaviorStyle.NONE

    def test_without_direction(self, sample_payload_data, measurer):
        del sample_payload_data["cinematic_direction"]
        scene = compile_scene(parse_payload(sample_payload_data), measurer=measurer)
        assert scene.word_count == 10
        assert all(g.motion_profile is MotionProfile.FLUID for g in scene.phrase_groups)
        assert all(not w.has_semantic_color for _, w in scene.iter_words())

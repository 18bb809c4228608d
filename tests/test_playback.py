"""Tests for frame sampling, export, and the scene session (playback/).

WHY: Preview and export must agree frame for frame, and the session must
not recompile when the editor resends an unchanged payload.

HOW: Sample the compiled sample scene at hand-computed times (drift
group 0-0: entry 0.5, linger 0.8, exit 0.6; glitch group 2-0: entry
0.05) and drive FrameExporter with callbacks and a RestPhysics source.

RULES:
- appear = group.start − entry + word_position × stagger + letter_delay
- A word is in the frame only for appear <= t < gone
- Export frame k is sample_frame(scene, song_start + k / fps)
- Cancellation stops the export before the next frame
"""

import copy
import threading
import time

import pytest

from lyric_compiler.core.layout import CharWidthMeasurer
from lyric_compiler.core.payload import PayloadError
from lyric_compiler.playback.export import FrameExporter
from lyric_compiler.playback.physics import PhysicsState, RestPhysics
from lyric_compiler.playback.sampler import beat_position, sample_frame
from lyric_compiler.playback.session import SceneSession, payload_fingerprint


def _frame_words(frame):
    return {w.id: w for w in frame.words}


class _BlockingMeasurer:
    """CharWidthMeasurer that records overlapping calls and can be paused.

    While ``release`` is clear every measure() call waits on it, which
    holds a compile in progress for as long as the test needs.
    """

    def __init__(self, delay=0.0):
        self._inner = CharWidthMeasurer()
        self._guard = threading.Lock()
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.started = threading.Event()
        self.release = threading.Event()
        self.release.set()

    def measure(self, text, family, weight, size):
        with self._guard:
            self.active += 1
            self.peak = max(self.peak, self.active)
        self.started.set()
        self.release.wait(5)
        if self.delay:
            time.sleep(self.delay)
        with self._guard:
            self.active -= 1
        return self._inner.measure(text, family, weight, size)


class TestWordPhases:
    def test_entry_starts_before_the_word(self, sample_scene):
        words = _frame_words(sample_frame(sample_scene, -0.49))
        assert words["0-0-0"].phase == "entry"
        # second word is staggered by 0.05s
        assert "0-0-1" not in words

    def test_hold_at_rest_position(self, sample_scene, sample_words):
        word = _frame_words(sample_frame(sample_scene, 0.2))["0-0-0"]
        assert word.phase == "hold"
        assert word.alpha == pytest.approx(1.0)
        assert word.x == pytest.approx(sample_words["0-0-0"].x)

    def test_exit_after_linger(self, sample_scene):
        word = _frame_words(sample_frame(sample_scene, 1.5))["0-0-0"]
        assert word.phase == "exit"
        assert word.alpha == pytest.approx(0.875)

    def test_gone_after_exit(self, sample_scene):
        words = _frame_words(sample_frame(sample_scene, 2.5))
        assert not any(word_id.startswith("0-0-") for word_id in words)

    def test_nothing_before_the_song(self, sample_scene):
        frame = sample_frame(sample_scene, -1.0)
        assert frame.words == ()
        assert frame.beat_index == -1

    def test_letters_enter_one_by_one(self, sample_scene):
        """Letter i of 'shatter' appears at 2.0 + i × 0.012."""
        words = _frame_words(sample_frame(sample_scene, 2.005))
        assert "1-0-1-L0" in words
        assert "1-0-1-L1" not in words

    def test_alpha_in_range(self, sample_scene):
        for k in range(70):
            for word in sample_frame(sample_scene, k / 10).words:
                assert 0.0 <= word.alpha <= 1.0

    def test_sampling_is_order_independent(self, sample_scene):
        late = sample_frame(sample_scene, 5.0)
        sample_frame(sample_scene, 0.5)
        assert sample_frame(sample_scene, 5.0) == late


class TestFrameContext:
    def test_beat_position(self, sample_scene):
        assert beat_position(sample_scene, 0.25) == (0, pytest.approx(0.5))
        assert beat_position(sample_scene, 6.25) == (12, pytest.approx(0.5))

    def test_chapter_and_zoom(self, sample_scene):
        early = sample_frame(sample_scene, 0.5)
        assert (early.chapter_index, early.zoom) == (0, pytest.approx(0.82))
        late = sample_frame(sample_scene, 4.0)
        assert (late.chapter_index, late.zoom) == (1, pytest.approx(1.0))

    def test_physics_glow_scales_semantic_glow(self, sample_scene):
        """Storm enters at 4.1 over 0.02s; physics glow 40 doubles its glow."""
        rest = _frame_words(sample_frame(sample_scene, 4.11))["2-0-3"]
        hot = _frame_words(sample_frame(sample_scene, 4.11, PhysicsState(glow=40.0)))["2-0-3"]
        assert rest.phase == "entry"
        assert rest.glow > 0
        assert hot.glow == pytest.approx(rest.glow * 2)

    def test_physics_never_moves_layout(self, sample_scene):
        rest = _frame_words(sample_frame(sample_scene, 0.2))["0-0-0"]
        hot = _frame_words(sample_frame(sample_scene, 0.2, PhysicsState(heat=1.0, offset_x=50.0)))["0-0-0"]
        assert hot.x == pytest.approx(rest.x)


class TestFrameExporter:
    def test_frame_count_and_times(self, sample_scene):
        result = FrameExporter(sample_scene, fps=10).run()
        assert result.total_frames == 61
        assert result.frame_count == 61
        assert not result.cancelled
        assert result.frames[0].time == 0.0
        assert result.frames[15] == sample_frame(sample_scene, 1.5)

    def test_rejects_bad_fps(self, sample_scene):
        with pytest.raises(ValueError):
            FrameExporter(sample_scene, fps=0)

    def test_feeds_beats_to_physics(self, sample_scene):
        physics = RestPhysics()
        FrameExporter(sample_scene, fps=10, physics=physics).run(collect=False)
        assert physics.beats_seen == 13
        assert physics.ticks == 61

    def test_callbacks(self, sample_scene):
        seen = []
        progress = []
        exporter = FrameExporter(sample_scene, fps=10, progress=lambda done, total: progress.append((done, total)))
        result = exporter.run(on_frame=lambda index, frame: seen.append(index), collect=False)
        assert seen == list(range(61))
        assert progress[-1] == (61, 61)
        assert result.frames == []

    def test_cancel_from_callback(self, sample_scene):
        exporter = FrameExporter(sample_scene, fps=10)

        def on_frame(index, frame):
            if index == 4:
                exporter.cancel()

        result = exporter.run(on_frame=on_frame)
        assert result.cancelled
        assert result.frame_count == 5

    def test_shared_cancel_event(self, sample_scene):
        event = threading.Event()
        event.set()
        result = FrameExporter(sample_scene, fps=10, cancel_event=event).run()
        assert result.cancelled
        assert result.frames == []


class TestSceneSession:
    def test_compiles_once_per_payload(self, sample_payload_data, measurer):
        session = SceneSession(measurer=measurer)
        assert session.scene is None
        assert session.update(sample_payload_data) is True
        first = session.scene
        assert session.update(sample_payload_data) is False
        assert session.scene is first
        assert session.compile_count == 1

    def test_recompiles_on_change(self, sample_payload_data, measurer):
        session = SceneSession(measurer=measurer)
        session.update(sample_payload_data)
        first = session.scene
        sample_payload_data["words"][0]["end"] = 0.15
        assert session.update(sample_payload_data) is True
        assert session.scene is not first
        assert session.compile_count == 2

    def test_fingerprint_ignores_key_order(self):
        assert payload_fingerprint({"a": 1, "b": [1, 2]}) == payload_fingerprint({"b": [1, 2], "a": 1})
        assert payload_fingerprint({"a": 1}) != payload_fingerprint({"a": 2})

    def test_invalid_payload_keeps_scene(self, sample_payload_data, measurer):
        session = SceneSession(measurer=measurer)
        session.update(sample_payload_data)
        scene, fingerprint = session.scene, session.fingerprint
        with pytest.raises(PayloadError):
            session.update({"lines": "not a list"})
        assert session.scene is scene
        assert session.fingerprint == fingerprint


class TestSceneSessionThreads:
    def test_overlapping_updates_compile_one_at_a_time(self, sample_payload_data):
        """An older, slower update never runs beside or overwrites a newer one."""
        measurer = _BlockingMeasurer(delay=0.001)
        session = SceneSession(measurer=measurer)
        older = copy.deepcopy(sample_payload_data)
        newer = copy.deepcopy(sample_payload_data)
        newer["words"][0]["end"] = 0.15

        first = threading.Thread(target=session.update, args=(older,))
        first.start()
        assert measurer.started.wait(5)
        second = threading.Thread(target=session.update, args=(newer,))
        second.start()
        first.join(30)
        second.join(30)

        assert measurer.peak == 1
        assert session.compile_count == 2
        assert session.fingerprint == payload_fingerprint(newer)

    def test_readers_keep_current_scene_during_compile(self, sample_payload_data):
        measurer = _BlockingMeasurer()
        session = SceneSession(measurer=measurer)
        session.update(sample_payload_data)
        held = session.scene
        before = [w.id for _, w in held.iter_words()]

        changed = copy.deepcopy(sample_payload_data)
        del changed["cinematic_direction"]
        measurer.started.clear()
        measurer.release.clear()
        writer = threading.Thread(target=session.update, args=(changed,))
        writer.start()
        assert measurer.started.wait(5)

        seen = []
        reader = threading.Thread(target=lambda: seen.append(session.scene))
        reader.start()
        reader.join(5)
        assert not reader.is_alive()
        assert len(seen) == 1
        assert seen[0] is held

        measurer.release.set()
        writer.join(30)
        assert session.scene is not held
        assert session.scene.word_count == 10
        assert session.fingerprint == payload_fingerprint(changed)
        assert [w.id for _, w in held.iter_words()] == before

"""Tests for anchor-box collision resolution (core/collision.py).

WHY: Two anchor words on screen at the same time must not overlap, but
groups that are never visible together must never be moved because of
each other.

HOW: Build GroupBoxes directly with known geometry and check the net
deltas reported by resolve_collisions().

RULES:
- Only boxes whose visible windows intersect are compared
- The higher-priority box moves 30% of the overlap, the other 70%
- Moves below 0.5 units are not reported
"""

import logging

import pytest

from lyric_compiler.config import CompilerSettings
from lyric_compiler.core.collision import HEIGHT_FACTOR, GroupBox, resolve_collisions


def _box(key, cx, cy, priority=1, window=(0.0, 1.0), half_w=100.0, half_h=40.0):
    return GroupBox(
        key=key,
        cx=cx,
        cy=cy,
        half_w=half_w,
        half_h=half_h,
        priority=priority,
        vis_start=window[0],
        vis_end=window[1],
    )


def _overlapping(a, b):
    return abs(a.cx - b.cx) < a.half_w + b.half_w and abs(a.cy - b.cy) < a.half_h + b.half_h


class TestGroupBox:
    def test_for_anchor_geometry(self):
        box = GroupBox.for_anchor("0-0", 480, 270, 200, 50, 3, 0.0, 1.0, padding=24)
        assert box.half_w == pytest.approx(100 + 24)
        assert box.half_h == pytest.approx(50 * HEIGHT_FACTOR + 24)
        assert box.priority == 3
        assert (box.origin_x, box.origin_y) == (480, 270)

    def test_window_overlap(self):
        a = _box("a", 0, 0, window=(0.0, 1.0))
        assert a.windows_overlap(_box("b", 0, 0, window=(0.5, 2.0)))
        assert a.windows_overlap(_box("b", 0, 0, window=(1.0, 2.0)))
        assert not a.windows_overlap(_box("b", 0, 0, window=(1.5, 2.0)))


class TestResolveCollisions:
    def test_overlapping_boxes_separated(self, settings):
        a = _box("0-0", 480, 270, priority=3)
        b = _box("1-0", 500, 270, priority=1)
        result = resolve_collisions([a, b], settings)
        assert result.converged
        assert result.collisions == 1
        assert not _overlapping(a, b)

    def test_higher_priority_moves_less(self, settings):
        a = _box("0-0", 480, 270, priority=3)
        b = _box("1-0", 500, 270, priority=1)
        result = resolve_collisions([a, b], settings)
        # vertical overlap (80) is smaller than horizontal (180): push on y
        assert result.deltas["0-0"] == pytest.approx((0.0, 24.0))
        assert result.deltas["1-0"] == pytest.approx((0.0, -56.0))

    def test_disjoint_windows_never_pushed(self, settings):
        a = _box("0-0", 480, 270, window=(0.0, 1.0))
        b = _box("1-0", 480, 270, window=(2.0, 3.0))
        result = resolve_collisions([a, b], settings)
        assert result.deltas == {}
        assert result.converged
        assert result.passes == 1

    def test_separated_boxes_untouched(self, settings):
        a = _box("0-0", 200, 270)
        b = _box("1-0", 700, 270)
        assert resolve_collisions([a, b], settings).deltas == {}

    def test_boxes_stay_inside_margin(self, settings):
        a = _box("0-0", 150, 100, priority=1)
        b = _box("1-0", 160, 110, priority=1)
        resolve_collisions([a, b], settings)
        margin = settings.collision_margin
        for box in (a, b):
            assert box.half_w + margin <= box.cx <= settings.canvas_width - box.half_w - margin
            assert box.half_h + margin <= box.cy <= settings.canvas_height - box.half_h - margin

    def test_non_convergence_is_reported(self, caplog):
        limited = CompilerSettings(collision_max_passes=1)
        a = _box("0-0", 480, 270)
        b = _box("1-0", 490, 270)
        with caplog.at_level(logging.WARNING, logger="lyric_compiler.core.collision"):
            result = resolve_collisions([a, b], limited)
        assert not result.converged
        assert result.passes == 1
        assert "did not converge" in caplog.text

    def test_empty(self, settings):
        result = resolve_collisions([], settings)
        assert result.converged
        assert result.deltas == {}

"""Compile-time collision resolution between simultaneously visible groups.

WHY: Slot tables and layout hints spread groups out, but two anchor
words that are on screen at the same time can still overlap (long
words, big emphasis fonts, dense choruses). Resolving this once at
compile time keeps the render loop free of any layout work.

HOW: One box per group, centered on the anchor word. Up to
``max_passes`` sweeps over all pairs; a pair is only compared when
their extended visible windows overlap in time. Overlapping boxes are
pushed apart along the axis of least penetration, the higher-priority
box moving less. The caller applies each group's net translation to
every word in the group.

RULES:
- Box: half width = anchor text width / 2 + padding,
  half height = font × 0.7 + padding, priority = anchor emphasis
- Windows [start − entry − stagger×words, end + linger + exit] that are
  strictly disjoint are never compared
- Split: priority >= other's → move 30%, other moves 70%
- Each moved box is clamped to [half + margin, dim − half − margin]
- Stops after the first pass with no collision; exhausting the pass
  budget logs a warning and is not an error
- Net translations with both components < 0.5 are dropped
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from lyric_compiler.config import CompilerSettings

logger = logging.getLogger(__name__)

HEIGHT_FACTOR = 0.7
HIGH_PRIORITY_SHARE = 0.3
MIN_APPLIED_DELTA = 0.5


@dataclass
class GroupBox:
    """Mutable working box for one phrase group's anchor word."""

    key: str
    cx: float
    cy: float
    half_w: float
    half_h: float
    priority: int
    vis_start: float
    vis_end: float
    origin_x: float = field(init=False)
    origin_y: float = field(init=False)

    def __post_init__(self) -> None:
        self.origin_x = self.cx
        self.origin_y = self.cy

    @classmethod
    def for_anchor(
        cls,
        key: str,
        x: float,
        y: float,
        text_width: float,
        font_size: float,
        emphasis: int,
        vis_start: float,
        vis_end: float,
        padding: float,
    ) -> "GroupBox":
        return cls(
            key=key,
            cx=x,
            cy=y,
            half_w=text_width / 2.0 + padding,
            half_h=font_size * HEIGHT_FACTOR + padding,
            priority=emphasis,
            vis_start=vis_start,
            vis_end=vis_end,
        )

    def windows_overlap(self, other: "GroupBox") -> bool:
        return not (self.vis_end < other.vis_start or other.vis_end < self.vis_start)


@dataclass
class CollisionResult:
    deltas: dict[str, tuple[float, float]]
    passes: int
    converged: bool
    collisions: int = 0


def _clamp(value: float, low: float, high: float) -> float:
    if low > high:
        return (low + high) / 2.0
    return max(low, min(high, value))


def _push_apart(a: GroupBox, b: GroupBox, settings: CompilerSettings) -> bool:
    dx = a.cx - b.cx
    dy = a.cy - b.cy
    overlap_x = (a.half_w + b.half_w) - abs(dx)
    overlap_y = (a.half_h + b.half_h) - abs(dy)
    if overlap_x <= 0 or overlap_y <= 0:
        return False

    move_a = HIGH_PRIORITY_SHARE if a.priority >= b.priority else 1.0 - HIGH_PRIORITY_SHARE
    move_b = 1.0 - move_a
    if overlap_x < overlap_y:
        sign = 1.0 if dx >= 0 else -1.0
        a.cx += sign * overlap_x * move_a
        b.cx -= sign * overlap_x * move_b
    else:
        sign = 1.0 if dy >= 0 else -1.0
        a.cy += sign * overlap_y * move_a
        b.cy -= sign * overlap_y * move_b

    margin = settings.collision_margin
    for box in (a, b):
        box.cx = _clamp(box.cx, box.half_w + margin, settings.canvas_width - box.half_w - margin)
        box.cy = _clamp(box.cy, box.half_h + margin, settings.canvas_height - box.half_h - margin)
    return True


def resolve_collisions(boxes: Sequence[GroupBox], settings: CompilerSettings) -> CollisionResult:
    """Separate overlapping boxes in place and report each group's net move.

    Args:
        boxes: One box per group, in group order. Boxes are mutated.
        settings: Canvas size, clamp margin, and pass budget.

    Returns:
        CollisionResult with the translation to apply per group key.
    """
    passes = 0
    collisions = 0
    converged = False
    for _ in range(settings.collision_max_passes):
        passes += 1
        had_collision = False
        for i in range(len(boxes)):
            for j in range(i + 1, len(boxes)):
                a, b = boxes[i], boxes[j]
                if not a.windows_overlap(b):
                    continue
                if _push_apart(a, b, settings):
                    had_collision = True
                    collisions += 1
        if not had_collision:
            converged = True
            break

    if not converged:
        logger.warning(
            "Collision resolution did not converge after %d passes (%d groups); "
            "positions are clamped but may still overlap",
            passes, len(boxes),
        )

    deltas: dict[str, tuple[float, float]] = {}
    for box in boxes:
        dx = box.cx - box.origin_x
        dy = box.cy - box.origin_y
        if abs(dx) < MIN_APPLIED_DELTA and abs(dy) < MIN_APPLIED_DELTA:
            continue
        deltas[box.key] = (dx, dy)
    return CollisionResult(deltas=deltas, passes=passes, converged=converged, collisions=collisions)

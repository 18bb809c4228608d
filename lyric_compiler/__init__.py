"""Lyric Scene Compiler — timed lyrics + beats + direction to an animation timeline.

WHY: A lyric video renderer needs to know, for any timestamp, where every
word sits on screen and how it is moving. Deciding that per frame is slow
and makes a live preview drift from an offline export. This package
resolves all of it once, up front, into an immutable CompiledScene that any
renderer can sample by time.

HOW: Three-stage pipeline — parse (typed payload), compile (word timeline,
phrase grouping, layout, collision resolution, style resolution), consume
(frame sampler, fixed-step exporter, pluggable formatters). Each stage is
independently testable.

RULES:
- The CompiledScene is the stable contract between compiling and sampling
- Compilation is deterministic: no wall-clock time, no unseeded randomness
- Adding a new output format = one new formatter module, no core changes
"""

__version__ = "0.1.0"

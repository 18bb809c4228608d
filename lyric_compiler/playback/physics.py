"""Beat-reactive physics interface consumed by the sampler and exporter.

WHY: The spring integrator that reacts to beats lives with the renderer.
The compiled scene only needs its current state (heat and glow) to scale
behavior intensity and semantic glow, so the contract is a small protocol.

RULES:
- tick() advances one rendered frame and returns the new state
- on_beat(strength, is_downbeat) is called for every beat crossed since
  the previous tick, before that tick
- reset() is called when playback starts over (seek to start, loop wrap)
- Physics never affects layout
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class PhysicsState:
    heat: float = 0.0
    glow: float = 0.0
    shake: float = 0.0
    velocity: float = 0.0
    rotation: float = 0.0
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


REST_STATE = PhysicsState()


class PhysicsSource(Protocol):
    def tick(self) -> PhysicsState:
        ...

    def on_beat(self, strength: float, is_downbeat: bool) -> None:
        ...

    def reset(self) -> None:
        ...


class RestPhysics:
    """A physics source that never moves.

    Used when no integrator is attached; it still records beats so
    callers can check what was fed to it.
    """

    def __init__(self) -> None:
        self.beats_seen = 0
        self.ticks = 0

    def tick(self) -> PhysicsState:
        self.ticks += 1
        return REST_STATE

    def on_beat(self, strength: float, is_downbeat: bool) -> None:
        self.beats_seen += 1

    def reset(self) -> None:
        self.beats_seen = 0
        self.ticks = 0

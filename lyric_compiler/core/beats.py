"""Beat grid → spring-impulse beat events.

WHY: The renderer's physics integrator kicks on every beat. How hard it
kicks depends on the song's "heat" and on the physics profile's beat
response: a slamming track should jolt the text, a gentle one should
barely breathe. Computing the impulses once keeps playback cheap.

HOW: Heat comes from the direction's physics profile, else from the
global motion profile, else a neutral 0.5. Each beat timestamp becomes a
BeatEvent whose spring velocity and glow ceiling scale with heat, with
the SLAM response using the larger multipliers.

RULES:
- heat is clamped to [0, 1]
- SLAM: spring 1.8×heat, glow 1.2×heat; every other response: 0.8×heat,
  0.6×heat
- Beats are emitted sorted by time; every 4th beat (index % 4 == 0) is a
  downbeat with strength 1.0, the others 0.6
- bpm: payload bpm, else beat-grid bpm, else 120
"""

from __future__ import annotations

from typing import Iterable, Optional

from lyric_compiler.core.ir import BeatEvent
from lyric_compiler.core.payload import Direction, ScenePayload
from lyric_compiler.core.styles import BeatResponse, MotionProfile, require_complete

DEFAULT_HEAT = 0.5
DEFAULT_BPM = 120.0
BEATS_PER_BAR = 4
DOWNBEAT_STRENGTH = 1.0
OFFBEAT_STRENGTH = 0.6

SLAM_SPRING = 1.8
SLAM_GLOW = 1.2
SOFT_SPRING = 0.8
SOFT_GLOW = 0.6

MOTION_HEAT: dict[MotionProfile, float] = {
    MotionProfile.WEIGHTED: 0.8,
    MotionProfile.ELASTIC: 0.6,
    MotionProfile.FLUID: 0.45,
    MotionProfile.GLITCH: 0.7,
    MotionProfile.DRIFT: 0.2,
}

MOTION_BEAT_RESPONSE: dict[MotionProfile, BeatResponse] = {
    MotionProfile.WEIGHTED: BeatResponse.SLAM,
    MotionProfile.ELASTIC: BeatResponse.PULSE,
    MotionProfile.FLUID: BeatResponse.PULSE,
    MotionProfile.GLITCH: BeatResponse.SNAP,
    MotionProfile.DRIFT: BeatResponse.DRIFT,
}

require_complete(MOTION_HEAT, MotionProfile, "MOTION_HEAT")
require_complete(MOTION_BEAT_RESPONSE, MotionProfile, "MOTION_BEAT_RESPONSE")


def resolve_heat(direction: Optional[Direction]) -> float:
    """Physics-profile heat, else the motion profile's heat, else 0.5."""
    heat = DEFAULT_HEAT
    if direction is not None:
        profile = direction.physics_profile
        if profile is not None and profile.heat is not None:
            heat = profile.heat
        elif direction.motion is not None:
            heat = MOTION_HEAT[direction.motion]
    return max(0.0, min(1.0, heat))


def resolve_beat_response(direction: Optional[Direction]) -> BeatResponse:
    if direction is None:
        return BeatResponse.PULSE
    profile = direction.physics_profile
    if profile is not None and profile.beat_response is not None:
        return profile.beat_response
    if direction.motion is not None:
        return MOTION_BEAT_RESPONSE[direction.motion]
    return BeatResponse.PULSE


def resolve_bpm(payload: ScenePayload) -> float:
    if payload.bpm is not None and payload.bpm > 0:
        return payload.bpm
    if payload.beat_grid is not None and payload.beat_grid.bpm is not None and payload.beat_grid.bpm > 0:
        return payload.beat_grid.bpm
    return DEFAULT_BPM


def synthesize_beat_events(
    beats: Iterable[float],
    heat: float,
    response: BeatResponse = BeatResponse.PULSE,
) -> tuple[BeatEvent, ...]:
    """Turn beat timestamps into spring-impulse events.

    Args:
        beats: Beat times in seconds (any order).
        heat: Song heat, clamped to [0, 1].
        response: Physics beat response; SLAM gives bigger impulses.

    Returns:
        BeatEvents sorted by time.
    """
    heat = max(0.0, min(1.0, heat))
    slam = response is BeatResponse.SLAM
    spring = (SLAM_SPRING if slam else SOFT_SPRING) * heat
    glow = (SLAM_GLOW if slam else SOFT_GLOW) * heat
    events = []
    for index, time in enumerate(sorted(beats)):
        downbeat = index % BEATS_PER_BAR == 0
        events.append(BeatEvent(
            time=time,
            spring_velocity=spring,
            glow_max=glow,
            is_downbeat=downbeat,
            strength=DOWNBEAT_STRENGTH if downbeat else OFFBEAT_STRENGTH,
        ))
    return tuple(events)

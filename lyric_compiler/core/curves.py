"""Animation curve library: entry, exit, and behavior transforms.

WHY: Every named style the direction can pick has to turn into concrete
numbers (offset, scale, alpha, skew, glow, blur, rotation) at any point
in time. Preview scrubbing and fixed-step export both re-evaluate these
curves at arbitrary progress values, so they must be pure functions with
no hidden state and no wall-clock randomness.

HOW: Four shared easing primitives, one small function per style, and
three dispatch tables keyed by the style enums. Each table is checked
against its enum on import, so a new style without a curve fails
immediately. Pseudo-random jitter uses deterministic_sign(), a fixed
hash of its seed.

RULES:
- Progress is clamped to [0, 1] before evaluation
- entry(style, 0).alpha == 0 and entry(style, 1) is the neutral state
  (alpha 1, no offset, skew, blur, or rotation) for every entry style
- exit(style, 1).alpha == 0 for every exit style except LINGER (0.28)
- behavior_state() returns a partial dict; missing keys mean "no change"
- letter_index/letter_total only shape SCATTER_LETTERS, CASCADE_DOWN,
  CASCADE_UP and FREEZE_CRACK
"""

from __future__ import annotations

import math
from typing import Callable

from lyric_compiler.core.ir import AnimState
from lyric_compiler.core.styles import BehaviorStyle, EntryStyle, ExitStyle, require_complete

LINGER_ALPHA = 0.28
TWO_PI = math.pi * 2


# ---------------------------------------------------------------------------
# Easing primitives
# ---------------------------------------------------------------------------


def ease_out(t: float) -> float:
    return 1 - (1 - t) ** 3


def ease_in(t: float) -> float:
    return t ** 3


def ease_out_back(t: float) -> float:
    c1 = 1.70158
    c3 = c1 + 1
    return 1 + c3 * (t - 1) ** 3 + c1 * (t - 1) ** 2


def ease_out_elastic(t: float) -> float:
    if t == 0 or t == 1:
        return t
    return 2 ** (-10 * t) * math.sin((t * 10 - 0.75) * TWO_PI / 3) + 1


def deterministic_sign(seed: float) -> int:
    """+1 or -1 from a fixed hash of ``seed`` (same seed, same sign)."""
    return 1 if math.sin(seed * 127.1 + 311.7) > 0 else -1


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _uniform(scale: float, **kwargs: float) -> AnimState:
    return AnimState(scale_x=scale, scale_y=scale, **kwargs)


# ---------------------------------------------------------------------------
# Entry curves (p in [0, 1])
# ---------------------------------------------------------------------------


def _slam_down(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return AnimState(
        offset_y=-(1 - ep) * 80 * k,
        scale_x=1 + (1 - ep) * 0.3 * k,
        scale_y=1 if ep < 0.9 else 1 - (1 - ep) * 10 * k,
        alpha=min(1.0, p * 8),
        glow_mult=(1 - ep) * 4 if ep > 0.85 else 0.0,
    )


def _punch_in(p: float, k: float) -> AnimState:
    return AnimState(
        offset_x=(1 - ease_out_back(p)) * -120 * k,
        alpha=min(1.0, p * 6),
        skew_x=(1 - ease_out(p)) * -8 * k,
    )


def _explode_in(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    mult = min(2.0, 2.5 * k)
    return _uniform(1 + (1 - ep) * mult, alpha=min(1.0, p * 4), glow_mult=(1 - ep) * 2)


def _snap_in(p: float, k: float) -> AnimState:
    return AnimState(alpha=1.0 if p > 0.01 else 0.0)


def _shatter_in(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return _uniform(
        0.8 + ep * 0.2,
        offset_x=(1 - ep) * 30 * deterministic_sign(p * 13.37),
        offset_y=(1 - ep) * 20 * deterministic_sign(p * 7.91),
        alpha=min(1.0, p * 4),
        skew_x=(1 - ep) * 5,
    )


def _rise(p: float, k: float) -> AnimState:
    return AnimState(offset_y=(1 - ease_out(p)) * 45 * k, alpha=ease_out(min(1.0, p * 2)))


def _materialize(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return _uniform(0.75 + ep * 0.25, alpha=ease_out(min(1.0, p * 1.5)), glow_mult=(1 - ep) * 0.8)


def _breathe_in(p: float, k: float) -> AnimState:
    return _uniform(0.9 + ease_out_elastic(p) * 0.1, alpha=ease_out(min(1.0, p * 2)))


def _drift_in(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return AnimState(
        offset_x=(1 - ep) * -30,
        offset_y=(1 - ep) * 10,
        alpha=ease_out(min(1.0, p * 1.5)),
        skew_x=(1 - ep) * -3,
    )


def _surface(p: float, k: float) -> AnimState:
    return AnimState(alpha=ease_in(min(1.0, p * 1.2)), glow_mult=(1 - ease_out(p)) * 1.5)


def _drop(p: float, k: float) -> AnimState:
    return AnimState(offset_y=-(1 - ease_out(p)) * 60 * k, alpha=1.0 if p > 0.1 else 0.0)


def _plant(p: float, k: float) -> AnimState:
    return _uniform(1 + (1 - ease_out(p)) * 0.2, alpha=1.0 if p > 0.05 else 0.0)


def _stomp(p: float, k: float) -> AnimState:
    wipe = min(1.0, p * 3)
    return AnimState(offset_y=(1 - wipe) * 20, scale_y=wipe, alpha=wipe)


def _cut_in(p: float, k: float) -> AnimState:
    return AnimState(offset_x=(1 - ease_out(p)) * -40, alpha=min(1.0, p * 5))


def _whisper(p: float, k: float) -> AnimState:
    return _uniform(0.95 + ease_out(p) * 0.05, alpha=ease_in(p))


def _bloom(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return _uniform(0.5 + ep * 0.5, alpha=ease_out(min(1.0, p * 1.2)), glow_mult=(1 - ep) * 2.5)


def _melt_in(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return AnimState(offset_y=(1 - ep) * 15, alpha=ease_out(min(1.0, p * 1.8)), skew_x=(1 - ep) * 2)


def _ink_drop(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return _uniform(ep * 2 if ep < 0.5 else 1.0, alpha=min(1.0, p * 3), glow_mult=(1 - ep) * 0.5)


def _fades_in(p: float, k: float) -> AnimState:
    return AnimState(alpha=ease_out(min(1.0, p * 2)))


def _focus_in(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return _uniform(
        1 + (1 - ep) * 0.6,
        alpha=ease_out(min(1.0, p * 1.5)),
        glow_mult=(1 - ep) * 2,
        blur=(1 - ep) * 1.0,
    )


def _spin_in(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return _uniform(
        0.6 + ep * 0.4,
        offset_x=(1 - ep) * -60,
        alpha=ease_out(min(1.0, p * 2)),
        skew_x=(1 - ep) * 25,
        rotation=(1 - ep) * TWO_PI,
    )


def _tumble_in(p: float, k: float) -> AnimState:
    ep = ease_out(p)
    return AnimState(
        offset_x=(1 - ep) * 30,
        offset_y=(1 - ease_out_back(p)) * -80,
        alpha=ease_out(min(1.0, p * 2.5)),
        skew_x=(1 - ep) * 20,
        rotation=(1 - ep) * math.pi,
    )


ENTRY_CURVES: dict[EntryStyle, Callable[[float, float], AnimState]] = {
    EntryStyle.SLAM_DOWN: _slam_down,
    EntryStyle.PUNCH_IN: _punch_in,
    EntryStyle.EXPLODE_IN: _explode_in,
    EntryStyle.SNAP_IN: _snap_in,
    EntryStyle.SHATTER_IN: _shatter_in,
    EntryStyle.RISE: _rise,
    EntryStyle.MATERIALIZE: _materialize,
    EntryStyle.BREATHE_IN: _breathe_in,
    EntryStyle.DRIFT_IN: _drift_in,
    EntryStyle.SURFACE: _surface,
    EntryStyle.DROP: _drop,
    EntryStyle.PLANT: _plant,
    EntryStyle.STOMP: _stomp,
    EntryStyle.CUT_IN: _cut_in,
    EntryStyle.WHISPER: _whisper,
    EntryStyle.BLOOM: _bloom,
    EntryStyle.MELT_IN: _melt_in,
    EntryStyle.INK_DROP: _ink_drop,
    EntryStyle.FADES: _fades_in,
    EntryStyle.FOCUS_IN: _focus_in,
    EntryStyle.SPIN_IN: _spin_in,
    EntryStyle.TUMBLE_IN: _tumble_in,
}


# ---------------------------------------------------------------------------
# Exit curves (p in [0, 1], letter position for per-letter styles)
# ---------------------------------------------------------------------------

ExitCurve = Callable[[float, float, int, int], AnimState]


def _shatter(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return AnimState(
        offset_x=ep * 40 * deterministic_sign(p * 9.43),
        offset_y=ep * -30,
        scale_x=1 + ep * 0.4,
        scale_y=1 - ep * 0.3,
        alpha=1 - ep,
        skew_x=ep * 10,
        glow_mult=ep * 1.5,
    )


def _snap_out(p: float, k: float, li: int, lt: int) -> AnimState:
    return AnimState(alpha=0.0 if p > 0.02 else 1.0)


def _burn_out(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return _uniform(1 + ep * 0.1, alpha=1 - ep, glow_mult=ep * 3)


def _punch_out(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return AnimState(offset_x=ep * 150 * k, alpha=1 - min(1.0, p * 3), skew_x=ep * 8)


def _dissolve(p: float, k: float, li: int, lt: int) -> AnimState:
    return AnimState(alpha=1 - ease_in(p))


def _drift_up(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return AnimState(offset_y=-ep * 35, alpha=1 - ep)


def _exhale(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return _uniform(1 - ep * 0.1, alpha=1 - ep)


def _sink(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return AnimState(offset_y=ep * 40, alpha=1 - ep)


def _drop_out(p: float, k: float, li: int, lt: int) -> AnimState:
    return AnimState(offset_y=ease_in(p) * 200 * k, alpha=1 - min(1.0, p * 4))


def _cut_out(p: float, k: float, li: int, lt: int) -> AnimState:
    return AnimState(offset_x=ease_in(p) * 60, alpha=1 - min(1.0, p * 5))


def _vanish(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return _uniform(1 - ep * 0.8, alpha=1 - ep)


def _linger(p: float, k: float, li: int, lt: int) -> AnimState:
    return AnimState(alpha=LINGER_ALPHA)


def _evaporate(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return AnimState(offset_y=-ep * 12, alpha=1 - ep)


def _whisper_out(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return _uniform(1 - ep * 0.08, alpha=1 - ep)


def _fades_out(p: float, k: float, li: int, lt: int) -> AnimState:
    return AnimState(alpha=1 - ease_in(p))


def _gravity_fall(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return AnimState(
        offset_x=math.sin(p * 3) * 4,
        offset_y=ep ** 3 * 600,
        scale_y=1 + ep * 0.15,
        alpha=1 - ease_in(min(1.0, p * 1.2)),
    )


def _soar(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    arc = ease_in(ep)
    return _uniform(
        1 - ep * 0.3,
        offset_x=arc * 150,
        offset_y=-arc * 250,
        alpha=1 - ease_in(min(1.0, p * 1.5)),
        skew_x=-arc * 8,
    )


def _launch(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return AnimState(
        offset_x=math.sin(p * 12) * 3,
        offset_y=-(ep * ep) * 400,
        scale_y=1 + ep * 0.2,
        alpha=1 - ease_in(min(1.0, p * 2)),
        glow_mult=ep * 0.5,
    )


def _scatter_fly(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    arc = ease_in(ep)
    return _uniform(
        1 - ep * 0.5,
        offset_x=math.sin(p * 4) * 80 * arc,
        offset_y=-arc * 200,
        alpha=1 - ep,
        skew_x=math.sin(p * 6) * 12,
    )


def _melt(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return AnimState(
        offset_x=math.sin(p * 2) * 3,
        offset_y=ease_in(ep) * 120,
        scale_x=1 + ep * 0.3,
        scale_y=1 - ep * 0.4,
        alpha=1 - ep,
        skew_x=p * 6,
    )


def _freeze_crack(p: float, k: float, li: int, lt: int) -> AnimState:
    if p < 0.7:
        return AnimState()
    bp = ease_in(min(1.0, (p - 0.7) / 0.3))
    direction = 1 if li % 2 == 0 else -1
    return AnimState(offset_x=bp * 60 * direction, offset_y=bp * 40, alpha=1 - bp, skew_x=bp * 15)


def _scatter_letters(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    burst = ease_in(ep)
    angle = (p * 7.3 + li * TWO_PI / max(1, lt)) % TWO_PI
    return _uniform(
        1 - ep * 0.3,
        offset_x=math.cos(angle) * burst * 100,
        offset_y=math.sin(angle) * burst * 80 + burst * 40,
        alpha=1 - ep,
        skew_x=burst * 20 * math.sin(angle),
        rotation=ep * (0.5 if angle > math.pi else -0.5),
    )


def _letter_progress(p: float, li: int, lt: int) -> float:
    """Delay later letters by up to 40% of the exit, still ending at p == 1."""
    lag = 0.4 * li / max(1, lt)
    return _clamp01((p - lag) / (1 - lag))


def _cascade(direction: int) -> ExitCurve:
    def curve(p: float, k: float, li: int, lt: int) -> AnimState:
        local = _letter_progress(p, li, lt)
        fall = ease_in(ease_in(local))
        return AnimState(offset_y=direction * fall * 300, alpha=1 - ease_in(min(1.0, local * 1.5)))
    return curve


def _blur_out(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return _uniform(1 + ep * 0.25, alpha=1 - ep, glow_mult=ep * 2, blur=ep * 1.0)


def _spin_out(p: float, k: float, li: int, lt: int) -> AnimState:
    ep = ease_in(p)
    return _uniform(1 - ep * 0.4, offset_x=ep * 80, alpha=1 - ep, skew_x=ep * 30, rotation=ep * TWO_PI)


def _peel(direction: int) -> ExitCurve:
    def curve(p: float, k: float, li: int, lt: int) -> AnimState:
        ep = ease_in(p)
        return AnimState(
            offset_x=direction * ep * 120,
            offset_y=ep * -20,
            scale_x=1 - ep * 0.2,
            alpha=1 - ep,
            skew_x=direction * ep * 15,
        )
    return curve


EXIT_CURVES: dict[ExitStyle, ExitCurve] = {
    ExitStyle.SHATTER: _shatter,
    ExitStyle.SNAP_OUT: _snap_out,
    ExitStyle.BURN_OUT: _burn_out,
    ExitStyle.PUNCH_OUT: _punch_out,
    ExitStyle.DISSOLVE: _dissolve,
    ExitStyle.DRIFT_UP: _drift_up,
    ExitStyle.EXHALE: _exhale,
    ExitStyle.SINK: _sink,
    ExitStyle.DROP_OUT: _drop_out,
    ExitStyle.CUT_OUT: _cut_out,
    ExitStyle.VANISH: _vanish,
    ExitStyle.LINGER: _linger,
    ExitStyle.EVAPORATE: _evaporate,
    ExitStyle.WHISPER_OUT: _whisper_out,
    ExitStyle.FADES: _fades_out,
    ExitStyle.GRAVITY_FALL: _gravity_fall,
    ExitStyle.SOAR: _soar,
    ExitStyle.LAUNCH: _launch,
    ExitStyle.SCATTER_FLY: _scatter_fly,
    ExitStyle.MELT: _melt,
    ExitStyle.FREEZE_CRACK: _freeze_crack,
    ExitStyle.SCATTER_LETTERS: _scatter_letters,
    ExitStyle.CASCADE_DOWN: _cascade(1),
    ExitStyle.CASCADE_UP: _cascade(-1),
    ExitStyle.BLUR_OUT: _blur_out,
    ExitStyle.SPIN_OUT: _spin_out,
    ExitStyle.PEEL_OFF: _peel(1),
    ExitStyle.PEEL_REVERSE: _peel(-1),
}


# ---------------------------------------------------------------------------
# Behavior curves (continuous while the word is held)
# ---------------------------------------------------------------------------

# (t, age, beat_phase, intensity) -> partial transform
BehaviorCurve = Callable[[float, float, float, float], dict]


def _pulse(t: float, age: float, phase: float, k: float) -> dict:
    pulse = math.sin(phase * TWO_PI) * 0.03 * k
    return {"scale_x": 1 + pulse, "scale_y": 1 + pulse}


def _vibrate(t: float, age: float, phase: float, k: float) -> dict:
    return {"offset_x": math.sin(t * 18) * 1.2 * k}


def _float(t: float, age: float, phase: float, k: float) -> dict:
    return {"offset_y": math.sin(age * 1.8) * 4 * k}


def _grow(t: float, age: float, phase: float, k: float) -> dict:
    scale = 1 + min(0.15, age * 0.04) * k
    return {"scale_x": scale, "scale_y": scale}


def _contract(t: float, age: float, phase: float, k: float) -> dict:
    scale = 1 - min(0.1, age * 0.03) * k
    return {"scale_x": scale, "scale_y": scale}


def _flicker(t: float, age: float, phase: float, k: float) -> dict:
    f = math.sin(t * 6) * 0.5 + math.sin(t * 13) * 0.5
    return {"alpha": 0.88 + f * 0.12}


def _orbit(t: float, age: float, phase: float, k: float) -> dict:
    angle = age * 1.2
    return {"offset_x": math.sin(angle) * 2 * k, "offset_y": math.cos(angle) * 1.5 * k}


def _lean(t: float, age: float, phase: float, k: float) -> dict:
    return {"skew_x": math.sin(age * 0.8) * 4 * k}


def _freeze(t: float, age: float, phase: float, k: float) -> dict:
    if age > 0.3:
        return {
            "offset_x": 0.0, "offset_y": 0.0, "scale_x": 1.0, "scale_y": 1.0,
            "alpha": 1.0, "skew_x": 0.0, "blur": 0.0, "rotation": 0.0,
        }
    pulse = math.sin(phase * TWO_PI) * 0.04 * k
    return {"scale_x": 1 + pulse, "scale_y": 1 + pulse}


def _tilt(t: float, age: float, phase: float, k: float) -> dict:
    return {"rotation": math.sin(age * 2) * 0.14 * k}


def _pendulum(t: float, age: float, phase: float, k: float) -> dict:
    return {"rotation": math.sin(age * 0.8) * 0.26 * k}


def _pulse_focus(t: float, age: float, phase: float, k: float) -> dict:
    return {"blur": max(0.0, math.sin(phase * TWO_PI) * 0.3)}


def _no_behavior(t: float, age: float, phase: float, k: float) -> dict:
    return {}


BEHAVIOR_CURVES: dict[BehaviorStyle, BehaviorCurve] = {
    BehaviorStyle.PULSE: _pulse,
    BehaviorStyle.VIBRATE: _vibrate,
    BehaviorStyle.FLOAT: _float,
    BehaviorStyle.GROW: _grow,
    BehaviorStyle.CONTRACT: _contract,
    BehaviorStyle.FLICKER: _flicker,
    BehaviorStyle.ORBIT: _orbit,
    BehaviorStyle.LEAN: _lean,
    BehaviorStyle.FREEZE: _freeze,
    BehaviorStyle.TILT: _tilt,
    BehaviorStyle.PENDULUM: _pendulum,
    BehaviorStyle.PULSE_FOCUS: _pulse_focus,
    BehaviorStyle.NONE: _no_behavior,
}


require_complete(ENTRY_CURVES, EntryStyle, "ENTRY_CURVES")
require_complete(EXIT_CURVES, ExitStyle, "EXIT_CURVES")
require_complete(BEHAVIOR_CURVES, BehaviorStyle, "BEHAVIOR_CURVES")


# ---------------------------------------------------------------------------
# Public evaluators
# ---------------------------------------------------------------------------


def entry_state(style: EntryStyle, progress: float, intensity: float = 1.0) -> AnimState:
    """Transform for ``style`` at entry ``progress`` (0 = hidden, 1 = settled)."""
    return ENTRY_CURVES[style](_clamp01(progress), intensity)


def exit_state(
    style: ExitStyle,
    progress: float,
    intensity: float = 1.0,
    letter_index: int = 0,
    letter_total: int = 1,
) -> AnimState:
    """Transform for ``style`` at exit ``progress`` (0 = fully shown, 1 = gone).

    letter_index/letter_total place a letter-sequenced word's letters on
    different phases of the per-letter styles; whole words use 0 / 1.
    """
    return EXIT_CURVES[style](_clamp01(progress), intensity, letter_index, max(1, letter_total))


def behavior_state(
    style: BehaviorStyle,
    t: float,
    word_start: float,
    beat_phase: float,
    intensity: float = 1.0,
) -> dict[str, float]:
    """Partial transform for an idle behavior at song time ``t``.

    Args:
        style: Behavior style.
        t: Current song time in seconds.
        word_start: When the word started (behaviors age from here).
        beat_phase: Position inside the current beat, 0–1.
        intensity: Group behavior intensity (already physics-scaled).

    Returns:
        Dict of AnimState field names to values. Offsets, skew, blur
        and rotation are additive; scale and alpha are multiplicative.
    """
    return BEHAVIOR_CURVES[style](t, t - word_start, beat_phase, intensity)

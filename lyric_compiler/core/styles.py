"""Closed vocabularies for every named style the direction can ask for.

WHY: The direction payload is produced by an external generator and arrives
as loose strings. Every style category (entry, exit, behavior, visual
metaphor, motion profile, typography preset, ...) is a closed set, so each
one is an Enum and every lookup table keyed by it must cover all members.
An unknown string is rejected at parse time instead of silently falling
through a table lookup somewhere deep in the compiler.

HOW: Each vocabulary is a ``str, Enum`` (values are the wire strings, so
they serialize cleanly to JSON). ``coerce_enum()`` turns a raw value into a
member or None, accepting a small alias map. ``require_complete()`` is called
at import time by every module that owns an enum-keyed table.

RULES:
- Enum values match the direction generator's wire strings exactly
- coerce_enum() never raises — unknown values become None
- Tables keyed by an enum must contain every member (checked on import)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

E = TypeVar("E", bound=Enum)


class EntryStyle(str, Enum):
    SLAM_DOWN = "slam-down"
    PUNCH_IN = "punch-in"
    EXPLODE_IN = "explode-in"
    SNAP_IN = "snap-in"
    SHATTER_IN = "shatter-in"
    RISE = "rise"
    MATERIALIZE = "materialize"
    BREATHE_IN = "breathe-in"
    DRIFT_IN = "drift-in"
    SURFACE = "surface"
    DROP = "drop"
    PLANT = "plant"
    STOMP = "stomp"
    CUT_IN = "cut-in"
    WHISPER = "whisper"
    BLOOM = "bloom"
    MELT_IN = "melt-in"
    INK_DROP = "ink-drop"
    FADES = "fades"
    FOCUS_IN = "focus-in"
    SPIN_IN = "spin-in"
    TUMBLE_IN = "tumble-in"


class ExitStyle(str, Enum):
    SHATTER = "shatter"
    SNAP_OUT = "snap-out"
    BURN_OUT = "burn-out"
    PUNCH_OUT = "punch-out"
    DISSOLVE = "dissolve"
    DRIFT_UP = "drift-up"
    EXHALE = "exhale"
    SINK = "sink"
    DROP_OUT = "drop-out"
    CUT_OUT = "cut-out"
    VANISH = "vanish"
    LINGER = "linger"
    EVAPORATE = "evaporate"
    WHISPER_OUT = "whisper-out"
    FADES = "fades"
    GRAVITY_FALL = "gravity-fall"
    SOAR = "soar"
    LAUNCH = "launch"
    SCATTER_FLY = "scatter-fly"
    MELT = "melt"
    FREEZE_CRACK = "freeze-crack"
    SCATTER_LETTERS = "scatter-letters"
    CASCADE_DOWN = "cascade-down"
    CASCADE_UP = "cascade-up"
    BLUR_OUT = "blur-out"
    SPIN_OUT = "spin-out"
    PEEL_OFF = "peel-off"
    PEEL_REVERSE = "peel-reverse"


class BehaviorStyle(str, Enum):
    PULSE = "pulse"
    VIBRATE = "vibrate"
    FLOAT = "float"
    GROW = "grow"
    CONTRACT = "contract"
    FLICKER = "flicker"
    ORBIT = "orbit"
    LEAN = "lean"
    FREEZE = "freeze"
    TILT = "tilt"
    PENDULUM = "pendulum"
    PULSE_FOCUS = "pulse-focus"
    NONE = "none"


class VisualMetaphor(str, Enum):
    EMBER_BURST = "ember-burst"
    FROST_FORM = "frost-form"
    LENS_FOCUS = "lens-focus"
    GRAVITY_DROP = "gravity-drop"
    ASCENT = "ascent"
    FRACTURE = "fracture"
    HEARTBEAT = "heartbeat"
    PAIN_WEIGHT = "pain-weight"
    ISOLATION = "isolation"
    CONVERGENCE = "convergence"
    SHOCKWAVE = "shockwave"
    VOID_ABSORB = "void-absorb"
    RADIANCE = "radiance"
    GOLD_RAIN = "gold-rain"
    SPEED_BLUR = "speed-blur"
    SLOW_DRIFT = "slow-drift"
    POWER_SURGE = "power-surge"
    DREAM_FLOAT = "dream-float"
    TRUTH_SNAP = "truth-snap"
    MOTION_STREAK = "motion-streak"


class EmitterType(str, Enum):
    EMBER = "ember"
    FROST = "frost"
    SPARK_BURST = "spark-burst"
    DUST_IMPACT = "dust-impact"
    LIGHT_RAYS = "light-rays"
    CONVERGE = "converge"
    SHOCKWAVE_RING = "shockwave-ring"
    GOLD_COINS = "gold-coins"
    MEMORY_ORBS = "memory-orbs"
    MOTION_TRAIL = "motion-trail"
    DARK_ABSORB = "dark-absorb"
    NONE = "none"


class MotionProfile(str, Enum):
    WEIGHTED = "weighted"
    FLUID = "fluid"
    ELASTIC = "elastic"
    DRIFT = "drift"
    GLITCH = "glitch"


class TypographyPreset(str, Enum):
    BOLD_IMPACT = "bold-impact"
    CLEAN_MODERN = "clean-modern"
    ELEGANT_SERIF = "elegant-serif"
    RAW_CONDENSED = "raw-condensed"
    WHISPER_SOFT = "whisper-soft"
    TECH_MONO = "tech-mono"


class VisualMode(str, Enum):
    INTIMATE = "intimate"
    CINEMATIC = "cinematic"
    EXPLOSIVE = "explosive"


class KineticClass(str, Enum):
    RUNNING = "RUNNING"
    FALLING = "FALLING"
    SPINNING = "SPINNING"
    FLOATING = "FLOATING"
    SHAKING = "SHAKING"
    RISING = "RISING"
    BREAKING = "BREAKING"
    HIDING = "HIDING"
    NEGATION = "NEGATION"
    CRYING = "CRYING"
    SCREAMING = "SCREAMING"
    WHISPERING = "WHISPERING"
    IMPACT = "IMPACT"
    TENDER = "TENDER"
    STILL = "STILL"


class BeatResponse(str, Enum):
    BREATH = "breath"
    PULSE = "pulse"
    SLAM = "slam"
    DRIFT = "drift"
    SHATTER = "shatter"
    SNAP = "snap"


class ShotType(str, Enum):
    WIDE = "Wide"
    MEDIUM = "Medium"
    CLOSE = "Close"
    CLOSE_UP = "CloseUp"
    EXTREME_CLOSE = "ExtremeClose"
    FLOATING_IN_WORLD = "FloatingInWorld"


class EmotionalArc(str, Enum):
    SLOW_BURN = "slow-burn"
    SURGE = "surge"
    COLLAPSE = "collapse"
    DAWN = "dawn"
    FLATLINE = "flatline"
    ERUPTION = "eruption"


class GhostDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    RADIAL = "radial"


# Spellings the direction generator has used for the same style.
STYLE_ALIASES: dict[str, str] = {
    "focus-pulse": "pulse-focus",
}


def coerce_enum(
    enum_cls: Type[E],
    value: Any,
    aliases: Optional[Mapping[str, str]] = None,
) -> Optional[E]:
    """Map a raw payload value onto a member of ``enum_cls``, or None.

    Members pass through. Strings are matched on their exact value first,
    then case-insensitively, then through ``aliases``. Anything else
    (numbers, dicts, unknown strings) yields None.
    """
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if aliases and raw in aliases:
        raw = aliases[raw]
    try:
        return enum_cls(raw)
    except ValueError:
        pass
    lowered = raw.lower()
    for member in enum_cls:
        if member.value.lower() == lowered:
            return member
    return None


def require_complete(table: Mapping[Any, Any], enum_cls: Type[Enum], name: str) -> None:
    """Raise if ``table`` does not have exactly one entry per ``enum_cls`` member.

    Called at module import so an incomplete table fails the first import,
    not the first compile that happens to hit the missing style.
    """
    missing = [m.value for m in enum_cls if m not in table]
    extra = [k for k in table if not isinstance(k, enum_cls)]
    if missing or extra:
        raise RuntimeError(
            "{} is incomplete for {}: missing={} extra={}".format(
                name, enum_cls.__name__, missing, extra
            )
        )
